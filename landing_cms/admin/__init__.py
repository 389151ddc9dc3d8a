"""
Landing CMS - Admin API

Staff account management behind the role gate.
"""
