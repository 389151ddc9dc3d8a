"""
Landing CMS - Headless content-management API for landing pages.

This package holds the authentication and authorization core: token
issuance and rotation, password login with lockout, and the role gate in
front of every admin route.
"""

__version__ = "1.0.0"
