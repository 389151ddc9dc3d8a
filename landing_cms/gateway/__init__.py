"""
Landing CMS - API Gateway

Role gate, rate limiting and security middleware.
"""
