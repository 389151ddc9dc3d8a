"""
Landing CMS - Refresh Token Cookie

The refresh token travels in an HttpOnly cookie scoped to the auth routes.
Secure, SameSite and domain come from settings.
"""

from datetime import datetime
from typing import Optional

from starlette.responses import Response

from landing_cms.auth.models import utcnow


REFRESH_COOKIE_NAME = "refresh_token"
REFRESH_COOKIE_PATH = "/api/v1/auth"


def set_refresh_cookie(
    response: Response,
    token: str,
    expires_at: datetime,
    settings,
    now: Optional[datetime] = None,
) -> None:
    """Attach the refresh token with max-age running to its expiry."""
    max_age = max(0, int((expires_at - (now or utcnow())).total_seconds()))
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        max_age=max_age,
        path=REFRESH_COOKIE_PATH,
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
    )


def clear_refresh_cookie(response: Response, settings) -> None:
    """Expire the refresh cookie (max-age 0) with the same scope it was set with."""
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path=REFRESH_COOKIE_PATH,
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
    )
