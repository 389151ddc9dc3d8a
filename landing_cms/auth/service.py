"""
Landing CMS - Authentication Service

Orchestrates login, logout, refresh-token rotation and password change
on top of the credential hasher, token codec, token fingerprint, lockout
policy and the account / refresh-token stores.

Error contract (see landing_cms.auth.errors):
- login:           InvalidCredentialsError, AccountInactiveError, AccountLockedError
- refresh_tokens:  InvalidTokenError, TokenRevokedError, AccountInactiveError
- change_password: InvalidCredentialsError, AccountInactiveError
- logout:          never fails for unknown tokens

Anything else (storage outage, hashing failure) propagates as an internal
error. Steps documented as best-effort are logged and skipped on failure.
"""

import asyncio
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from landing_cms.auth.errors import (
    AccountInactiveError,
    AccountLockedError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    PasswordHashingError,
    TokenRevokedError,
)
from landing_cms.auth.lockout import LockoutPolicy
from landing_cms.auth.models import RefreshToken, User, utcnow
from landing_cms.auth.password import PasswordHasher
from landing_cms.auth.repository import RefreshTokenRepository, UserRepository
from landing_cms.auth.tokens import AuthTokens, TokenCodec, fingerprint_token
from landing_cms.logging import get_logger


logger = get_logger(__name__)


class AuthService:
    """
    Authentication operations for one unit of work (one request).

    Args:
        users: Account lookup and mutation
        token_store: Refresh-token record store
        codec: Access/refresh token signer
        hasher: bcrypt wrapper
        lockout: Failed-login policy
    """

    def __init__(
        self,
        users: UserRepository,
        token_store: RefreshTokenRepository,
        codec: TokenCodec,
        hasher: PasswordHasher,
        lockout: LockoutPolicy,
    ):
        self.users = users
        self.token_store = token_store
        self.codec = codec
        self.hasher = hasher
        self.lockout = lockout

    async def login(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Tuple[User, AuthTokens]:
        """
        Authenticate with email and password and issue a token pair.

        Order of checks: account lookup, active status, lock, password.
        A missing account and a wrong password raise the same error.
        """
        try:
            user = await self.users.find_by_email(email)
        except NotFoundError:
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning("login_inactive_account", user_id=str(user.id), status=user.status.value)
            raise AccountInactiveError()

        now = utcnow()
        if self.lockout.is_locked(user, now):
            logger.warning("login_locked_account", user_id=str(user.id))
            raise AccountLockedError()

        if not await self._verify_password(password, user.password_hash):
            await self.lockout.record_failure(self.users, user, now)
            raise InvalidCredentialsError()

        await self.lockout.record_success(self.users, user)

        try:
            await self.users.update_last_login(user.id, ip_address)
        except SQLAlchemyError:
            logger.exception("last_login_update_failed", user_id=str(user.id))

        await self._upgrade_hash(user, password)

        tokens = await self._generate_tokens(user, ip_address, user_agent)

        logger.info("login_succeeded", user_id=str(user.id), ip=ip_address)
        return user, tokens

    async def logout(self, raw_refresh_token: str) -> None:
        """Revoke the presented refresh token. Unknown tokens are ignored."""
        revoked = await self.token_store.revoke_by_fingerprint(fingerprint_token(raw_refresh_token))
        if not revoked:
            logger.info("logout_unknown_token")

    async def refresh_tokens(self, raw_refresh_token: str) -> Tuple[User, AuthTokens]:
        """
        Exchange a refresh token for a new pair and retire the old one.

        Returns the account alongside the new pair, as login does.

        The new record is persisted before the presented one is revoked, so
        a failed revoke leaves the caller logged in rather than locked out.
        """
        claims = self.codec.verify_refresh(raw_refresh_token)

        token_hash = fingerprint_token(raw_refresh_token)
        try:
            record = await self.token_store.find_by_fingerprint(token_hash)
        except NotFoundError:
            raise InvalidTokenError("unknown refresh token")

        if record.user_id != claims.user_id:
            raise InvalidTokenError("refresh token owner mismatch")

        if not record.is_valid():
            raise TokenRevokedError()

        try:
            user = await self.users.find_by_id(record.user_id)
        except NotFoundError:
            raise AccountInactiveError()

        if not user.is_active:
            raise AccountInactiveError()

        tokens = await self._generate_tokens(user, record.ip_address, record.user_agent)

        try:
            await self.token_store.revoke_by_fingerprint(token_hash)
        except SQLAlchemyError:
            logger.exception("refresh_rotation_revoke_failed", user_id=str(user.id))

        return user, tokens

    async def change_password(self, user_id: UUID, current_password: str, new_password: str) -> None:
        """
        Replace the password hash and revoke every refresh token of the account.
        """
        try:
            user = await self.users.find_by_id(user_id)
        except NotFoundError:
            raise AccountInactiveError()

        if not user.is_active:
            raise AccountInactiveError()

        if not await self._verify_password(current_password, user.password_hash):
            raise InvalidCredentialsError("current password is incorrect")

        user.password_hash = await asyncio.to_thread(self.hasher.hash, new_password)
        await self.users.update(user)

        try:
            revoked = await self.token_store.revoke_all_for_user(user.id)
        except SQLAlchemyError:
            logger.exception("revoke_all_after_password_change_failed", user_id=str(user.id))
            revoked = 0

        logger.info("password_changed", user_id=str(user.id), sessions_revoked=revoked)

    async def _verify_password(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.hasher.verify, password, password_hash)

    async def _upgrade_hash(self, user: User, password: str) -> None:
        """Re-hash with the configured cost if the stored hash is weaker."""
        if not self.hasher.needs_rehash(user.password_hash):
            return
        try:
            user.password_hash = await asyncio.to_thread(self.hasher.hash, password)
            await self.users.update(user)
        except (SQLAlchemyError, PasswordHashingError):
            logger.exception("password_rehash_failed", user_id=str(user.id))

    async def _generate_tokens(
        self,
        user: User,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> AuthTokens:
        """Issue a pair and persist the refresh token's fingerprint."""
        access_token, expires_at = self.codec.issue_access(user)
        refresh_token, refresh_expires_at = self.codec.issue_refresh(user)

        await self.token_store.create(RefreshToken(
            user_id=user.id,
            token_hash=fingerprint_token(refresh_token),
            expires_at=refresh_expires_at,
            ip_address=ip_address or None,
            user_agent=user_agent or None,
        ))

        return AuthTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            refresh_expires_at=refresh_expires_at,
        )
