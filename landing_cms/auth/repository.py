"""
Landing CMS - Account and Refresh Token Storage

Repositories used by the auth core. They wrap a SQLModel session and
commit each mutation immediately.

Usage:
    users = UserRepository(db)
    tokens = RefreshTokenRepository(db)
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as DBSession, select, func

from landing_cms.auth.errors import NotFoundError
from landing_cms.auth.models import User, RefreshToken, utcnow


def _commit(db: DBSession) -> None:
    """Commit, rolling back on failure so the session stays usable."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


class UserRepository:
    """Account lookup and the mutations the auth core needs."""

    def __init__(self, db: DBSession):
        self.db = db

    async def find_by_email(self, email: str) -> User:
        """
        Look up an account by exact email, including soft-deleted ones
        (callers decide what an inactive account means).

        Raises:
            NotFoundError: no account with this email
        """
        user = self.db.exec(select(User).where(User.email == email)).first()
        if user is None:
            raise NotFoundError(f"user {email!r}")
        return user

    async def find_by_id(self, user_id: UUID) -> User:
        """Raises NotFoundError when absent."""
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"user {user_id}")
        return user

    async def list(self, offset: int = 0, limit: int = 50) -> List[User]:
        """Non-deleted accounts, oldest first."""
        statement = (
            select(User)
            .where(User.deleted_at == None)  # noqa: E711
            .order_by(User.created_at)
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.exec(statement).all())

    async def count(self) -> int:
        statement = select(func.count()).select_from(User).where(User.deleted_at == None)  # noqa: E711
        return self.db.exec(statement).one()

    async def create(self, user: User) -> User:
        self.db.add(user)
        _commit(self.db)
        self.db.refresh(user)
        return user

    async def update(self, user: User) -> User:
        user.updated_at = utcnow()
        self.db.add(user)
        _commit(self.db)
        self.db.refresh(user)
        return user

    async def increment_failed_attempts(self, user_id: UUID) -> int:
        """
        Add one to the consecutive-failure counter.

        Returns:
            The counter after the increment
        """
        user = await self.find_by_id(user_id)
        user.failed_attempts += 1
        self.db.add(user)
        _commit(self.db)
        self.db.refresh(user)
        return user.failed_attempts

    async def reset_failed_attempts(self, user_id: UUID) -> None:
        """Zero the counter and clear any lock."""
        user = await self.find_by_id(user_id)
        user.failed_attempts = 0
        user.locked_until = None
        self.db.add(user)
        _commit(self.db)

    async def lock(self, user_id: UUID, until: datetime) -> None:
        user = await self.find_by_id(user_id)
        user.locked_until = until
        self.db.add(user)
        _commit(self.db)

    async def update_last_login(self, user_id: UUID, ip_address: Optional[str]) -> None:
        user = await self.find_by_id(user_id)
        user.last_login_at = utcnow()
        user.last_login_ip = ip_address
        self.db.add(user)
        _commit(self.db)

    async def soft_delete(self, user_id: UUID) -> None:
        user = await self.find_by_id(user_id)
        user.deleted_at = utcnow()
        self.db.add(user)
        _commit(self.db)


class RefreshTokenRepository:
    """
    Refresh-token record store keyed by token fingerprint.

    The store is the only writer of refresh-token records.
    """

    def __init__(self, db: DBSession):
        self.db = db

    async def create(self, record: RefreshToken) -> RefreshToken:
        self.db.add(record)
        _commit(self.db)
        self.db.refresh(record)
        return record

    async def find_by_fingerprint(self, token_hash: str) -> RefreshToken:
        """Raises NotFoundError when no record has this fingerprint."""
        statement = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        record = self.db.exec(statement).first()
        if record is None:
            raise NotFoundError("refresh token")
        return record

    async def revoke_by_fingerprint(self, token_hash: str) -> bool:
        """
        Mark one record revoked.

        Returns:
            True if a record matched, False otherwise (not an error)
        """
        statement = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        record = self.db.exec(statement).first()
        if record is None:
            return False

        if not record.is_revoked:
            record.is_revoked = True
            record.revoked_at = utcnow()
            self.db.add(record)
            _commit(self.db)
        return True

    async def revoke_all_for_user(self, user_id: UUID) -> int:
        """
        Revoke every live record owned by a user (force logout everywhere).

        Returns:
            Number of records revoked
        """
        statement = select(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked == False,  # noqa: E712
        )
        records = self.db.exec(statement).all()
        now = utcnow()

        for record in records:
            record.is_revoked = True
            record.revoked_at = now
            self.db.add(record)

        _commit(self.db)
        return len(records)

    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        """
        Remove records past their expiry.

        Returns:
            Number of records deleted
        """
        now = now or utcnow()
        statement = select(RefreshToken).where(RefreshToken.expires_at < now)
        records = self.db.exec(statement).all()

        for record in records:
            self.db.delete(record)

        _commit(self.db)
        return len(records)
