"""
Landing CMS - Account Lockout Policy

Tracks consecutive failed logins per account and locks the account for a
fixed duration once the count reaches the threshold.

States:
    Unlocked(failed_attempts=n) --failure, n+1 >= threshold--> Locked(until)
    any state --successful password check--> Unlocked(0)
    Locked(until) is left lazily: once now >= until the next login attempt
    proceeds as if unlocked, and the counter starts over from zero.

Bookkeeping writes are best-effort: a storage error is logged and the
caller still reports the original outcome (a generic invalid-credentials
error on failure).
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from landing_cms.auth.models import User, utcnow
from landing_cms.auth.repository import UserRepository
from landing_cms.logging import get_logger


logger = get_logger(__name__)


class LockoutPolicy:
    """
    Args:
        max_attempts: Failures that trigger a lock (default 5)
        lock_duration: How long the lock lasts (default 15 minutes)
    """

    def __init__(self, max_attempts: int = 5, lock_duration: timedelta = timedelta(minutes=15)):
        self.max_attempts = max_attempts
        self.lock_duration = lock_duration

    @classmethod
    def from_settings(cls, settings) -> "LockoutPolicy":
        return cls(
            max_attempts=settings.LOCKOUT_MAX_ATTEMPTS,
            lock_duration=timedelta(minutes=settings.LOCKOUT_DURATION_MINUTES),
        )

    def is_locked(self, user: User, now: Optional[datetime] = None) -> bool:
        """True while locked_until lies in the future."""
        if user.locked_until is None:
            return False
        return (now or utcnow()) < user.locked_until

    async def record_failure(
        self,
        users: UserRepository,
        user: User,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Count a failed password check and lock the account at the threshold.

        Returns:
            True if this failure locked the account
        """
        now = now or utcnow()
        try:
            if user.locked_until is not None and user.locked_until <= now:
                # Expired lock: start a fresh window
                await users.reset_failed_attempts(user.id)

            attempts = await users.increment_failed_attempts(user.id)
            if attempts < self.max_attempts:
                return False

            await users.lock(user.id, now + self.lock_duration)
        except SQLAlchemyError:
            logger.exception("lockout_bookkeeping_failed", user_id=str(user.id))
            return False

        logger.warning(
            "account_locked",
            user_id=str(user.id),
            attempts=attempts,
            lock_minutes=int(self.lock_duration.total_seconds() // 60),
        )
        return True

    async def record_success(self, users: UserRepository, user: User) -> None:
        """Clear the counter and any lock after a successful password check."""
        try:
            await users.reset_failed_attempts(user.id)
        except SQLAlchemyError:
            logger.exception("lockout_reset_failed", user_id=str(user.id))
