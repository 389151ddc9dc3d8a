"""
Landing CMS - Audit Recorder

Routes submit AuditEvents without waiting on the database. Events go into a
bounded asyncio queue drained by a single background worker that persists
AuditLog rows.

Security:
- Credential-like keys are stripped from details before persisting
- A full queue drops the event with a warning; the request never fails
"""

import asyncio
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as DBSession

from landing_cms.audit.models import AuditEvent, AuditLog
from landing_cms.logging import get_logger


logger = get_logger(__name__)

_SENSITIVE_MARKERS = ("password", "token", "secret", "hash")


def scrub_details(details: Dict[str, Any]) -> Dict[str, Any]:
    """Drop any key that looks like it carries a credential."""
    return {
        key: value
        for key, value in details.items()
        if not any(marker in key.lower() for marker in _SENSITIVE_MARKERS)
    }


class AuditRecorder:
    """
    Background writer for audit events.

    Args:
        session_factory: Callable returning a new database session
        max_queue: Events buffered before new ones are dropped
        enabled: When False, record() is a no-op
    """

    def __init__(
        self,
        session_factory: Callable[[], DBSession],
        max_queue: int = 1000,
        enabled: bool = True,
    ):
        self._session_factory = session_factory
        self._max_queue = max_queue
        self.enabled = enabled
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def start(self) -> None:
        """Create the queue and worker on the running loop."""
        if not self.enabled or self.running:
            return
        self._queue = asyncio.Queue(maxsize=self._max_queue)
        self._worker = asyncio.create_task(self._run(), name="audit-recorder")
        logger.info("audit_recorder_started", max_queue=self._max_queue)

    def record(self, event: AuditEvent) -> bool:
        """
        Enqueue an event without blocking.

        Returns:
            True if the event was queued, False if disabled, stopped or full
        """
        if not self.enabled or self._queue is None:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("audit_event_dropped", action=event.action.value, reason="queue_full")
            return False
        return True

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Drain pending events (up to timeout), then stop the worker."""
        if self._worker is None:
            return

        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("audit_drain_timed_out", pending=self.pending)

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass

        self._worker = None
        self._queue = None
        logger.info("audit_recorder_stopped")

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self._write(event)
            except SQLAlchemyError:
                logger.exception("audit_write_failed", action=event.action.value)
            finally:
                self._queue.task_done()

    def _write(self, event: AuditEvent) -> None:
        db = self._session_factory()
        try:
            db.add(AuditLog(
                action=event.action.value,
                resource_type=event.resource_type,
                resource_id=event.resource_id,
                user_id=event.user_id,
                user_email=event.user_email,
                user_role=event.user_role,
                ip_address=event.ip_address,
                user_agent=event.user_agent,
                request_id=event.request_id,
                details=scrub_details(event.details),
                created_at=event.occurred_at,
            ))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()
