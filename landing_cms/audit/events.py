"""
Landing CMS - Audit Event Submission

Helper used by routes to hand an event to the app's AuditRecorder with the
request metadata (client IP, user agent, request id) filled in.
"""

from typing import Any, Optional
from uuid import UUID

from starlette.requests import Request

from landing_cms.audit.models import AuditAction, AuditEvent
from landing_cms.auth.dependencies import get_client_ip, get_user_agent


def submit_audit_event(
    request: Request,
    action: AuditAction,
    resource_type: str,
    resource_id: Optional[str] = None,
    user_id: Optional[UUID] = None,
    user_email: Optional[str] = None,
    user_role: Optional[str] = None,
    **details: Any,
) -> bool:
    """
    Queue an audit event for the current request.

    Returns:
        True if queued; False when auditing is off or the queue is full
    """
    recorder = getattr(request.app.state, "audit", None)
    if recorder is None:
        return False

    return recorder.record(AuditEvent(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user_id,
        user_email=user_email,
        user_role=user_role,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
        request_id=getattr(request.state, "request_id", None),
        details=details,
    ))
