"""
Landing CMS - Audit Trail

Append-only record of authentication events and account changes.
"""

from landing_cms.audit.models import AuditAction, AuditEvent, AuditLog
from landing_cms.audit.recorder import AuditRecorder

__all__ = [
    "AuditAction",
    "AuditEvent",
    "AuditLog",
    "AuditRecorder",
]
