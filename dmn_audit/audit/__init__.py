"""Decision execution audit trail."""

from dmn_audit.audit.exceptions import (
    AuditClosedError,
    AuditError,
    AuditProtocolError,
    InvalidHitPolicyError,
)
from dmn_audit.audit.recorder import AuditRecorder
from dmn_audit.audit.types import classify_value, snapshot_value

__all__ = [
    "AuditRecorder",
    "AuditError",
    "AuditProtocolError",
    "AuditClosedError",
    "InvalidHitPolicyError",
    "classify_value",
    "snapshot_value",
]
