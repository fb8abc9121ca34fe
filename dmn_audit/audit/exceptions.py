"""Audit recorder exceptions."""


class AuditError(Exception):
    """Base class for audit trail errors."""


class AuditProtocolError(AuditError):
    """The evaluator broke the recorder lifecycle (programming error)."""


class AuditClosedError(AuditProtocolError):
    """A mutation was attempted after stop_audit()."""

    def __init__(self, operation: str, decision_key: str):
        super().__init__(
            f"Cannot {operation}: audit for decision '{decision_key}' is already stopped"
        )
        self.operation = operation
        self.decision_key = decision_key


class InvalidHitPolicyError(AuditError, ValueError):
    """Hit policy tag is not one of the standard decision table hit policies."""
