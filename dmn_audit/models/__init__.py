"""Database models."""

from dmn_audit.models.decision_execution import DecisionExecution
from dmn_audit.models.history_job import HistoryJob

__all__ = ["DecisionExecution", "HistoryJob"]
