"""History job model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from dmn_audit.database import Base


class HistoryJob(Base):
    """Deferred unit of work that writes an audit to history.

    A worker claims a job by setting lock_owner and lock_exp_time. A job whose
    lock expired without completion is stuck and can be reset.
    """

    __tablename__ = "history_jobs"

    job_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    execution_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("decision_executions.execution_id"), nullable=True
    )
    job_handler_type: Mapped[str] = mapped_column(String(255), nullable=False)
    job_handler_cfg: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    lock_owner: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lock_exp_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    exception_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(String(50), nullable=False)
