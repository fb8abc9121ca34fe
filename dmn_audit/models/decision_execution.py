"""Decision execution audit model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from dmn_audit.database import Base


class DecisionExecution(Base):
    """Stopped decision audits - append-only."""

    __tablename__ = "decision_executions"

    execution_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    decision_key: Mapped[str] = mapped_column(Text, nullable=False)
    decision_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    deployment_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    hit_policy: Mapped[str] = mapped_column(String(32), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    failed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    audit_json: Mapped[dict] = mapped_column(JSONB, nullable=False)
    audit_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[str] = mapped_column(String(50), nullable=False)
