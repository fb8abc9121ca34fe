"""Decision execution request/response schemas."""

from pydantic import BaseModel

from dmn_audit.schemas.audit import DecisionExecutionAudit


class DecisionExecutionCreated(BaseModel):
    """POST /v1/decision-executions response."""

    execution_id: str
    history_job_id: str
    audit_hash: str


class DecisionExecutionRecord(BaseModel):
    """GET /v1/decision-executions/{id} response."""

    execution_id: str
    audit_hash: str
    created_at: str
    audit: DecisionExecutionAudit
