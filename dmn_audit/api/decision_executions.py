"""Decision execution endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from dmn_audit.database import get_db
from dmn_audit.schemas.audit import DecisionExecutionAudit
from dmn_audit.schemas.decision_execution import (
    DecisionExecutionCreated,
    DecisionExecutionRecord,
)
from dmn_audit.storage.repositories import (
    HistoryJobEntityManager,
    create_decision_execution,
    get_decision_execution_by_id,
)

router = APIRouter()


@router.post(
    "/decision-executions",
    response_model=DecisionExecutionCreated,
    status_code=status.HTTP_201_CREATED,
)
async def store_decision_execution(
    body: Annotated[dict[str, Any], Body()],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Store a stopped decision audit (wire format) and queue its history job.
    """
    try:
        audit = DecisionExecutionAudit.from_json_dict(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc
    if not audit.stopped:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Audit has no endTime; stop it before storing",
        )

    execution = await create_decision_execution(db, audit)
    job = await HistoryJobEntityManager(db).create_for_execution(execution)
    return DecisionExecutionCreated(
        execution_id=str(execution.execution_id),
        history_job_id=str(job.job_id),
        audit_hash=execution.audit_hash,
    )


@router.get("/decision-executions/{execution_id}", response_model=DecisionExecutionRecord)
async def get_decision_execution(
    execution_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get a stored decision audit by ID."""
    execution = await get_decision_execution_by_id(db, execution_id)
    if not execution:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Decision execution not found",
        )
    return DecisionExecutionRecord(
        execution_id=str(execution.execution_id),
        audit_hash=execution.audit_hash,
        created_at=execution.created_at,
        audit=DecisionExecutionAudit.from_json_dict(execution.audit_json),
    )
