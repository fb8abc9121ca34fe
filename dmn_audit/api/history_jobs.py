"""Admin endpoints - history job recovery."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dmn_audit.auth.middleware import AdminDep
from dmn_audit.database import get_db
from dmn_audit.jobs.context import context_for_session
from dmn_audit.jobs.recovery import (
    ExpiredHistoryJobRecoverer,
    find_expired_history_job_ids,
)
from dmn_audit.schemas.history_jobs import ExpiredJobsResponse, ResetExpiredJobsRequest

router = APIRouter()


@router.get("/history-jobs/expired", response_model=ExpiredJobsResponse)
async def list_expired_history_jobs(
    _admin: AdminDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List history jobs whose lock has expired."""
    ctx = context_for_session(db)
    job_ids = await find_expired_history_job_ids(ctx, datetime.now(timezone.utc))
    return ExpiredJobsResponse(
        job_ids=job_ids,
        message_queue_mode=ctx.engine_configuration.async_history_executor_message_queue_mode,
    )


@router.post("/history-jobs/reset-expired", response_model=ExpiredJobsResponse)
async def reset_expired_history_jobs(
    body: ResetExpiredJobsRequest,
    _admin: AdminDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Return stuck history jobs to the pool so another worker picks them up."""
    ctx = context_for_session(db)
    job_ids = [str(job_id) for job_id in body.job_ids]
    if not job_ids:
        job_ids = await find_expired_history_job_ids(ctx, datetime.now(timezone.utc))
    await ExpiredHistoryJobRecoverer(job_ids).execute(ctx)
    return ExpiredJobsResponse(
        job_ids=job_ids,
        message_queue_mode=ctx.engine_configuration.async_history_executor_message_queue_mode,
    )
