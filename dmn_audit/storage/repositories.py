"""Repositories for decision executions and history jobs."""

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dmn_audit.models import DecisionExecution, HistoryJob
from dmn_audit.schemas.audit import DecisionExecutionAudit
from dmn_audit.utils.canonical import audit_hash

logger = logging.getLogger(__name__)

HISTORY_JOB_HANDLER_TYPE = "decision-execution-history"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _now_iso() -> str:
    return _utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")


def _job_uuid(job_id: str) -> str | None:
    """Canonical form of job_id, or None when it is not a UUID (no row can match)."""
    try:
        return str(UUID(str(job_id)))
    except ValueError:
        logger.debug("Ignoring history job id %r, not a UUID", job_id)
        return None


async def create_decision_execution(
    db: AsyncSession, audit: DecisionExecutionAudit
) -> DecisionExecution:
    """Persist a stopped audit."""
    if not audit.stopped:
        raise ValueError(f"Audit for decision '{audit.decision_key}' has not been stopped")
    audit_json = audit.to_json_dict()
    execution = DecisionExecution(
        execution_id=str(uuid4()),
        decision_key=audit.decision_key,
        decision_name=audit.decision_name,
        deployment_id=audit.dmn_deployment_id,
        hit_policy=audit.hit_policy,
        start_time=audit.start_time,
        end_time=audit.end_time,
        failed=audit.failed,
        audit_json=audit_json,
        audit_hash=audit_hash(audit_json),
        created_at=_now_iso(),
    )
    db.add(execution)
    await db.flush()
    return execution


async def get_decision_execution_by_id(
    db: AsyncSession, execution_id: str
) -> DecisionExecution | None:
    """Get a stored decision execution by ID."""
    result = await db.execute(
        select(DecisionExecution).where(DecisionExecution.execution_id == execution_id)
    )
    return result.scalar_one_or_none()


class HistoryJobEntityManager:
    """Data access for history jobs inside one session (transaction)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, job_id: str) -> HistoryJob | None:
        key = _job_uuid(job_id)
        if key is None:
            return None
        return await self.db.get(HistoryJob, key)

    async def insert(self, job: HistoryJob) -> HistoryJob:
        self.db.add(job)
        await self.db.flush()
        return job

    async def create_for_execution(self, execution: DecisionExecution) -> HistoryJob:
        """Queue the history job that writes execution to history."""
        job = HistoryJob(
            job_id=str(uuid4()),
            execution_id=execution.execution_id,
            job_handler_type=HISTORY_JOB_HANDLER_TYPE,
            job_handler_cfg={"executionId": execution.execution_id},
            created_at=_now_iso(),
        )
        return await self.insert(job)

    async def find_expired_jobs(self, now: datetime, limit: int) -> list[HistoryJob]:
        """Jobs whose lock expired before now, oldest expiration first."""
        result = await self.db.execute(
            select(HistoryJob)
            .where(HistoryJob.lock_exp_time.is_not(None))
            .where(HistoryJob.lock_exp_time < now)
            .order_by(HistoryJob.lock_exp_time)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def reset_expired_history_job(self, job_id: str) -> None:
        """Clear the lock of job_id. A missing id updates nothing."""
        key = _job_uuid(job_id)
        if key is None:
            return
        result = await self.db.execute(
            update(HistoryJob)
            .where(HistoryJob.job_id == key)
            .values(lock_owner=None, lock_exp_time=None)
        )
        if result.rowcount == 0:
            logger.debug("History job %s not found, nothing to reset", job_id)


class JobManager:
    """Releases history jobs claimed by in-process executor workers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def unacquire(self, job: HistoryJob) -> None:
        """Drop the claim on job so any worker can acquire it again."""
        job.lock_owner = None
        job.lock_exp_time = None
        await self.db.flush()
