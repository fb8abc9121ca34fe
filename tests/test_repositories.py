"""Unit tests for history job and decision execution repositories (mocked session)."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError
from sqlalchemy.dialects import postgresql

from dmn_audit.audit import AuditRecorder
from dmn_audit.models import DecisionExecution, HistoryJob
from dmn_audit.schemas.history_jobs import ResetExpiredJobsRequest
from dmn_audit.storage.repositories import (
    HISTORY_JOB_HANDLER_TYPE,
    HistoryJobEntityManager,
    JobManager,
    create_decision_execution,
)
from dmn_audit.utils.canonical import audit_hash

T0 = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
JOB_ID = "6f1c2a9e-3b4d-4c8e-9a1f-2d7e5b0c4a13"


def _session() -> MagicMock:
    db = MagicMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    return db


def _recorder() -> AuditRecorder:
    return AuditRecorder.begin(
        "loanApproval", "Loan approval", "FIRST", True, {"amount": 1}, clock=lambda: T0
    )


def test_create_decision_execution_stores_wire_payload():
    db = _session()
    audit = _recorder().stop_audit()
    execution = asyncio.run(create_decision_execution(db, audit))

    db.add.assert_called_once_with(execution)
    db.flush.assert_awaited_once()
    assert execution.decision_key == "loanApproval"
    assert execution.hit_policy == "FIRST"
    assert execution.audit_json["decisionKey"] == "loanApproval"
    assert execution.audit_hash == audit_hash(execution.audit_json)


def test_create_decision_execution_requires_stopped_audit():
    db = _session()
    with pytest.raises(ValueError, match="has not been stopped"):
        asyncio.run(create_decision_execution(db, _recorder().audit))
    db.add.assert_not_called()


def test_create_history_job_for_execution():
    db = _session()
    execution = DecisionExecution(execution_id="e-1")
    job = asyncio.run(HistoryJobEntityManager(db).create_for_execution(execution))

    db.add.assert_called_once_with(job)
    assert job.execution_id == "e-1"
    assert job.job_handler_type == HISTORY_JOB_HANDLER_TYPE
    assert job.job_handler_cfg == {"executionId": "e-1"}
    assert job.lock_owner is None


def test_find_by_id_missing_returns_none():
    db = _session()
    db.get.return_value = None
    assert asyncio.run(HistoryJobEntityManager(db).find_by_id(JOB_ID)) is None
    db.get.assert_awaited_once_with(HistoryJob, JOB_ID)


def test_find_by_id_non_uuid_skips_query():
    """Ids the UUID column cannot hold never reach the driver."""
    db = _session()
    assert asyncio.run(HistoryJobEntityManager(db).find_by_id("b")) is None
    db.get.assert_not_called()


def test_reset_expired_history_job_tolerates_missing_id():
    db = _session()
    db.execute.return_value = MagicMock(rowcount=0)
    asyncio.run(HistoryJobEntityManager(db).reset_expired_history_job(JOB_ID))
    db.execute.assert_awaited_once()


def test_reset_expired_history_job_non_uuid_skips_update():
    db = _session()
    asyncio.run(HistoryJobEntityManager(db).reset_expired_history_job("b"))
    db.execute.assert_not_called()


def test_reset_expired_history_job_clears_owner_and_expiration():
    """The UPDATE targets the one job and nulls both lock columns."""
    db = _session()
    db.execute.return_value = MagicMock(rowcount=1)
    asyncio.run(HistoryJobEntityManager(db).reset_expired_history_job(JOB_ID.upper()))

    stmt = db.execute.await_args.args[0]
    compiled = stmt.compile(dialect=postgresql.dialect())
    sql = str(compiled)
    assert sql.startswith("UPDATE history_jobs SET")
    assert "lock_owner=" in sql
    assert "lock_exp_time=" in sql
    assert "WHERE history_jobs.job_id =" in sql
    assert compiled.params["lock_owner"] is None
    assert compiled.params["lock_exp_time"] is None
    assert JOB_ID in compiled.params.values()


def test_unacquire_clears_lock():
    db = _session()
    job = HistoryJob(job_id=JOB_ID, lock_owner="worker-1", lock_exp_time=T0)
    asyncio.run(JobManager(db).unacquire(job))
    assert job.lock_owner is None
    assert job.lock_exp_time is None
    db.flush.assert_awaited_once()


def test_reset_request_rejects_non_uuid_ids():
    with pytest.raises(ValidationError):
        ResetExpiredJobsRequest(job_ids=["b"])
    body = ResetExpiredJobsRequest(job_ids=[JOB_ID.upper()])
    assert [str(job_id) for job_id in body.job_ids] == [JOB_ID]
