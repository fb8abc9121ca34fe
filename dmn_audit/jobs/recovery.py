"""Recovery of history jobs whose asynchronous processing stalled.

A worker claims a history job by locking it. If the worker dies the lock
eventually expires and the job sits unprocessed. Recovery hands such jobs
back so another worker can claim them. How depends on the executor mode:

* in-process queue: the job manager unacquires the job, which clears the
  claim and puts it back in the ready pool;
* message queue: only the lock on the stored job is cleared, the broker
  redelivers the message on its own timeout.

Both are idempotent per job id. Ids that no longer exist are skipped.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dmn_audit.jobs.context import CommandContext

logger = logging.getLogger(__name__)


class HistoryJobRecovery(ABC):
    """Returns one stuck history job to the pool."""

    @abstractmethod
    async def recover(self, command_context: "CommandContext", job_id: str) -> None:
        raise NotImplementedError


class LocalQueueRecovery(HistoryJobRecovery):
    """In-process queue mode: unacquire the job."""

    async def recover(self, command_context: "CommandContext", job_id: str) -> None:
        job = await command_context.history_job_entity_manager.find_by_id(job_id)
        if job is None:
            logger.debug("History job %s not found, skipping", job_id)
            return
        await command_context.job_manager.unacquire(job)


class MessageQueueRecovery(HistoryJobRecovery):
    """Message queue mode: clear the server-side lock; no job lookup."""

    async def recover(self, command_context: "CommandContext", job_id: str) -> None:
        await command_context.history_job_entity_manager.reset_expired_history_job(job_id)


def recovery_for(command_context: "CommandContext") -> HistoryJobRecovery:
    """Pick the recovery backend from the executor configuration."""
    if command_context.engine_configuration.async_history_executor_message_queue_mode:
        return MessageQueueRecovery()
    return LocalQueueRecovery()


class ExpiredHistoryJobRecoverer:
    """
    Command that returns the given history jobs to the pool.

    Runs inside the caller's transaction and processes ids serially in the
    order given. Store errors propagate so the caller's transaction rolls
    back; there are no retries here.
    """

    def __init__(self, job_ids: Iterable[str]):
        self.job_ids = list(job_ids)

    async def execute(self, command_context: "CommandContext") -> None:
        recovery = recovery_for(command_context)
        for job_id in self.job_ids:
            await recovery.recover(command_context, job_id)
        logger.info(
            "Reset %d expired history jobs (%s)",
            len(self.job_ids),
            type(recovery).__name__,
        )


async def find_expired_history_job_ids(
    command_context: "CommandContext", now: datetime
) -> list[str]:
    """Ids of history jobs whose lock expired before now, one page at a time."""
    page_size = command_context.engine_configuration.reset_expired_jobs_page_size
    jobs = await command_context.history_job_entity_manager.find_expired_jobs(now, page_size)
    return [job.job_id for job in jobs]
