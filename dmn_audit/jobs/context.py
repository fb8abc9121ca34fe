"""Transactional command context for history job commands."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from dmn_audit.config import Settings, settings
from dmn_audit.database import async_session_maker
from dmn_audit.storage.repositories import HistoryJobEntityManager, JobManager


@dataclass
class CommandContext:
    """Collaborators a command needs, all bound to one session."""

    db: AsyncSession
    engine_configuration: Settings
    history_job_entity_manager: HistoryJobEntityManager = field(init=False)
    job_manager: JobManager = field(init=False)

    def __post_init__(self) -> None:
        self.history_job_entity_manager = HistoryJobEntityManager(self.db)
        self.job_manager = JobManager(self.db)


@asynccontextmanager
async def command_context(
    engine_configuration: Settings | None = None,
) -> AsyncIterator[CommandContext]:
    """Open a session, yield a CommandContext, commit on success, roll back on error."""
    async with async_session_maker() as session:
        try:
            yield CommandContext(session, engine_configuration or settings)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def context_for_session(
    db: AsyncSession, engine_configuration: Settings | None = None
) -> CommandContext:
    """CommandContext over a session whose transaction the caller manages."""
    return CommandContext(db, engine_configuration or settings)
