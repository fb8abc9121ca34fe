"""Database connection and session management."""

import ssl
from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from dmn_audit.config import settings

_SSL_QUERY_PARAMS = ("sslmode", "ssl")

# libpq sslmode values that encrypt without checking the server certificate
_UNVERIFIED_SSL_MODES = frozenset({"allow", "prefer", "require", "true"})


def ssl_connect_arg(mode: str) -> ssl.SSLContext | bool:
    """asyncpg ``ssl`` connect argument for a libpq-style sslmode value."""
    mode = mode.lower()
    if mode in ("disable", "false"):
        return False
    ctx = ssl.create_default_context()
    if mode in _UNVERIFIED_SSL_MODES:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    elif mode == "verify-ca":
        ctx.check_hostname = False
    return ctx


def strip_ssl_params(url: str) -> tuple[str, str | None]:
    """Drop sslmode/ssl query params (asyncpg rejects them). Returns (url, sslmode)."""
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    mode = None
    for param in _SSL_QUERY_PARAMS:
        values = query.pop(param, None)
        if values and mode is None:
            mode = values[-1]
    if mode is None:
        return url, None
    return urlunparse(parsed._replace(query=urlencode(query, doseq=True))), mode


def get_engine_url_and_connect_args(database_url: str | None = None) -> tuple[str, dict]:
    """Engine URL plus connect_args carrying the SSL setting the URL asked for."""
    url, mode = strip_ssl_params(database_url or settings.database_url)
    connect_args = {}
    if mode is not None:
        connect_args["ssl"] = ssl_connect_arg(mode)
    return url, connect_args


_db_url, _connect_args = get_engine_url_and_connect_args()


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


engine = create_async_engine(
    _db_url,
    echo=settings.log_level == "DEBUG",
    connect_args=_connect_args,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for database sessions."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
