import asyncio
import logging
import os
import ssl
from collections.abc import AsyncIterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .models import Base

_logger = logging.getLogger(__name__)

DB_SSL = os.getenv("DB_SSL", "require").strip().lower()
DB_CONNECT_RETRIES = int(os.getenv("DB_CONNECT_RETRIES", "10"))
DB_CONNECT_DELAY = float(os.getenv("DB_CONNECT_DELAY", "2"))

# libpq options that asyncpg rejects as connect() keyword arguments.
_LIBPQ_ONLY_PARAMS = {"sslmode", "channel_binding"}

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_database_url() -> str:
    url = os.getenv("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set. Cannot start.")
    return url


def to_async_url(url: str) -> str:
    if url.startswith("postgresql+asyncpg://"):
        return url
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url
    params = [
        (key, value)
        for (key, value) in parse_qsl(parts.query, keep_blank_values=True)
        if key not in _LIBPQ_ONLY_PARAMS
    ]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))


def _connect_args() -> dict[str, object]:
    if DB_SSL == "disable":
        return {}
    # Hosted Postgres requires TLS; the peer certificate is not verified.
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return {"ssl": context}


def create_engine_from_env() -> AsyncEngine:
    url = sanitize_database_url(to_async_url(build_database_url()))
    return create_async_engine(url, pool_pre_ping=True, connect_args=_connect_args())


async def startup_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        return
    engine = create_engine_from_env()
    last_error: Exception | None = None
    for attempt in range(1, DB_CONNECT_RETRIES + 1):
        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                await conn.run_sync(Base.metadata.create_all)
            _engine = engine
            _session_factory = async_sessionmaker(engine, expire_on_commit=False)
            _logger.info("Database initialized")
            return
        except Exception as exc:
            last_error = exc
            if attempt == DB_CONNECT_RETRIES:
                break
            _logger.warning(
                "Database connection attempt %s/%s failed; retrying in %ss",
                attempt,
                DB_CONNECT_RETRIES,
                DB_CONNECT_DELAY,
            )
            await asyncio.sleep(DB_CONNECT_DELAY)
    await engine.dispose()
    raise RuntimeError("Database connection failed") from last_error


async def shutdown_db() -> None:
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database is not initialized")
    return _session_factory


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_session_factory()() as session:
        yield session
