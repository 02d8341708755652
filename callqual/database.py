"""Database connection and session management."""

import ssl
from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from callqual.config import settings


def _make_permissive_ssl_context() -> ssl.SSLContext:
    """SSL context for hosted Postgres poolers whose cert chains fail locally."""
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def split_ssl_options(database_url: str) -> tuple[str, dict]:
    """Strip sslmode/ssl query params (asyncpg rejects them) and return connect_args."""
    connect_args: dict = {}
    if "sslmode=" not in database_url and "ssl=" not in database_url:
        return database_url, connect_args
    parsed = urlparse(database_url)
    query = parse_qs(parsed.query)
    query.pop("sslmode", None)
    query.pop("ssl", None)
    url = urlunparse(parsed._replace(query=urlencode(query, doseq=True)))
    if "supabase" in database_url:
        connect_args["ssl"] = _make_permissive_ssl_context()
    return url, connect_args


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create an async engine for the given URL."""
    url, connect_args = split_ssl_options(database_url)
    return create_async_engine(url, connect_args=connect_args, **kwargs)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONVariant = JSON().with_variant(JSONB(), "postgresql")


engine = build_engine(settings.database_url, echo=settings.log_level == "DEBUG")

async_session_maker = build_session_maker(engine)


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
