"""
Database wiring: async engine, session factory and the declarative base.

Production runs on PostgreSQL through asyncpg; tests and local tooling use
SQLite through aiosqlite, so column types must work on both.
"""
import uuid
from sqlalchemy import TypeDecorator, CHAR
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from keygate.config import settings


class GUID(TypeDecorator):
    """UUID column: native on PostgreSQL, 32-char hex elsewhere."""

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name == "postgresql":
            return value
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return value.hex

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


def async_url(url: str) -> str:
    """Point a plain ``postgresql://`` URL at the asyncpg driver."""
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


ASYNC_DATABASE_URL = async_url(settings.DATABASE_URL)

# SQLite pools do not take size/overflow arguments
engine_options = {"echo": settings.ENVIRONMENT == "development"}
if not ASYNC_DATABASE_URL.startswith("sqlite"):
    engine_options.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
    )

async_engine = create_async_engine(ASYNC_DATABASE_URL, **engine_options)

# Rows stay readable after commit; services hand them to response builders
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncSession:
    """FastAPI dependency yielding one session per request."""
    async with AsyncSessionLocal() as session:
        yield session


async def init_db():
    """Create tables directly; deployments use the alembic revisions instead."""
    import keygate.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
