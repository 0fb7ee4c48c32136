# database/session.py
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from config import settings


logger = logging.getLogger(settings.LOGGER_NAME)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _json_dumps(value) -> str:
    # Keep non-ASCII tags literal so ILIKE over the JSON text can match them
    return json.dumps(value, ensure_ascii=False)

# ============= Models =============

class DocumentEntity(Base):
    __tablename__ = "documents"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False, index=True)
    filename = Column(String, nullable=False)  # The original filename
    file_type = Column(String, nullable=False, index=True)
    file_size_bytes = Column(Integer, nullable=False)
    extracted_text = Column(Text, nullable=False)
    category = Column(String, nullable=False, default="Other", index=True)
    team = Column(String, index=True)
    project = Column(String, index=True)
    tags = Column(JSON, nullable=False, default=list)
    summary = Column(Text)
    embedding = Column(JSON(none_as_null=True), nullable=True)
    uploaded_by = Column(String, nullable=False, default="System")
    # The secure filename on disk
    storage_location = Column(String, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    last_accessed = Column(DateTime(timezone=True), default=_utcnow)
    access_count = Column(Integer, nullable=False, default=0)


# ============= Database handle =============

class Database:
    """
    Owns the async engine and session factory.

    Created once per process, init() on startup and close() on shutdown,
    then handed to the repositories that need a session.
    """

    def __init__(self, url: str = settings.DATABASE_URL, echo: bool = settings.DB_ECHO):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    def _engine_options(self) -> dict:
        if self.url.startswith("sqlite"):
            # SQLite pools don't take size options; in-memory needs one shared connection
            if ":memory:" in self.url:
                return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
            return {}
        return {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": True,  # Check connection health before using
        }

    async def init(self) -> None:
        """Create the engine and ensure the schema exists."""
        if self._engine is not None:
            return
        self._engine = create_async_engine(
            self.url, echo=self.echo, json_serializer=_json_dumps, **self._engine_options()
        )
        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("Database connections closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a new database session with proper cleanup.

        Ensures rollback on errors and explicit closure.
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database.init() must be called before opening sessions")
        async with self._sessionmaker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()
