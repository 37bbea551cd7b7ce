"""
Collection store connection and management
"""
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from movie_collection.shared.exceptions import StoreError

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class MovieModel(Base):
    """SQLAlchemy model for collection movies"""
    __tablename__ = "movies"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(500), nullable=False, index=True)
    genre = Column(String(20), nullable=False, index=True)
    actor = Column(String(500))
    rating = Column(Integer, index=True)
    poster_url = Column(Text)
    director = Column(String(500))
    cast = Column(Text)

    # External catalog fields; imdb_id is unique when present
    imdb_id = Column(String(20), unique=True, index=True, nullable=True)
    imdb_rating = Column(String(10))
    year = Column(String(20))
    runtime = Column(String(20))
    plot = Column(Text)
    country = Column(Text)
    language = Column(Text)
    awards = Column(Text)
    trailer = Column(Text)
    box_office = Column(String(50))
    production = Column(Text)

    created_by = Column(String(100), index=True)

    # System fields
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Movie(id='{self.id}', title='{self.title}', genre='{self.genre}')>"


class Database:
    """Collection store connection manager

    The engine is process-wide and created on first use. ``connect`` may also
    be called eagerly at startup.
    """

    def __init__(self, config):
        self.config = config
        self.engine = None
        self.session_factory = None

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    @property
    def is_connected(self) -> bool:
        return self.session_factory is not None

    async def connect(self):
        """Initialize database connection"""
        if not self.is_configured:
            raise StoreError("Collection store is not configured")

        engine_options = {"echo": False}  # Set to True for SQL debugging
        if not self.config.is_sqlite:
            engine_options.update(
                pool_size=self.config.pool_size,
                max_overflow=self.config.max_overflow,
                pool_pre_ping=True,
            )

        try:
            self.engine = create_async_engine(self.config.url, **engine_options)

            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            # Create tables if they don't exist
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            logger.info("✅ Collection store connected successfully")

        except Exception as e:
            logger.error(f"❌ Collection store connection failed: {str(e)}")
            await self.disconnect()
            raise StoreError("Collection store is unavailable") from e

    async def disconnect(self):
        """Close database connection"""
        if self.engine:
            await self.engine.dispose()
            logger.info("Collection store disconnected")
        self.engine = None
        self.session_factory = None

    @asynccontextmanager
    async def session(self):
        """Yield a session, connecting on first use"""
        if not self.is_connected:
            await self.connect()
        async with self.session_factory() as session:
            yield session

    async def health_check(self) -> bool:
        """Check database health"""
        if not self.is_configured:
            return False
        try:
            async with self.session() as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error(f"Collection store health check failed: {str(e)}")
            return False
