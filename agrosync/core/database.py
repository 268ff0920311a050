"""
Database service for AgroSync
Async SQLite storage for local records, the operation queue and metadata
"""

import logging
from pathlib import Path
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from agrosync.core.exceptions import LocalStoreUnavailableError
from agrosync.core.models import Base

REQUIRED_TABLES = ('local_records', 'sync_queue', 'metadata')


class DatabaseService:
    """Async SQLite database service"""

    def __init__(self, database_url: str = "sqlite+aiosqlite:///./data/agrosync.db",
                 echo: bool = False):
        self.database_url = database_url
        self.logger = logging.getLogger(__name__)

        # Ensure data directory exists for file databases
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        engine_kwargs = {"echo": echo}
        if url.get_backend_name() == "sqlite":
            engine_kwargs.update(
                poolclass=StaticPool,
                connect_args={"check_same_thread": False}
            )

        self.engine = create_async_engine(database_url, **engine_kwargs)

        self.SessionLocal = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        self.logger.info(f"Database service initialized: {database_url}")

    async def initialize_database(self):
        """Create missing tables and verify the schema"""
        self.logger.info("Initializing database...")
        await self.create_tables()

        if not await self.health_check():
            raise LocalStoreUnavailableError("Database health check failed after initialization")

        self.logger.info("Database initialization completed successfully")

    async def create_tables(self):
        """Create tables using SQLAlchemy directly"""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            self.logger.info("All tables created successfully")
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating tables: {e}")
            raise LocalStoreUnavailableError(f"Cannot create tables: {e}") from e

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session"""
        async with self.SessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def guarded_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session whose database failures surface as LocalStoreUnavailableError"""
        try:
            async with self.get_session() as session:
                yield session
        except SQLAlchemyError as e:
            self.logger.error(f"Local database operation failed: {e}")
            raise LocalStoreUnavailableError(str(e)) from e

    async def health_check(self) -> bool:
        """Check database connection health"""
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))

                result = await session.execute(
                    text("SELECT name FROM sqlite_master WHERE type='table' "
                         "AND name IN ('local_records', 'sync_queue', 'metadata')")
                )
                tables = result.fetchall()

                if len(tables) < len(REQUIRED_TABLES):
                    self.logger.warning(f"Only {len(tables)}/{len(REQUIRED_TABLES)} expected tables found")
                    return False

                return True
        except SQLAlchemyError as e:
            self.logger.error(f"Database health check failed: {e}")
            return False

    async def get_schema_info(self) -> dict:
        """Get database schema information"""
        async with self.guarded_session() as session:
            tables_result = await session.execute(
                text("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
            )
            tables = [row[0] for row in tables_result.fetchall()]

        return {
            'tables': tables,
            'table_count': len(tables),
            'database_file': self.database_url
        }

    async def close(self):
        """Close database connections"""
        await self.engine.dispose()
        self.logger.info("Database connections closed")
