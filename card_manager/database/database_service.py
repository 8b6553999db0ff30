"""
SQLAlchemy database service.

Provides engine and session management plus schema creation for the
business card store.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.orm import Base

logger = logging.getLogger(__name__)


class DatabaseService:
    """
    Database service for business cards, categories and inline images.

    Manages the SQLAlchemy engine and hands out transactional sessions.
    """

    def __init__(self, database_url: str = "sqlite:///./data/business_cards.db"):
        """
        Initialize database service.

        Args:
            database_url: SQLAlchemy database URL
        """
        self.database_url = database_url

        self.__engine: Optional[Engine] = None
        self.__SessionLocal: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if not self.__engine:
            raise RuntimeError("Database not connected")
        return self.__engine

    @property
    def is_connected(self) -> bool:
        return self.__engine is not None

    def connect(self) -> None:
        """Create the engine and session factory"""
        url = make_url(self.database_url)
        engine_kwargs = {"echo": False}

        if url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}  # Allow multi-threaded access
            if url.database in (None, "", ":memory:"):
                # One shared connection, otherwise every session sees an empty database
                engine_kwargs["poolclass"] = StaticPool
            else:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        self.__engine = create_engine(url, **engine_kwargs)

        if url.get_backend_name() == "sqlite":
            event.listen(self.__engine, "connect", _enable_sqlite_foreign_keys)

        self.__SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.__engine
        )
        logger.info(f"Connected to database: {url.render_as_string(hide_password=True)}")

    def disconnect(self) -> None:
        """Dispose of the engine"""
        if self.__engine:
            self.__engine.dispose()
            self.__engine = None
            self.__SessionLocal = None
        logger.info("Disconnected from database")

    def initialize_schema(self) -> None:
        """Create tables and indexes if they don't exist"""
        Base.metadata.create_all(self.engine)
        logger.info("Database schema initialized")

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Context manager for a transactional session.

        Commits when the block succeeds, rolls back and re-raises otherwise.

        Yields:
            Session: SQLAlchemy session
        """
        if not self.__SessionLocal:
            raise RuntimeError("Database not connected")

        session = self.__SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
