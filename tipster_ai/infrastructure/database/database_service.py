"""
Database Service

Engine and session factory for the prediction ledger. SQLite is the
default for local runs; hosted Postgres URLs are accepted as given by
the platform.
"""

import logging
from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from tipster_ai.config import DATABASE_URL

logger = logging.getLogger(__name__)

Base = declarative_base()


def normalize_database_url(url: str) -> str:
    """Rewrite the legacy ``postgres://`` scheme that SQLAlchemy 2 rejects."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def describe_database_url(url: str) -> str:
    """Loggable form of a database URL, without credentials."""
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        return f"sqlite ({parsed.database or 'memory'})"
    return f"{parsed.get_backend_name()} at {parsed.host}/{parsed.database}"


class DatabaseService:
    """
    Owns the SQLAlchemy engine. Repositories open one short session per call.
    """

    def __init__(self, db_url: Optional[str] = None):
        self.db_url = normalize_database_url(db_url or DATABASE_URL)

        connect_args = {}
        if self.db_url.startswith("sqlite"):
            # Sessions are used from the event loop thread and uvicorn workers
            connect_args["check_same_thread"] = False

        self.engine = create_engine(self.db_url, pool_pre_ping=True, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info(f"Prediction ledger on {describe_database_url(self.db_url)}")

    def create_tables(self) -> None:
        """Create the ledger tables if they do not exist."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ready")

    def get_session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        """Close pooled connections on shutdown."""
        self.engine.dispose()


_db_instance: Optional[DatabaseService] = None


def get_database_service() -> DatabaseService:
    """Get the process-wide database service."""
    global _db_instance
    if _db_instance is None:
        _db_instance = DatabaseService()
    return _db_instance
