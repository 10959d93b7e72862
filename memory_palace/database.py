"""
SQLAlchemy engine and session. Supports PostgreSQL and SQLite (local development without Docker).
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from memory_palace.config import settings

logger = logging.getLogger(__name__)

_is_sqlite = "sqlite" in settings.database_url
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
engine = create_engine(
    settings.database_url,
    pool_pre_ping=not _is_sqlite,
    connect_args=_connect_args,
    echo=False,  # Set True for SQL logging during development
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=None) -> None:
    """Create tables for all models. Call once at app startup."""
    from memory_palace.models import memory  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database ready (%s)", "sqlite" if _is_sqlite else "server")
