from contextlib import contextmanager

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import sessionmaker

from jobportal.core.config import get_settings
from jobportal.core.exceptions import StoreUnavailable
from jobportal.db.tables import metadata

log = structlog.get_logger(__name__)
settings = get_settings()


def build_engine(url: str) -> Engine:
    """
    Create the engine for a database URL.

    PostgreSQL gets a connection pool:
    pool_size=5: maintain 5 connections ready
    max_overflow=10: allow 10 extra connections under load
    SQLite (local runs, tests) is opened shareable across threads.
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=settings.debug  # Log SQL queries in debug mode
    )


engine = build_engine(settings.sqlalchemy_url)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.
    Commits on success, rolls back on any exception.
    Usage:
        with get_db_session() as db:
            db.execute(text("SELECT * FROM users"))
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create all tables and constraints (no-op for existing tables)."""
    metadata.create_all(engine)


def drop_tables() -> None:
    metadata.drop_all(engine)


def dialect_name(db) -> str:
    """'postgresql', 'sqlite', ... for the connection behind a session."""
    return db.get_bind().dialect.name


def check_database_connection() -> bool:
    """
    Test if the database is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session() as db:
            result = db.execute(text("SELECT 1 as test"))
            row = result.fetchone()
            return row[0] == 1
    except DBAPIError as e:
        log.warning("database_connection_failed", error=str(e))
        return False


def execute_raw_sql(sql: str, params: dict = None) -> list:
    """
    Execute raw SQL and return results as list of dicts.
    Store I/O failures surface as StoreUnavailable.
    """
    try:
        with get_db_session() as db:
            result = db.execute(text(sql), params or {})
            return [dict(row) for row in result.mappings().fetchall()]
    except DBAPIError as e:
        log.error("store_query_failed", error=str(e))
        raise StoreUnavailable("Database is unavailable") from e
