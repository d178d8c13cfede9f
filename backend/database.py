# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy engine, session factory, declarative base, and the FastAPI
dependency that provides a transactional DB session per request.

The search engine runs its sub-queries on worker threads; each thread opens
its own session from ``SessionLocal``.  Sessions are never shared between
threads.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from core.config import settings


def build_engine(url: str) -> Engine:
    """
    Create an engine for *url*.

    SQLite (development and tests) needs two adjustments: connections are
    used from worker threads, and foreign keys are off unless enabled on
    every new connection.
    """
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})

        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    # pool_pre_ping keeps idle connections alive across MySQL's wait_timeout
    return create_engine(url, pool_pre_ping=True)


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    FastAPI dependency.  Yields a session for the duration of the request,
    then closes it.  Use with Depends(get_db).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """FastAPI dependency for callers that open their own sessions (search)."""
    return SessionLocal
