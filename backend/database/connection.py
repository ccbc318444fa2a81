"""
Database module for SQLAlchemy configuration and session management.
Provides the engine, the session factory and the declarative base.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from config import settings


def build_engine(database_url: str, echo: bool = False):
    """
    Create an engine with settings suited to the database type.

    In-memory SQLite databases live inside a single connection, so they are
    pinned to one shared connection across threads.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True, echo=echo)

    kwargs = {"connect_args": {"check_same_thread": False}, "echo": echo}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


engine = build_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()


def get_db():
    """
    FastAPI dependency yielding a session per request.

    Yields:
        Session: SQLAlchemy database session, closed once the response is sent
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create every table registered on the models package."""
    import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
