"""
Database Module

This module handles database connections and provides session management.
"""
import logging
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from zemon.models import Base

logger = logging.getLogger(__name__)


def build_engine(database_url):
    """
    Create a database engine for the given URL.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        Engine instance
    """
    url = make_url(database_url)
    kwargs = {"echo": False, "future": True}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(exist_ok=True, parents=True)
    return create_engine(database_url, **kwargs)


def build_session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


def init_db(engine):
    """Create every table that does not exist yet."""
    with engine.begin() as conn:
        Base.metadata.create_all(bind=conn)
    logger.info(f"Database initialized at {engine.url.render_as_string(hide_password=True)}")


@contextmanager
def get_sync_session(session_factory):
    """
    Get a database session from the given factory.

    Args:
        session_factory: sessionmaker bound to an engine

    Yields:
        Session instance
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
