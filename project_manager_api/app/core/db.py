"""
SQLAlchemy database integration.

This module provides the declarative ``Base`` shared by all models,
engine and session factories, the ``get_db`` dependency used by
FastAPI routes, and ``init_db`` which creates the schema (tables and
enumerated types) idempotently on application start.

SQLite is used by default; any SQLAlchemy URL (e.g. PostgreSQL) can
be supplied through ``settings.database_url``.
"""

import logging
from typing import Iterator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import settings


logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base class for all ORM models."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    # Foreign key support is off by default in SQLite and must be
    # turned on for every new connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def make_engine(db_url: str, **kwargs) -> Engine:
    """Create a SQLAlchemy engine with the given URL and options.

    Parameters
    ----------
    db_url : str
        Database connection URL.
    **kwargs
        Additional arguments for ``create_engine``.

    Returns
    -------
    Engine
        A configured engine.  SQLite engines allow use across threads
        and enforce foreign keys.
    """
    connect_args = kwargs.pop("connect_args", {})
    if db_url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    else:
        kwargs.setdefault("pool_pre_ping", True)

    engine = create_engine(db_url, connect_args=connect_args, **kwargs)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker:
    """Create a sessionmaker bound to the given engine.

    ``expire_on_commit=False`` keeps attributes accessible after a
    commit so services can return entities they have just persisted.
    """
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


engine = make_engine(settings.database_url)
SessionLocal = make_sessionmaker(engine)


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all tables and enum types if they do not exist yet."""
    # Importing the models registers them on ``Base.metadata``.
    from project_manager_api.app.models import models  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Database schema ensured on %s", target.url.render_as_string(hide_password=True))
