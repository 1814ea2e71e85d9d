"""Engine, schema and session plumbing for the CardCast database."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import partial
from typing import Callable, ContextManager, Iterator, Tuple

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless each connection opts in.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(config: BaseConfig) -> Engine:
    """Build the engine described by *config*.

    On SQLite, foreign keys are switched on so that deleting a card also
    removes its buckets and any stored forecast rows for it.
    """
    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_database(engine: Engine) -> None:
    """Create any tables that do not exist yet."""
    # Table classes register on import.
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info(
        "Database schema ready",
        extra={
            "url": engine.url.render_as_string(hide_password=True),
            "tables": sorted(SQLModel.metadata.tables),
        },
    )


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on error.

    Loaded objects stay readable after commit, so repositories can hand
    them back to callers.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine: Engine) -> SessionFactory:
    """Bind :func:`session_scope` to *engine* for injection into repositories."""
    return partial(session_scope, engine)


def bootstrap_database(config: BaseConfig | None = None) -> Tuple[Engine, SessionFactory]:
    """Return ``(engine, session_factory)`` with the schema in place.

    The CLI and the service tests both start here so they share engine
    options and session behaviour.
    """
    engine = create_db_engine(config or BaseConfig())
    init_database(engine)
    return engine, create_session_factory(engine)
