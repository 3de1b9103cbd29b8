"""
Catalog database: engine, sessions and schema.

The catalog is a single SQLite file (see Config.database_url) or, in tests,
an in-memory database. Engine functions read snapshots out of it through
catalog_service; nothing in the engine itself touches the database.

Module state:
- _engine: created lazily by get_engine() from the configured URL
- _SessionFactory: bound to _engine, expire_on_commit=False so ORM objects
  returned by catalog_service stay readable after the session closes
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.base import Base
from ..utils.config import get_config
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

CATALOG_TABLES = ("ingredients", "recipes", "recipe_ingredients", "recipe_instructions")

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign keys; recipe lines rely on RESTRICT and CASCADE."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_memory_url(database_url: str) -> bool:
    return ":memory:" in database_url or "mode=memory" in database_url


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Build an engine for the catalog.

    In-memory URLs share one connection (StaticPool) so every session sees
    the same tables. File URLs get a 30 second busy timeout.

    Args:
        database_url: SQLAlchemy URL; None means the configured catalog file
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    if database_url is None:
        config = get_config()
        config.ensure_directories()
        database_url = config.database_url

    connect_args = {"check_same_thread": False}
    options = {}
    if _is_memory_url(database_url):
        options["poolclass"] = StaticPool
    else:
        connect_args["timeout"] = 30

    log_operation(logger, operation="create_database_engine", outcome="success", url=database_url)
    return create_engine(database_url, echo=echo, connect_args=connect_args, **options)


def init_database(engine: Optional[Engine] = None) -> List[str]:
    """
    Create the catalog tables that do not exist yet.

    Args:
        engine: Engine to use; None means the module engine

    Returns:
        Names of the catalog tables present afterwards
    """
    if engine is None:
        engine = get_engine()

    # Registers the catalog models on Base.metadata
    from ..models import ingredient, recipe  # noqa: F401

    Base.metadata.create_all(engine)
    tables = sorted(set(inspect(engine).get_table_names()) & set(CATALOG_TABLES))

    log_operation(logger, operation="init_database", outcome="success", tables=tables)
    return tables


def get_engine(force_recreate: bool = False) -> Engine:
    """Module engine, created from the configured URL on first use."""
    global _engine, _SessionFactory

    if _engine is None or force_recreate:
        if _engine is not None:
            _engine.dispose()
        _engine = create_database_engine()
        _SessionFactory = None

    return _engine


def get_session_factory() -> sessionmaker:
    """Session factory bound to the module engine."""
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)

    return _SessionFactory


def get_session() -> Session:
    """Open a new session; the caller closes it."""
    return get_session_factory()()


@contextmanager
def session_scope():
    """
    Transactional scope: commit on success, roll back on any exception.

    Example:
        with session_scope() as session:
            session.add(Ingredient(name="Farina 00", unit="kg", cost_per_unit=1.2))
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def verify_database(engine: Optional[Engine] = None) -> bool:
    """
    Check that every catalog table exists.

    Args:
        engine: Engine to inspect; None means the module engine

    Returns:
        False when a table is missing or the database cannot be opened
    """
    if engine is None:
        engine = get_engine()
    try:
        tables = set(inspect(engine).get_table_names())
    except SQLAlchemyError as e:
        log_operation(
            logger,
            operation="verify_database",
            outcome="failed",
            level=logging.ERROR,
            error=str(e),
        )
        return False

    missing = [table for table in CATALOG_TABLES if table not in tables]
    if missing:
        log_operation(
            logger,
            operation="verify_database",
            outcome="missing_tables",
            level=logging.WARNING,
            missing=missing,
        )
    return not missing


def close_connections() -> None:
    """Dispose of the module engine; the next get_engine() builds a new one."""
    global _engine, _SessionFactory

    _SessionFactory = None
    if _engine is not None:
        _engine.dispose()
        _engine = None
