# Path: kpi_dash/database/models/base.py
"""
Database Base Model

SQLAlchemy declarative base and database engine configuration for the
KPI value store. Supports PostgreSQL (primary) and SQLite (local files
and testing).

Architecture:
- Single declarative base for all models
- PostgreSQL with connection pooling for production
- SQLite in-memory for unit testing, SQLite files for the CLI
- Session management utilities
"""

import logging
from pathlib import Path
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool, QueuePool

from config_loader import ConfigLoader


logger = logging.getLogger(__name__)

# SQLAlchemy declarative base
Base = declarative_base()

# Global engine and session factory
_engine = None
_SessionFactory = None

# 'postgresql' or 'sqlite'
_database_type = None


def _get_pool_config() -> dict:
    """
    Connection pool settings from ConfigLoader.

    Returns:
        Dictionary with pool parameters
    """
    config = ConfigLoader()
    return {
        'pool_size': config.get('db_pool_size', 5),
        'max_overflow': config.get('db_pool_max_overflow', 10),
        'pool_timeout': config.get('db_pool_timeout', 30),
        'pool_recycle': config.get('db_pool_recycle', 3600),
    }


def sqlite_url(db_path) -> str:
    """SQLAlchemy URL for a SQLite file."""
    return f"sqlite:///{Path(db_path)}"


def initialize_engine(
    db_url: Optional[str] = None,
    use_sqlite: bool = False,
) -> None:
    """
    Initialize database engine and session factory.

    By default, connects using ConfigLoader.get_db_connection_string()
    (KPI_DASH_DATABASE_URL, else PostgreSQL from the KPI_DASH_DB_* keys).

    Args:
        db_url: Optional database URL. ':memory:' creates a SQLite
                in-memory database, 'sqlite:///...' a SQLite file.
        use_sqlite: If True, forces SQLite in-memory mode (for testing).

    Example:
        # Configured database
        initialize_engine()

        # In-memory SQLite (for testing)
        initialize_engine(':memory:')

        # Local SQLite file
        initialize_engine('sqlite:///kpi_dash.db')
    """
    global _engine, _SessionFactory, _database_type

    if _engine is not None:
        logger.warning("Database engine already initialized")
        return

    if db_url is None and not use_sqlite:
        db_url = ConfigLoader().get_db_connection_string()

    if db_url == ':memory:' or use_sqlite:
        _database_type = 'sqlite'
        _engine = create_engine(
            'sqlite:///:memory:',
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
            echo=False,
        )
        logger.info("Database engine initialized: SQLite in-memory (testing)")

    elif db_url.startswith('sqlite'):
        _database_type = 'sqlite'

        # Ensure parent directory exists
        if ':///' in db_url:
            db_path = db_url.split('///', 1)[1]
            if db_path and db_path != ':memory:':
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        _engine = create_engine(
            db_url,
            connect_args={'check_same_thread': False},
            echo=False,
        )
        logger.info("Database engine initialized: SQLite file")

    else:
        _database_type = 'postgresql'
        pool = _get_pool_config()
        _engine = create_engine(
            db_url,
            poolclass=QueuePool,
            pool_size=pool['pool_size'],
            max_overflow=pool['max_overflow'],
            pool_timeout=pool['pool_timeout'],
            pool_recycle=pool['pool_recycle'],
            echo=False,
        )
        logger.info("Database engine initialized: PostgreSQL")

    _SessionFactory = sessionmaker(bind=_engine)


def get_engine():
    """
    Get database engine.

    Returns:
        SQLAlchemy engine instance

    Raises:
        RuntimeError: If engine not initialized
    """
    if _engine is None:
        raise RuntimeError(
            "Database engine not initialized. "
            "Call initialize_engine() first."
        )
    return _engine


def get_session() -> Session:
    """
    Get new database session.

    Raises:
        RuntimeError: If engine not initialized
    """
    if _SessionFactory is None:
        raise RuntimeError(
            "Session factory not initialized. "
            "Call initialize_engine() first."
        )
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Provide transactional scope for database operations.

    Yields:
        SQLAlchemy session

    Example:
        with session_scope() as session:
            kpis = KpiOperations.list_for_brand(session, brand_id)
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


def create_all_tables() -> None:
    """
    Create all database tables.

    Safe to call multiple times (idempotent).
    """
    engine = get_engine()
    Base.metadata.create_all(engine)
    logger.info("Database tables created")


def reset_engine() -> None:
    """
    Reset the database engine.

    Used primarily for testing to allow re-initialization.
    """
    global _engine, _SessionFactory, _database_type
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
    _database_type = None


def get_database_type() -> Optional[str]:
    """
    Get current database type.

    Returns:
        'postgresql', 'sqlite', or None if not initialized
    """
    return _database_type


def get_connection_info() -> dict:
    """
    Get current database connection info.

    Returns:
        Dictionary with connection details (password masked)
    """
    if _engine is None:
        return {'status': 'not_initialized'}

    return {
        'status': 'connected',
        'type': _database_type,
        'url': _engine.url.render_as_string(hide_password=True),
    }


__all__ = [
    'Base',
    'sqlite_url',
    'initialize_engine',
    'get_engine',
    'get_session',
    'session_scope',
    'create_all_tables',
    'reset_engine',
    'get_database_type',
    'get_connection_info',
]
