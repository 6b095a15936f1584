"""Database session factory and configuration.

Provides database connectivity and session management for the records backend.
Every service operation runs inside one session; the session is the unit of
work that makes version minting and the document pointer update atomic.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from config import get_settings

# backend/migrations, next to this package root
MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


def build_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine for the configured database.

    Pool settings only apply to server databases (not SQLite).
    """
    url = database_url or get_settings().DATABASE_URL
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": False,
    }
    if not url.startswith("sqlite"):
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10
    return create_engine(url, **engine_kwargs)


_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_session_factory() -> sessionmaker:
    """Lazily build the process-wide session factory."""
    global _engine, _session_factory
    if _session_factory is None:
        _engine = build_engine()
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    return _session_factory


def alembic_config(database_url: Optional[str] = None) -> AlembicConfig:
    """Alembic configuration pointing at the records migrations."""
    config = AlembicConfig()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    url = database_url or get_settings().DATABASE_URL
    # ConfigParser interpolation treats % specially
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def upgrade_database(database_url: Optional[str] = None, revision: str = "head") -> None:
    """Apply the records migrations up to ``revision``."""
    command.upgrade(alembic_config(database_url), revision)


@contextmanager
def get_db_session(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            result = await manager.check_in(...)

    Automatically commits on success, rolls back on exception. A storage or
    integrity failure raised by a service therefore discards every row the
    operation staged, including a half-minted version.
    """
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
