"""
SQLAlchemy engine and session handling.

Sessions are handed to the reporting store (api/store.py), which commits
or rolls back each submission and review itself. get_db() only guarantees
that a session is closed, and rolled back if a request fails with work
still open.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from api.config import settings

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Connection pool options for the configured backend."""
    if not database_url.startswith("sqlite"):
        return {
            "pool_pre_ping": True,
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
        }

    # Request handlers run in the threadpool
    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
        # One shared connection, otherwise every session sees an empty database
        options["poolclass"] = StaticPool
    return options


engine = create_engine(
    settings.database_url,
    echo=settings.db_echo,
    **_engine_options(settings.database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session for one request."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session for scripts and the CLI, committed when the block succeeds.

    Usage:
        with get_db_context() as db:
            SqlReportStore(db).list_vessels()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        logger.error(f"Database session rolled back: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create the reporting tables that do not exist yet."""
    import api.models  # noqa: F401 (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
    logger.info(f"Reporting tables ready ({engine.url.get_backend_name()})")


def drop_db() -> None:
    """Drop all reporting tables. Deletes every vessel, voyage and report."""
    import api.models  # noqa: F401

    logger.warning("Dropping all reporting tables")
    Base.metadata.drop_all(bind=engine)
