import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger(__name__)

is_sqlite = settings.database_url.startswith("sqlite")


def _engine_options() -> dict:
    options = {"echo": settings.env == "dev"}
    if is_sqlite:
        # one shared connection, so ":memory:" survives across sessions and threads
        options.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        options.update(pool_size=10, max_overflow=20, pool_pre_ping=True, pool_recycle=3600)
    return options


engine = create_engine(settings.database_url, **_engine_options())


@event.listens_for(engine, "connect")
def _on_connect(dbapi_connection, connection_record):
    """SQLite: enforce foreign keys. PostgreSQL: run the session in UTC."""
    statement = "PRAGMA foreign_keys=ON" if is_sqlite else "SET timezone='UTC'"
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute(statement)
    finally:
        cursor.close()


SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def get_db():
    """Request-scoped session; rolled back if the handler raises"""
    session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def session_scope():
    """Unit of work for scripts and health checks: commit on success, rollback on error"""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        logger.exception("Rolling back session")
        session.rollback()
        raise
    finally:
        session.close()


def check_database_health() -> bool:
    try:
        with session_scope() as session:
            return session.execute(text("SELECT 1")).scalar() == 1
    except Exception as exc:
        logger.error("Database health check failed: %s", exc)
        return False
