"""
SQLAlchemy engine and session management.

This module provides:
- Engine configuration for SQLite (development, tests) and pooled servers
- Session factories bound to a given engine
- Connection utilities

Usage:
     from finledger.database import create_db_engine, create_session_factory

     engine = create_db_engine("sqlite:///./finledger.db")
     SessionLocal = create_session_factory(engine)

     with session_scope(SessionLocal) as db:
          db.add(record)
"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from finledger import config

logger = logging.getLogger(__name__)

# Seconds a SQLite writer waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 30


def create_db_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
     """
     Create an engine for the given URL (defaults to config.DATABASE_URL).

     SQLite engines are shared across request threads, so same-thread checks
     are disabled and a busy timeout lets concurrent writers queue instead of
     failing immediately.
     """
     url = database_url or config.DATABASE_URL
     echo = config.SQL_ECHO if echo is None else echo

     if url.startswith("sqlite"):
          engine = create_engine(
               url,
               echo=echo,
               connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
          )

          @event.listens_for(engine, "connect")
          def _on_connect(dbapi_conn, _):
               cursor = dbapi_conn.cursor()
               cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT * 1000}")
               cursor.close()

          return engine

     return create_engine(
          url,
          poolclass=QueuePool,
          pool_size=5,
          max_overflow=10,
          pool_timeout=30,
          pool_recycle=1800,  # Recycle connections after 30 minutes
          pool_pre_ping=True,
          echo=echo,
     )


def create_session_factory(engine: Engine) -> sessionmaker:
     """Session factory used by the event store; objects stay usable after commit."""
     return sessionmaker(
          bind=engine,
          autocommit=False,
          autoflush=False,
          expire_on_commit=False,
     )


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
     """
     Transactional scope around a series of operations.

     Commits on success, rolls back and re-raises on any error.
     """
     session = factory()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


def init_db(engine: Engine) -> None:
     """
     Initialize database tables.

     Creates all tables defined in the models if they don't exist.
     For production, use Alembic migrations instead.
     """
     from finledger.models import Base
     Base.metadata.create_all(bind=engine)


def check_connection(engine: Engine) -> bool:
     """
     Test database connectivity.

     Returns:
          bool: True if connection successful, False otherwise
     """
     try:
          with engine.connect() as conn:
               conn.execute(text("SELECT 1"))
          return True
     except Exception:
          logger.exception("Database connection failed")
          return False
