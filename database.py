# database.py
"""
SQLAlchemy database connection and session management.

This module provides:
- Database engine configuration (Postgres in production, sqlite for tests)
- Session factory for dependency injection
- A unit-of-work scope for multi-statement writes
- Connection utilities

Usage:
     from database import get_session, engine

     # In FastAPI routes:
     @router.get("/flats")
     def list_flats(db: Session = Depends(get_session)):
          return db.query(Flat).all()
     """
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

import config

logger = logging.getLogger(__name__)


def _build_engine(url: str):
     if url.startswith("sqlite"):
          # One shared connection so an in-memory database survives across sessions
          return create_engine(
               url,
               connect_args={"check_same_thread": False},
               poolclass=StaticPool,
               echo=config.SQL_ECHO,
          )

     return create_engine(
          url,
          poolclass=QueuePool,
          pool_size=config.PG_POOL_MAX,
          max_overflow=0,
          pool_timeout=10,
          pool_recycle=1800,  # Recycle connections after 30 minutes
          pool_pre_ping=True,
          echo=config.SQL_ECHO,  # Log SQL if SQL_ECHO=true
     )


# Create SQLAlchemy engine
engine = _build_engine(config.DATABASE_URL or "sqlite://")

# Session factory
SessionLocal = sessionmaker(
     bind=engine,
     autocommit=False,
     autoflush=False,
     expire_on_commit=False,
)


def get_session() -> Generator[Session, None, None]:
     """
     FastAPI dependency that provides a database session.

     Usage:
          @router.get("/flats")
          def list_flats(db: Session = Depends(get_session)):
               return db.query(Flat).all()

     Yields:
          Session: SQLAlchemy database session
     """
     session = SessionLocal()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


@contextmanager
def get_session_context() -> Generator[Session, None, None]:
     """
     Context manager for database sessions (for use outside FastAPI routes).

     Usage:
          with get_session_context() as db:
               flats = db.query(Flat).all()

     Yields:
          Session: SQLAlchemy database session
     """
     session = SessionLocal()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


@contextmanager
def unit_of_work(db: Session) -> Generator[Session, None, None]:
     """
     Commit every write made inside the block, or none of them.

     Usage:
          with unit_of_work(db):
               db.add(flat)
               request.status = RequestStatus.APPROVED
     """
     try:
          yield db
          db.commit()
     except Exception:
          db.rollback()
          raise


def init_db() -> None:
     """
     Initialize database tables.

     Creates all tables defined in the models if they don't exist.
     For production, use Alembic migrations instead.
     """
     from models import Base
     Base.metadata.create_all(bind=engine)


def check_connection() -> bool:
     """
     Test database connectivity.

     Returns:
          bool: True if connection successful, False otherwise
     """
     try:
          with engine.connect() as conn:
               conn.execute(text("SELECT 1"))
          return True
     except SQLAlchemyError as e:
          logger.error("Database connection failed: %s", e)
          return False
