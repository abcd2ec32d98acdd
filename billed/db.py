from __future__ import annotations

import logging
import time
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.exc import OperationalError

from .config import settings

logger = logging.getLogger(__name__)

DB_CONNECT_ATTEMPTS = 20


def _connect_args(url: str) -> dict:
    # sqlite connections are shared with FastAPI's worker threads
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


# bills and users live in the same database
engine = create_engine(
    settings.DATABASE_URL,  # e.g. postgresql+psycopg://billed:billed@db:5432/billed
    connect_args=_connect_args(settings.DATABASE_URL),
    pool_pre_ping=True,
)

# expire_on_commit=False: BillOut is built from rows after commit
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def get_db():
    """One session per request, closed once the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Wait for the database container, then create the bills/users tables."""
    for attempt in range(1, DB_CONNECT_ATTEMPTS + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            break
        except OperationalError:
            if attempt == DB_CONNECT_ATTEMPTS:
                logger.error("Database still unreachable after %s attempts", attempt)
                raise
            logger.info("Database not ready (attempt %s/%s), retrying", attempt, DB_CONNECT_ATTEMPTS)
            time.sleep(1)

    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
