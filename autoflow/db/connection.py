# ============================================================
# Core DB connection
# ============================================================
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from autoflow.config import settings
from autoflow.db.base import Base

# Register tables on Base.metadata
import autoflow.domain.approval.models  # noqa: F401
import autoflow.domain.versioning.models  # noqa: F401
import autoflow.domain.webhooks.models  # noqa: F401

_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create tables."""
    Base.metadata.create_all(bind=engine)


def get_db() -> Iterator[Session]:
    """Dependency to provide DB session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
