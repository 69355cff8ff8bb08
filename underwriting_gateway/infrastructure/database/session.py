"""Database session management for the audit store"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from underwriting_gateway.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Single file, shared across the threadpool FastAPI runs sync routes on
        return {"connect_args": {"check_same_thread": False}}
    # Pooled server database: recycle hourly to avoid stale connections
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
