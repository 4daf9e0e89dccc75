"""Database session and engine management."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from lexideck.config import settings


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections may be used from worker threads."""

    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,  # Recycle connections after 1 hour
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=bind,
        expire_on_commit=False,  # Keep objects usable after commit
    )


engine = build_engine(str(settings.DATABASE_URL))

SessionLocal = build_session_factory(engine)
