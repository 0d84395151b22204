"""Engine and session factory for the quiz store."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from adaptive_quiz.config.settings import get_settings
from adaptive_quiz.storage.orm import Base


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Create an engine for the configured database.

    In-memory sqlite URLs share one connection so every session sees the
    same database.
    """
    url = database_url or get_settings().database_url
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create any missing tables."""
    Base.metadata.create_all(engine)
