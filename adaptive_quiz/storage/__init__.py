"""Persistence for topics, questions, sessions and answers."""

from .database import create_db_engine, create_session_factory, init_db
from .store import QuizStore

__all__ = [
    "QuizStore",
    "create_db_engine",
    "create_session_factory",
    "init_db",
]
