"""Quiz store - persistence collaborator with per-user access rules.

Reads and writes follow the row-level rules of the hosted database the quiz
was designed against:

- a user reads and writes only their own quiz sessions and answers
- topics and their questions are readable when the topic is public or owned
- only the owner may edit a topic
"""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from adaptive_quiz.errors import AccessDenied, MissingProfile, NotFound, PersistenceFailure
from adaptive_quiz.models.quiz import (
    AnswerRecord,
    Profile,
    Question,
    QuestionDifficulty,
    QuizSession,
    Topic,
)
from adaptive_quiz.storage.orm import (
    AnswerRow,
    ProfileRow,
    QuestionRow,
    QuizSessionRow,
    TopicRow,
)

logger = logging.getLogger(__name__)

_SESSION_FIELDS = {
    "current_difficulty",
    "total_questions",
    "correct_answers",
    "is_active",
    "completed_at",
    "focus_area",
    "mastery_score",
    "evolution_suggestions",
}


def _row_values(model: BaseModel) -> dict[str, Any]:
    """Dump a model to column values, flattening enums to their values."""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in model.model_dump().items()
    }


class QuizStore:
    """Reads and writes quiz records through a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Storage operation failed: %s", e)
            raise PersistenceFailure(str(e)) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # Profiles

    def create_profile(self, user_id: str, display_name: str | None = None) -> Profile:
        """Create the profile for an identity, or return the existing one."""
        with self._transaction() as db:
            row = db.scalar(select(ProfileRow).where(ProfileRow.user_id == user_id))
            if row is not None:
                return Profile.model_validate(row, from_attributes=True)
            profile = Profile(user_id=user_id, display_name=display_name or user_id)
            db.add(ProfileRow(**_row_values(profile)))
            return profile

    def get_profile(self, user_id: str) -> Profile:
        """
        Resolve the profile for an authenticated identity.

        Raises:
            MissingProfile: No profile has been created for ``user_id``
        """
        with self._transaction() as db:
            row = db.scalar(select(ProfileRow).where(ProfileRow.user_id == user_id))
            if row is None:
                raise MissingProfile(user_id)
            return Profile.model_validate(row, from_attributes=True)

    # Topics

    def create_topic(self, topic: Topic) -> Topic:
        if topic.created_by is None:
            raise AccessDenied("Topics must be created by a profile")
        with self._transaction() as db:
            db.add(TopicRow(**_row_values(topic)))
        return topic

    def get_topic(self, topic_id: str, viewer_id: str | None = None) -> Topic:
        """
        Fetch a topic visible to ``viewer_id`` (a profile id).

        Raises:
            NotFound: No such topic
            AccessDenied: The topic is private and owned by someone else
        """
        with self._transaction() as db:
            row = db.get(TopicRow, topic_id)
            if row is None:
                raise NotFound(f"Topic {topic_id} not found")
            if not row.is_public and (viewer_id is None or row.created_by != viewer_id):
                raise AccessDenied(f"Topic {topic_id} is private")
            return Topic.model_validate(row, from_attributes=True)

    def list_topics(self, viewer_id: str | None = None) -> list[Topic]:
        """Public topics plus the viewer's own, newest first."""
        with self._transaction() as db:
            query = select(TopicRow).order_by(TopicRow.created_at.desc())
            if viewer_id is None:
                query = query.where(TopicRow.is_public.is_(True))
            else:
                query = query.where(
                    TopicRow.is_public.is_(True) | (TopicRow.created_by == viewer_id)
                )
            return [
                Topic.model_validate(row, from_attributes=True)
                for row in db.scalars(query)
            ]

    def update_topic(
        self,
        topic_id: str,
        owner_id: str,
        title: str | None = None,
        description: str | None = None,
        is_public: bool | None = None,
    ) -> Topic:
        """Edit topic metadata. Only the owner may do this."""
        with self._transaction() as db:
            row = db.get(TopicRow, topic_id)
            if row is None:
                raise NotFound(f"Topic {topic_id} not found")
            if row.created_by != owner_id:
                raise AccessDenied(f"Topic {topic_id} is owned by another user")
            if title is not None:
                # Run the same validation as on creation
                row.title = Topic(title=title).title
            if description is not None:
                row.description = description
            if is_public is not None:
                row.is_public = is_public
            row.updated_at = datetime.now(timezone.utc)
            db.flush()
            return Topic.model_validate(row, from_attributes=True)

    # Questions

    def add_question(self, question: Question) -> Question:
        with self._transaction() as db:
            if db.get(TopicRow, question.topic_id) is None:
                raise NotFound(f"Topic {question.topic_id} not found")
            db.add(QuestionRow(**_row_values(question)))
        return question

    def get_question(self, question_id: str) -> Question:
        with self._transaction() as db:
            row = db.get(QuestionRow, question_id)
            if row is None:
                raise NotFound(f"Question {question_id} not found")
            return Question.model_validate(row, from_attributes=True)

    def list_questions(
        self,
        topic_id: str,
        limit: int | None = None,
        difficulty: QuestionDifficulty | None = None,
        newest_first: bool = False,
    ) -> list[Question]:
        """Questions of a topic in creation order, optionally of one difficulty."""
        with self._transaction() as db:
            order = QuestionRow.created_at.desc() if newest_first else QuestionRow.created_at
            query = (
                select(QuestionRow)
                .where(QuestionRow.topic_id == topic_id)
                .order_by(order)
            )
            if difficulty is not None:
                query = query.where(
                    QuestionRow.difficulty == QuestionDifficulty(difficulty).value
                )
            if limit is not None:
                query = query.limit(limit)
            return [
                Question.model_validate(row, from_attributes=True)
                for row in db.scalars(query)
            ]

    def find_question(
        self,
        topic_id: str,
        difficulty: QuestionDifficulty,
        exclude_ids: Iterable[str] = (),
    ) -> Question | None:
        """First stored question for (topic, difficulty) not in ``exclude_ids``."""
        exclude = list(exclude_ids)
        with self._transaction() as db:
            query = (
                select(QuestionRow)
                .where(QuestionRow.topic_id == topic_id)
                .where(QuestionRow.difficulty == QuestionDifficulty(difficulty).value)
                .order_by(QuestionRow.created_at)
                .limit(1)
            )
            if exclude:
                query = query.where(QuestionRow.id.not_in(exclude))
            row = db.scalar(query)
            if row is None:
                return None
            return Question.model_validate(row, from_attributes=True)

    # Sessions

    def create_session(self, session: QuizSession) -> QuizSession:
        with self._transaction() as db:
            db.add(QuizSessionRow(**_row_values(session)))
        return session

    def _owned_session_row(self, db: Session, session_id: str, owner_id: str) -> QuizSessionRow:
        row = db.get(QuizSessionRow, session_id)
        if row is None:
            raise NotFound(f"Session {session_id} not found")
        if row.user_id != owner_id:
            raise AccessDenied(f"Session {session_id} belongs to another user")
        return row

    def get_session(self, session_id: str, owner_id: str) -> QuizSession:
        with self._transaction() as db:
            row = self._owned_session_row(db, session_id, owner_id)
            return QuizSession.model_validate(row, from_attributes=True)

    def update_session(
        self,
        session: QuizSession,
        owner_id: str,
        fields: Iterable[str],
    ) -> None:
        """Write the named fields of ``session``. Last write wins."""
        fields = list(fields)
        unknown = set(fields) - _SESSION_FIELDS
        if unknown:
            raise ValueError(f"Cannot update session fields: {sorted(unknown)}")
        values = _row_values(session)
        with self._transaction() as db:
            row = self._owned_session_row(db, session.id, owner_id)
            for field in fields:
                setattr(row, field, values[field])

    def list_sessions(self, owner_id: str, limit: int = 10) -> list[QuizSession]:
        """The owner's most recent sessions."""
        with self._transaction() as db:
            query = (
                select(QuizSessionRow)
                .where(QuizSessionRow.user_id == owner_id)
                .order_by(QuizSessionRow.started_at.desc())
                .limit(limit)
            )
            return [
                QuizSession.model_validate(row, from_attributes=True)
                for row in db.scalars(query)
            ]

    # Answers

    def add_answer(self, answer: AnswerRecord, owner_id: str) -> AnswerRecord:
        with self._transaction() as db:
            self._owned_session_row(db, answer.session_id, owner_id)
            db.add(AnswerRow(**_row_values(answer)))
        return answer

    def list_answers(
        self,
        session_id: str,
        owner_id: str,
        limit: int | None = None,
    ) -> list[AnswerRecord]:
        """
        Answers of a session in the order they were given.

        With ``limit``, only the most recent ``limit`` answers are returned.
        """
        with self._transaction() as db:
            self._owned_session_row(db, session_id, owner_id)
            rows = list(
                db.scalars(
                    select(AnswerRow)
                    .where(AnswerRow.session_id == session_id)
                    .order_by(AnswerRow.answered_at)
                )
            )
            if limit is not None:
                rows = rows[-limit:] if limit > 0 else []
            return [AnswerRecord.model_validate(row, from_attributes=True) for row in rows]

    def answered_question_ids(self, session_id: str, owner_id: str) -> set[str]:
        return {a.question_id for a in self.list_answers(session_id, owner_id)}
