"""Session State Tracker - session lifecycle and per-answer counters."""

import logging
from datetime import datetime, timezone

from adaptive_quiz.config.settings import get_settings
from adaptive_quiz.errors import AccessDenied, SessionClosed
from adaptive_quiz.models.quiz import (
    AnswerRecord,
    QuestionDifficulty,
    QuizSession,
)
from adaptive_quiz.storage.store import QuizStore

logger = logging.getLogger(__name__)


def start_session(
    store: QuizStore,
    user_id: str,
    topic_id: str,
    difficulty: QuestionDifficulty | None = None,
) -> QuizSession:
    """
    Open a new quiz session for the authenticated user.

    Args:
        store: Persistence collaborator
        user_id: Authenticated identity
        topic_id: Topic to quiz on
        difficulty: Starting tier (defaults to the configured initial difficulty)

    Returns:
        The persisted, active session

    Raises:
        MissingProfile: No profile exists for ``user_id``
        AccessDenied: The topic is private and not owned by the user
    """
    profile = store.get_profile(user_id)
    store.get_topic(topic_id, viewer_id=profile.id)

    session = QuizSession(
        user_id=profile.id,
        topic_id=topic_id,
        current_difficulty=difficulty or get_settings().initial_difficulty,
    )
    store.create_session(session)
    logger.info(
        "Started session %s on topic %s at %s",
        session.id,
        topic_id,
        session.current_difficulty.value,
    )
    return session


def apply_answer(session: QuizSession, is_correct: bool) -> QuizSession:
    """
    Count one answer against the session.

    Returns a new session object; the input is left untouched.

    Raises:
        SessionClosed: The session was already ended
    """
    if not session.is_active:
        raise SessionClosed(f"Session {session.id} has ended")

    total = session.total_questions + 1
    correct = session.correct_answers + (1 if is_correct else 0)
    return session.model_copy(
        update={
            "total_questions": total,
            "correct_answers": correct,
            "mastery_score": round(correct / total, 2),
        }
    )


def record_answer(
    store: QuizStore,
    session: QuizSession,
    answer: AnswerRecord,
) -> QuizSession:
    """
    Persist an answer record and the updated counters, in that order.

    Returns:
        The session with counters updated
    """
    if answer.session_id != session.id:
        raise AccessDenied(
            f"Answer belongs to session {answer.session_id}, not {session.id}"
        )

    updated = apply_answer(session, answer.is_correct)
    store.add_answer(answer, owner_id=session.user_id)
    store.update_session(
        updated,
        owner_id=session.user_id,
        fields=("total_questions", "correct_answers", "mastery_score"),
    )
    return updated


def end_session(store: QuizStore, session: QuizSession) -> QuizSession:
    """Mark the session inactive and stamp its completion time."""
    ended = session.model_copy(
        update={"is_active": False, "completed_at": datetime.now(timezone.utc)}
    )
    store.update_session(
        ended, owner_id=session.user_id, fields=("is_active", "completed_at")
    )
    logger.info(
        "Ended session %s after %d questions (%d correct)",
        session.id,
        session.total_questions,
        session.correct_answers,
    )
    return ended


def counters_match_history(session: QuizSession, answers: list[AnswerRecord]) -> bool:
    """Check the session counters against its answer records."""
    own = [a for a in answers if a.session_id == session.id]
    correct = sum(1 for a in own if a.is_correct)
    return session.total_questions == len(own) and session.correct_answers == correct
