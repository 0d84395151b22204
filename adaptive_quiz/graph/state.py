"""State carried through one answer turn."""

from typing import TypedDict

from adaptive_quiz.engine.difficulty import AdaptationPolicy
from adaptive_quiz.models.quiz import (
    AnswerRecord,
    GradeResult,
    Question,
    QuestionDifficulty,
    QuizSession,
)


class QuizTurnState(TypedDict):
    """The session aggregate plus everything produced while handling one answer."""

    session: QuizSession
    question: Question
    user_answer: str
    grade: GradeResult | None
    answer: AnswerRecord | None
    previous_difficulty: QuestionDifficulty
    difficulty_changed: bool
    min_answers: int


def create_initial_state(
    session: QuizSession,
    question: Question,
    user_answer: str,
    policy: AdaptationPolicy | None = None,
) -> QuizTurnState:
    """
    Create the initial state for an answer turn.

    Args:
        session: Session the answer belongs to
        question: Question being answered
        user_answer: Submitted answer text
        policy: Adaptation thresholds (defaults to configured values)

    Returns:
        Initial QuizTurnState
    """
    policy = policy or AdaptationPolicy.from_settings()
    return QuizTurnState(
        session=session,
        question=question,
        user_answer=user_answer,
        grade=None,
        answer=None,
        previous_difficulty=session.current_difficulty,
        difficulty_changed=False,
        min_answers=policy.min_answers,
    )
