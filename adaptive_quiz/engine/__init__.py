"""Session adaptation: difficulty rules, session tracking, question supply."""

from .difficulty import AdaptationPolicy, next_difficulty
from .provider import provide_question
from .tracker import apply_answer, end_session, record_answer, start_session

__all__ = [
    "AdaptationPolicy",
    "next_difficulty",
    "provide_question",
    "start_session",
    "apply_answer",
    "record_answer",
    "end_session",
]
