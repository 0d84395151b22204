"""AI agents for question generation, grading and topic evolution."""

from .evolution import evolve_session
from .generator import generate_question, seed_topic_questions
from .grader import grade_answer, is_answer_correct

__all__ = [
    "generate_question",
    "seed_topic_questions",
    "grade_answer",
    "is_answer_correct",
    "evolve_session",
]
