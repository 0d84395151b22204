"""Data models for the adaptive quiz."""

from .quiz import (
    AnswerRecord,
    EvolutionAction,
    EvolutionDecision,
    # Structured output models
    GeneratedQuestion,
    GradeResult,
    Profile,
    Question,
    QuestionDifficulty,
    QuestionType,
    QuizSession,
    Topic,
)

__all__ = [
    "Profile",
    "Topic",
    "Question",
    "QuestionDifficulty",
    "QuestionType",
    "QuizSession",
    "AnswerRecord",
    "GradeResult",
    "GeneratedQuestion",
    "EvolutionAction",
    "EvolutionDecision",
]
