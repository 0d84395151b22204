"""Pydantic models for quiz data structures."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, Field, StrictStr, field_validator


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDateTime = Annotated[datetime, AfterValidator(_as_utc)]


class QuestionDifficulty(str, Enum):
    """Question difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionType(str, Enum):
    """Supported question formats."""

    MCQ = "mcq"
    FILL_BLANK = "fill_blank"
    SHORT_ANSWER = "short_answer"
    LONG_ANSWER = "long_answer"
    TRUE_FALSE = "true_false"

    @property
    def is_open_form(self) -> bool:
        """Open-form answers get model feedback in addition to the equality check."""
        return self in (QuestionType.SHORT_ANSWER, QuestionType.LONG_ANSWER)


class Profile(BaseModel):
    """Profile record tied to an authenticated identity."""

    id: str = Field(default_factory=_new_id)
    user_id: str = Field(..., min_length=1, description="Authenticated identity")
    display_name: str | None = None
    created_at: UtcDateTime = Field(default_factory=_utcnow)


class Topic(BaseModel):
    """A named subject area containing a pool of questions."""

    id: str = Field(default_factory=_new_id)
    title: str = Field(..., min_length=1, description="Topic title")
    description: str | None = Field(None, description="Topic description")
    is_public: bool = Field(default=True, description="Visible to every user")
    created_by: str | None = Field(None, description="Owning profile id")
    created_at: UtcDateTime = Field(default_factory=_utcnow)
    updated_at: UtcDateTime = Field(default_factory=_utcnow)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank titles."""
        v = v.strip()
        if not v:
            raise ValueError("Topic title cannot be blank")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "SQL Fundamentals",
                "description": "Joins, aggregates and subqueries",
                "is_public": True,
            }
        }
    }


class Question(BaseModel):
    """A single stored quiz question."""

    id: str = Field(
        default_factory=_new_id,
        description="Unique identifier for the question",
    )
    topic_id: str = Field(..., description="Owning topic id")
    question_text: str = Field(..., min_length=1, description="The question text")
    question_type: QuestionType = Field(default=QuestionType.MCQ)
    difficulty: QuestionDifficulty = Field(
        default=QuestionDifficulty.MEDIUM,
        description="Question difficulty level",
    )
    correct_answer: str = Field(..., min_length=1, description="The stored answer")
    options: list[str] | None = Field(
        None,
        description="Answer options, only for multiple choice",
    )
    rationale: str | None = Field(
        None,
        description="Explanation of the correct answer",
    )
    created_by: str | None = Field(
        None,
        description="Profile id of the author, None when generated",
    )
    created_at: UtcDateTime = Field(default_factory=_utcnow)

    model_config = {
        "json_schema_extra": {
            "example": {
                "topic_id": "5f0c...",
                "question_text": "What is the capital of France?",
                "question_type": "mcq",
                "difficulty": "easy",
                "correct_answer": "Paris",
                "options": ["London", "Paris", "Berlin", "Madrid"],
                "rationale": "Paris has been the capital of France since 987 AD.",
            }
        }
    }


class QuizSession(BaseModel):
    """One continuous quiz-taking interaction for one user on one topic."""

    id: str = Field(default_factory=_new_id)
    user_id: str = Field(..., description="Profile id of the quiz taker")
    topic_id: str = Field(..., description="Topic being quizzed")
    current_difficulty: QuestionDifficulty = Field(default=QuestionDifficulty.MEDIUM)
    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True)
    started_at: UtcDateTime = Field(default_factory=_utcnow)
    completed_at: UtcDateTime | None = None
    focus_area: str | None = Field(None, description="Focus set by topic evolution")
    mastery_score: float = Field(default=0.0, ge=0.0, le=1.0)
    evolution_suggestions: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def accuracy(self) -> float:
        """Fraction of answered questions that were correct."""
        if self.total_questions == 0:
            return 0.0
        return self.correct_answers / self.total_questions


class AnswerRecord(BaseModel):
    """A submitted answer. Never mutated after creation."""

    id: str = Field(default_factory=_new_id)
    session_id: str
    question_id: str
    user_answer: str
    is_correct: bool
    ai_feedback: str | None = None
    answered_at: UtcDateTime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}


class GradeResult(BaseModel):
    """Outcome of grading one answer."""

    is_correct: bool
    feedback: str = ""


# Structured output models for LLM responses


class GeneratedQuestion(BaseModel):
    """Question JSON returned by the generation collaborator."""

    question_text: StrictStr = Field(..., min_length=1)
    correct_answer: StrictStr = Field(..., min_length=1)
    options: list[StrictStr] | None = None
    rationale: StrictStr | None = None
    difficulty: QuestionDifficulty | None = None
    question_type: QuestionType | None = None

    @field_validator("correct_answer", mode="before")
    @classmethod
    def coerce_boolean_answer(cls, v: Any) -> Any:
        """True/false answers sometimes come back as JSON booleans."""
        if isinstance(v, bool):
            return "true" if v else "false"
        return v

    @field_validator("question_text", "correct_answer")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only text."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class EvolutionAction(str, Enum):
    """Decisions the topic evolution analysis can return."""

    CONTINUE = "continue"
    INCREASE_DIFFICULTY = "increase_difficulty"
    DECREASE_DIFFICULTY = "decrease_difficulty"
    EVOLVE_TOPIC = "evolve_topic"
    SUGGEST_SUBTOPIC = "suggest_subtopic"


class EvolutionDecision(BaseModel):
    """Decision JSON returned by the topic evolution analysis."""

    action: EvolutionAction
    reasoning: StrictStr
    new_difficulty: QuestionDifficulty | None = None
    suggested_topic: StrictStr | None = None
    focus_area: StrictStr | None = None
    message_to_user: StrictStr | None = None
