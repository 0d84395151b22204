"""Difficulty Adapter - maps session performance to the next difficulty tier."""

from dataclasses import dataclass

from adaptive_quiz.config.settings import Settings, get_settings
from adaptive_quiz.models.quiz import QuestionDifficulty

_TIERS = [
    QuestionDifficulty.EASY,
    QuestionDifficulty.MEDIUM,
    QuestionDifficulty.HARD,
]


@dataclass(frozen=True)
class AdaptationPolicy:
    """Thresholds controlling when difficulty moves."""

    min_answers: int = 5
    raise_threshold: float = 0.7
    lower_threshold: float = 0.5

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AdaptationPolicy":
        settings = settings or get_settings()
        return cls(
            min_answers=settings.adapt_min_answers,
            raise_threshold=settings.adapt_raise_threshold,
            lower_threshold=settings.adapt_lower_threshold,
        )


def step_up(difficulty: QuestionDifficulty) -> QuestionDifficulty:
    """Return the next harder tier, or the same tier at the top."""
    index = _TIERS.index(difficulty)
    return _TIERS[min(index + 1, len(_TIERS) - 1)]


def step_down(difficulty: QuestionDifficulty) -> QuestionDifficulty:
    """Return the next easier tier, or the same tier at the bottom."""
    index = _TIERS.index(difficulty)
    return _TIERS[max(index - 1, 0)]


def next_difficulty(
    current: QuestionDifficulty,
    total: int,
    correct: int,
    policy: AdaptationPolicy | None = None,
) -> QuestionDifficulty:
    """
    Decide the difficulty tier for the next question.

    Nothing changes until ``policy.min_answers`` answers have been recorded.
    After that the decision is re-made on every answer: accuracy strictly above
    the raise threshold steps up one tier, strictly below the lower threshold
    steps down one tier.

    Args:
        current: Difficulty the session is at now
        total: Questions answered so far
        correct: Correct answers so far
        policy: Thresholds to apply (defaults to configured values)

    Returns:
        The difficulty for the next question
    """
    policy = policy or AdaptationPolicy.from_settings()
    current = QuestionDifficulty(current)

    if total < policy.min_answers or total <= 0:
        return current

    accuracy = correct / total

    if accuracy > policy.raise_threshold and current != QuestionDifficulty.HARD:
        return step_up(current)
    if accuracy < policy.lower_threshold and current != QuestionDifficulty.EASY:
        return step_down(current)
    return current
