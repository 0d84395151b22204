"""Shared test fixtures and configuration for pytest."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from adaptive_quiz.engine.difficulty import AdaptationPolicy
from adaptive_quiz.models.quiz import (
    Profile,
    Question,
    QuestionDifficulty,
    QuestionType,
    QuizSession,
    Topic,
)
from adaptive_quiz.storage import QuizStore, create_db_engine, create_session_factory, init_db

BASE_TIME = datetime(2025, 7, 29, 12, 0, 0, tzinfo=timezone.utc)


class UnreachableChatModel(FakeListChatModel):
    """Chat model whose every call fails like an unreachable endpoint."""

    responses: list[str] = []

    def _call(self, *args, **kwargs) -> str:
        raise ConnectionError("generation endpoint unreachable")


@pytest.fixture
def store() -> QuizStore:
    """Create a QuizStore backed by in-memory sqlite."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    return QuizStore(create_session_factory(engine))


@pytest.fixture
def fake_llm() -> Callable[..., FakeListChatModel]:
    """Factory for chat models that answer with canned responses in order."""

    def make(*responses: str) -> FakeListChatModel:
        return FakeListChatModel(responses=list(responses))

    return make


@pytest.fixture
def unreachable_llm() -> UnreachableChatModel:
    return UnreachableChatModel()


@pytest.fixture
def policy() -> AdaptationPolicy:
    return AdaptationPolicy(min_answers=5, raise_threshold=0.7, lower_threshold=0.5)


@pytest.fixture
def profile(store: QuizStore) -> Profile:
    """Profile for the user 'alice'."""
    return store.create_profile("alice", "Alice")


@pytest.fixture
def other_profile(store: QuizStore) -> Profile:
    """Profile for the user 'bob'."""
    return store.create_profile("bob", "Bob")


@pytest.fixture
def topic(store: QuizStore, profile: Profile) -> Topic:
    """A public topic owned by alice."""
    return store.create_topic(
        Topic(
            title="World Geography",
            description="Capitals, rivers and mountains",
            created_by=profile.id,
        )
    )


@pytest.fixture
def private_topic(store: QuizStore, profile: Profile) -> Topic:
    """A private topic owned by alice."""
    return store.create_topic(
        Topic(
            title="Alice's Notes",
            description="Only for alice",
            is_public=False,
            created_by=profile.id,
        )
    )


@pytest.fixture
def sample_question(topic: Topic) -> Question:
    """Create a sample multiple choice Question for testing."""
    return Question(
        topic_id=topic.id,
        question_text="What is the capital of France?",
        question_type=QuestionType.MCQ,
        difficulty=QuestionDifficulty.MEDIUM,
        correct_answer=" paris ",
        options=["London", "Paris", "Berlin", "Madrid"],
        rationale="Paris has been the capital of France since 987 AD.",
        created_at=BASE_TIME,
    )


@pytest.fixture
def stored_questions(store: QuizStore, topic: Topic) -> list[Question]:
    """Three stored medium questions and one easy question, oldest first."""
    questions = [
        Question(
            topic_id=topic.id,
            question_text=f"Medium question {i}?",
            question_type=QuestionType.FILL_BLANK,
            difficulty=QuestionDifficulty.MEDIUM,
            correct_answer=f"answer {i}",
            created_at=BASE_TIME + timedelta(minutes=i),
        )
        for i in range(3)
    ]
    questions.append(
        Question(
            topic_id=topic.id,
            question_text="Easy question?",
            question_type=QuestionType.TRUE_FALSE,
            difficulty=QuestionDifficulty.EASY,
            correct_answer="true",
            created_at=BASE_TIME + timedelta(minutes=10),
        )
    )
    for question in questions:
        store.add_question(question)
    return questions


@pytest.fixture
def session(store: QuizStore, profile: Profile, topic: Topic) -> QuizSession:
    """An active session for alice on the public topic."""
    return store.create_session(
        QuizSession(user_id=profile.id, topic_id=topic.id, started_at=BASE_TIME)
    )
