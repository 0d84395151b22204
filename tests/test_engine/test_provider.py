"""Tests for the question provider."""

import json

import pytest

from adaptive_quiz.engine.provider import provide_question
from adaptive_quiz.engine.tracker import record_answer
from adaptive_quiz.errors import FormatError, GenerationFailure, SessionClosed
from adaptive_quiz.models.quiz import AnswerRecord, QuestionDifficulty, QuestionType


def generated_json(**overrides) -> str:
    payload = {
        "question_text": "Which river flows through Cairo?",
        "correct_answer": "Nile",
        "options": ["Nile", "Amazon", "Danube", "Ganges"],
        "rationale": "Cairo sits on the banks of the Nile.",
        "difficulty": "medium",
        "question_type": "mcq",
    }
    payload.update(overrides)
    return json.dumps(payload)


class TestProvideQuestion:
    """Test reuse-before-generation."""

    def test_reuses_stored_question(self, store, session, stored_questions, fake_llm):
        llm = fake_llm("this response must not be used")
        question = provide_question(store, session, llm=llm)

        assert question.id == stored_questions[0].id
        assert question.difficulty == QuestionDifficulty.MEDIUM

    def test_matches_session_difficulty(self, store, session, stored_questions):
        easy_session = session.model_copy(
            update={"current_difficulty": QuestionDifficulty.EASY}
        )
        question = provide_question(store, easy_session)
        assert question.question_text == "Easy question?"

    def test_skips_questions_answered_in_session(self, store, session, stored_questions):
        first = stored_questions[0]
        session = record_answer(
            store,
            session,
            AnswerRecord(
                session_id=session.id,
                question_id=first.id,
                user_answer="answer 0",
                is_correct=True,
            ),
        )

        question = provide_question(store, session)
        assert question.id == stored_questions[1].id

    def test_generates_when_pool_is_empty(self, store, session, topic, fake_llm):
        llm = fake_llm(f"Here is your question:\n```json\n{generated_json()}\n```")

        question = provide_question(store, session, llm=llm)

        assert question.question_text == "Which river flows through Cairo?"
        assert question.topic_id == topic.id
        assert question.difficulty == QuestionDifficulty.MEDIUM
        assert question.question_type == QuestionType.MCQ
        assert question.created_by is None
        assert store.get_question(question.id) == question

    def test_generates_when_pool_is_exhausted(
        self, store, session, stored_questions, fake_llm
    ):
        for stored in stored_questions[:3]:
            session = record_answer(
                store,
                session,
                AnswerRecord(
                    session_id=session.id,
                    question_id=stored.id,
                    user_answer="x",
                    is_correct=False,
                ),
            )

        question = provide_question(store, session, llm=fake_llm(generated_json()))

        assert question.id not in {q.id for q in stored_questions}
        assert len(store.list_questions(session.topic_id)) == len(stored_questions) + 1

    def test_unparsable_generation_persists_nothing(self, store, session, fake_llm):
        llm = fake_llm("Sorry, I cannot help with that.")

        with pytest.raises(GenerationFailure):
            provide_question(store, session, llm=llm)

        assert store.list_questions(session.topic_id) == []

    def test_schema_mismatch_is_a_format_error(self, store, session, fake_llm):
        llm = fake_llm(generated_json(question_text=None))

        with pytest.raises(FormatError):
            provide_question(store, session, llm=llm)

        assert store.list_questions(session.topic_id) == []

    def test_unreachable_collaborator(self, store, session, unreachable_llm):
        with pytest.raises(GenerationFailure):
            provide_question(store, session, llm=unreachable_llm)
        assert store.list_questions(session.topic_id) == []

    def test_closed_session(self, store, session):
        closed = session.model_copy(update={"is_active": False})
        with pytest.raises(SessionClosed):
            provide_question(store, closed)
