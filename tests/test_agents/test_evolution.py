"""Tests for the Topic Evolution Advisor."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from adaptive_quiz.agents.evolution import (
    apply_decision,
    build_evolution_prompt,
    evolve_session,
    summarize_answers,
)
from adaptive_quiz.engine.tracker import record_answer
from adaptive_quiz.errors import FormatError, GenerationFailure
from adaptive_quiz.models.quiz import (
    AnswerRecord,
    EvolutionAction,
    EvolutionDecision,
    QuestionDifficulty,
)

ANSWERED_AT = datetime(2025, 7, 29, 13, 0, 0, tzinfo=timezone.utc)


def decision_json(**overrides) -> str:
    data = {
        "action": "increase_difficulty",
        "reasoning": "Three in a row correct",
        "new_difficulty": "hard",
        "suggested_topic": None,
        "focus_area": "River systems",
        "message_to_user": "Great work, let's step it up!",
    }
    data.update(overrides)
    return json.dumps({k: v for k, v in data.items() if v is not ...})


@pytest.fixture
def answered_session(store, session, stored_questions):
    """The session after three answers, the last one wrong."""
    for i, (question, correct) in enumerate(
        zip(stored_questions[:3], [True, True, False])
    ):
        session = record_answer(
            store,
            session,
            AnswerRecord(
                session_id=session.id,
                question_id=question.id,
                user_answer=question.correct_answer if correct else "no idea",
                is_correct=correct,
                answered_at=ANSWERED_AT + timedelta(minutes=i),
            ),
        )
    return session


class TestApplyDecision:
    """Test applying decisions to a session."""

    def test_sets_difficulty_and_focus(self, session):
        decision = EvolutionDecision.model_validate_json(decision_json())

        updated = apply_decision(session, decision)

        assert updated.current_difficulty == QuestionDifficulty.HARD
        assert updated.focus_area == "River systems"
        assert updated.evolution_suggestions == [decision.model_dump(mode="json")]
        assert session.evolution_suggestions == []

    def test_continue_keeps_difficulty(self, session):
        decision = EvolutionDecision(action=EvolutionAction.CONTINUE, reasoning="Steady")

        updated = apply_decision(session, decision)

        assert updated.current_difficulty == session.current_difficulty
        assert updated.focus_area is None
        assert updated.evolution_suggestions[0]["action"] == "continue"

    def test_history_accumulates(self, session):
        first = EvolutionDecision(action=EvolutionAction.CONTINUE, reasoning="one")
        second = EvolutionDecision(action=EvolutionAction.SUGGEST_SUBTOPIC, reasoning="two")

        updated = apply_decision(apply_decision(session, first), second)

        assert [s["reasoning"] for s in updated.evolution_suggestions] == ["one", "two"]


class TestPrompt:
    """Test the analysis prompt."""

    def test_summarizes_performance(self, topic, answered_session, store, stored_questions):
        answers = store.list_answers(answered_session.id, owner_id=answered_session.user_id)
        summary = summarize_answers(answers, {q.id: q for q in stored_questions})

        prompt = build_evolution_prompt(topic, answered_session, summary)

        assert "Topic: World Geography" in prompt
        assert "Current Difficulty: medium" in prompt
        assert "2/3 correct (67% accuracy)" in prompt
        assert "Q: Medium question 2?\nUser Answer: no idea\nCorrect: No" in prompt

    def test_unknown_question(self):
        answer = AnswerRecord(
            session_id="s", question_id="gone", user_answer="x", is_correct=False
        )
        assert summarize_answers([answer], {})[0]["question_text"] == "(unknown question)"


class TestEvolveSession:
    """Test on-demand evolution."""

    def test_updates_session_and_store(self, store, answered_session, fake_llm):
        llm = fake_llm(f"My analysis:\n{decision_json()}")

        updated, decision = evolve_session(store, answered_session, llm=llm)

        assert decision.action == EvolutionAction.INCREASE_DIFFICULTY
        assert updated.current_difficulty == QuestionDifficulty.HARD
        stored = store.get_session(answered_session.id, owner_id=answered_session.user_id)
        assert stored.current_difficulty == QuestionDifficulty.HARD
        assert stored.focus_area == "River systems"
        assert len(stored.evolution_suggestions) == 1
        assert stored.total_questions == 3

    def test_difficulty_applies_before_minimum_answers(
        self, store, answered_session, fake_llm, policy
    ):
        assert answered_session.total_questions < policy.min_answers
        llm = fake_llm(decision_json(action="decrease_difficulty", new_difficulty="easy"))

        updated, _ = evolve_session(store, answered_session, llm=llm)

        assert updated.current_difficulty == QuestionDifficulty.EASY
        stored = store.get_session(answered_session.id, owner_id=answered_session.user_id)
        assert stored.current_difficulty == QuestionDifficulty.EASY

    def test_missing_reasoning_changes_nothing(self, store, answered_session, fake_llm):
        llm = fake_llm(decision_json(reasoning=...))

        with pytest.raises(FormatError):
            evolve_session(store, answered_session, llm=llm)

        stored = store.get_session(answered_session.id, owner_id=answered_session.user_id)
        assert stored.current_difficulty == QuestionDifficulty.MEDIUM
        assert stored.evolution_suggestions == []

    def test_unknown_action(self, store, answered_session, fake_llm):
        with pytest.raises(FormatError):
            evolve_session(store, answered_session, llm=fake_llm(decision_json(action="panic")))

    def test_unreachable_collaborator(self, store, answered_session, unreachable_llm):
        with pytest.raises(GenerationFailure):
            evolve_session(store, answered_session, llm=unreachable_llm)
