"""Tests for the session state tracker."""

import pytest

from adaptive_quiz.engine.tracker import (
    apply_answer,
    counters_match_history,
    end_session,
    record_answer,
    start_session,
)
from adaptive_quiz.errors import AccessDenied, MissingProfile, NotFound, SessionClosed
from adaptive_quiz.models.quiz import AnswerRecord, QuestionDifficulty, QuizSession


class TestStartSession:
    """Test opening sessions."""

    def test_starts_active_at_medium(self, store, profile, topic):
        session = start_session(store, "alice", topic.id)

        assert session.is_active
        assert session.user_id == profile.id
        assert session.current_difficulty == QuestionDifficulty.MEDIUM
        assert store.get_session(session.id, profile.id) == session

    def test_missing_profile(self, store, topic):
        with pytest.raises(MissingProfile):
            start_session(store, "nobody", topic.id)

    def test_unknown_topic(self, store, profile):
        with pytest.raises(NotFound):
            start_session(store, "alice", "no-such-topic")

    def test_private_topic_of_other_user(self, store, other_profile, private_topic):
        with pytest.raises(AccessDenied):
            start_session(store, "bob", private_topic.id)

    def test_owner_can_use_private_topic(self, store, profile, private_topic):
        session = start_session(store, "alice", private_topic.id)
        assert session.topic_id == private_topic.id


class TestApplyAnswer:
    """Test counter updates."""

    def test_correct_answer(self, session: QuizSession):
        updated = apply_answer(session, True)
        assert updated.total_questions == 1
        assert updated.correct_answers == 1
        assert updated.mastery_score == 1.0

    def test_incorrect_answer(self, session: QuizSession):
        updated = apply_answer(session, False)
        assert updated.total_questions == 1
        assert updated.correct_answers == 0
        assert updated.mastery_score == 0.0

    def test_does_not_mutate_input(self, session: QuizSession):
        apply_answer(session, True)
        assert session.total_questions == 0

    def test_mastery_is_rounded_accuracy(self, session: QuizSession):
        for is_correct in (True, False, False):
            session = apply_answer(session, is_correct)
        assert session.mastery_score == 0.33

    def test_closed_session(self, session: QuizSession):
        closed = session.model_copy(update={"is_active": False})
        with pytest.raises(SessionClosed):
            apply_answer(closed, True)


class TestRecordAnswer:
    """Test persisting answers."""

    def test_persists_answer_and_counters(self, store, session, stored_questions):
        answer = AnswerRecord(
            session_id=session.id,
            question_id=stored_questions[0].id,
            user_answer="answer 0",
            is_correct=True,
        )
        updated = record_answer(store, session, answer)

        reloaded = store.get_session(session.id, session.user_id)
        assert reloaded.total_questions == updated.total_questions == 1
        assert reloaded.correct_answers == 1
        assert store.list_answers(session.id, session.user_id) == [answer]

    def test_rejects_answer_for_other_session(self, store, session, stored_questions):
        answer = AnswerRecord(
            session_id="another-session",
            question_id=stored_questions[0].id,
            user_answer="x",
            is_correct=False,
        )
        with pytest.raises(AccessDenied):
            record_answer(store, session, answer)

    def test_counters_match_history_after_every_answer(
        self, store, session, stored_questions
    ):
        """Test accuracy recomputed from history equals the session's."""
        outcomes = [True, False, True, True, False, False, True]
        for i, is_correct in enumerate(outcomes):
            answer = AnswerRecord(
                session_id=session.id,
                question_id=stored_questions[i % len(stored_questions)].id,
                user_answer="x",
                is_correct=is_correct,
            )
            session = record_answer(store, session, answer)

            history = store.list_answers(session.id, session.user_id)
            stored = store.get_session(session.id, session.user_id)
            assert counters_match_history(stored, history)
            recomputed = sum(a.is_correct for a in history) / len(history)
            assert stored.accuracy == pytest.approx(recomputed)


class TestEndSession:
    """Test closing sessions."""

    def test_end_session(self, store, session):
        ended = end_session(store, session)

        assert not ended.is_active
        assert ended.completed_at is not None
        reloaded = store.get_session(session.id, session.user_id)
        assert reloaded.is_active is False
        assert reloaded.completed_at is not None


class TestCountersMatchHistory:
    """Test the counter/history consistency check."""

    def test_detects_mismatch(self, session):
        answers = [
            AnswerRecord(
                session_id=session.id, question_id="q1", user_answer="a", is_correct=True
            )
        ]
        assert not counters_match_history(session, answers)
        assert counters_match_history(apply_answer(session, True), answers)

    def test_ignores_other_sessions(self, session):
        answers = [
            AnswerRecord(
                session_id="other", question_id="q1", user_answer="a", is_correct=True
            )
        ]
        assert counters_match_history(session, answers)
