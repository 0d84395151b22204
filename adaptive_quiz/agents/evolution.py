"""Topic Evolution Advisor - asks the AI how a session should evolve."""

import logging
from typing import Any

from langchain_core.language_models import BaseChatModel

from adaptive_quiz.agents.llm import complete
from adaptive_quiz.agents.parsing import parse_response
from adaptive_quiz.config.settings import get_settings
from adaptive_quiz.models.quiz import (
    AnswerRecord,
    EvolutionDecision,
    Question,
    QuizSession,
    Topic,
)
from adaptive_quiz.storage.store import QuizStore

logger = logging.getLogger(__name__)


def summarize_answers(
    answers: list[AnswerRecord],
    questions: dict[str, Question],
) -> list[dict[str, Any]]:
    """Pair each answer with its question text for the analysis prompt."""
    summary = []
    for answer in answers:
        question = questions.get(answer.question_id)
        summary.append(
            {
                "question_text": question.question_text if question else "(unknown question)",
                "user_answer": answer.user_answer,
                "is_correct": answer.is_correct,
            }
        )
    return summary


def build_evolution_prompt(
    topic: Topic,
    session: QuizSession,
    recent_answers: list[dict[str, Any]],
) -> str:
    total = len(recent_answers)
    correct = sum(1 for a in recent_answers if a["is_correct"])
    accuracy = correct / total if total else 0.0

    answers_context = "\n\n".join(
        f"Q: {a['question_text']}\nUser Answer: {a['user_answer']}\n"
        f"Correct: {'Yes' if a['is_correct'] else 'No'}"
        for a in recent_answers
    )

    return f"""Analyze this user's quiz performance and decide how to evolve the learning experience:

Topic: {topic.title}
Topic Description: {topic.description or ''}
Current Difficulty: {session.current_difficulty.value}
Recent Performance: {correct}/{total} correct ({round(accuracy * 100)}% accuracy)

Recent Answers:
{answers_context}

Based on this performance, make a decision:

1. If user shows mastery (high accuracy, good understanding): suggest topic evolution or advanced concepts
2. If user is struggling: adjust difficulty or suggest foundational concepts
3. If user is progressing well: continue with current approach but vary question types

Respond with JSON in this format:
{{
  "action": "continue" | "increase_difficulty" | "decrease_difficulty" | "evolve_topic" | "suggest_subtopic",
  "reasoning": "Brief explanation of why this action was chosen",
  "new_difficulty": "easy" | "medium" | "hard" | null,
  "suggested_topic": "New topic suggestion if evolving" | null,
  "focus_area": "Specific area to focus on within current topic" | null,
  "message_to_user": "Encouraging message about their progress"
}}"""


def apply_decision(session: QuizSession, decision: EvolutionDecision) -> QuizSession:
    """
    Apply a decision to the session.

    ``new_difficulty`` and ``focus_area`` are taken as given when present; the
    decision itself is appended to the suggestion history.
    """
    updates: dict[str, Any] = {
        "evolution_suggestions": [
            *session.evolution_suggestions,
            decision.model_dump(mode="json"),
        ]
    }
    if decision.new_difficulty is not None:
        updates["current_difficulty"] = decision.new_difficulty
    if decision.focus_area:
        updates["focus_area"] = decision.focus_area
    return session.model_copy(update=updates)


def evolve_session(
    store: QuizStore,
    session: QuizSession,
    recent_limit: int = 10,
    llm: BaseChatModel | None = None,
) -> tuple[QuizSession, EvolutionDecision]:
    """
    Analyze recent answers and evolve the session on demand.

    Args:
        store: Persistence collaborator
        session: Session to analyze (must belong to its own user)
        recent_limit: How many of the latest answers to send
        llm: Chat model override

    Returns:
        The updated session and the decision that was applied

    Raises:
        GenerationFailure: The request failed or the decision JSON was invalid
    """
    settings = get_settings()
    topic = store.get_topic(session.topic_id, viewer_id=session.user_id)
    answers = store.list_answers(session.id, owner_id=session.user_id, limit=recent_limit)
    questions = {
        q.id: q for q in (store.get_question(qid) for qid in {a.question_id for a in answers})
    }

    prompt = build_evolution_prompt(topic, session, summarize_answers(answers, questions))
    text = complete(
        prompt,
        temperature=settings.evolution_temperature,
        max_tokens=settings.evolution_max_tokens,
        llm=llm,
    )
    decision = parse_response(text, EvolutionDecision)

    updated = apply_decision(session, decision)
    store.update_session(
        updated,
        owner_id=session.user_id,
        fields=("current_difficulty", "focus_area", "evolution_suggestions"),
    )
    logger.info(
        "Session %s evolution: %s (difficulty %s -> %s)",
        session.id,
        decision.action.value,
        session.current_difficulty.value,
        updated.current_difficulty.value,
    )
    return updated, decision
