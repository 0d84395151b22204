"""LangGraph workflow for one answer turn of an adaptive quiz."""

import logging
from typing import Any, Literal

from langchain_core.language_models import BaseChatModel
from langgraph.graph import END, StateGraph

from adaptive_quiz.agents.grader import grade_answer
from adaptive_quiz.engine.difficulty import AdaptationPolicy, next_difficulty
from adaptive_quiz.engine.tracker import record_answer
from adaptive_quiz.errors import SessionClosed
from adaptive_quiz.graph.state import QuizTurnState, create_initial_state
from adaptive_quiz.models.quiz import AnswerRecord, Question, QuizSession
from adaptive_quiz.storage.store import QuizStore

logger = logging.getLogger(__name__)


def should_adapt(state: QuizTurnState) -> Literal["adapt", "end"]:
    """
    Decide whether difficulty is reconsidered after this answer.

    Args:
        state: Current turn state

    Returns:
        "adapt" once enough answers are recorded, "end" otherwise
    """
    if state["session"].total_questions >= state["min_answers"]:
        return "adapt"
    return "end"


def create_turn_workflow(
    store: QuizStore,
    llm: BaseChatModel | None = None,
    policy: AdaptationPolicy | None = None,
) -> StateGraph:
    """
    Create the LangGraph workflow for one answer.

    The workflow follows this structure:
    1. Grader - Scores the answer (and gets feedback for open-form questions)
    2. Tracker - Appends the answer record, then updates session counters
    3. [Conditional] Adapter - Moves difficulty once enough answers exist

    Args:
        store: Persistence collaborator
        llm: Chat model override for feedback
        policy: Adaptation thresholds (defaults to configured values)

    Returns:
        StateGraph ready to compile
    """
    policy = policy or AdaptationPolicy.from_settings()

    def grade(state: QuizTurnState) -> dict[str, Any]:
        result = grade_answer(state["question"], state["user_answer"], llm=llm)
        return {"grade": result}

    def track(state: QuizTurnState) -> dict[str, Any]:
        session = state["session"]
        result = state["grade"]
        answer = AnswerRecord(
            session_id=session.id,
            question_id=state["question"].id,
            user_answer=state["user_answer"],
            is_correct=result.is_correct,
            ai_feedback=result.feedback or None,
        )
        return {"session": record_answer(store, session, answer), "answer": answer}

    def adapt(state: QuizTurnState) -> dict[str, Any]:
        session = state["session"]
        new_difficulty = next_difficulty(
            session.current_difficulty,
            session.total_questions,
            session.correct_answers,
            policy,
        )
        if new_difficulty == session.current_difficulty:
            return {"difficulty_changed": False}

        updated = session.model_copy(update={"current_difficulty": new_difficulty})
        store.update_session(
            updated, owner_id=session.user_id, fields=("current_difficulty",)
        )
        logger.info(
            "Session %s difficulty %s -> %s (accuracy %.2f over %d)",
            session.id,
            session.current_difficulty.value,
            new_difficulty.value,
            session.accuracy,
            session.total_questions,
        )
        return {"session": updated, "difficulty_changed": True}

    # Create the graph
    workflow = StateGraph(QuizTurnState)

    workflow.add_node("grader", grade)
    workflow.add_node("tracker", track)
    workflow.add_node("adapter", adapt)

    # Start -> Grader -> Tracker
    workflow.set_entry_point("grader")
    workflow.add_edge("grader", "tracker")

    # Tracker -> Conditional (adapt or stop)
    workflow.add_conditional_edges(
        "tracker",
        should_adapt,
        {
            "adapt": "adapter",
            "end": END,
        },
    )

    # Adapter -> End
    workflow.add_edge("adapter", END)

    return workflow


def compile_workflow(
    store: QuizStore,
    llm: BaseChatModel | None = None,
    policy: AdaptationPolicy | None = None,
):
    """
    Compile the workflow and return it ready for execution.

    Returns:
        Compiled workflow
    """
    return create_turn_workflow(store, llm=llm, policy=policy).compile()


def submit_answer(
    store: QuizStore,
    session: QuizSession,
    question: Question,
    user_answer: str,
    llm: BaseChatModel | None = None,
    policy: AdaptationPolicy | None = None,
    workflow=None,
) -> QuizTurnState:
    """
    Run one answer turn and return the final state.

    Args:
        store: Persistence collaborator
        session: Session being played
        question: Question being answered
        user_answer: Submitted text
        llm: Chat model override for feedback
        policy: Adaptation thresholds
        workflow: Already compiled workflow to reuse

    Returns:
        Final QuizTurnState; ``state["session"]`` is the updated session

    Raises:
        SessionClosed: The session was already ended
    """
    if not session.is_active:
        raise SessionClosed(f"Session {session.id} has ended")
    if not user_answer or not user_answer.strip():
        raise ValueError("Answer cannot be empty")

    policy = policy or AdaptationPolicy.from_settings()
    workflow = workflow or compile_workflow(store, llm=llm, policy=policy)
    state = create_initial_state(session, question, user_answer, policy)
    return workflow.invoke(state)
