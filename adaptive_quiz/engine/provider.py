"""Question Provider - reuse a stored question before generating a new one."""

import logging

from langchain_core.language_models import BaseChatModel

from adaptive_quiz.agents.generator import generate_question
from adaptive_quiz.errors import SessionClosed
from adaptive_quiz.models.quiz import Question, QuestionType, QuizSession
from adaptive_quiz.storage.store import QuizStore

logger = logging.getLogger(__name__)


def provide_question(
    store: QuizStore,
    session: QuizSession,
    question_type: QuestionType | None = None,
    llm: BaseChatModel | None = None,
) -> Question:
    """
    Return the next question for a session at its current difficulty.

    A stored question for the session's topic and difficulty that this
    session has not answered yet always wins. Only when none is left is a new
    one generated (and stored).

    Args:
        store: Persistence collaborator
        session: Session asking for a question
        question_type: Format to request if generation is needed
        llm: Chat model override for generation

    Returns:
        The question to show next

    Raises:
        SessionClosed: The session was already ended
        GenerationFailure: Nothing stored and generation failed
    """
    if not session.is_active:
        raise SessionClosed(f"Session {session.id} has ended")

    answered = store.answered_question_ids(session.id, owner_id=session.user_id)
    question = store.find_question(
        session.topic_id,
        session.current_difficulty,
        exclude_ids=answered,
    )
    if question is not None:
        return question

    logger.info(
        "No unanswered %s question for topic %s, generating one",
        session.current_difficulty.value,
        session.topic_id,
    )
    topic = store.get_topic(session.topic_id, viewer_id=session.user_id)
    return generate_question(
        store,
        topic,
        session.current_difficulty,
        question_type=question_type,
        llm=llm,
    )
