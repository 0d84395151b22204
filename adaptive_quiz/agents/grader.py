"""Grading Evaluator - scores answers and asks the AI tutor for feedback."""

import logging

from langchain_core.language_models import BaseChatModel

from adaptive_quiz.agents.llm import complete
from adaptive_quiz.config.settings import get_settings
from adaptive_quiz.errors import GenerationFailure
from adaptive_quiz.models.quiz import GradeResult, Question, QuestionType

logger = logging.getLogger(__name__)


def normalize_answer(answer: str) -> str:
    """Case-fold and trim an answer for comparison."""
    return answer.strip().lower()


def is_answer_correct(submitted: str, correct_answer: str) -> bool:
    """Case-insensitive, whitespace-trimmed equality."""
    return normalize_answer(submitted) == normalize_answer(correct_answer)


def build_feedback_prompt(
    question_text: str,
    user_answer: str,
    correct_answer: str,
    question_type: QuestionType,
) -> str:
    return f"""As an AI tutor, please evaluate this student's answer and provide constructive feedback.

Question: {question_text}
Correct Answer: {correct_answer}
Student's Answer: {user_answer}
Question Type: {QuestionType(question_type).value}

Please provide:
1. Whether the answer is correct, partially correct, or incorrect
2. Specific feedback on what was good about the answer
3. What could be improved or what was missing
4. Any additional learning tips related to this topic

Keep the feedback encouraging but informative. Be specific about what the student got right and what they could improve.

Provide your response in plain text format (not JSON), aimed at helping the student learn."""


def request_feedback(
    question: Question,
    user_answer: str,
    llm: BaseChatModel | None = None,
) -> str:
    """
    Ask the generation collaborator for tutor feedback on an answer.

    Raises:
        GenerationFailure: The request failed or returned nothing
    """
    settings = get_settings()
    prompt = build_feedback_prompt(
        question.question_text,
        user_answer,
        question.correct_answer,
        question.question_type,
    )
    return complete(
        prompt,
        temperature=settings.grading_temperature,
        max_tokens=settings.grading_max_tokens,
        llm=llm,
    ).strip()


def grade_answer(
    question: Question,
    user_answer: str,
    llm: BaseChatModel | None = None,
) -> GradeResult:
    """
    Grade a submitted answer against the stored one.

    Correctness is always the normalized equality check. Open-form questions
    also get tutor feedback; that text is only for display and never changes
    correctness. If feedback cannot be produced the result carries empty
    feedback.

    Args:
        question: The question that was answered
        user_answer: Text the user submitted
        llm: Chat model override for feedback

    Returns:
        GradeResult with correctness and feedback
    """
    is_correct = is_answer_correct(user_answer, question.correct_answer)

    feedback = ""
    if question.question_type.is_open_form:
        try:
            feedback = request_feedback(question, user_answer, llm=llm)
        except GenerationFailure as e:
            logger.warning("Feedback unavailable for question %s: %s", question.id, e)

    return GradeResult(is_correct=is_correct, feedback=feedback)
