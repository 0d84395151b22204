"""Question Generator Agent - Generates new quiz questions using AI."""

import logging

from langchain_core.language_models import BaseChatModel

from adaptive_quiz.agents.grader import normalize_answer
from adaptive_quiz.agents.llm import complete
from adaptive_quiz.agents.parsing import parse_response
from adaptive_quiz.config.settings import get_settings
from adaptive_quiz.errors import FormatError, GenerationFailure
from adaptive_quiz.models.quiz import (
    GeneratedQuestion,
    Question,
    QuestionDifficulty,
    QuestionType,
    Topic,
)
from adaptive_quiz.storage.store import QuizStore

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert quiz question writer for an adaptive learning app.

Difficulty levels:
- easy: Common knowledge, straightforward questions
- medium: Requires general knowledge or logical thinking
- hard: Challenging, requires specific knowledge or deep thinking

Always answer with a single JSON object and nothing else."""

# Starter questions created alongside a new topic
SEED_PLAN = [
    (QuestionDifficulty.EASY, QuestionType.MCQ),
    (QuestionDifficulty.MEDIUM, QuestionType.TRUE_FALSE),
    (QuestionDifficulty.HARD, QuestionType.FILL_BLANK),
]


def build_question_prompt(
    topic: Topic,
    difficulty: QuestionDifficulty,
    question_type: QuestionType,
    existing_questions: list[Question],
) -> str:
    """
    Build the prompt asking for one new question.

    Args:
        topic: Topic the question is about
        difficulty: Requested difficulty
        question_type: Requested question format
        existing_questions: Stored questions to avoid duplicating

    Returns:
        Prompt text
    """
    difficulty = QuestionDifficulty(difficulty)
    question_type = QuestionType(question_type)

    existing_text = "\n\n".join(
        f"Q: {q.question_text}\nA: {q.correct_answer}" for q in existing_questions
    )
    existing_context = ""
    if existing_text:
        existing_context = f"""
Here are some existing questions for context. Do NOT repeat them:
{existing_text}
"""

    return f"""Generate a {difficulty.value} difficulty {question_type.value} question for the topic: "{topic.title}".

Topic Description: {topic.description or ''}
{existing_context}
Create a NEW question that:
1. Is {difficulty.value} difficulty level
2. Is a {question_type.value} type question
3. Is different from the existing questions above
4. Tests understanding of {topic.title}

For mcq questions, provide 4 options and make correct_answer the exact text of one option.
For true_false questions, make it a clear true or false statement and answer "true" or "false".
For fill_blank questions, use _____ to indicate the blank.

Response format (JSON):
{{
  "question_text": "The question text here",
  "correct_answer": "The correct answer",
  "options": ["option1", "option2", "option3", "option4"],
  "rationale": "Explanation of why this is correct",
  "difficulty": "{difficulty.value}",
  "question_type": "{question_type.value}"
}}
Only include "options" for mcq questions."""


def validate_generated_question(
    generated: GeneratedQuestion,
    difficulty: QuestionDifficulty,
    question_type: QuestionType,
) -> GeneratedQuestion:
    """
    Apply the per-type rules the schema alone cannot express.

    Raises:
        FormatError: The question does not fit the requested shape
    """
    if generated.difficulty is not None and generated.difficulty != difficulty:
        raise FormatError(
            f"Requested {difficulty.value} question, got {generated.difficulty.value}"
        )
    if generated.question_type is not None and generated.question_type != question_type:
        raise FormatError(
            f"Requested {question_type.value} question, got {generated.question_type.value}"
        )

    if question_type == QuestionType.MCQ:
        options = [option.strip() for option in generated.options or []]
        if len(options) < 2 or any(not option for option in options):
            raise FormatError("Multiple choice questions need at least two options")
        normalized = [normalize_answer(option) for option in options]
        if len(set(normalized)) != len(normalized):
            raise FormatError("Multiple choice options must be distinct")
        if normalize_answer(generated.correct_answer) not in normalized:
            raise FormatError("Correct answer is not one of the options")
        return generated.model_copy(update={"options": options})

    if question_type == QuestionType.TRUE_FALSE:
        answer = normalize_answer(generated.correct_answer)
        if answer not in ("true", "false"):
            raise FormatError("True/false answer must be 'true' or 'false'")
        return generated.model_copy(update={"correct_answer": answer, "options": None})

    return generated.model_copy(update={"options": None})


def parse_generated_question(
    text: str,
    difficulty: QuestionDifficulty,
    question_type: QuestionType,
) -> GeneratedQuestion:
    """Parse generated text into a validated question payload."""
    generated = parse_response(text, GeneratedQuestion)
    return validate_generated_question(
        generated, QuestionDifficulty(difficulty), QuestionType(question_type)
    )


def select_context_questions(
    store: QuizStore,
    topic_id: str,
    difficulty: QuestionDifficulty,
    limit: int,
) -> list[Question]:
    """
    Pick the existing questions shown to the model as examples not to repeat.

    The newest questions at the requested difficulty come first; remaining
    slots are filled with the newest questions of the other tiers.
    """
    if limit <= 0:
        return []
    selected = store.list_questions(
        topic_id, limit=limit, difficulty=difficulty, newest_first=True
    )
    if len(selected) < limit:
        chosen = {q.id for q in selected}
        for question in store.list_questions(topic_id, newest_first=True):
            if len(selected) >= limit:
                break
            if question.id not in chosen:
                selected.append(question)
    return selected


def reject_duplicate(store: QuizStore, topic_id: str, generated: GeneratedQuestion) -> None:
    """
    Refuse a generated question the topic already has, ignoring case and padding.

    Raises:
        FormatError: The topic already has a question with the same text
    """
    text = normalize_answer(generated.question_text)
    for question in store.list_questions(topic_id):
        if normalize_answer(question.question_text) == text:
            logger.warning("Generated question repeats stored question %s", question.id)
            raise FormatError("Generated question duplicates an existing question")


def generate_question(
    store: QuizStore,
    topic: Topic,
    difficulty: QuestionDifficulty,
    question_type: QuestionType | None = None,
    llm: BaseChatModel | None = None,
) -> Question:
    """
    Generate, validate and persist one new question.

    Nothing is stored unless the response parses completely.

    Args:
        store: Persistence collaborator
        topic: Topic to write the question for
        difficulty: Requested difficulty
        question_type: Requested format (defaults to the configured type)
        llm: Chat model override

    Returns:
        The stored question

    Raises:
        GenerationFailure: The request failed or the response did not parse
    """
    settings = get_settings()
    difficulty = QuestionDifficulty(difficulty)
    question_type = QuestionType(question_type or settings.default_question_type)

    existing = select_context_questions(
        store, topic.id, difficulty, settings.max_context_questions
    )
    prompt = build_question_prompt(topic, difficulty, question_type, existing)

    logger.info(
        "Generating %s %s question for topic '%s'",
        difficulty.value,
        question_type.value,
        topic.title,
    )
    text = complete(
        prompt,
        temperature=settings.question_temperature,
        max_tokens=settings.question_max_tokens,
        llm=llm,
        system_prompt=SYSTEM_PROMPT,
    )
    generated = parse_generated_question(text, difficulty, question_type)
    reject_duplicate(store, topic.id, generated)

    question = Question(
        topic_id=topic.id,
        question_text=generated.question_text,
        question_type=question_type,
        difficulty=difficulty,
        correct_answer=generated.correct_answer,
        options=generated.options,
        rationale=generated.rationale,
        created_by=None,  # AI generated
    )
    return store.add_question(question)


def seed_topic_questions(
    store: QuizStore,
    topic: Topic,
    llm: BaseChatModel | None = None,
) -> list[Question]:
    """
    Generate the starter questions for a newly created topic.

    Seeding is best-effort: a failed question is logged and skipped.

    Returns:
        The questions that were stored
    """
    created: list[Question] = []
    for difficulty, question_type in SEED_PLAN:
        try:
            created.append(
                generate_question(store, topic, difficulty, question_type, llm=llm)
            )
        except GenerationFailure as e:
            logger.warning(
                "Skipping %s %s starter question for '%s': %s",
                difficulty.value,
                question_type.value,
                topic.title,
                e,
            )
            continue
    return created
