"""Access to the text-generation collaborator."""

import logging

from langchain_anthropic import ChatAnthropic
from langchain_aws import ChatBedrock
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser

from adaptive_quiz.config.settings import get_settings
from adaptive_quiz.errors import GenerationFailure

logger = logging.getLogger(__name__)


def get_chat_model(temperature: float, max_tokens: int) -> BaseChatModel:
    """
    Build the configured chat model with the given generation parameters.

    Args:
        temperature: Sampling temperature
        max_tokens: Cap on generated tokens

    Returns:
        A LangChain chat model
    """
    settings = get_settings()

    if settings.llm_provider == "anthropic":
        return ChatAnthropic(
            model=settings.model_name,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    return ChatBedrock(
        model=settings.model_name,
        temperature=temperature,
        max_tokens=max_tokens,
        region_name=settings.aws_default_region,
    )


def complete(
    prompt: str,
    temperature: float,
    max_tokens: int,
    llm: BaseChatModel | None = None,
    system_prompt: str | None = None,
) -> str:
    """
    Send one prompt and return the raw response text.

    No timeout or retry is applied; any failure is reported as a
    GenerationFailure and the caller abandons the operation.

    Args:
        prompt: User prompt
        temperature: Sampling temperature (ignored when ``llm`` is given)
        max_tokens: Token cap (ignored when ``llm`` is given)
        llm: Pre-built chat model to use instead of the configured one
        system_prompt: Optional system instructions

    Returns:
        Non-empty response text

    Raises:
        GenerationFailure: The request failed or produced no text
    """
    messages = []
    if system_prompt:
        messages.append(SystemMessage(content=system_prompt))
    messages.append(HumanMessage(content=prompt))

    try:
        llm = llm or get_chat_model(temperature, max_tokens)
        text = (llm | StrOutputParser()).invoke(messages)
    except Exception as e:
        logger.error("Generation request failed: %s", e)
        raise GenerationFailure(f"Generation request failed: {e}") from e

    if not text or not text.strip():
        raise GenerationFailure("No content generated")

    return text
