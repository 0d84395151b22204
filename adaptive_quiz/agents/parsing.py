"""Strict parsing of JSON embedded in generated text."""

import json
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from adaptive_quiz.errors import FormatError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def find_json_object(text: str) -> str | None:
    """
    Locate the first balanced ``{...}`` span in ``text``.

    Braces inside JSON strings (including escaped quotes) are ignored. A
    candidate that is balanced but not valid JSON is skipped and the search
    continues from the next opening brace.

    Returns:
        The JSON object text, or None when there is none
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    candidate = text[start : index + 1]
                    try:
                        json.loads(candidate)
                    except json.JSONDecodeError:
                        break
                    return candidate
        start = text.find("{", start + 1)
    return None


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Extract and decode the first JSON object embedded in generated text.

    Raises:
        FormatError: No balanced, decodable JSON object was found
    """
    candidate = find_json_object(text or "")
    if candidate is None:
        logger.warning("No JSON object in generated text: %.200s", text)
        raise FormatError("Invalid JSON format in response")
    return json.loads(candidate)


def parse_response(text: str, schema: type[ModelT]) -> ModelT:
    """
    Validate the JSON object embedded in ``text`` against ``schema``.

    Field presence and types are checked by the schema; unknown fields are
    ignored.

    Raises:
        FormatError: No JSON object, or the object does not match ``schema``
    """
    data = extract_json_object(text)
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.warning("Generated JSON failed %s validation: %s", schema.__name__, e)
        raise FormatError(f"Response does not match {schema.__name__}: {e}") from e
