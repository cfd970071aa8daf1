"""
JSON recovery from free-text model responses.

Handles exactly the two failure modes seen from vision models: markdown code
fences around the object and raw line breaks inside string values. Anything
else that is malformed (trailing commas, single quotes) is left to fail.
"""
from typing import Any, Dict
import json
import logging
import re

logger = logging.getLogger(__name__)

_FENCE_TAGGED = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE_BARE = re.compile(r"```\s*")
_STRING_LITERAL = re.compile(r'"((?:[^"\\]|\\.)*)"', re.DOTALL)


class ParseError(Exception):
    """Raised when no JSON object can be recovered from a model response."""
    pass


def strip_code_fences(text: str) -> str:
    text = _FENCE_TAGGED.sub("", text)
    text = _FENCE_BARE.sub("", text)
    return text.strip()


def _escape_control_chars(match: re.Match) -> str:
    inner = (
        match.group(1)
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{inner}"'


def repair_string_literals(candidate: str) -> str:
    """Escape literal newline, carriage return and tab characters inside quoted strings."""
    return _STRING_LITERAL.sub(_escape_control_chars, candidate)


def extract_json(raw_text: str) -> Dict[str, Any]:
    """
    Recover the JSON object embedded in a model response.

    Args:
        raw_text: Raw text returned by the model

    Returns:
        Parsed object

    Raises:
        ParseError: If no {...} span exists or it is still malformed after repair
    """
    text = strip_code_fences(raw_text or "")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ParseError("No JSON in response")

    candidate = repair_string_literals(text[start:end + 1])

    try:
        data = json.loads(candidate)
    except ValueError as e:  # JSONDecodeError, or an integer over the digit limit
        logger.debug(f"Failed to parse: {candidate[:500]}")
        raise ParseError(f"Malformed JSON in response: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Response JSON is not an object")

    return data
