"""Pulls the translations array out of chat replies that are not always clean JSON."""

import json
import logging
import re
from typing import List, Optional

from .exceptions import CountMismatch, MalformedResponse

logger = logging.getLogger(__name__)

TRANSLATIONS_FIELD = "translations"

_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")

# Pairs of quote characters the single-line protocol may wrap its answer in.
_QUOTE_PAIRS = (('"', '"'), ("'", "'"), ("“", "”"), ("「", "」"), ("『", "』"))


def _read_array(text: str, field: str) -> Optional[List[str]]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None
    items = data.get(field)
    if not isinstance(items, list):
        return None
    return [item if isinstance(item, str) else "" for item in items]


def strip_code_fence(text: str) -> Optional[str]:
    """Returns the body of a ```-fenced block, or None if `text` is not fenced."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return None
    body = _FENCE_OPEN.sub("", stripped, count=1)
    body = _FENCE_CLOSE.sub("", body, count=1)
    return body.strip()


def extract_first_json_object(text: str) -> Optional[str]:
    """
    Finds the first balanced {...} substring.

    Depth is tracked over the raw characters, so braces inside JSON strings
    count too. Good enough for model replies, which rarely contain them.
    """
    depth = 0
    start = None
    for i, char in enumerate(text):
        if char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}":
            if depth == 0:
                continue
            depth -= 1
            if depth == 0 and start is not None:
                return text[start:i + 1]
    return None


def parse_translations(raw_text: str, expected_count: Optional[int] = None, field: str = TRANSLATIONS_FIELD) -> List[str]:
    """
    Parses a reply of the form {"translations": [...]}.

    Tries, in order: the text as-is, the text with a code fence removed, and
    the first brace-delimited object found inside surrounding prose.
    Non-string array elements become empty strings.

    Args:
        raw_text: The message content returned by the chat service.
        expected_count: If given, the array must have exactly this many items.
        field: Name of the array field to read.

    Returns:
        The list of translated strings.

    Raises:
        MalformedResponse: If no attempt yields the array.
        CountMismatch: If the array length differs from `expected_count`.
    """
    text = (raw_text or "").strip()

    result = _read_array(text, field)
    if result is None:
        fenced = strip_code_fence(text)
        if fenced is not None:
            result = _read_array(fenced, field)
    if result is None:
        candidate = extract_first_json_object(text)
        if candidate is not None:
            result = _read_array(candidate, field)
    if result is None:
        snippet = text.replace("\n", " ")[:120]
        logger.debug(f"Unparseable translation reply: {snippet!r}")
        raise MalformedResponse(f"Reply has no '{field}' array: {snippet!r}")

    if expected_count is not None and len(result) != expected_count:
        raise CountMismatch(expected_count, len(result))
    return result


def strip_quotes(text: str) -> str:
    """Trims whitespace and one layer of matching surrounding quotes."""
    cleaned = (text or "").strip()
    for opening, closing in _QUOTE_PAIRS:
        if len(cleaned) >= 2 and cleaned.startswith(opening) and cleaned.endswith(closing):
            return cleaned[len(opening):-len(closing)].strip()
    return cleaned
