"""
JSON repair utilities for LLM text output.

Handles the usual ways a model breaks JSON:
- Markdown code fences around the payload
- Prose before/after the object
- Truncation (unclosed strings/brackets, trailing comma)
- Literal control characters inside strings

Anything still unparsable raises ValueError; callers treat that as an LLM failure.
"""

import json
import logging
import re
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_FENCE_OPEN = re.compile(r'^```(?:json)?\s*', re.IGNORECASE)
_FENCE_CLOSE = re.compile(r'\s*```$')


def parse_json_response(response: str) -> Any:
    """Parse the JSON payload of an LLM response. Raises ValueError if impossible."""
    if not response or not response.strip():
        raise ValueError("empty LLM response")

    cleaned = _FENCE_CLOSE.sub('', _FENCE_OPEN.sub('', response.strip()))
    json_str = extract_json_string(cleaned)

    for candidate, strict in (
        (json_str, True),
        (json_str, False),  # allows raw newlines/tabs inside strings
        (re.sub(r'[\x00-\x1f\x7f]', ' ', json_str), True),
    ):
        try:
            return json.loads(candidate, strict=strict)
        except json.JSONDecodeError:
            continue

    logger.debug(f"Unparsable LLM JSON: {json_str[:300]}")
    raise ValueError("LLM response is not valid JSON")


def extract_json_string(text: str) -> str:
    """Return the outermost JSON object/array in text, repairing it if truncated."""
    starts = [i for i in (text.find('{'), text.find('[')) if i != -1]
    if not starts:
        return text
    start = min(starts)
    end = _matching_close(text, start)
    if end is None:
        return repair_truncated_json(text[start:])
    return text[start:end + 1]


def _matching_close(text: str, start: int) -> Optional[int]:
    """Index of the bracket closing text[start], ignoring brackets in strings."""
    opener = text[start]
    closer = '}' if opener == '{' else ']'
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif in_string and ch == '\\':
            escaped = True
        elif ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    return i
    return None


def repair_truncated_json(text: str) -> str:
    """Close an unterminated string and any open brackets, in nesting order."""
    stack: List[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
        elif in_string and ch == '\\':
            escaped = True
        elif ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch in '{[':
                stack.append(ch)
            elif ch in '}]' and stack and stack[-1] == ('{' if ch == '}' else '['):
                stack.pop()

    if in_string:
        text += '"'
    text = text.rstrip().rstrip(',')
    for bracket in reversed(stack):
        text += '}' if bracket == '{' else ']'
    return text


def parse_model(response: str, model_cls: Type[M], list_key: Optional[str] = None) -> M:
    """Parse an LLM text response straight into a pydantic model.

    If the model returned a bare list and `list_key` is given, the list is
    wrapped as {list_key: [...]} first (e.g. claims).
    Raises ValueError on unparsable or non-conforming output.
    """
    data = parse_json_response(response)
    if isinstance(data, list) and list_key:
        data = {list_key: data}
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"LLM output does not match {model_cls.__name__}: {e.error_count()} errors") from e
