"""
Structured-output extraction from free-form model text.

Models often wrap JSON in prose or markdown fences; this module tries the
whole text first, then a ```json fence, then any fence.
"""

from __future__ import annotations

import json
import re
from typing import Any

from ..errors import MalformedOutputError

JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)```")
ANY_FENCE = re.compile(r"```([\s\S]*?)```")


def _try_parse(candidate: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(candidate)
    except (json.JSONDecodeError, TypeError):
        return False, None


def extract_json(text: str) -> Any:
    """
    Parse JSON out of a model response.

    Args:
        text: Raw response text

    Returns:
        The parsed JSON value

    Raises:
        MalformedOutputError: If no JSON could be parsed

    Example:
        >>> extract_json('Sure! ```json\\n{"a": 1}\\n```')
        {'a': 1}
    """
    if not isinstance(text, str):
        raise MalformedOutputError("AI did not return valid JSON")

    ok, data = _try_parse(text)
    if ok:
        return data

    for pattern in (JSON_FENCE, ANY_FENCE):
        match = pattern.search(text)
        if match:
            ok, data = _try_parse(match.group(1))
            if ok:
                return data

    raise MalformedOutputError("AI did not return valid JSON")
