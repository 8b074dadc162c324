"""Recover a JSON object from loosely formatted model output."""

import re
from enum import Enum
from typing import Optional

_FENCE_OPEN = re.compile(r"^\s*```(?:json|JSON)?[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```\s*$")


class _ScanState(Enum):
    DEFAULT = "default"
    IN_STRING = "in_string"
    IN_STRING_ESCAPED = "in_string_escaped"


def strip_code_fence(text: str) -> str:
    """Remove a leading and/or trailing Markdown code fence."""
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def extract_first_json_object(text: str) -> Optional[str]:
    """Return the first brace-balanced object in the fence-stripped text.

    Braces inside string literals are ignored. Returns None when no object
    closes before the text ends.
    """
    source = strip_code_fence(text)
    start = source.find("{")
    if start == -1:
        return None

    state = _ScanState.DEFAULT
    depth = 0

    for i in range(start, len(source)):
        ch = source[i]

        if state is _ScanState.IN_STRING_ESCAPED:
            state = _ScanState.IN_STRING
        elif state is _ScanState.IN_STRING:
            if ch == "\\":
                state = _ScanState.IN_STRING_ESCAPED
            elif ch == '"':
                state = _ScanState.DEFAULT
        elif ch == '"':
            state = _ScanState.IN_STRING
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return source[start:i + 1]

    return None


def repair_json_text(text: str) -> tuple[str, bool]:
    """Best-effort JSON text for parsing.

    Returns:
        Tuple of (candidate text, whether the balanced-object scan succeeded)
    """
    candidate = extract_first_json_object(text)
    if candidate is not None:
        return candidate, True
    return strip_code_fence(text), False
