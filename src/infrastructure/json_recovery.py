"""
Recovery parser for JSON produced by LLMs.

LLM output is frequently wrapped in markdown fences or truncated by the
token limit. Parsing runs three ordered strategies and stops at the first
success:

1. strict parse of the (unfenced) text
2. bracket-balance repair: close an unterminated string, drop a dangling
   comma/colon, then append the missing closers in nesting order
3. partial extraction: salvage every complete object from the top-level
   ``"days"`` array

Each strategy returns ``None`` on failure instead of raising.
"""
import json
import logging
import re
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_DAYS_ARRAY_PATTERN = re.compile(r'"days"\s*:\s*\[')
_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    if not text:
        return ""
    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        return (text[start:end] if end != -1 else text[start:]).strip()
    if "```" in text:
        start = text.find("```") + 3
        end = text.find("```", start)
        return (text[start:end] if end != -1 else text[start:]).strip()
    return text.strip()


def parse_strict(text: str) -> Optional[dict]:
    """Strategy 1: plain ``json.loads``; only objects are accepted."""
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _scan_open_brackets(text: str) -> tuple[list[str], bool]:
    """
    Walk the text and return the stack of unclosed brackets and whether
    the text ends inside a string literal. Brackets inside strings are ignored.
    """
    stack: list[str] = []
    in_string = False
    escaped = False

    for char in text:
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
        elif char in _CLOSERS:
            stack.append(char)
        elif char in ("}", "]") and stack and _CLOSERS[stack[-1]] == char:
            stack.pop()

    return stack, in_string


def balance_brackets(text: str) -> str:
    """Close whatever the truncated text left open."""
    fixed = text.rstrip()
    stack, in_string = _scan_open_brackets(fixed)

    if in_string:
        if fixed.endswith("\\"):
            fixed = fixed[:-1]
        fixed += '"'

    fixed = fixed.rstrip()
    while fixed and fixed[-1] in ",:":
        fixed = fixed[:-1].rstrip()

    for opener in reversed(stack):
        fixed += _CLOSERS[opener]

    return fixed


def parse_balanced(text: str) -> Optional[dict]:
    """Strategy 2: bracket-balance repair, then strict parse."""
    repaired = balance_brackets(text)
    if repaired == text:
        return None
    return parse_strict(repaired)


def _complete_objects(text: str, start: int) -> list[str]:
    """
    Collect the complete ``{...}`` elements of the array whose body starts
    at ``start``. Stops at the end of the array or at the first truncated element.
    """
    objects = []
    depth = 0
    in_string = False
    escaped = False
    element_start = None

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
        elif char in "{[":
            if depth == 0 and char == "{":
                element_start = index
            depth += 1
        elif char in "}]":
            if depth == 0:
                break
            depth -= 1
            if depth == 0 and element_start is not None:
                objects.append(text[element_start:index + 1])
                element_start = None

    return objects


def extract_days(text: str) -> Optional[dict]:
    """Strategy 3: keep every well-formed day object of the ``days`` array."""
    match = _DAYS_ARRAY_PATTERN.search(text)
    if not match:
        return None

    days = []
    for raw_day in _complete_objects(text, match.end()):
        day = parse_strict(raw_day)
        if day is not None:
            days.append(day)

    if not days:
        return None
    return {"days": days}


RECOVERY_STRATEGIES: tuple[Callable[[str], Optional[dict]], ...] = (
    parse_strict,
    parse_balanced,
    extract_days,
)


def recover_json(text: str) -> Optional[dict]:
    """
    Parse possibly malformed LLM JSON.

    Args:
        text: Raw model output (may contain code fences)

    Returns:
        Parsed object from the first strategy that succeeds, or None
    """
    payload = strip_code_fences(text)
    if not payload:
        return None

    for strategy in RECOVERY_STRATEGIES:
        parsed = strategy(payload)
        if parsed is not None:
            if strategy is not parse_strict:
                logger.info(f"Recovered malformed JSON using {strategy.__name__}")
            return parsed

    logger.warning(f"Could not recover JSON from LLM output: {payload[:200]}...")
    return None
