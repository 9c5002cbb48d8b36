"""JSON recovery from LLM responses.

LLMs asked for JSON often wrap it in markdown fences or surround it with
prose. These helpers parse the response as-is, or locate the first
balanced JSON value inside it.
"""

import json
import re
from typing import Any

from medparse.utils.exceptions import UnparsableResponseError

CODE_FENCE_PATTERN = re.compile(r"```[ \t]*(?:json|JSON|javascript|js)?")

_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fences(content: str) -> str:
    """Remove markdown code-fence markers anywhere in the content."""
    return CODE_FENCE_PATTERN.sub("", content).strip()


def parse_direct(content: str) -> Any:
    """Parse the trimmed response as JSON.

    Raises:
        UnparsableResponseError: If the content is not valid JSON.
    """
    try:
        return json.loads(content.strip())
    except (json.JSONDecodeError, TypeError) as e:
        raise UnparsableResponseError(f"Response is not valid JSON: {e}")


def recover_json(content: str) -> Any:
    """Extract the first balanced JSON object or array from the content.

    Scans from the first ``{`` or ``[`` with a depth counter until the
    matching close. If that substring does not parse (or the value is
    never closed), retries once up to the last closing bracket in the
    content.

    Args:
        content: Raw LLM response.

    Returns:
        The decoded JSON value.

    Raises:
        UnparsableResponseError: If no JSON value can be recovered.
    """
    cleaned = strip_code_fences(content)
    starts = _find_openings(cleaned)
    if not starts:
        raise UnparsableResponseError("No JSON start marker found")

    # A bracketed aside like "[see below]" can precede the real object,
    # so the first opener of the other kind gets a turn too
    for start in starts:
        opener = cleaned[start]
        closer = _CLOSERS[opener]

        end = _find_balanced_end(cleaned, start, opener, closer)
        if end is not None:
            try:
                return json.loads(cleaned[start:end])
            except json.JSONDecodeError:
                pass

        last = cleaned.rfind(closer)
        if last > start and (end is None or last + 1 != end):
            try:
                return json.loads(cleaned[start : last + 1])
            except json.JSONDecodeError:
                pass

    raise UnparsableResponseError(
        f"Could not recover JSON from response: {cleaned[:200]}"
    )


def _find_openings(content: str) -> list[int]:
    return sorted(p for p in (content.find("{"), content.find("[")) if p != -1)


def _find_balanced_end(content: str, start: int, opener: str, closer: str) -> int | None:
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(content)):
        ch = content[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i + 1

    return None
