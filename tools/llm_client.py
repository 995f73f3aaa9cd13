"""Recovering JSON payloads from AI service replies.

Replies asked for JSON arrive as bare JSON, inside one or more markdown
fences, or embedded in prose. Each candidate span is tried in that order.
"""

import json
import re
from typing import Iterable, Iterator, Optional

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

# strict=False accepts raw newlines and tabs inside strings.
_DECODER = json.JSONDecoder(strict=False)


def _candidates(text: str) -> Iterator[str]:
    yield text
    for match in _JSON_FENCE_RE.finditer(text):
        yield match.group(1).strip()
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = text.find(opener), text.rfind(closer)
        if 0 <= start < end:
            yield text[start:end + 1]


def _as_payload(value) -> dict:
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {"items": value}
    return {"value": value}


def parse_json_response(text: str) -> dict:
    """Return the first JSON payload found in ``text``, always as a dict.

    A bare array becomes ``{"items": [...]}`` and a scalar ``{"value": ...}``.

    Raises:
        ValueError: No candidate span decodes as JSON.
    """
    text = text.strip()
    for candidate in _candidates(text):
        try:
            return _as_payload(_DECODER.decode(candidate))
        except json.JSONDecodeError:
            continue
    raise ValueError(f"Failed to parse JSON from AI response: {text[:200]}...")


def payload_items(payload: dict, keys: Iterable[str]) -> Optional[list]:
    """The list stored under the first of ``keys`` present in ``payload``.

    ``None`` when no key is present or its value is not a list.
    """
    for key in keys:
        if key in payload:
            value = payload[key]
            return value if isinstance(value, list) else None
    return None
