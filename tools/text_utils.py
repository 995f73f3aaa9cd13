"""Plain-text utilities: word counting, emphasis markers, suggestion edits."""

import re
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from config.exceptions import ValidationError
from models.enums import Emphasis, SuggestionCategory

_EMPHASIS_MARKERS = {
    Emphasis.BOLD: "**",
    Emphasis.ITALIC: "*",
    Emphasis.UNDERLINE: "_",
}


@dataclass
class Suggestion:
    """A proposed edit to chapter text."""
    matched_text: str
    replacement: str
    category: SuggestionCategory = SuggestionCategory.GRAMMAR
    start: Optional[int] = None  # position in the full text, once located
    end: Optional[int] = None
    reason: str = ""


def count_words(text: Optional[str]) -> int:
    """Count whitespace-separated tokens.

    Leading and trailing whitespace is ignored; empty or blank text is 0
    words. Chapter creation, content updates and autosave all use this rule.
    """
    if not text:
        return 0
    return len(text.split())


def apply_emphasis(text: str, start: int, end: int, style: Emphasis | str) -> str:
    """Wrap ``text[start:end]`` in markdown-style emphasis markers.

    An empty selection leaves the text unchanged.
    """
    style = Emphasis(style)
    if not 0 <= start <= end <= len(text):
        raise ValidationError(
            f"Selection [{start}, {end}) outside text of length {len(text)}",
            {"start": start, "end": end, "length": len(text)},
        )
    if start == end:
        return text
    marker = _EMPHASIS_MARKERS[style]
    return f"{text[:start]}{marker}{text[start:end]}{marker}{text[end:]}"


def locate_suggestions(
    text: str, suggestions: Iterable[Suggestion], offset: int = 0
) -> list[Suggestion]:
    """Resolve each suggestion's ``matched_text`` to a span in ``text``.

    Searching starts at ``offset`` (the start of the proofread selection).
    Repeated matches of the same phrase claim successive occurrences;
    suggestions whose text cannot be found are dropped.
    """
    located = []
    cursor: dict[str, int] = {}
    for s in suggestions:
        if not s.matched_text:
            continue
        from_pos = cursor.get(s.matched_text, offset)
        pos = text.find(s.matched_text, from_pos)
        if pos == -1:
            continue
        cursor[s.matched_text] = pos + len(s.matched_text)
        located.append(replace(s, start=pos, end=pos + len(s.matched_text)))
    return sorted(located, key=lambda s: s.start)


def apply_suggestion(text: str, suggestion: Suggestion) -> str:
    """Replace a located suggestion's span with its replacement."""
    start, end = suggestion.start, suggestion.end
    if start is None or end is None:
        raise ValidationError("Suggestion has not been located in the text")
    if text[start:end] != suggestion.matched_text:
        raise ValidationError(
            "Text changed since the suggestion was made",
            {"expected": suggestion.matched_text, "found": text[start:end]},
        )
    return text[:start] + suggestion.replacement + text[end:]


def get_chapter_ending(content: Optional[str], char_limit: int = 500) -> str:
    """Return the last ``char_limit`` characters of the chapter content."""
    if not content:
        return ""
    if len(content) <= char_limit:
        return content
    return content[-char_limit:]


def split_into_paragraphs(text: Optional[str]) -> list[str]:
    """Split text into paragraphs."""
    if not text:
        return []
    paragraphs = re.split(r"\n\s*\n|\n", text)
    return [p.strip() for p in paragraphs if p.strip()]


def apply_suggestions(text: str, suggestions: Iterable[Suggestion]) -> tuple[str, int]:
    """Apply every located suggestion whose span does not overlap one already applied.

    Works from the end of the text backwards so earlier offsets stay valid.
    Returns the new text and the number of suggestions applied.
    """
    applied = 0
    boundary = len(text)
    for suggestion in sorted(suggestions, key=lambda s: (s.start, s.end), reverse=True):
        if suggestion.end > boundary:
            continue
        text = apply_suggestion(text, suggestion)
        boundary = suggestion.start
        applied += 1
    return text, applied
