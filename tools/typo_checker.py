"""Offline English proofreading using common error patterns."""

import re

from models.enums import SuggestionCategory
from tools.text_utils import Suggestion

# Frequent misspellings: wrong -> right
_COMMON_MISSPELLINGS = {
    "teh": "the",
    "recieve": "receive",
    "recieved": "received",
    "beleive": "believe",
    "definately": "definitely",
    "seperate": "separate",
    "occured": "occurred",
    "occurence": "occurrence",
    "untill": "until",
    "wich": "which",
    "alot": "a lot",
    "accross": "across",
    "arguement": "argument",
    "begining": "beginning",
    "calender": "calendar",
    "existance": "existence",
    "goverment": "government",
    "independant": "independent",
    "neccessary": "necessary",
    "noticable": "noticeable",
    "publically": "publicly",
    "tommorow": "tomorrow",
    "truely": "truly",
    "wierd": "weird",
}

_MISSPELLING_RE = re.compile(
    r"\b(" + "|".join(sorted(_COMMON_MISSPELLINGS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_DOUBLED_WORD_RE = re.compile(r"\b([A-Za-z]+)\s+\1\b", re.IGNORECASE)
_LOWERCASE_I_RE = re.compile(r"(?<![\w'.])i(?!\.e\.)(?=\s|'|[,.!?;:]|$)")
_REPEATED_SPACES_RE = re.compile(r"(?<=\S) {2,}(?=\S)")
_REPEATED_PUNCT_RE = re.compile(r"([,;:!?])\1+")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"(\w)\s+([,.;:!?])(?=\s|$)")

# Usage patterns flagged as style
_STYLE_PATTERNS = [
    (r"\bvery unique\b", "unique", "'Unique' does not take an intensifier"),
    (r"\bin order to\b", "to", "Wordy phrase"),
    (r"\bcould of\b", "could have", "'Could of' is a mishearing of 'could've'"),
    (r"\bshould of\b", "should have", "'Should of' is a mishearing of 'should've'"),
    (r"\bwould of\b", "would have", "'Would of' is a mishearing of 'would've'"),
]


def _match_case(original: str, replacement: str) -> str:
    if original.isupper() and len(original) > 1:
        return replacement.upper()
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def check_typos(text: str) -> list[Suggestion]:
    """Check text for common English typos, grammar slips and style issues.

    Returns located suggestions sorted by position.
    """
    issues: list[Suggestion] = []

    for match in _MISSPELLING_RE.finditer(text):
        word = match.group()
        issues.append(Suggestion(
            matched_text=word,
            replacement=_match_case(word, _COMMON_MISSPELLINGS[word.lower()]),
            category=SuggestionCategory.SPELLING,
            start=match.start(),
            end=match.end(),
            reason="Common misspelling",
        ))

    for match in _DOUBLED_WORD_RE.finditer(text):
        issues.append(Suggestion(
            matched_text=match.group(),
            replacement=match.group(1),
            category=SuggestionCategory.GRAMMAR,
            start=match.start(),
            end=match.end(),
            reason=f"Repeated word '{match.group(1)}'",
        ))

    for match in _LOWERCASE_I_RE.finditer(text):
        issues.append(Suggestion(
            matched_text="i",
            replacement="I",
            category=SuggestionCategory.GRAMMAR,
            start=match.start(),
            end=match.end(),
            reason="The pronoun 'I' is always capitalized",
        ))

    for pattern, replacement, reason in _STYLE_PATTERNS:
        for match in re.finditer(pattern, text, re.IGNORECASE):
            issues.append(Suggestion(
                matched_text=match.group(),
                replacement=_match_case(match.group(), replacement),
                category=SuggestionCategory.STYLE,
                start=match.start(),
                end=match.end(),
                reason=reason,
            ))

    return sorted(issues, key=lambda s: s.start)


def check_punctuation(text: str) -> list[Suggestion]:
    """Check spacing and punctuation issues."""
    issues = []

    for match in _REPEATED_SPACES_RE.finditer(text):
        issues.append(Suggestion(
            matched_text=match.group(),
            replacement=" ",
            category=SuggestionCategory.STYLE,
            start=match.start(),
            end=match.end(),
            reason="Repeated spaces",
        ))

    for match in _REPEATED_PUNCT_RE.finditer(text):
        issues.append(Suggestion(
            matched_text=match.group(),
            replacement=match.group(1),
            category=SuggestionCategory.STYLE,
            start=match.start(),
            end=match.end(),
            reason="Repeated punctuation",
        ))

    for match in _SPACE_BEFORE_PUNCT_RE.finditer(text):
        issues.append(Suggestion(
            matched_text=match.group(),
            replacement=match.group(1) + match.group(2),
            category=SuggestionCategory.GRAMMAR,
            start=match.start(),
            end=match.end(),
            reason="No space before punctuation",
        ))

    return sorted(issues, key=lambda s: s.start)
