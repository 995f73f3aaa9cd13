"""Word counting, text edits, typo checks and AI response parsing.

``tools.agent_sdk_client`` is imported directly by the agents that need it.
"""

from tools.llm_client import parse_json_response, payload_items
from tools.text_utils import (
    Suggestion,
    count_words,
    apply_emphasis,
    apply_suggestion,
    apply_suggestions,
    locate_suggestions,
    get_chapter_ending,
    split_into_paragraphs,
)
from tools.typo_checker import check_typos, check_punctuation

__all__ = [
    "parse_json_response",
    "payload_items",
    "Suggestion",
    "count_words",
    "apply_emphasis",
    "apply_suggestion",
    "apply_suggestions",
    "locate_suggestions",
    "get_chapter_ending",
    "split_into_paragraphs",
    "check_typos",
    "check_punctuation",
]
