"""Proofreader Agent: grammar, style and spelling suggestions for chapter text."""

import logging
from dataclasses import replace
from typing import Optional

from agents.base_agent import BaseAgent
from config.exceptions import ValidationError
from models.enums import SuggestionCategory
from tools.llm_client import payload_items
from tools.text_utils import Suggestion, locate_suggestions
from tools.typo_checker import check_punctuation, check_typos

logger = logging.getLogger(__name__)


def _parse_suggestion(item) -> Optional[Suggestion]:
    """Build a Suggestion from one AI payload entry; ``None`` if unusable."""
    if not isinstance(item, dict):
        return None
    matched = item.get("matched_text") or item.get("text")
    replacement = item.get("replacement", item.get("suggestion"))
    if not matched or replacement is None or matched == replacement:
        return None
    try:
        category = SuggestionCategory(str(item.get("category") or item.get("type") or "grammar").lower())
    except ValueError:
        category = SuggestionCategory.STYLE
    return Suggestion(
        matched_text=str(matched),
        replacement=str(replacement),
        category=category,
        reason=str(item.get("reason", "")),
    )


def _merge(offline: list[Suggestion], ai: list[Suggestion]) -> list[Suggestion]:
    """Combine both sources; the offline suggestion wins on an identical span."""
    seen = {(s.start, s.end) for s in offline}
    merged = list(offline) + [s for s in ai if (s.start, s.end) not in seen]
    return sorted(merged, key=lambda s: (s.start, s.end))


class ProofreaderAgent(BaseAgent):
    """Proofreads a selection of chapter text.

    Offline pattern checks always run; the AI service adds suggestions on
    top. AI failures surface as ``LLMError`` to the caller and never touch
    the chapter itself.
    """

    prompt_name = "proofreader"

    async def proofread(
        self,
        text: str,
        start: int = 0,
        end: Optional[int] = None,
        use_ai: bool = True,
    ) -> list[Suggestion]:
        """Return suggestions for ``text[start:end]``, located in the full text.

        Args:
            text: Full chapter text.
            start: Selection start (inclusive).
            end: Selection end (exclusive). Defaults to the end of the text.
            use_ai: Also ask the AI service for suggestions.

        Raises:
            ValidationError: Selection outside the text.
            LLMError: The AI service failed (only when ``use_ai``).
        """
        end = len(text) if end is None else end
        if not 0 <= start <= end <= len(text):
            raise ValidationError(
                f"Selection [{start}, {end}) outside text of length {len(text)}",
                {"start": start, "end": end},
            )
        selection = text[start:end]
        if not selection.strip():
            return []

        offline = [
            replace(s, start=s.start + start, end=s.end + start)
            for s in check_typos(selection) + check_punctuation(selection)
        ]

        ai: list[Suggestion] = []
        if use_ai:
            ai = [
                s for s in locate_suggestions(text, await self._ai_suggestions(selection), offset=start)
                if s.end <= end
            ]

        suggestions = _merge(offline, ai)
        logger.info(
            "Proofread %d chars: %d offline, %d AI suggestions",
            len(selection), len(offline), len(ai),
        )
        return suggestions

    async def _ai_suggestions(self, selection: str) -> list[Suggestion]:
        data = await self.llm.chat_json(
            system_prompt=self._prompt("System Prompt"),
            user_prompt=self._prompt("Proofreading Instructions", text=selection),
            model=self.settings.llm_model_proofreading,
        )
        items = payload_items(data, ("suggestions", "items"))
        if items is None:
            logger.warning("Unexpected proofreading payload: %r", data)
            return []
        return [s for s in (_parse_suggestion(i) for i in items) if s is not None]
