"""Shared plumbing for helpers that call the AI service with a prompt template."""

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Optional

from config.exceptions import InvalidConfigError
from config.settings import Settings, get_settings
from tools.agent_sdk_client import AgentSDKClient

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent.parent / "config" / "prompts"


@lru_cache(maxsize=32)
def _read_prompt_file(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


class BaseAgent:
    """Base class for AI-backed helpers.

    Subclasses set ``prompt_name`` to a file in ``config/prompts/``; the
    template is read once per process and split on ``## `` headings.
    """

    prompt_name: Optional[str] = None

    def __init__(
        self,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.llm = llm_client or AgentSDKClient(self.settings)
        self._template = self._load_prompt(self.prompt_name) if self.prompt_name else ""

    def _load_prompt(self, template_name: str) -> str:
        """Return the text of ``config/prompts/<template_name>.md``."""
        path = _PROMPTS_DIR / f"{template_name}.md"
        if not path.exists():
            raise FileNotFoundError(f"Prompt template not found: {path}")
        logger.debug("Loading prompt template %s", path.name)
        return _read_prompt_file(str(path))

    @staticmethod
    def _extract_section(template: str, section_header: str) -> str:
        """Body under the first ``## `` heading containing ``section_header``, or ''."""
        pattern = re.compile(
            rf"^[ \t]*##[ \t]+[^\n]*{re.escape(section_header)}[^\n]*\n(.*?)(?=^[ \t]*##[ \t]|\Z)",
            re.MULTILINE | re.DOTALL,
        )
        match = pattern.search(template)
        return match.group(1).strip() if match else ""

    def _prompt(self, section: str, **fields) -> str:
        """Section text of this agent's template, formatted with ``fields`` if given.

        Raises:
            InvalidConfigError: The template has no such section.
        """
        body = self._extract_section(self._template, section)
        if not body:
            raise InvalidConfigError(
                f"Prompt template '{self.prompt_name}' has no '{section}' section",
                {"template": self.prompt_name, "section": section},
            )
        return body.format(**fields) if fields else body
