"""Claude Agent SDK wrapper used for AI proofreading suggestions."""

import asyncio
import logging
import os
from typing import Optional

from claude_agent_sdk import (
    query,
    ClaudeAgentOptions,
    ResultMessage,
    AssistantMessage,
)

from config.exceptions import LLMError, LLMResponseParseError, LLMTimeoutError
from config.settings import Settings, get_settings
from tools.llm_client import parse_json_response

logger = logging.getLogger(__name__)

# The SDK refuses to start when this variable is inherited from a parent session.
os.environ.pop("CLAUDECODE", None)


class AgentSDKClient:
    """Thin client over ``claude_agent_sdk.query()``.

    Authentication is handled by the Claude Code CLI the SDK drives.
    """

    def __init__(self, settings: Optional[Settings] = None, timeout: float = 120.0):
        self.settings = settings or get_settings()
        self.timeout = timeout
        self.total_calls = 0
        self.failed_calls = 0
        self.total_cost_usd = 0.0

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
    ) -> str:
        """Send a single-turn request and return the text result.

        Raises:
            LLMTimeoutError: No result within ``timeout`` seconds.
            LLMError: The query failed.
        """
        model = model or self.settings.llm_model_proofreading
        self.total_calls += 1
        logger.debug("AgentSDK call: model=%s, prompt=%d chars", model, len(user_prompt))

        try:
            result_text = await asyncio.wait_for(
                self._collect(system_prompt, user_prompt, model), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            self.failed_calls += 1
            raise LLMTimeoutError(f"Agent SDK query timed out after {self.timeout}s") from e
        except LLMError:
            self.failed_calls += 1
            raise
        except Exception as e:
            self.failed_calls += 1
            raise LLMError(f"Agent SDK query failed: {e}") from e

        if not result_text:
            logger.warning("AgentSDK returned no content")
        return result_text

    async def _collect(self, system_prompt: str, user_prompt: str, model: str) -> str:
        result_text = ""
        # Exhaust the generator fully: leaving the loop early breaks the
        # SDK's internal cancel scopes.
        async for message in query(
            prompt=user_prompt,
            options=ClaudeAgentOptions(system_prompt=system_prompt, model=model, max_turns=1),
        ):
            if isinstance(message, ResultMessage):
                result_text = message.result or ""
                self.total_cost_usd += message.total_cost_usd or 0.0
                logger.debug(
                    "AgentSDK result: %d chars, cost=$%s", len(result_text), message.total_cost_usd
                )
            elif isinstance(message, AssistantMessage) and not result_text:
                parts = [block.text for block in message.content if hasattr(block, "text")]
                if parts:
                    result_text = "".join(parts)
        return result_text

    async def chat_json(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
    ) -> dict:
        """Send a request and parse the response as JSON.

        Raises:
            LLMResponseParseError: If response cannot be parsed as JSON.
        """
        text = await self.chat(system_prompt, user_prompt, model)
        try:
            return parse_json_response(text)
        except ValueError as e:
            raise LLMResponseParseError(str(e), raw_response=text) from e

    def get_usage_summary(self) -> dict:
        """Calls made, calls that failed and the reported cost so far."""
        return {
            "total_calls": self.total_calls,
            "failed_calls": self.failed_calls,
            "total_cost_usd": round(self.total_cost_usd, 6),
        }
