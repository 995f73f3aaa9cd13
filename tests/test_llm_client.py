"""Tests for JSON parsing utilities and AgentSDKClient."""

import asyncio

import pytest
from unittest.mock import patch

from claude_agent_sdk import ResultMessage, AssistantMessage, TextBlock


def _make_result_message(result_text: str) -> ResultMessage:
    """Helper to create a ResultMessage with required fields."""
    return ResultMessage(
        subtype="result",
        duration_ms=100,
        duration_api_ms=80,
        is_error=False,
        num_turns=1,
        session_id="test-session",
        total_cost_usd=0.001,
        usage={"input_tokens": 10, "output_tokens": 20},
        result=result_text,
    )


def _make_assistant_message(text: str) -> AssistantMessage:
    """Helper to create an AssistantMessage with a text block."""
    return AssistantMessage(
        content=[TextBlock(text=text)],
        model="claude-sonnet-4-5",
    )


class TestParseJsonResponse:
    def test_direct_json(self):
        from tools.llm_client import parse_json_response
        result = parse_json_response('{"key": "value", "num": 42}')
        assert result == {"key": "value", "num": 42}

    def test_markdown_code_fence_with_lang(self):
        from tools.llm_client import parse_json_response
        text = '```json\n{"suggestions": []}\n```'
        assert parse_json_response(text) == {"suggestions": []}

    def test_markdown_code_fence_without_lang(self):
        from tools.llm_client import parse_json_response
        text = '```\n{"key": "value"}\n```'
        assert parse_json_response(text) == {"key": "value"}

    def test_json_embedded_in_prose(self):
        from tools.llm_client import parse_json_response
        text = 'Here are my notes: {"suggestions": [{"matched_text": "teh"}]} Hope it helps.'
        result = parse_json_response(text)
        assert result["suggestions"][0]["matched_text"] == "teh"

    def test_invalid_raises_value_error(self):
        from tools.llm_client import parse_json_response
        with pytest.raises(ValueError, match="Failed to parse"):
            parse_json_response("this is not json at all")

    def test_empty_object(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response("{}") == {}

    def test_bare_array_wrapped_in_items(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response('[1, 2, 3]') == {"items": [1, 2, 3]}

    def test_raw_newline_inside_string(self):
        from tools.llm_client import parse_json_response
        result = parse_json_response('{"reason": "line one\nline two"}')
        assert result["reason"] == "line one\nline two"

    def test_json_with_surrounding_whitespace(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response('  \n  {"key": "value"}  \n  ') == {"key": "value"}

    def test_later_fence_used_when_first_is_not_json(self):
        from tools.llm_client import parse_json_response
        text = "```\nnot json\n```\nthen\n```json\n{\"suggestions\": [1]}\n```"
        assert parse_json_response(text) == {"suggestions": [1]}

    def test_scalar_wrapped_in_value(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response("42") == {"value": 42}


class TestPayloadItems:
    def test_first_present_key_wins(self):
        from tools.llm_client import payload_items
        payload = {"items": [2], "suggestions": [1]}
        assert payload_items(payload, ("suggestions", "items")) == [1]

    def test_falls_back_to_later_key(self):
        from tools.llm_client import payload_items
        assert payload_items({"items": []}, ("suggestions", "items")) == []

    def test_missing_or_non_list_is_none(self):
        from tools.llm_client import payload_items
        assert payload_items({}, ("suggestions",)) is None
        assert payload_items({"suggestions": "none"}, ("suggestions", "items")) is None


class TestAgentSDKClient:
    @pytest.mark.asyncio
    async def test_chat_returns_result_text(self, settings):
        mock_message = _make_result_message("Hello from Claude")

        async def mock_query(*args, **kwargs):
            yield mock_message

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient(settings)
            result = await client.chat("system prompt", "user prompt")
            assert result == "Hello from Claude"
            assert client.total_calls == 1

    @pytest.mark.asyncio
    async def test_chat_uses_proofreading_model_by_default(self, settings):
        seen = {}

        async def mock_query(*args, **kwargs):
            seen["options"] = kwargs["options"]
            yield _make_result_message("ok")

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            await AgentSDKClient(settings).chat("system", "user")
        assert seen["options"].model == settings.llm_model_proofreading
        assert seen["options"].max_turns == 1

    @pytest.mark.asyncio
    async def test_chat_json_parses_response(self, settings):
        mock_message = _make_result_message('{"suggestions": [], "score": 9.5}')

        async def mock_query(*args, **kwargs):
            yield mock_message

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            result = await AgentSDKClient(settings).chat_json("system", "user")
            assert result["score"] == 9.5

    @pytest.mark.asyncio
    async def test_chat_json_raises_on_invalid_json(self, settings):
        from config.exceptions import LLMResponseParseError

        async def mock_query(*args, **kwargs):
            yield _make_result_message("not valid json at all")

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            with pytest.raises(LLMResponseParseError) as exc:
                await AgentSDKClient(settings).chat_json("system", "user")
            assert exc.value.raw_response == "not valid json at all"

    @pytest.mark.asyncio
    async def test_chat_raises_llm_error_on_exception(self, settings):
        from config.exceptions import LLMError

        async def mock_query(*args, **kwargs):
            raise RuntimeError("Connection failed")
            yield  # Make it an async generator

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            with pytest.raises(LLMError, match="Connection failed"):
                await AgentSDKClient(settings).chat("system", "user")

    @pytest.mark.asyncio
    async def test_chat_timeout_raises(self, settings):
        from config.exceptions import LLMTimeoutError

        async def mock_query(*args, **kwargs):
            await asyncio.sleep(1)
            yield _make_result_message("late")

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            with pytest.raises(LLMTimeoutError):
                await AgentSDKClient(settings, timeout=0.05).chat("system", "user")

    @pytest.mark.asyncio
    async def test_usage_summary_tracks_cost_and_failures(self, settings):
        from config.exceptions import LLMError
        replies = iter([_make_result_message("one"), _make_result_message("two"), None])

        async def mock_query(*args, **kwargs):
            message = next(replies)
            if message is None:
                raise RuntimeError("Connection failed")
            yield message

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient(settings)
            await client.chat("system", "user")
            await client.chat("system", "user")
            with pytest.raises(LLMError):
                await client.chat("system", "user")

        summary = client.get_usage_summary()
        assert summary["total_calls"] == 3
        assert summary["failed_calls"] == 1
        assert summary["total_cost_usd"] == pytest.approx(0.002)

    @pytest.mark.asyncio
    async def test_chat_returns_empty_on_no_result(self, settings):
        async def mock_query(*args, **kwargs):
            return
            yield  # Make it an async generator

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            assert await AgentSDKClient(settings).chat("system", "user") == ""

    @pytest.mark.asyncio
    async def test_chat_fallback_to_assistant_message(self, settings):
        async def mock_query(*args, **kwargs):
            yield _make_assistant_message("Fallback text content")

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            assert await AgentSDKClient(settings).chat("system", "user") == "Fallback text content"
