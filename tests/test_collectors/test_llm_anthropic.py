"""Tests for the Anthropic generation client and provider selection."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from call_analyzer.collectors.llm_anthropic import API_VERSION, AnthropicGenerationClient
from call_analyzer.collectors.llm_openai import OpenAiGenerationClient
from call_analyzer.collectors.registry import create_generation_client
from call_analyzer.core.config import Settings
from call_analyzer.core.exceptions import GenerationError


@pytest.fixture
def client():
    return AnthropicGenerationClient(api_key="sk-ant-test")


def _mock_http(response=None, side_effect=None):
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
    else:
        mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestCreateCompletion:
    @pytest.mark.asyncio
    async def test_text_blocks_concatenated(self, client):
        resp = MagicMock()
        resp.status_code = 200
        resp.json.return_value = {
            "content": [
                {"type": "text", "text": '{"overallScore": '},
                {"type": "tool_use", "id": "x"},
                {"type": "text", "text": "7}"},
            ],
            "stop_reason": "end_turn",
        }
        mock_client = _mock_http(resp)

        with patch("call_analyzer.collectors.llm_anthropic.httpx.AsyncClient") as MockClient:
            MockClient.return_value = mock_client
            text = await client.create_completion(
                model="claude-sonnet-4-20250514", max_tokens=3000, system_prompt="sys", user_prompt="analyze"
            )

        assert text == '{"overallScore": 7}'
        call_kwargs = mock_client.post.call_args
        assert call_kwargs.kwargs["headers"]["x-api-key"] == "sk-ant-test"
        assert call_kwargs.kwargs["headers"]["anthropic-version"] == API_VERSION
        payload = call_kwargs.kwargs["json"]
        assert payload["system"] == "sys"
        assert payload["max_tokens"] == 3000
        assert payload["messages"] == [{"role": "user", "content": "analyze"}]

    @pytest.mark.asyncio
    async def test_overloaded_raises(self, client):
        resp = MagicMock()
        resp.status_code = 529
        resp.json.return_value = {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}

        with patch("call_analyzer.collectors.llm_anthropic.httpx.AsyncClient") as MockClient:
            MockClient.return_value = _mock_http(resp)
            with pytest.raises(GenerationError, match="Anthropic API error 529: Overloaded") as exc_info:
                await client.create_completion(model="", max_tokens=10, system_prompt="", user_prompt="x")

        assert exc_info.value.status_code == 529

    @pytest.mark.asyncio
    async def test_connect_error(self, client):
        with patch("call_analyzer.collectors.llm_anthropic.httpx.AsyncClient") as MockClient:
            MockClient.return_value = _mock_http(side_effect=httpx.ConnectError("refused"))
            with pytest.raises(GenerationError, match="transport error"):
                await client.create_completion(model="", max_tokens=10, system_prompt="", user_prompt="x")

    @pytest.mark.asyncio
    async def test_missing_content(self, client):
        resp = MagicMock()
        resp.status_code = 200
        resp.json.return_value = {"stop_reason": "max_tokens"}

        with patch("call_analyzer.collectors.llm_anthropic.httpx.AsyncClient") as MockClient:
            MockClient.return_value = _mock_http(resp)
            with pytest.raises(GenerationError, match="no content"):
                await client.create_completion(model="", max_tokens=10, system_prompt="", user_prompt="x")

    def test_system_prompt_omitted_when_empty(self, client):
        assert "system" not in client._build_payload("claude-x", 10, "", "user")


class TestRegistry:
    def test_anthropic(self):
        config = Settings(generation_provider="anthropic", anthropic_api_key="k", generation_timeout=45.0)
        generation_client = create_generation_client(config)
        assert isinstance(generation_client, AnthropicGenerationClient)
        assert generation_client.timeout == 45.0

    def test_openai(self):
        config = Settings(generation_provider="OpenAI", openai_api_key="k")
        assert isinstance(create_generation_client(config), OpenAiGenerationClient)

    def test_unknown_provider(self):
        with pytest.raises(SystemExit, match="GENERATION_PROVIDER"):
            create_generation_client(Settings(generation_provider="cohere"))

    def test_missing_api_key_fails_before_any_request(self):
        config = Settings(generation_provider="anthropic", anthropic_api_key="")
        with pytest.raises(SystemExit, match="ANTHROPIC_API_KEY"):
            create_generation_client(config)
