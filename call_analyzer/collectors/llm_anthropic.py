"""Anthropic Messages API generation client."""

import logging

import httpx

from call_analyzer.collectors.base import GenerationClient
from call_analyzer.core.exceptions import GenerationError

logger = logging.getLogger(__name__)

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicGenerationClient(GenerationClient):
    """Generate analyses with Claude via the Messages API."""

    provider = "anthropic"

    def __init__(self, api_key: str, timeout: float = 120.0, api_url: str = API_URL):
        self.api_key = api_key
        self.timeout = timeout
        self.api_url = api_url

    def _build_payload(self, model: str, max_tokens: int, system_prompt: str, user_prompt: str) -> dict:
        payload = {
            "model": model or DEFAULT_MODEL,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    async def create_completion(
        self,
        *,
        model: str,
        max_tokens: int,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        payload = self._build_payload(model, max_tokens, system_prompt, user_prompt)
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": API_VERSION,
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.api_url, json=payload, headers=headers)

                if resp.status_code >= 400:
                    try:
                        error_msg = resp.json().get("error", {}).get("message", resp.text[:500])
                    except ValueError:
                        error_msg = resp.text[:500]
                    logger.error(
                        "Anthropic API %d for model=%s: %s",
                        resp.status_code,
                        payload["model"],
                        error_msg,
                    )
                    raise GenerationError(
                        f"Anthropic API error {resp.status_code}: {error_msg}",
                        status_code=resp.status_code,
                    )
                data = resp.json()
        except httpx.TimeoutException as e:
            logger.warning("Anthropic request timed out after %.0fs", self.timeout)
            raise GenerationError(f"Anthropic request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Anthropic transport error: {e}") from e
        except ValueError as e:
            raise GenerationError(f"Anthropic returned invalid JSON: {e}") from e

        blocks = data.get("content")
        if isinstance(blocks, str):
            return blocks
        if not isinstance(blocks, list):
            raise GenerationError("Unexpected response format from Anthropic: no content")

        text = "".join(b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text")
        logger.debug(
            "Anthropic response: model=%s, stop_reason=%s, %d chars",
            data.get("model", payload["model"]),
            data.get("stop_reason"),
            len(text),
        )
        return text
