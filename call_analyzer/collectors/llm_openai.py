"""OpenAI Chat Completions generation client."""

import logging

import httpx

from call_analyzer.collectors.base import GenerationClient
from call_analyzer.core.exceptions import GenerationError

logger = logging.getLogger(__name__)

API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4.1"

# GPT-5 series and o-series are reasoning models: no temperature,
# and max_completion_tokens instead of max_tokens.
_REASONING_MODEL_PREFIXES = ("gpt-5", "o1", "o3", "o4")


def _is_reasoning_model(model: str) -> bool:
    """Check if a model is a reasoning model (GPT-5 / o-series)."""
    return any(model.startswith(p) for p in _REASONING_MODEL_PREFIXES)


class OpenAiGenerationClient(GenerationClient):
    """Generate analyses with an OpenAI chat model."""

    provider = "openai"

    def __init__(self, api_key: str, timeout: float = 120.0, api_url: str = API_URL):
        self.api_key = api_key
        self.timeout = timeout
        self.api_url = api_url

    def _build_payload(self, model: str, max_tokens: int, system_prompt: str, user_prompt: str) -> dict:
        model = model or DEFAULT_MODEL
        payload = {"model": model, "messages": []}
        if system_prompt:
            payload["messages"].append({"role": "system", "content": system_prompt})
        payload["messages"].append({"role": "user", "content": user_prompt})

        if _is_reasoning_model(model):
            payload["max_completion_tokens"] = max_tokens
        else:
            payload["temperature"] = 0.0
            payload["max_tokens"] = max_tokens
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
            "Authorization": f"Bearer {self.api_key}",
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
                        "OpenAI API %d for model=%s: %s",
                        resp.status_code,
                        payload["model"],
                        error_msg,
                    )
                    raise GenerationError(
                        f"OpenAI API error {resp.status_code}: {error_msg}",
                        status_code=resp.status_code,
                    )
                data = resp.json()
        except httpx.TimeoutException as e:
            logger.warning("OpenAI request timed out after %.0fs", self.timeout)
            raise GenerationError(f"OpenAI request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"OpenAI transport error: {e}") from e
        except ValueError as e:
            raise GenerationError(f"OpenAI returned invalid JSON: {e}") from e

        try:
            choice = data["choices"][0]
            text = choice["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"Unexpected response format from OpenAI: {e}") from e

        logger.debug(
            "OpenAI response: model=%s, finish_reason=%s, %d chars",
            data.get("model", payload["model"]),
            choice.get("finish_reason"),
            len(text),
        )
        return text
