"""Generation client selection from settings."""

from call_analyzer.collectors.base import GenerationClient
from call_analyzer.collectors.llm_anthropic import AnthropicGenerationClient
from call_analyzer.collectors.llm_openai import OpenAiGenerationClient
from call_analyzer.core.config import Settings, settings as default_settings, validate_settings_for_generation


def create_generation_client(config: Settings | None = None) -> GenerationClient:
    """Build the client for ``config.generation_provider``.

    Exits with the configuration errors when the provider or its API key is missing.
    """
    config = config or default_settings
    validate_settings_for_generation(config)

    if config.generation_provider.lower() == "anthropic":
        return AnthropicGenerationClient(api_key=config.anthropic_api_key, timeout=config.generation_timeout)
    return OpenAiGenerationClient(api_key=config.openai_api_key, timeout=config.generation_timeout)
