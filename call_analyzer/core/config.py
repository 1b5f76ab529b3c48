from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_BUNDLED_FRAMEWORKS = Path(__file__).resolve().parent.parent / "frameworks"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Generation
    generation_provider: str = "anthropic"  # anthropic | openai
    generation_model: str = "claude-sonnet-4-20250514"
    generation_max_tokens: int = 3000
    generation_timeout: float = 120.0  # transport timeout, seconds
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # Framework content store
    frameworks_path: Path = _BUNDLED_FRAMEWORKS

    # Prompt budgets (characters)
    methodology_char_limit: int = 4000
    scoring_examples_char_limit: int = 2000
    call_examples_char_limit: int = 1500
    planning_checklist_char_limit: int = 1500

    # Call metadata
    call_url_template: str = "https://app.gong.io/call?id={call_id}"

    # Request defaults
    include_participant_roles: bool = True
    include_call_sequence: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs


settings = Settings()


def validate_settings_for_generation(config: Settings | None = None) -> None:
    """Validate that the configured provider has credentials. Called before building a client."""
    config = config or settings
    provider = config.generation_provider.lower()
    errors: list[str] = []

    if provider not in ("anthropic", "openai"):
        errors.append("GENERATION_PROVIDER must be 'anthropic' or 'openai'")
    elif provider == "anthropic" and not config.anthropic_api_key:
        errors.append("ANTHROPIC_API_KEY must be set when GENERATION_PROVIDER=anthropic")
    elif provider == "openai" and not config.openai_api_key:
        errors.append("OPENAI_API_KEY must be set when GENERATION_PROVIDER=openai")

    if config.generation_max_tokens <= 0:
        errors.append("GENERATION_MAX_TOKENS must be positive")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
