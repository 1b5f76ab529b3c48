"""Tests for settings and startup validation."""

import pytest

from call_analyzer.core.config import Settings, settings, validate_settings_for_generation


class TestSettings:
    def test_defaults(self):
        config = Settings(_env_file=None)
        assert config.generation_provider == "anthropic"
        assert config.generation_max_tokens == 3000
        assert config.methodology_char_limit == 4000
        assert config.planning_checklist_char_limit == 1500
        assert (config.frameworks_path / "great_demo" / "definition.json").is_file()

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("GENERATION_PROVIDER", "openai")
        monkeypatch.setenv("INCLUDE_CALL_SEQUENCE", "true")
        config = Settings(_env_file=None)
        assert config.generation_provider == "openai"
        assert config.include_call_sequence is True


class TestValidateSettings:
    def test_missing_key_exits(self, monkeypatch):
        monkeypatch.setattr(settings, "generation_provider", "anthropic")
        monkeypatch.setattr(settings, "anthropic_api_key", "")
        with pytest.raises(SystemExit, match="ANTHROPIC_API_KEY"):
            validate_settings_for_generation()

    def test_unknown_provider_exits(self, monkeypatch):
        monkeypatch.setattr(settings, "generation_provider", "cohere")
        with pytest.raises(SystemExit, match="GENERATION_PROVIDER"):
            validate_settings_for_generation()

    def test_explicit_config_checked(self):
        with pytest.raises(SystemExit, match="OPENAI_API_KEY"):
            validate_settings_for_generation(Settings(generation_provider="OpenAI", openai_api_key=""))

    def test_valid_openai_config(self, monkeypatch):
        monkeypatch.setattr(settings, "generation_provider", "openai")
        monkeypatch.setattr(settings, "openai_api_key", "sk-test")
        validate_settings_for_generation()
