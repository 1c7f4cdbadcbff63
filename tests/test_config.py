"""
Settings are environment driven; defaults reproduce the four-step demo script.
"""
import pytest
from pydantic import ValidationError

from medintake.config import (
    DEFAULT_CLOSING_MESSAGE,
    DEFAULT_OPENING_MESSAGE,
    DEFAULT_STEP_PROMPTS,
    Settings,
)
from medintake.intake import EngineConfig


class TestSettings:
    def test_declared_defaults(self) -> None:
        # Check field defaults, not runtime values the environment may override.
        fields = Settings.model_fields
        assert fields["total_steps"].default == 4
        assert fields["opening_message"].default == DEFAULT_OPENING_MESSAGE
        assert fields["closing_message"].default == DEFAULT_CLOSING_MESSAGE
        assert fields["generator_backend"].default == "scripted"
        assert fields["persist_transcripts"].default is False
        assert fields["max_sessions"].default == 1000
        assert len(DEFAULT_STEP_PROMPTS) == 3

    def test_env_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("INTAKE_TOTAL_STEPS", "2")
        monkeypatch.setenv("INTAKE_STEP_PROMPTS", '["Where does it hurt?"]')
        monkeypatch.setenv("INTAKE_GENERATOR", "llm")

        settings = Settings()
        assert settings.total_steps == 2
        assert settings.step_prompts == ["Where does it hurt?"]
        assert settings.generator_backend == "llm"

    def test_blank_opening_message_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(opening_message="   ")

    def test_zero_steps_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(total_steps=0)

    def test_session_limit_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(max_sessions=0)

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(generator_backend="carrier-pigeon")


def test_engine_config_from_settings(settings) -> None:
    config = EngineConfig.from_settings(settings)
    assert config.total_steps == 4
    assert config.opening_message == settings.opening_message
    assert config.generation_timeout_seconds == settings.generation_timeout_seconds
