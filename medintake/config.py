# medintake/config.py
from functools import lru_cache
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_OPENING_MESSAGE = (
    "Welcome! I'm your AI Health Assistant. I'm here to help complete your intake "
    "faster, so you can see your doctor sooner. This service is completely optional. "
    "To start, please tell me your main reason for today's visit."
)

DEFAULT_CLOSING_MESSAGE = (
    "Thank you for completing the intake process. Your doctor will review this "
    "information before your consultation. You'll be connected with your doctor shortly."
)

# Assistant prompt sent after the subject answers step N (index N - 1).
DEFAULT_STEP_PROMPTS = [
    "Thank you for sharing that. How long have you been experiencing these symptoms?",
    "I understand. Have you taken any medications to help with these symptoms?",
    "Thank you for providing this information. Is there anything else you'd like "
    "to share with your doctor before the consultation?",
]

# Canned speech-recognition results used by the simulated capture source.
DEFAULT_SIMULATED_RESPONSES = [
    "I've been having severe headaches for the past week.",
    "About three days now. They're worse in the morning.",
    "I took some over-the-counter pain relievers but they didn't help much.",
    "I've also been feeling more tired than usual, and I'm concerned it might be "
    "related to my blood pressure medication.",
]


class Settings(BaseSettings):
    # Dialogue
    total_steps: int = Field(4, ge=1, validation_alias="INTAKE_TOTAL_STEPS")
    opening_message: str = Field(
        DEFAULT_OPENING_MESSAGE, validation_alias="INTAKE_OPENING_MESSAGE"
    )
    closing_message: str = Field(
        DEFAULT_CLOSING_MESSAGE, validation_alias="INTAKE_CLOSING_MESSAGE"
    )
    step_prompts: List[str] = Field(
        default_factory=lambda: list(DEFAULT_STEP_PROMPTS),
        validation_alias="INTAKE_STEP_PROMPTS",
    )
    generator_backend: Literal["scripted", "llm"] = Field(
        "scripted", validation_alias="INTAKE_GENERATOR"
    )
    thinking_delay_seconds: float = Field(
        1.5, ge=0, validation_alias="INTAKE_THINKING_DELAY"
    )
    generation_timeout_seconds: float = Field(
        30.0, gt=0, validation_alias="INTAKE_GENERATION_TIMEOUT"
    )

    # Simulated capture
    capture_delay_seconds: float = Field(
        2.0, ge=0, validation_alias="INTAKE_CAPTURE_DELAY"
    )
    simulated_responses: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SIMULATED_RESPONSES),
        validation_alias="INTAKE_SIMULATED_RESPONSES",
    )

    # Session registry
    max_sessions: int = Field(1000, ge=1, validation_alias="INTAKE_MAX_SESSIONS")

    # Transcript storage
    database_url: str = Field("sqlite:///./medintake.db", validation_alias="DATABASE_URL")
    persist_transcripts: bool = Field(False, validation_alias="PERSIST_TRANSCRIPTS")

    # LLM backend
    openai_api_key: str | None = Field(None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(None, validation_alias="OPENAI_BASE_URL")
    llm_model: str = Field("gpt-4o-mini", validation_alias="LLM_MODEL")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("opening_message", "closing_message")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be blank")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
