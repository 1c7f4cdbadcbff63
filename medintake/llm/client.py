# medintake/llm/client.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Dict, Optional

from openai import OpenAI, OpenAIError

from medintake.config import get_settings


ChatMessages = List[Dict[str, str]]


class LLMError(Exception):
    """The chat backend rejected or failed the request."""


class LLMClient(ABC):
    """
    Provider-neutral chat interface used by the LLM-backed response generator.
    Implementations are synchronous; callers run them off the event loop.
    """

    @abstractmethod
    def chat(
        self,
        messages: ChatMessages,
        temperature: float = 0.2,
        model: Optional[str] = None,
    ) -> str:
        """
        messages: list of {"role": "system"|"user"|"assistant", "content": "..."}
        returns: assistant content as a string (may be empty)
        raises: LLMError
        """
        ...


class OpenAILLMClient(LLMClient):
    """
    OpenAI, or any OpenAI-compatible endpoint set through OPENAI_BASE_URL.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        if not settings.openai_api_key:
            raise RuntimeError(
                "OPENAI_API_KEY is not set in environment (.env)."
            )

        # A failed turn is retried by the subject re-committing, not here.
        self.client = OpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=timeout or settings.generation_timeout_seconds,
            max_retries=0,
        )
        self.default_model = model or settings.llm_model

    def chat(
        self,
        messages: ChatMessages,
        temperature: float = 0.2,
        model: Optional[str] = None,
    ) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=model or self.default_model,
                messages=messages,
                temperature=temperature,
            )
        except OpenAIError as e:
            raise LLMError(f"{type(e).__name__}: {e}") from e

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""
