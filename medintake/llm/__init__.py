# medintake/llm/__init__.py
from .client import LLMClient, LLMError, OpenAILLMClient

__all__ = ["LLMClient", "LLMError", "OpenAILLMClient"]
