"""LLM provider implementations."""

from .base import DocumentLLM, LLMError, ModelConfig
from .gemini import GeminiProvider

__all__ = [
    "DocumentLLM",
    "LLMError",
    "ModelConfig",
    "GeminiProvider",
]
