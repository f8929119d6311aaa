"""Base classes and models for LLM providers."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel

from shared.exceptions import ExternalServiceError


class ModelConfig(BaseModel):
    """Configuration for the document LLM.

    Attributes:
        model_id: Model identifier (e.g., "gemini-2.5-flash")
        api_key: API key for the provider
        timeout_seconds: Per-request timeout
    """

    model_config = {"frozen": True}

    model_id: str
    api_key: str = ""
    timeout_seconds: Optional[float] = None


class LLMError(ExternalServiceError):
    """Raised when the LLM call fails or returns no usable JSON.

    The message may contain upstream error text. It is recorded in the
    audit trail and never returned to clients.
    """

    def __init__(self, message: str, provider: str, status_code: Optional[int] = None):
        super().__init__(message, service=provider, code="LLM_ERROR")
        self.status_code = status_code


class DocumentLLM(ABC):
    """Abstract base class for the document LLM collaborator.

    Prompt in, parsed JSON out, or an LLMError. No retries: a failed call
    is reported to the caller, whose quota charge stands.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Name of the model answering requests (for audit events)."""
        pass

    @abstractmethod
    async def generate_json(
        self,
        prompt: str,
        schema: Optional[dict[str, Any]] = None,
        temperature: float = 0.2,
    ) -> Any:
        """Generate a JSON value for the prompt.

        Args:
            prompt: Fully built prompt text
            schema: Target JSON schema the answer should follow
            temperature: Sampling temperature

        Returns:
            The parsed JSON value (usually a dict)

        Raises:
            LLMError: On transport failure or a non-JSON answer
        """
        pass
