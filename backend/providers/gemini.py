"""Google Gemini LLM provider implementation.

Handles Google's Gemini models via the langchain-google-genai package.
Requires a valid API key for authentication.
"""

import json
import logging
from typing import Any, Optional

from langchain_core.exceptions import OutputParserException
from langchain_core.messages import HumanMessage
from langchain_core.output_parsers import JsonOutputParser
from langchain_google_genai import ChatGoogleGenerativeAI

from shared.config import Settings, get_settings

from .base import DocumentLLM, LLMError, ModelConfig

logger = logging.getLogger(__name__)

PROVIDER_NAME = "gemini"


def append_schema_instruction(prompt: str, schema: Optional[dict[str, Any]]) -> str:
    """Append the target schema and a strict JSON-only instruction."""
    parts = [prompt.rstrip()]
    if schema:
        parts.append("RESPONSE JSON SCHEMA:\n" + json.dumps(schema, indent=2))
    parts.append(
        "IMPORTANT:\n- Return ONLY valid JSON.\n- Do not wrap JSON in markdown fences."
    )
    return "\n\n".join(parts) + "\n"


class GeminiProvider(DocumentLLM):
    """Provider for Google Gemini models.

    Gemini models use the ChatGoogleGenerativeAI client from langchain-google-genai,
    asked for application/json output. Unlike local providers, this requires a
    valid API key.
    """

    def __init__(self, config: ModelConfig):
        self._config = config

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GeminiProvider":
        settings = settings or get_settings()
        return cls(ModelConfig(
            model_id=settings.gemini_model_name,
            api_key=settings.google_api_key,
            timeout_seconds=settings.gemini_timeout_seconds,
        ))

    @property
    def model_name(self) -> str:
        return self._config.model_id

    def get_llm(self, temperature: float = 0.2) -> ChatGoogleGenerativeAI:
        """Return a ChatGoogleGenerativeAI client configured for JSON output.

        Raises:
            ValueError: If api_key is not provided
        """
        if not self._config.api_key:
            raise ValueError(
                "Google AI API key is required. "
                "Set it via the GOOGLE_API_KEY environment variable."
            )

        return ChatGoogleGenerativeAI(
            model=self._config.model_id,
            google_api_key=self._config.api_key,
            temperature=temperature,
            response_mime_type="application/json",
            timeout=self._config.timeout_seconds,
        )

    async def generate_json(
        self,
        prompt: str,
        schema: Optional[dict[str, Any]] = None,
        temperature: float = 0.2,
    ) -> Any:
        try:
            llm = self.get_llm(temperature)
            response = await llm.ainvoke(
                [HumanMessage(content=append_schema_instruction(prompt, schema))]
            )
        except Exception as e:
            status_code = getattr(e, "status_code", None) or getattr(e, "code", None)
            raise LLMError(
                f"Gemini ({self.model_name}) request failed: {e}",
                PROVIDER_NAME,
                status_code=status_code if isinstance(status_code, int) else None,
            ) from e

        # Accepts bare JSON or a fenced ```json block
        parser = JsonOutputParser()
        try:
            return parser.invoke(response)
        except OutputParserException as e:
            logger.warning(f"Gemini ({self.model_name}) returned a non-JSON response")
            raise LLMError(
                f"Gemini ({self.model_name}) returned non-JSON response", PROVIDER_NAME
            ) from e
