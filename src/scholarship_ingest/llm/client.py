"""
LLM Client Module - Language-model capability behind one interface.
===================================================================

Every AI-assisted step (record extraction, deadline parsing, duplicate
judgment, funding classification) talks to an ``LLMClient``. The client is
constructed once by the caller and passed into the pipeline, so the core
logic never depends on a specific provider.

Implementations:
- GeminiClient: Google Gemini via the google-genai SDK
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from tenacity import retry, stop_after_attempt, wait_exponential

from scholarship_ingest.shared.config import Settings, get_settings
from scholarship_ingest.shared.errors import LLMError, LLMResponseError
from scholarship_ingest.shared.logging import get_logger

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*|```\s*", re.IGNORECASE)


# ─────────────────────────────────────────────────────────────────────────────
# Response Parsing
# ─────────────────────────────────────────────────────────────────────────────


def parse_json_response(text: Optional[str], expect: type = dict) -> Any:
    """
    Parse a model answer as JSON.

    Strips Markdown code fences and any prose around the outermost JSON
    object (or array, when ``expect`` is list).

    Args:
        text: Raw model output
        expect: dict or list

    Returns:
        Parsed JSON value of the expected type

    Raises:
        LLMResponseError: If no JSON of the expected type can be parsed
    """
    if not text or not text.strip():
        raise LLMResponseError("Empty response from model", raw_response=text or "")

    cleaned = _CODE_FENCE.sub("", text).strip()

    open_char, close_char = ("[", "]") if expect is list else ("{", "}")
    start = cleaned.find(open_char)
    end = cleaned.rfind(close_char)
    if start == -1 or end == -1 or end < start:
        raise LLMResponseError(
            f"No JSON {expect.__name__} found in response", raw_response=text
        )

    try:
        parsed = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Invalid JSON format: {e}", raw_response=text) from e

    if not isinstance(parsed, expect):
        raise LLMResponseError(
            f"Expected JSON {expect.__name__}, got {type(parsed).__name__}",
            raw_response=text,
        )
    return parsed


# ─────────────────────────────────────────────────────────────────────────────
# Abstract Base Class
# ─────────────────────────────────────────────────────────────────────────────


class LLMClient(ABC):
    """
    Abstract base class for language-model providers.

    Implementations must provide:
    - generate(): one system + user prompt → raw text answer

    generate_json() is built on top of generate().
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name identifier."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name being used."""
        pass

    @abstractmethod
    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """
        Generate a text answer.

        Args:
            system_prompt: Fixed instructions
            user_prompt: Per-request content

        Returns:
            Raw model output

        Raises:
            LLMError: If the call fails
        """
        pass

    def generate_json(self, system_prompt: str, user_prompt: str, expect: type = dict) -> Any:
        """
        Generate and parse a JSON answer.

        Raises:
            LLMError: If the call fails or the answer is not the expected JSON
        """
        raw = self.generate(system_prompt, user_prompt)
        return parse_json_response(raw, expect=expect)

    def get_info(self) -> dict:
        """Get provider information."""
        return {"provider": self.provider_name, "model": self.model_name}


# ─────────────────────────────────────────────────────────────────────────────
# Gemini Implementation
# ─────────────────────────────────────────────────────────────────────────────


class GeminiClient(LLMClient):
    """
    Gemini client using the Google GenAI SDK.

    Requires:
    - GEMINI_API_KEY environment variable (or api_key argument)

    Example:
        >>> client = GeminiClient()
        >>> data = client.generate_json("Return JSON only.", "TEXT: ...")
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        request_timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
    ):
        """
        Initialize the Gemini client.

        Args:
            model_name: Gemini model name (default from config)
            api_key: Gemini API key (default from env)
            temperature: Generation temperature
            max_output_tokens: Maximum tokens to generate
            request_timeout: Per-request timeout in seconds
            max_retries: Attempts per call
        """
        settings = get_settings()
        gen_config = settings.generation

        self._model_name = model_name or settings.get_effective_model()
        self._api_key = api_key or settings.gemini_api_key
        self.temperature = temperature if temperature is not None else gen_config.temperature
        self.max_output_tokens = max_output_tokens or gen_config.max_output_tokens
        self.request_timeout = request_timeout or gen_config.request_timeout
        self.max_retries = max_retries or gen_config.max_retries

        if not self._api_key:
            raise ValueError(
                "Gemini API key is required. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self._client = None

        logger.debug(
            f"Gemini client configured: model={self._model_name}, "
            f"temp={self.temperature}, timeout={self.request_timeout}s"
        )

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def client(self):
        """Lazy load and return the Gemini client."""
        if self._client is None:
            try:
                from google import genai
                from google.genai import types

                self._client = genai.Client(
                    api_key=self._api_key,
                    http_options=types.HttpOptions(timeout=self.request_timeout * 1000),
                )
                logger.info(f"Gemini client initialized for model: {self._model_name}")
            except ImportError as e:
                raise LLMError(
                    "google-genai is required for AI-assisted steps. "
                    "Install with: pip install google-genai"
                ) from e
        return self._client

    def _generate_content(self, system_prompt: str, user_prompt: str) -> str:
        """Call the API with retry logic."""
        from google.genai import types

        @retry(
            stop=stop_after_attempt(max(1, self.max_retries)),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            reraise=True,
        )
        def _call() -> str:
            response = self.client.models.generate_content(
                model=self._model_name,
                contents=user_prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                    response_mime_type="application/json",
                ),
            )
            return response.text or ""

        return _call()

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        try:
            return self._generate_content(system_prompt, user_prompt)
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"Gemini generation failed: {e}") from e


# ─────────────────────────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────────────────────────


def create_llm_client(settings: Optional[Settings] = None) -> Optional[LLMClient]:
    """
    Build the configured LLM client, or None when AI steps are disabled.

    Returns None (rather than raising) when no API key is configured, so the
    pipeline runs in rules-only mode.
    """
    settings = settings or get_settings()

    if not settings.generation.enabled:
        logger.info("AI-assisted steps disabled by configuration")
        return None
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set; running with rule-based fallbacks only")
        return None

    return GeminiClient(
        model_name=settings.get_effective_model(),
        api_key=settings.gemini_api_key,
        temperature=settings.generation.temperature,
        max_output_tokens=settings.generation.max_output_tokens,
        request_timeout=settings.generation.request_timeout,
        max_retries=settings.generation.max_retries,
    )
