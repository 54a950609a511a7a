"""Translation capability.

Defines the Translator protocol and implementations:
- AnthropicTranslator: Production translator using the Anthropic Messages API
- StaticTranslator: Offline translator backed by a dict of known translations
"""

from __future__ import annotations

import logging
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

import certifi
import httpx

from .config import SyncSettings
from .exceptions import (
    APIError,
    AuthenticationError,
    BadRequestError,
    RateLimitError,
    TranslationConnectionError,
    TranslationError,
)
from .prompts import build_prompt

if TYPE_CHECKING:
    from .glossary import Glossary

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class TranslationRequest:
    """One unit of content to translate.

    Attributes:
        mode: "update" revises current_translation to follow the change
            from old_text to text; "new" translates text from scratch
        text: New source text
        old_text: Previous source text (update mode)
        current_translation: Existing target text (update mode)
        context_before: Source text of the preceding units
        context_after: Source text of the following units
        source_language: Source language name or code
        target_language: Target language code
        glossary: Terminology to apply
    """

    mode: Literal["update", "new"]
    text: str
    source_language: str
    target_language: str
    old_text: str | None = None
    current_translation: str | None = None
    context_before: str = ""
    context_after: str = ""
    glossary: Glossary | None = None

    def validate(self) -> None:
        """Raise TranslationError when the mode's required fields are missing."""
        if self.mode == "update":
            if not self.old_text or not self.text or not self.current_translation:
                raise TranslationError(
                    "Update mode requires old_text, text, and current_translation"
                )
        elif not self.text:
            raise TranslationError("New mode requires text")


class Translator(ABC):
    """Abstract translation capability."""

    @abstractmethod
    async def translate(self, request: TranslationRequest) -> str:
        """Return the translated text for request.

        Raises:
            TranslationError: If the text cannot be translated.
        """
        ...

    async def close(self) -> None:  # noqa: B027
        """Release any resources held by the translator."""


class AnthropicTranslator(Translator):
    """Production translator that calls the Anthropic Messages API.

    Handles authentication, SSL, and HTTP communication.
    """

    def __init__(
        self,
        settings: SyncSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the translator.

        Args:
            settings: API key, model, endpoint and limits
            client: Preconfigured HTTP client; built from settings when omitted
        """
        self._settings = settings or SyncSettings()
        if client is None:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            client = httpx.AsyncClient(timeout=self._settings.timeout, verify=ssl_context)
        self._client = client

    async def translate(self, request: TranslationRequest) -> str:
        """Translate one request with a single Messages API call."""
        request.validate()
        prompt = build_prompt(request)
        logger.debug(
            "translating %d chars, mode=%s, %s -> %s",
            len(request.text),
            request.mode,
            request.source_language,
            request.target_language,
        )
        body = {
            "model": self._settings.model,
            "max_tokens": self._settings.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        response = await self._post_request(body)
        text = _response_text(response)
        usage = response.get("usage") or {}
        logger.debug(
            "translated %d chars (%s input / %s output tokens)",
            len(text),
            usage.get("input_tokens", "?"),
            usage.get("output_tokens", "?"),
        )
        return text

    async def _post_request(self, body: dict[str, Any]) -> dict[str, Any]:
        """Make an authenticated POST request."""
        headers = {
            "x-api-key": self._settings.anthropic_api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        try:
            response = await self._client.post(self._settings.api_base, json=body, headers=headers)
            response.raise_for_status()
            result: dict[str, Any] = response.json()
            return result
        except httpx.HTTPStatusError as e:
            self._handle_http_error(e)
            raise  # unreachable, but makes type checker happy
        except httpx.RequestError as e:
            raise TranslationConnectionError(
                f"Connection error: Unable to reach Anthropic API: {e}"
            ) from e

    def _handle_http_error(self, e: httpx.HTTPStatusError) -> None:
        """Handle HTTP errors and raise appropriate exceptions."""
        status = e.response.status_code
        if status in (401, 403):
            raise AuthenticationError(
                "Authentication failed: Invalid or expired API key."
            ) from e
        if status == 429:
            raise RateLimitError(
                "Rate limit exceeded: Too many requests. Try again later."
            ) from e
        body = e.response.text
        if status == 400:
            raise BadRequestError(f"Bad request: {body}") from e
        raise APIError(f"API error ({status}): {body}", status_code=status) from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


class StaticTranslator(Translator):
    """Offline translator that looks translations up in a dict.

    Keys are source texts (compared after trimming). With echo=True an
    unknown text is returned unchanged instead of raising.
    """

    def __init__(self, translations: dict[str, str], echo: bool = False) -> None:
        self._translations = {key.strip(): value for key, value in translations.items()}
        self._echo = echo
        self.requests: list[TranslationRequest] = []

    async def translate(self, request: TranslationRequest) -> str:
        self.requests.append(request)
        found = self._translations.get(request.text.strip())
        if found is not None:
            return found
        if self._echo:
            return request.text
        raise TranslationError(f"No translation for: {request.text[:60]!r}")


def _response_text(response: dict[str, Any]) -> str:
    """Text of the first content block of a Messages API response."""
    content = response.get("content") or []
    if not content or content[0].get("type") != "text":
        raise TranslationError("Unexpected response format from translation API")
    text = str(content[0].get("text", "")).strip()
    if not text:
        raise TranslationError("Translation API returned an empty translation")
    return text
