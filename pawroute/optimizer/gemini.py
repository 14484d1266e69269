"""
Client for the external route optimization model (Gemini generateContent).

Exactly one HTTP request is made per call and nothing is retried: any
failure is raised as an ``OptimizationClientError`` so the caller can move
to the fallback path straight away. The client keeps no state between
calls.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from ..errors import (
    InvalidEndpoint,
    InvalidResponse,
    MissingCredential,
    SerializationError,
    TransportError,
)
from ..models import HomeBase, Visit
from ..tools.config_loader import DEFAULT_GEMINI_URL, GEMINI_KEY_ENV, get_secret
from .prompt import DEFAULT_TIMEZONE_LABEL, build_route_prompt

logger = logging.getLogger(__name__)


def build_request_body(prompt: str, temperature: float, max_output_tokens: int) -> Dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
        },
    }


def extract_reply_text(payload: Any) -> str:
    """
    Pull ``candidates[0].content.parts[0].text`` out of a response body.

    Raises:
        InvalidResponse: If any step of that path is missing or mistyped
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise InvalidResponse(f"Response missing candidate text: {exc!r}") from exc
    if not isinstance(text, str):
        raise InvalidResponse("Candidate text is not a string")
    return text


def _validate_url(url: str) -> httpx.URL:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidEndpoint(url) from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidEndpoint(url)
    return parsed


class GeminiClient:
    """Issues route optimization prompts to the Gemini API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: str = DEFAULT_GEMINI_URL,
        temperature: float = 0.1,
        max_output_tokens: int = 2048,
        timeout: float = 30.0,
        timezone_label: str = DEFAULT_TIMEZONE_LABEL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self.url = url
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self.timezone_label = timezone_label
        self._transport = transport

    @property
    def api_key(self) -> str:
        return self._api_key or get_secret(GEMINI_KEY_ENV)

    async def generate(self, prompt: str) -> str:
        """
        Send one prompt and return the model's raw reply text.

        Raises:
            MissingCredential: No API key; detected before any network I/O
            InvalidEndpoint: The configured URL is unusable
            SerializationError: The request body could not be encoded
            TransportError: The request itself failed
            InvalidResponse: Non-200 status or unexpected body shape
        """
        api_key = self.api_key
        if not api_key:
            raise MissingCredential(GEMINI_KEY_ENV)

        url = _validate_url(self.url)

        try:
            content = json.dumps(
                build_request_body(prompt, self.temperature, self.max_output_tokens)
            ).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Failed to encode request: {exc}") from exc

        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": api_key,
        }

        logger.info("Requesting route optimization from %s", url.host)
        logger.debug("Prompt length: %d characters", len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(exc) from exc

        if response.status_code != 200:
            logger.warning("Optimization API returned status %s", response.status_code)
            raise InvalidResponse("API error", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidResponse("Response body is not JSON") from exc

        text = extract_reply_text(payload)
        logger.debug("Reply preview: %s", text[:200])
        return text

    async def optimize(self, visits: Sequence[Visit], home_base: Optional[HomeBase] = None) -> str:
        """Render the route prompt for ``visits`` and return the raw reply."""
        prompt = build_route_prompt(visits, home_base, timezone_label=self.timezone_label)
        return await self.generate(prompt)
