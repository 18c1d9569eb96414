"""Recipe suggestions from the Gemini ``generateContent`` API.

The adapter turns a free-text ingredient list into :class:`CandidateRecipe`
objects. It only ever returns typed data; rendering and escaping belong to the
web layer.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from enum import Enum
from typing import Any, List, Optional

import httpx

from .errors import (
    ConfigurationError,
    ParseError,
    SuggestionBusyError,
    TransportError,
    ValidationError,
)
from .models import CandidateRecipe

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT = 30.0
DEFAULT_RECIPE_COUNT = 3

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "name": {"type": "STRING"},
            "ingredients": {"type": "STRING"},
            "instructions": {"type": "STRING"},
        },
        "required": ["name", "ingredients", "instructions"],
    },
}


class SuggestionState(Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def build_prompt(ingredients_text: str, count: int = DEFAULT_RECIPE_COUNT) -> str:
    return (
        f"Based on these ingredients: {ingredients_text}, suggest {count} simple recipes. "
        "Provide the response as a valid JSON array of objects. Each object must have "
        'three keys: "name" (string), "ingredients" (string, comma-separated), '
        'and "instructions" (string).'
    )


def build_payload(ingredients_text: str, count: int = DEFAULT_RECIPE_COUNT) -> dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": build_prompt(ingredients_text, count)}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }


def parse_candidates(envelope: Any) -> List[CandidateRecipe]:
    """Extract candidate recipes from a ``generateContent`` response body."""

    try:
        text = envelope["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ParseError("No content found in the suggestion response.") from exc

    if not isinstance(text, str) or not text.strip():
        raise ParseError("No content found in the suggestion response.")

    try:
        items = json.loads(text)
    except ValueError as exc:
        raise ParseError(f"Suggestion content is not valid JSON: {exc}") from exc

    if not isinstance(items, list):
        raise ParseError("Suggestion content is not a list of recipes.")

    candidates: List[CandidateRecipe] = []
    for item in items:
        if not isinstance(item, dict):
            raise ParseError("Suggestion entries must be objects.")
        fields = [item.get(key) for key in ("name", "ingredients", "instructions")]
        if not all(isinstance(value, str) for value in fields):
            raise ParseError("Suggestion entries need name, ingredients and instructions.")
        name, ingredients, instructions = fields
        candidates.append(
            CandidateRecipe(name=name, ingredients=ingredients, instructions=instructions)
        )
    return candidates


class SuggestionAdapter:
    """Requests recipe suggestions, one request at a time."""

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        recipe_count: int = DEFAULT_RECIPE_COUNT,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.recipe_count = recipe_count
        self.http_client = http_client

        self._state = SuggestionState.IDLE
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> "SuggestionAdapter":
        """Build an adapter from environment variables.

        A missing ``GEMINI_API_KEY`` is reported when :meth:`suggest` runs, not here.
        """

        return cls(
            api_key=os.environ.get("GEMINI_API_KEY") or None,
            model=os.environ.get("GEMINI_MODEL", DEFAULT_MODEL),
            base_url=os.environ.get("GEMINI_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.environ.get("SUGGESTION_TIMEOUT", DEFAULT_TIMEOUT)),
            recipe_count=int(os.environ.get("SUGGESTION_COUNT", DEFAULT_RECIPE_COUNT)),
        )

    @property
    def state(self) -> SuggestionState:
        return self._state

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def suggest(self, ingredients_text: str) -> List[CandidateRecipe]:
        ingredients_text = (ingredients_text or "").strip()
        if not ingredients_text:
            raise ValidationError("Please enter some ingredients.")

        with self._lock:
            if self._state is SuggestionState.REQUESTING:
                raise SuggestionBusyError("A suggestion request is already in progress.")
            self._state = SuggestionState.REQUESTING

        try:
            candidates = await self._request(ingredients_text)
        except BaseException:
            self._state = SuggestionState.FAILED
            raise

        self._state = SuggestionState.SUCCEEDED
        return candidates

    async def _request(self, ingredients_text: str) -> List[CandidateRecipe]:
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured.")

        payload = build_payload(ingredients_text, self.recipe_count)
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}

        try:
            if self.http_client is not None:
                response = await self.http_client.post(
                    self.endpoint, json=payload, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("Suggestion request timed out after %ss", self.timeout)
            raise TransportError(f"The suggestion service did not answer within {self.timeout}s.") from exc
        except httpx.HTTPError as exc:
            logger.warning("Suggestion request failed: %s", exc)
            raise TransportError(f"Could not reach the suggestion service: {exc}") from exc

        if not response.is_success:
            logger.error(
                "Suggestion API returned %s: %s", response.status_code, response.text[:500]
            )
            raise TransportError(
                f"Suggestion API call failed with status: {response.status_code}",
                status=response.status_code,
            )

        try:
            envelope = response.json()
        except ValueError as exc:
            raise ParseError("Suggestion response is not valid JSON.") from exc

        candidates = parse_candidates(envelope)
        logger.info("Received %d recipe suggestions", len(candidates))
        return candidates


__all__ = [
    "SuggestionAdapter",
    "SuggestionState",
    "build_payload",
    "build_prompt",
    "parse_candidates",
]
