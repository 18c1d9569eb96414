from __future__ import annotations

from typing import Optional


class RecipeBookError(Exception):
    """Base class for errors surfaced to the user as messages."""


class ValidationError(RecipeBookError, ValueError):
    """Required input is missing or blank."""


class NotFoundError(RecipeBookError, KeyError):
    """An operation referenced a recipe id that does not exist."""

    def __init__(self, recipe_id: str) -> None:
        super().__init__(f"Recipe '{recipe_id}' does not exist.")
        self.recipe_id = recipe_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class StorageError(RecipeBookError):
    """The storage backend could not be read or written."""


class ConfigurationError(RecipeBookError):
    """The suggestion service is missing a credential or setting."""


class TransportError(RecipeBookError):
    """The suggestion request failed in transit or returned a non-success status."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ParseError(RecipeBookError):
    """The suggestion service answered with a payload we cannot use."""


class SuggestionBusyError(RecipeBookError):
    """A suggestion request is already in flight."""


__all__ = [
    "ConfigurationError",
    "NotFoundError",
    "ParseError",
    "RecipeBookError",
    "StorageError",
    "SuggestionBusyError",
    "TransportError",
    "ValidationError",
]
