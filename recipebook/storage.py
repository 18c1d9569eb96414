from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union

from .errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_RECIPES_FILE = "recipes.json"


class RecipeStorage(Protocol):
    """Protocol for the single named entry holding the serialized recipes."""

    def read(self) -> Optional[str]:
        """Return the stored payload, ``None`` when nothing has been stored.

        Raises :class:`StorageError` when the backend cannot be read.
        """

    def write(self, payload: str) -> None:
        """Replace the stored payload or raise :class:`StorageError`."""


class JsonFileStorage:
    """Keeps the recipe entry in a JSON file on local disk."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @classmethod
    def from_env(cls) -> "JsonFileStorage":
        """Build a file storage from the ``RECIPES_FILE`` environment variable."""

        return cls(os.environ.get("RECIPES_FILE", DEFAULT_RECIPES_FILE))

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Optional[str]:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Could not read {self._path}: {exc}") from exc

    def write(self, payload: str) -> None:
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.error("Failed to write recipes to %s: %s", self._path, exc)
            raise StorageError(f"Could not write {self._path}: {exc}") from exc


__all__ = ["DEFAULT_RECIPES_FILE", "JsonFileStorage", "RecipeStorage"]
