from __future__ import annotations

from pathlib import Path
import sys
from typing import Optional

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from recipebook.errors import StorageError


class InMemoryRecipeStorage:
    """Storage backend used for tests. Can be told to fail like a full disk."""

    def __init__(self, payload: Optional[str] = None) -> None:
        self.payload = payload
        self.writes: list[str] = []
        self.fail_reads = False
        self.fail_writes = False

    def read(self) -> Optional[str]:
        if self.fail_reads:
            raise StorageError("storage disabled")
        return self.payload

    def write(self, payload: str) -> None:
        if self.fail_writes:
            raise StorageError("quota exceeded")
        self.payload = payload
        self.writes.append(payload)


@pytest.fixture
def memory_storage() -> InMemoryRecipeStorage:
    return InMemoryRecipeStorage()
