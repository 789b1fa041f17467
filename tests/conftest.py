from __future__ import annotations

from typing import Any, List

import pytest


class Collector:
    """Collects output chunks the way the CLI does."""

    def __init__(self) -> None:
        self.chunks: List[str] = []

    def write(self, value: Any) -> None:
        self.chunks.append(str(value))

    @property
    def text(self) -> str:
        return "".join(self.chunks)


@pytest.fixture
def out() -> Collector:
    return Collector()
