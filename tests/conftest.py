"""Shared fixtures for the world streaming tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from worldstream.world.objects import GameObjectCollection, Layer  # noqa: E402
from worldstream.world.terrain import Terrain  # noqa: E402


class RecordingRegistry(GameObjectCollection):
    """Collection that also counts every add and remove call per entity."""

    def __init__(self) -> None:
        super().__init__()
        self.added: dict[int, int] = {}
        self.removed: dict[int, int] = {}

    def add(self, entity: object, layer: Layer = Layer.DEFAULT) -> None:
        self.added[id(entity)] = self.added.get(id(entity), 0) + 1
        super().add(entity, layer)

    def remove(self, entity: object, layer: Layer = Layer.DEFAULT) -> bool:
        self.removed[id(entity)] = self.removed.get(id(entity), 0) + 1
        return super().remove(entity, layer)


@pytest.fixture
def registry() -> RecordingRegistry:
    return RecordingRegistry()


@pytest.fixture
def terrain() -> Terrain:
    return Terrain(window_height=500, seed=42)
