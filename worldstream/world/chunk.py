from __future__ import annotations

import math
from collections.abc import Iterable
from enum import Enum

from worldstream.constants import CHUNK_WIDTH
from worldstream.entities.block import Block


def chunk_coordinate(x: float, width: int = CHUNK_WIDTH) -> int:
    return math.floor(x / width)


def chunk_span(coordinate: int, width: int = CHUNK_WIDTH) -> tuple[int, int]:
    min_x = coordinate * width
    return min_x, min_x + width


def chunk_range(min_x: float, max_x: float, width: int = CHUNK_WIDTH) -> range:
    """Coordinates of every chunk overlapping ``[min_x, max_x)``, ascending."""
    if max_x <= min_x:
        return range(0)
    return range(chunk_coordinate(min_x, width), math.ceil(max_x / width))


class ChunkState(Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


class Chunk:
    def __init__(self, coordinate: int, width: int = CHUNK_WIDTH) -> None:
        self.coordinate = coordinate
        self.width = width
        self.state = ChunkState.UNLOADED
        self.active = False
        self._blocks: list[Block] = []
        self._flora: list[object] = []

    def __repr__(self) -> str:
        return (
            f"Chunk(coordinate={self.coordinate}, state={self.state.value}, "
            f"active={self.active}, blocks={len(self._blocks)}, flora={len(self._flora)})"
        )

    @property
    def min_x(self) -> int:
        return self.coordinate * self.width

    @property
    def max_x(self) -> int:
        return self.min_x + self.width

    @property
    def is_loaded(self) -> bool:
        return self.state is ChunkState.LOADED

    @property
    def blocks(self) -> tuple[Block, ...]:
        return tuple(self._blocks)

    @property
    def flora(self) -> tuple[object, ...]:
        return tuple(self._flora)

    def contains_x(self, x: float) -> bool:
        return self.min_x <= x < self.max_x

    def load(self, blocks: Iterable[Block]) -> bool:
        if self.is_loaded:
            return False
        for block in blocks:
            if not self.contains_x(block.x):
                raise ValueError(f"block at x={block.x} lies outside chunk {self.coordinate}")
            self._blocks.append(block)
        self.state = ChunkState.LOADED
        return True

    def attach_flora(self, entities: Iterable[object]) -> None:
        if not self.is_loaded:
            return
        self._flora.extend(entities)

    def detach_flora(self) -> list[object]:
        released = list(self._flora)
        self._flora.clear()
        return released

    def unload(self) -> list[object]:
        """Drop every block and flora reference and hand them back to the caller."""
        if not self.is_loaded:
            return []
        released: list[object] = [*self._blocks, *self._flora]
        self._blocks.clear()
        self._flora.clear()
        self.state = ChunkState.UNLOADED
        self.active = False
        return released

    clear = unload
