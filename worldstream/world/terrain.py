from __future__ import annotations

import logging
import math
from collections import OrderedDict
from collections.abc import Callable, Iterable

from worldstream.blocks import SUBSOIL, TOPSOIL
from worldstream.constants import (
    BLOCK_SIZE,
    CHUNK_WIDTH,
    GROUND_HEIGHT_RATIO,
    MAX_LOADED_CHUNKS,
    TERRAIN_DEPTH,
    TOPSOIL_DEPTH,
)
from worldstream.entities.block import Block
from worldstream.world.chunk import Chunk, chunk_range
from worldstream.world.heightfield import HeightField

LOGGER = logging.getLogger(__name__)

EvictionListener = Callable[[int, list[object]], None]


class Terrain:
    TERRAIN_DEPTH = TERRAIN_DEPTH
    TOPSOIL_DEPTH = TOPSOIL_DEPTH
    MAX_LOADED_CHUNKS = MAX_LOADED_CHUNKS

    def __init__(
        self,
        window_height: float,
        seed: int,
        capacity: int = MAX_LOADED_CHUNKS,
        depth: int = TERRAIN_DEPTH,
        block_size: int = BLOCK_SIZE,
        chunk_width: int = CHUNK_WIDTH,
        height_field: HeightField | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if block_size <= 0 or chunk_width <= 0:
            raise ValueError("block size and chunk width must be positive")
        if chunk_width % block_size:
            raise ValueError("chunk width must be a multiple of the block size")
        self.seed = seed
        self.window_height = window_height
        self.ground_baseline = math.floor(window_height * GROUND_HEIGHT_RATIO)
        self.capacity = capacity
        self.depth = depth
        self.block_size = block_size
        self.chunk_width = chunk_width
        self.height_field = height_field if height_field is not None else HeightField(seed)

        # Oldest access first; move_to_end on every hit.
        self._chunks: OrderedDict[int, Chunk] = OrderedDict()
        self._active: set[int] = set()
        self._eviction_listeners: list[EvictionListener] = []
        self._generated = 0
        self._evicted = 0
        self._cache_hits = 0

    def height_at(self, x: float) -> float:
        return self.ground_baseline + self.height_field.sample(abs(x))

    def column_height(self, x: float) -> float:
        return math.floor(self.height_at(x) / self.block_size) * self.block_size

    def create_in_range(self, min_x: float, max_x: float) -> list[Block]:
        blocks: list[Block] = []
        for coordinate in chunk_range(min_x, max_x, self.chunk_width):
            chunk = self._get_chunk(coordinate)
            blocks.extend(chunk.blocks)
        self._evict_over_capacity()
        return blocks

    def chunk(self, coordinate: int) -> Chunk | None:
        return self._chunks.get(coordinate)

    def is_loaded(self, coordinate: int) -> bool:
        chunk = self._chunks.get(coordinate)
        return chunk is not None and chunk.is_loaded

    @property
    def loaded_chunks(self) -> tuple[int, ...]:
        return tuple(self._chunks)

    def __len__(self) -> int:
        return len(self._chunks)

    def __contains__(self, coordinate: object) -> bool:
        return coordinate in self._chunks

    def activate(self, coordinate: int) -> None:
        self._active.add(coordinate)
        chunk = self._chunks.get(coordinate)
        if chunk is not None:
            chunk.active = True

    def deactivate(self, coordinate: int) -> None:
        self._active.discard(coordinate)
        chunk = self._chunks.get(coordinate)
        if chunk is not None:
            chunk.active = False

    def is_active(self, coordinate: int) -> bool:
        return coordinate in self._active

    def attach_flora(self, coordinate: int, entities: Iterable[object]) -> None:
        chunk = self._chunks.get(coordinate)
        if chunk is not None:
            chunk.attach_flora(entities)

    def detach_flora(self, coordinate: int) -> list[object]:
        chunk = self._chunks.get(coordinate)
        if chunk is None:
            return []
        return chunk.detach_flora()

    def unload(self, coordinate: int) -> bool:
        if coordinate not in self._chunks:
            return False
        self._drop_chunk(coordinate)
        return True

    def add_eviction_listener(self, listener: EvictionListener) -> None:
        self._eviction_listeners.append(listener)

    def remove_eviction_listener(self, listener: EvictionListener) -> None:
        if listener in self._eviction_listeners:
            self._eviction_listeners.remove(listener)

    def diagnostics_snapshot(self) -> dict[str, int]:
        return {
            "cached_chunks": len(self._chunks),
            "active_chunks": len(self._active),
            "capacity": self.capacity,
            "generated_chunks": self._generated,
            "evicted_chunks": self._evicted,
            "cache_hits": self._cache_hits,
        }

    def _get_chunk(self, coordinate: int) -> Chunk:
        chunk = self._chunks.get(coordinate)
        if chunk is not None and chunk.is_loaded:
            self._chunks.move_to_end(coordinate)
            self._cache_hits += 1
            return chunk

        chunk = Chunk(coordinate, self.chunk_width)
        chunk.active = coordinate in self._active
        chunk.load(self._generate_blocks(chunk))
        self._chunks[coordinate] = chunk
        self._chunks.move_to_end(coordinate)
        self._generated += 1
        LOGGER.debug("generated chunk %d (%d blocks)", coordinate, len(chunk.blocks))
        return chunk

    def _generate_blocks(self, chunk: Chunk) -> list[Block]:
        blocks: list[Block] = []
        floor_y = self.window_height + self.block_size
        for x in range(chunk.min_x, chunk.max_x, self.block_size):
            top = self.column_height(x)
            for i in range(self.depth):
                y = top + i * self.block_size
                # Columns stop one block below the visible bottom edge.
                if y >= floor_y:
                    break
                kind = TOPSOIL if i < self.TOPSOIL_DEPTH else SUBSOIL
                blocks.append(Block(x=x, y=y, kind=kind, size=self.block_size))
        return blocks

    def _evict_over_capacity(self) -> None:
        if len(self._chunks) <= self.capacity:
            return
        for coordinate in list(self._chunks):
            if len(self._chunks) <= self.capacity:
                break
            if coordinate in self._active:
                continue
            self._drop_chunk(coordinate)
            self._evicted += 1
            LOGGER.debug("evicted chunk %d", coordinate)
        if len(self._chunks) > self.capacity:
            LOGGER.warning(
                "chunk cache holds %d chunks over capacity %d; all remaining chunks are active",
                len(self._chunks),
                self.capacity,
            )

    def _drop_chunk(self, coordinate: int) -> None:
        chunk = self._chunks.pop(coordinate)
        released = chunk.unload()
        for listener in list(self._eviction_listeners):
            listener(coordinate, released)
