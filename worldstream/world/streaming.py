from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Protocol

from worldstream.blocks import get_block_layer
from worldstream.constants import LOAD_RADIUS_CHUNKS
from worldstream.debug.profiler import RuntimeProfiler
from worldstream.entities.tree import Tree
from worldstream.world.chunk import chunk_coordinate, chunk_span
from worldstream.world.flora import FloraGenerator
from worldstream.world.objects import Layer, WorldObjectRegistry
from worldstream.world.terrain import Terrain

LOGGER = logging.getLogger(__name__)


class ObserverPosition(Protocol):
    def x(self) -> float: ...


@dataclass(frozen=True)
class WindowDiff:
    center: int
    desired: frozenset[int]
    to_load: tuple[int, ...]
    to_unload: tuple[int, ...]


class StreamingWindow:
    """Keeps the chunks around an observer generated and registered.

    Each tick loads the chunks that entered the window and tears down the ones
    that left it. Every entity registered for a coordinate is recorded so it is
    removed exactly once when that coordinate leaves.
    """

    LOAD_RADIUS_CHUNKS = LOAD_RADIUS_CHUNKS

    def __init__(
        self,
        terrain: Terrain,
        registry: WorldObjectRegistry,
        flora: FloraGenerator | None = None,
        radius: int = LOAD_RADIUS_CHUNKS,
        look_ahead: float = 0.0,
        release_on_exit: bool = False,
        profiler: RuntimeProfiler | None = None,
    ) -> None:
        if radius < 0:
            raise ValueError("radius must not be negative")
        self.terrain = terrain
        self.registry = registry
        self.flora = flora if flora is not None else FloraGenerator(block_size=terrain.block_size)
        self.radius = radius
        self.look_ahead = look_ahead
        self.release_on_exit = release_on_exit
        self.profiler = profiler
        self._active: set[int] = set()
        self._chunk_entities: dict[int, list[tuple[object, Layer]]] = {}
        self._chunk_trees: dict[int, list[Tree]] = {}
        self._center: int | None = None
        self._ticks = 0
        self._loads = 0
        self._unloads = 0
        self._forced_teardowns = 0
        self.terrain.add_eviction_listener(self._on_chunk_evicted)

    def _profile(self, name: str):
        if self.profiler is None:
            return nullcontext()
        return self.profiler.section(name)

    @property
    def active_chunks(self) -> frozenset[int]:
        return frozenset(self._active)

    @property
    def center(self) -> int | None:
        return self._center

    def desired_window(self, center: int) -> set[int]:
        return set(range(center - self.radius, center + self.radius + 1))

    def entities_for(self, coordinate: int) -> tuple[object, ...]:
        return tuple(entity for entity, _ in self._chunk_entities.get(coordinate, ()))

    def trees_for(self, coordinate: int) -> tuple[Tree, ...]:
        return tuple(self._chunk_trees.get(coordinate, ()))

    def follow(self, observer: ObserverPosition) -> WindowDiff:
        return self.tick(observer.x())

    def tick(self, observer_x: float) -> WindowDiff:
        with self._profile("stream.compute_window"):
            center = chunk_coordinate(observer_x + self.look_ahead, self.terrain.chunk_width)
            desired = self.desired_window(center)
            to_load = tuple(sorted(desired - self._active))
            to_unload = tuple(sorted(self._active - desired))

        with self._profile("stream.unload"):
            for coordinate in to_unload:
                self._unload_chunk(coordinate)

        with self._profile("stream.load"):
            for coordinate in to_load:
                self._load_chunk(coordinate)

        self._active = {coordinate for coordinate in desired if coordinate in self._chunk_entities}
        self._center = center
        self._ticks += 1
        if to_load or to_unload:
            LOGGER.debug("window centred on chunk %d: +%s -%s", center, list(to_load), list(to_unload))
        return WindowDiff(center=center, desired=frozenset(desired), to_load=to_load, to_unload=to_unload)

    def shutdown(self) -> None:
        for coordinate in sorted(self._active):
            self._unload_chunk(coordinate)
        self._active.clear()
        self._center = None
        self.terrain.remove_eviction_listener(self._on_chunk_evicted)

    def diagnostics_snapshot(self) -> dict[str, int]:
        return {
            "active_chunks": len(self._active),
            "tracked_chunks": len(self._chunk_entities),
            "registered_entities": sum(len(entries) for entries in self._chunk_entities.values()),
            "ticks": self._ticks,
            "chunk_loads": self._loads,
            "chunk_unloads": self._unloads,
            "forced_teardowns": self._forced_teardowns,
            **{f"terrain.{key}": value for key, value in self.terrain.diagnostics_snapshot().items()},
        }

    def _load_chunk(self, coordinate: int) -> None:
        if coordinate in self._chunk_entities:
            return
        min_x, max_x = chunk_span(coordinate, self.terrain.chunk_width)
        self.terrain.activate(coordinate)

        with self._profile("stream.load.terrain"):
            blocks = self.terrain.create_in_range(min_x, max_x)
        with self._profile("stream.load.flora"):
            trees = self.flora.generate_trees(self.terrain, self.terrain.seed, coordinate, min_x, max_x)
        self.terrain.attach_flora(coordinate, trees)

        entries: list[tuple[object, Layer]] = [(block, get_block_layer(block.kind)) for block in blocks]
        for tree in trees:
            entries.extend((part, get_block_layer(part.kind)) for part in tree.parts())

        # Recorded before registration so teardown mirrors every attempted add.
        self._chunk_entities[coordinate] = entries
        self._chunk_trees[coordinate] = trees
        for entity, layer in entries:
            try:
                self.registry.add(entity, layer)
            except Exception:
                LOGGER.exception("registry rejected %r on layer %s", entity, layer.name)
        self._loads += 1

    def _unload_chunk(self, coordinate: int) -> None:
        self._teardown(coordinate)
        if self.release_on_exit:
            self.terrain.unload(coordinate)
        self.terrain.deactivate(coordinate)
        self._unloads += 1

    def _teardown(self, coordinate: int) -> None:
        entries = self._chunk_entities.pop(coordinate, [])
        for tree in self._chunk_trees.pop(coordinate, []):
            tree.release()
        self.terrain.detach_flora(coordinate)
        for entity, layer in entries:
            try:
                self.registry.remove(entity, layer)
            except Exception:
                LOGGER.exception("registry failed to remove %r from layer %s", entity, layer.name)

    def _on_chunk_evicted(self, coordinate: int, released: list[object]) -> None:
        if coordinate not in self._chunk_entities:
            return
        # The cache no longer holds this chunk; drop it so the next tick regenerates it.
        LOGGER.warning("chunk %d dropped from cache while still in the window", coordinate)
        self._teardown(coordinate)
        self._active.discard(coordinate)
        self.terrain.deactivate(coordinate)
        self._forced_teardowns += 1
