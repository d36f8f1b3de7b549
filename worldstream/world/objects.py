from __future__ import annotations

from collections.abc import Iterator
from enum import IntEnum
from typing import Protocol


class Layer(IntEnum):
    BACKGROUND = -200
    STATIC_OBJECTS = -100
    DEFAULT = 0
    FOREGROUND = 100
    UI = 200


class WorldObjectRegistry(Protocol):
    def add(self, entity: object, layer: Layer) -> None: ...

    def remove(self, entity: object, layer: Layer) -> bool: ...


class GameObjectCollection:
    """Layered set of live world entities.

    Membership is by identity, so value-equal entities from two generations of
    the same chunk never shadow each other. ``add`` of a present entity and
    ``remove`` of an absent one are no-ops.
    """

    def __init__(self) -> None:
        self._layers: dict[Layer, dict[int, object]] = {layer: {} for layer in Layer}

    def add(self, entity: object, layer: Layer = Layer.DEFAULT) -> None:
        self._layers[Layer(layer)].setdefault(id(entity), entity)

    def remove(self, entity: object, layer: Layer = Layer.DEFAULT) -> bool:
        return self._layers[Layer(layer)].pop(id(entity), None) is not None

    def contains(self, entity: object, layer: Layer | None = None) -> bool:
        if layer is not None:
            return id(entity) in self._layers[Layer(layer)]
        return any(id(entity) in objects for objects in self._layers.values())

    def objects_in(self, layer: Layer) -> list[object]:
        return list(self._layers[Layer(layer)].values())

    def count(self, layer: Layer | None = None) -> int:
        if layer is not None:
            return len(self._layers[Layer(layer)])
        return sum(len(objects) for objects in self._layers.values())

    def clear(self) -> None:
        for objects in self._layers.values():
            objects.clear()

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[object]:
        for layer in sorted(self._layers):
            yield from self._layers[layer].values()
