from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

import pyglet

from worldstream.blocks import FRUIT, LEAF
from worldstream.constants import BLOCK_SIZE, FRUIT_ENERGY_GAIN, FRUIT_RESPAWN_SECONDS, FRUIT_SIZE
from worldstream.entities.block import Block


@dataclass(frozen=True)
class Leaf:
    x: float
    y: float
    size: int = BLOCK_SIZE
    kind: str = LEAF


@dataclass(eq=False)
class Fruit:
    """A canopy fruit with respawn state.

    ``eaten`` and the pending respawn are runtime-only; a regenerated tree
    always starts with every fruit uneaten.
    """

    x: float
    y: float
    size: int = FRUIT_SIZE
    kind: str = FRUIT
    respawn_seconds: float = FRUIT_RESPAWN_SECONDS
    energy: float = FRUIT_ENERGY_GAIN
    eaten: bool = False
    _clock: pyglet.clock.Clock | None = field(default=None, repr=False)

    @property
    def center(self) -> tuple[float, float]:
        return self.x, self.y

    @property
    def respawn_pending(self) -> bool:
        return self._clock is not None

    def eat(self, clock: pyglet.clock.Clock | None = None) -> float:
        if self.eaten:
            return 0.0
        self.eaten = True
        self._clock = clock if clock is not None else pyglet.clock.get_default()
        self._clock.schedule_once(self.respawn, self.respawn_seconds)
        return self.energy

    def respawn(self, dt: float = 0.0) -> None:
        if self._clock is not None:
            self._clock.unschedule(self.respawn)
            self._clock = None
        self.eaten = False

    def cancel_respawn(self) -> None:
        if self._clock is None:
            return
        self._clock.unschedule(self.respawn)
        self._clock = None


TreePart = Union[Block, Leaf, Fruit]


@dataclass(frozen=True)
class Tree:
    x: float
    base_y: float
    seed: int
    trunk: tuple[Block, ...]
    leaves: tuple[Leaf, ...]
    fruits: tuple[Fruit, ...]

    @property
    def trunk_height(self) -> int:
        return len(self.trunk)

    def parts(self) -> list[TreePart]:
        return [*self.trunk, *self.leaves, *self.fruits]

    def layout(self) -> tuple:
        return (
            self.x,
            self.base_y,
            tuple(block.key() for block in self.trunk),
            tuple((leaf.x, leaf.y) for leaf in self.leaves),
            tuple(fruit.center for fruit in self.fruits),
        )

    def release(self) -> None:
        for fruit in self.fruits:
            fruit.cancel_respawn()
