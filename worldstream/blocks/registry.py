from __future__ import annotations

from dataclasses import dataclass

from worldstream.constants import BLOCK_COLORS
from worldstream.world.objects import Layer


@dataclass(frozen=True)
class BlockDefinition:
    name: str
    immovable: bool
    layer: Layer
    color: tuple[float, float, float]


TOPSOIL = "topsoil"
SUBSOIL = "subsoil"
TRUNK = "trunk"
LEAF = "leaf"
FRUIT = "fruit"

_FALLBACK_COLOR = (1.0, 0.0, 1.0)


def _define(name: str, immovable: bool, layer: Layer) -> BlockDefinition:
    color = BLOCK_COLORS.get(name, _FALLBACK_COLOR)
    return BlockDefinition(name=name, immovable=immovable, layer=layer, color=color)


def load_block_definitions() -> dict[str, BlockDefinition]:
    definitions = (
        _define(TOPSOIL, immovable=True, layer=Layer.STATIC_OBJECTS),
        _define(SUBSOIL, immovable=True, layer=Layer.STATIC_OBJECTS),
        _define(TRUNK, immovable=True, layer=Layer.STATIC_OBJECTS),
        # Leaves and fruit sit in the default layer so the avatar can pass through them.
        _define(LEAF, immovable=False, layer=Layer.DEFAULT),
        _define(FRUIT, immovable=False, layer=Layer.DEFAULT),
    )
    return {block.name: block for block in definitions}


BLOCKS = load_block_definitions()
IMMOVABLE_BLOCKS = {name for name, block in BLOCKS.items() if block.immovable}


def get_block_definition(name: str) -> BlockDefinition | None:
    return BLOCKS.get(name)


def get_block_color(name: str) -> tuple[float, float, float]:
    block = BLOCKS.get(name)
    if block is None:
        return _FALLBACK_COLOR
    return block.color


def get_block_layer(name: str) -> Layer:
    block = BLOCKS.get(name)
    if block is None:
        return Layer.DEFAULT
    return block.layer
