from worldstream.blocks.registry import (
    BLOCKS,
    FRUIT,
    IMMOVABLE_BLOCKS,
    LEAF,
    SUBSOIL,
    TOPSOIL,
    TRUNK,
    BlockDefinition,
    get_block_color,
    get_block_definition,
    get_block_layer,
)

__all__ = [
    "BlockDefinition",
    "BLOCKS",
    "FRUIT",
    "IMMOVABLE_BLOCKS",
    "LEAF",
    "SUBSOIL",
    "TOPSOIL",
    "TRUNK",
    "get_block_color",
    "get_block_definition",
    "get_block_layer",
]
