from __future__ import annotations

import math
from typing import Protocol

from worldstream.blocks import TRUNK
from worldstream.constants import (
    BLOCK_SIZE,
    CANOPY_HEIGHT_BLOCKS,
    CANOPY_WIDTH_BLOCKS,
    MAX_FRUITS,
    MAX_LEAVES,
    MAX_TRUNK_HEIGHT,
    MIN_FRUITS,
    MIN_LEAVES,
    MIN_TRUNK_HEIGHT,
    TREE_SPACING,
    TREE_SPAWN_PROBABILITY,
)
from worldstream.entities.block import Block
from worldstream.entities.tree import Fruit, Leaf, Tree, TreePart
from worldstream.world.seeding import hash_ints, percent, randint, to_signed32

# Salts keep the independent draws of one key apart.
_SPAWN = 1
_TREE_SEED = 2
_TRUNK = 3
_LEAF_COUNT = 4
_LEAF_RANK = 5
_FRUIT_COUNT = 6
_FRUIT_RANK = 7


class HeightSource(Protocol):
    def height_at(self, x: float) -> float: ...


class FloraGenerator:
    TREE_SPACING = TREE_SPACING
    TREE_SPAWN_PROBABILITY = TREE_SPAWN_PROBABILITY

    def __init__(
        self,
        spacing: int = TREE_SPACING,
        spawn_probability: int = TREE_SPAWN_PROBABILITY,
        trunk_heights: tuple[int, int] = (MIN_TRUNK_HEIGHT, MAX_TRUNK_HEIGHT),
        canopy: tuple[int, int] = (CANOPY_WIDTH_BLOCKS, CANOPY_HEIGHT_BLOCKS),
        leaf_counts: tuple[int, int] = (MIN_LEAVES, MAX_LEAVES),
        fruit_counts: tuple[int, int] = (MIN_FRUITS, MAX_FRUITS),
        block_size: int = BLOCK_SIZE,
    ) -> None:
        if spacing <= 0 or spacing % block_size:
            raise ValueError("tree spacing must be a positive multiple of the block size")
        if not 0 <= spawn_probability <= 100:
            raise ValueError("spawn probability is a percentage")
        canopy_cells = canopy[0] * canopy[1]
        for name, (low, high) in (("trunk", trunk_heights), ("leaf", leaf_counts), ("fruit", fruit_counts)):
            if low < 0 or high < low:
                raise ValueError(f"invalid {name} range {low}..{high}")
        if leaf_counts[1] > canopy_cells or fruit_counts[1] > canopy_cells:
            raise ValueError("canopy is too small for the requested leaves or fruit")
        self.spacing = spacing
        self.spawn_probability = spawn_probability
        self.trunk_heights = trunk_heights
        self.canopy = canopy
        self.leaf_counts = leaf_counts
        self.fruit_counts = fruit_counts
        self.block_size = block_size

    @staticmethod
    def chunk_seed(global_seed: int, chunk_coordinate: int) -> int:
        return global_seed + chunk_coordinate

    def generate_trees(
        self,
        terrain: HeightSource,
        global_seed: int,
        chunk_coordinate: int,
        min_x: int,
        max_x: int,
    ) -> list[Tree]:
        seed = self.chunk_seed(global_seed, chunk_coordinate)
        trees: list[Tree] = []
        for x in range(min_x, max_x, self.spacing):
            column = math.floor(x)
            if percent(seed, column, _SPAWN) >= self.spawn_probability:
                continue
            tree_seed = to_signed32(hash_ints(seed, column, _TREE_SEED) + column)
            trees.append(self.build_tree(x, terrain.height_at(x), tree_seed))
        return trees

    def generate_in_range(
        self,
        terrain: HeightSource,
        global_seed: int,
        chunk_coordinate: int,
        min_x: int,
        max_x: int,
    ) -> list[TreePart]:
        parts: list[TreePart] = []
        for tree in self.generate_trees(terrain, global_seed, chunk_coordinate, min_x, max_x):
            parts.extend(tree.parts())
        return parts

    def build_tree(self, x: float, base_y: float, seed: int) -> Tree:
        size = self.block_size
        trunk_height = randint(*self.trunk_heights, seed, _TRUNK)
        # Screen space: y grows downward, so the trunk stacks toward smaller y.
        trunk = tuple(Block(x=x, y=base_y - (i + 1) * size, kind=TRUNK, size=size) for i in range(trunk_height))

        width, height = self.canopy
        canopy_left = x - (width / 2) * size
        canopy_top = base_y - trunk_height * size - (height / 2) * size

        leaf_count = randint(*self.leaf_counts, seed, _LEAF_COUNT)
        leaves = tuple(
            Leaf(x=canopy_left + cx * size, y=canopy_top + cy * size, size=size)
            for cx, cy in self._pick_cells(seed, _LEAF_RANK, leaf_count)
        )

        fruit_count = randint(*self.fruit_counts, seed, _FRUIT_COUNT)
        fruits = tuple(
            Fruit(x=canopy_left + cx * size + size / 2, y=canopy_top + cy * size + size / 2)
            for cx, cy in self._pick_cells(seed, _FRUIT_RANK, fruit_count)
        )
        return Tree(x=x, base_y=base_y, seed=seed, trunk=trunk, leaves=leaves, fruits=fruits)

    def _pick_cells(self, seed: int, salt: int, count: int) -> list[tuple[int, int]]:
        # Sampling without replacement: keep the `count` cells with the lowest hash rank.
        width, height = self.canopy
        cells = [(cx, cy) for cy in range(height) for cx in range(width)]
        ranked = sorted(cells, key=lambda cell: hash_ints(seed, salt, cell[0], cell[1]))
        return sorted(ranked[:count], key=lambda cell: (cell[1], cell[0]))
