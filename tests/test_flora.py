"""Tests for deterministic tree placement and fruit respawn state."""
from __future__ import annotations

import pyglet
import pytest

from worldstream.blocks import FRUIT, LEAF, TRUNK
from worldstream.constants import FRUIT_ENERGY_GAIN, FRUIT_RESPAWN_SECONDS
from worldstream.entities.tree import Fruit
from worldstream.world.chunk import chunk_span
from worldstream.world.flora import FloraGenerator
from worldstream.world.terrain import Terrain


class FakeTime:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _layouts(trees):
    return [tree.layout() for tree in trees]


def _dense_generator() -> FloraGenerator:
    return FloraGenerator(spacing=60, spawn_probability=100)


def test_same_seed_and_chunk_give_same_trees(terrain: Terrain) -> None:
    generator = FloraGenerator(spacing=60)
    min_x, max_x = chunk_span(3)
    first = generator.generate_trees(terrain, 42, 3, min_x, max_x)
    second = FloraGenerator(spacing=60).generate_trees(terrain, 42, 3, min_x, max_x)
    assert first
    assert _layouts(first) == _layouts(second)


def test_tree_layout_does_not_depend_on_range_start(terrain: Terrain) -> None:
    generator = _dense_generator()
    full = {tree.x: tree.layout() for tree in generator.generate_trees(terrain, 42, 3, 900, 1200)}
    tail = {tree.x: tree.layout() for tree in generator.generate_trees(terrain, 42, 3, 960, 1200)}

    assert sorted(tail) == [960, 1020, 1080, 1140]
    for x, layout in tail.items():
        assert full[x] == layout, x

    sparse = FloraGenerator(spacing=60)
    spawned_full = {tree.x for tree in sparse.generate_trees(terrain, 42, 3, 900, 1200)}
    spawned_tail = {tree.x for tree in sparse.generate_trees(terrain, 42, 3, 960, 1200)}
    assert spawned_tail == {x for x in spawned_full if x >= 960}


def test_chunk_three_survives_eviction_unchanged() -> None:
    terrain = Terrain(window_height=500, seed=42, capacity=1)
    generator = FloraGenerator(spacing=60)
    min_x, max_x = chunk_span(3)

    blocks = terrain.create_in_range(min_x, max_x)
    trees = generator.generate_trees(terrain, 42, 3, min_x, max_x)
    terrain.create_in_range(*chunk_span(8))
    assert 3 not in terrain

    blocks_again = terrain.create_in_range(min_x, max_x)
    trees_again = generator.generate_trees(terrain, 42, 3, min_x, max_x)
    assert [b.key() for b in blocks_again] == [b.key() for b in blocks]
    assert len(trees_again) == len(trees)
    assert _layouts(trees_again) == _layouts(trees)


def test_spawn_probability_bounds(terrain: Terrain) -> None:
    min_x, max_x = chunk_span(0)
    assert FloraGenerator(spacing=60, spawn_probability=0).generate_trees(terrain, 1, 0, min_x, max_x) == []
    trees = _dense_generator().generate_trees(terrain, 1, 0, min_x, max_x)
    assert [tree.x for tree in trees] == [0, 60, 120, 180, 240]


def test_tree_stands_on_terrain_height(terrain: Terrain) -> None:
    for tree in _dense_generator().generate_trees(terrain, 5, 2, *chunk_span(2)):
        assert tree.base_y == terrain.height_at(tree.x)
        assert 4 <= tree.trunk_height <= 9
        assert [block.y for block in tree.trunk] == [tree.base_y - (i + 1) * 30 for i in range(tree.trunk_height)]
        assert all(block.kind == TRUNK and block.immovable for block in tree.trunk)
        assert all(block.x == tree.x for block in tree.trunk)


def test_canopy_layout_respects_ranges(terrain: Terrain) -> None:
    trees = _dense_generator().generate_trees(terrain, 11, -4, *chunk_span(-4))
    assert len(trees) == 5
    for tree in trees:
        canopy_left = tree.x - 3.5 * 30
        canopy_top = tree.base_y - tree.trunk_height * 30 - 3 * 30

        offsets = [((leaf.x - canopy_left) / 30, (leaf.y - canopy_top) / 30) for leaf in tree.leaves]
        assert all(abs(ox - round(ox)) < 1e-6 and abs(oy - round(oy)) < 1e-6 for ox, oy in offsets)
        leaf_cells = {(round(ox), round(oy)) for ox, oy in offsets}
        assert 22 <= len(tree.leaves) <= 32
        assert len(leaf_cells) == len(tree.leaves)
        assert all(0 <= cx < 7 and 0 <= cy < 6 for cx, cy in leaf_cells)
        assert all(leaf.kind == LEAF for leaf in tree.leaves)

        assert 1 <= len(tree.fruits) <= 3
        fruit_centers = {fruit.center for fruit in tree.fruits}
        assert len(fruit_centers) == len(tree.fruits)
        for fruit in tree.fruits:
            assert fruit.kind == FRUIT
            assert not fruit.eaten
            assert canopy_left < fruit.x < canopy_left + 7 * 30
            assert canopy_top < fruit.y < canopy_top + 6 * 30


def test_generate_in_range_flattens_tree_parts(terrain: Terrain) -> None:
    generator = _dense_generator()
    span = chunk_span(1)
    trees = generator.generate_trees(terrain, 3, 1, *span)
    parts = generator.generate_in_range(terrain, 3, 1, *span)
    assert len(parts) == sum(len(tree.parts()) for tree in trees)
    assert [part.kind for part in parts[: trees[0].trunk_height]] == [TRUNK] * trees[0].trunk_height


def test_trees_vary_between_chunks(terrain: Terrain) -> None:
    generator = _dense_generator()
    seeds = {tree.seed for c in range(-3, 3) for tree in generator.generate_trees(terrain, 7, c, *chunk_span(c))}
    assert len(seeds) == 30


@pytest.mark.parametrize(
    "kwargs",
    [
        {"spacing": 45},
        {"spacing": 0},
        {"spawn_probability": 101},
        {"trunk_heights": (9, 4)},
        {"leaf_counts": (22, 60)},
    ],
)
def test_invalid_generator_configuration(kwargs) -> None:
    with pytest.raises(ValueError):
        FloraGenerator(**kwargs)


def test_fruit_respawns_after_delay() -> None:
    fake_time = FakeTime()
    clock = pyglet.clock.Clock(time_function=fake_time)
    fruit = Fruit(x=10.0, y=20.0)

    assert fruit.eat(clock) == FRUIT_ENERGY_GAIN
    assert fruit.eaten
    assert fruit.respawn_pending
    assert fruit.eat(clock) == 0.0

    fake_time.now = FRUIT_RESPAWN_SECONDS - 1.0
    clock.tick()
    assert fruit.eaten

    fake_time.now = FRUIT_RESPAWN_SECONDS + 1.0
    clock.tick()
    assert not fruit.eaten
    assert not fruit.respawn_pending


def test_released_tree_cancels_pending_respawn(terrain: Terrain) -> None:
    fake_time = FakeTime()
    clock = pyglet.clock.Clock(time_function=fake_time)
    tree = _dense_generator().generate_trees(terrain, 2, 0, *chunk_span(0))[0]
    fruit = tree.fruits[0]
    fruit.eat(clock)

    tree.release()
    fake_time.now = FRUIT_RESPAWN_SECONDS * 2
    clock.tick()
    assert fruit.eaten
    assert not fruit.respawn_pending

    regenerated = _dense_generator().generate_trees(terrain, 2, 0, *chunk_span(0))[0]
    assert regenerated.layout() == tree.layout()
    assert not regenerated.fruits[0].eaten
