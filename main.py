import argparse
import logging

import pyglet

from worldstream.constants import LOAD_RADIUS_CHUNKS, MAX_LOADED_CHUNKS, TICKS_PER_SECOND
from worldstream.debug.profiler import RuntimeProfiler
from worldstream.entities.tree import Fruit
from worldstream.world.objects import GameObjectCollection, Layer
from worldstream.world.streaming import StreamingWindow
from worldstream.world.terrain import Terrain

LOGGER = logging.getLogger("worldstream")


class WalkingObserver:
    def __init__(self, start_x: float, speed: float) -> None:
        self.position = start_x
        self.speed = speed

    def x(self) -> float:
        return self.position

    def advance(self, dt: float) -> None:
        self.position += self.speed * dt


def _eat_nearby_fruit(objects: GameObjectCollection, x: float, y: float, clock: pyglet.clock.Clock, reach: float) -> float:
    energy = 0.0
    for entity in objects.objects_in(Layer.DEFAULT):
        if isinstance(entity, Fruit) and abs(entity.x - x) <= reach and abs(entity.y - y) <= reach:
            energy += entity.eat(clock)
    return energy


def run(
    seed: int = 90125,
    window_height: float = 720.0,
    frames: int = 600,
    speed: float = 240.0,
    radius: int = LOAD_RADIUS_CHUNKS,
    capacity: int = MAX_LOADED_CHUNKS,
    profile: bool = False,
    look_ahead: float | None = None,
) -> dict[str, int]:
    sim_time = [0.0]
    clock = pyglet.clock.Clock(time_function=lambda: sim_time[0])
    profiler = RuntimeProfiler(enabled=profile)

    objects = GameObjectCollection()
    terrain = Terrain(window_height, seed, capacity=capacity)
    # Stream one chunk ahead of the observer unless told otherwise.
    if look_ahead is None:
        look_ahead = float(terrain.chunk_width)
    window = StreamingWindow(terrain, objects, radius=radius, look_ahead=look_ahead, profiler=profiler)
    observer = WalkingObserver(0.0, speed)

    dt = 1.0 / TICKS_PER_SECOND
    energy = 0.0
    for frame in range(frames):
        profiler.begin_frame("tick", {"frame": frame, "x": round(observer.x(), 1)})
        window.follow(observer)
        ground = terrain.height_at(observer.x())
        energy += _eat_nearby_fruit(objects, observer.x(), ground, clock, reach=terrain.block_size * 8)
        profiler.end_frame(extra_context=window.diagnostics_snapshot())

        sim_time[0] += dt
        clock.tick()
        observer.advance(dt)

    diagnostics = window.diagnostics_snapshot()
    LOGGER.info(
        "walked to x=%.1f over %d frames; %d chunk loads, %d unloads, %d evictions, energy gathered %.0f",
        observer.x(),
        frames,
        diagnostics["chunk_loads"],
        diagnostics["chunk_unloads"],
        diagnostics["terrain.evicted_chunks"],
        energy,
    )
    window.shutdown()

    if profile:
        report_paths = profiler.write_report()
        if report_paths is not None:
            txt_path, json_path = report_paths
            LOGGER.info("wrote stream report: %s", txt_path)
            LOGGER.info("wrote stream report: %s", json_path)
    return diagnostics


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Headless infinite-world chunk streamer")
    parser.add_argument("--seed", type=int, default=90125, help="World seed (same seed => same world)")
    parser.add_argument("--window-height", type=float, default=720.0, help="Viewport height fixing the ground baseline")
    parser.add_argument("--frames", type=int, default=600, help="Number of simulated frames")
    parser.add_argument("--speed", type=float, default=240.0, help="Observer speed in world units per second")
    parser.add_argument("--radius", type=int, default=LOAD_RADIUS_CHUNKS, help="Chunks kept loaded on each side")
    parser.add_argument("--capacity", type=int, default=MAX_LOADED_CHUNKS, help="Chunk cache capacity")
    parser.add_argument("--look-ahead", type=float, default=None, help="Window offset ahead of the observer (default: one chunk)")
    parser.add_argument("--profile", action="store_true", help="Write a per-tick timing report on exit")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level), format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    run(
        seed=args.seed,
        window_height=args.window_height,
        frames=args.frames,
        speed=args.speed,
        radius=args.radius,
        capacity=args.capacity,
        profile=args.profile,
        look_ahead=args.look_ahead,
    )
