from __future__ import annotations

import json
import math
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

REPORT_PREFIX = "stream_report"


@dataclass
class _FrameState:
    kind: str
    start_time: float
    context: dict[str, Any] = field(default_factory=dict)
    section_totals_ms: dict[str, float] = field(default_factory=dict)


class RuntimeProfiler:
    def __init__(self, enabled: bool = True, slow_frame_ms: float = 8.0, max_slow_frames: int = 200) -> None:
        self.enabled = enabled
        self.slow_frame_ms = slow_frame_ms
        self.max_slow_frames = max_slow_frames
        self.section_samples_ms: dict[str, list[float]] = defaultdict(list)
        self.frame_samples_ms: dict[str, list[float]] = defaultdict(list)
        self.slow_frames: list[dict[str, Any]] = []
        self._active_frame: _FrameState | None = None

    def begin_frame(self, kind: str, context: dict[str, Any] | None = None) -> None:
        if not self.enabled:
            return
        if self._active_frame is not None:
            self.end_frame({"warning": "frame_auto_closed"})
        self._active_frame = _FrameState(kind=kind, start_time=time.perf_counter(), context=dict(context or {}))

    def end_frame(self, extra_context: dict[str, Any] | None = None) -> float | None:
        if not self.enabled or self._active_frame is None:
            return None
        frame = self._active_frame
        self._active_frame = None

        total_ms = (time.perf_counter() - frame.start_time) * 1000.0
        self.frame_samples_ms[f"frame.{frame.kind}"].append(total_ms)
        if total_ms >= self.slow_frame_ms:
            self._record_slow_frame(frame, total_ms, extra_context)
        return total_ms

    def _record_slow_frame(self, frame: _FrameState, total_ms: float, extra_context: dict[str, Any] | None) -> None:
        context = dict(frame.context)
        if extra_context:
            context.update(extra_context)
        by_cost = sorted(frame.section_totals_ms.items(), key=lambda item: item[1], reverse=True)
        self.slow_frames.append(
            {
                "kind": frame.kind,
                "total_ms": total_ms,
                "context": context,
                "sections_ms": dict(by_cost),
            }
        )
        # Oldest slow frames go first once the ring is full.
        del self.slow_frames[: max(0, len(self.slow_frames) - self.max_slow_frames)]

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_section_ms(name, (time.perf_counter() - start) * 1000.0)

    def record_section_ms(self, name: str, duration_ms: float) -> None:
        if not self.enabled:
            return
        self.section_samples_ms[name].append(duration_ms)
        frame = self._active_frame
        if frame is not None:
            frame.section_totals_ms[name] = frame.section_totals_ms.get(name, 0.0) + duration_ms

    @staticmethod
    def _percentile(values: list[float], p: float) -> float:
        if not values:
            return 0.0
        ordered = sorted(values)
        rank = max(0, min(len(ordered) - 1, int(math.ceil(len(ordered) * p)) - 1))
        return ordered[rank]

    def _stats(self, values: list[float]) -> dict[str, float]:
        if not values:
            return {"count": 0.0, "avg_ms": 0.0, "p95_ms": 0.0, "max_ms": 0.0}
        return {
            "count": float(len(values)),
            "avg_ms": sum(values) / len(values),
            "p95_ms": self._percentile(values, 0.95),
            "max_ms": max(values),
        }

    def report(self) -> dict[str, Any]:
        return {
            "generated_at": time.strftime("%Y-%m-%d %H:%M:%S"),
            "slow_frame_threshold_ms": self.slow_frame_ms,
            "frame_stats_ms": {name: self._stats(samples) for name, samples in self.frame_samples_ms.items()},
            "section_stats_ms": {name: self._stats(samples) for name, samples in self.section_samples_ms.items()},
            "slow_frames": list(self.slow_frames),
        }

    @staticmethod
    def format_report(report: dict[str, Any]) -> str:
        def stat_line(name: str, stats: dict[str, float]) -> str:
            return (
                f"- {name}: count={int(stats['count'])} avg={stats['avg_ms']:.3f}ms "
                f"p95={stats['p95_ms']:.3f}ms max={stats['max_ms']:.3f}ms"
            )

        def by_p95(item: tuple[str, dict[str, float]]) -> float:
            return item[1]["p95_ms"]

        lines = [
            "World Stream Report",
            f"Generated: {report['generated_at']}",
            f"Slow frame threshold: {report['slow_frame_threshold_ms']:.2f} ms",
            "",
            "Frame Stats",
        ]
        lines.extend(stat_line(name, stats) for name, stats in sorted(report["frame_stats_ms"].items(), key=by_p95, reverse=True))
        lines.extend(["", "Section Stats"])
        lines.extend(stat_line(name, stats) for name, stats in sorted(report["section_stats_ms"].items(), key=by_p95, reverse=True))

        slow_frames = sorted(report["slow_frames"], key=lambda f: f["total_ms"], reverse=True)
        lines.extend(["", f"Slow Frames ({len(slow_frames)})"])
        for index, frame in enumerate(slow_frames[:20], start=1):
            lines.append(f"{index}. {frame['kind']} total={frame['total_ms']:.2f}ms context={frame['context']}")
            for sec_name, sec_ms in list(frame["sections_ms"].items())[:5]:
                lines.append(f"   - {sec_name}: {sec_ms:.3f}ms")
        return "\n".join(lines) + "\n"

    def write_report(self, output_dir: str | Path = "profiling") -> tuple[Path, Path] | None:
        if not self.enabled:
            return None

        out_dir = Path(output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        stamp = time.strftime("%Y%m%d_%H%M%S")
        txt_path = out_dir / f"{REPORT_PREFIX}_{stamp}.txt"
        json_path = out_dir / f"{REPORT_PREFIX}_{stamp}.json"

        report = self.report()
        json_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
        txt_path.write_text(self.format_report(report), encoding="utf-8")
        return txt_path, json_path
