from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
import pandas as pd


# ---------------------------- collector ---------------------------------


@dataclass
class MetricsCollector:
    """Side-effect sink written by the engine; read back through `freeze()`."""
    total_task_finished: int = 0
    total_late_count: int = 0
    total_energy: float = 0.0
    preemptions: int = 0
    blockings: int = 0
    trace: List[Tuple[float, float]] = field(default_factory=list)

    def record_trace(self, now: float, speed: float) -> None:
        self.trace.append((float(now), float(speed)))

    def add_energy(self, elapsed: float, wattage: float) -> None:
        self.total_energy += float(elapsed) * float(wattage)

    def task_finished(self) -> None:
        self.total_task_finished += 1

    def task_late(self) -> None:
        self.total_late_count += 1

    def freeze(
        self,
        *,
        duration: float,
        low_speed: float,
        feasible: bool,
        utilization: float,
    ) -> "SimResult":
        return SimResult(
            duration=float(duration),
            total_late_count=int(self.total_late_count),
            total_task_finished=int(self.total_task_finished),
            low_speed=float(low_speed),
            total_energy=float(self.total_energy),
            trace=tuple(self.trace),
            feasible=bool(feasible),
            utilization=float(utilization),
            preemptions=int(self.preemptions),
            blockings=int(self.blockings),
        )


# ---------------------------- results ---------------------------------


@dataclass(frozen=True)
class SimResult:
    """Read-only outcome of one run.

    Reporting names:
      - totalLateCount    -> total_late_count
      - totalTaskFinished -> total_task_finished
      - LowSpeed          -> low_speed
      - totalPC           -> total_energy
    """
    duration: float
    total_late_count: int
    total_task_finished: int
    low_speed: float
    total_energy: float
    trace: Tuple[Tuple[float, float], ...]
    feasible: bool = True
    utilization: float = float("nan")
    preemptions: int = 0
    blockings: int = 0

    @property
    def late_ratio(self) -> float:
        n = self.total_late_count + self.total_task_finished
        return float(self.total_late_count / n) if n else float("nan")


# ---------------------------- tables ---------------------------------


def trace_frame(result: SimResult) -> pd.DataFrame:
    """Time/speed trace as a DataFrame (one row per engine iteration)."""
    arr = np.asarray(result.trace, dtype=float).reshape(-1, 2)
    return pd.DataFrame({"time": arr[:, 0], "speed": arr[:, 1]})


def _time_weighted_mean_speed(result: SimResult) -> float:
    if len(result.trace) < 2:
        return float("nan")
    arr = np.asarray(result.trace, dtype=float)
    dt = np.diff(arr[:, 0])
    span = float(np.sum(dt))
    if span <= 0:
        return float("nan")
    return float(np.sum(dt * arr[:-1, 1]) / span)


def summarize_run(scenario: str, result: SimResult) -> pd.DataFrame:
    """Create a 1-row summary of a run.

    Besides the raw counters this carries the late ratio, the time-weighted
    mean speed over the trace and the number of trace points.
    """
    row = {
        "scenario": scenario,
        "duration": result.duration,
        "total_late_count": result.total_late_count,
        "total_task_finished": result.total_task_finished,
        "late_ratio": result.late_ratio,
        "low_speed": result.low_speed,
        "total_energy": result.total_energy,
        "feasible": result.feasible,
        "utilization": result.utilization,
        "preemptions": result.preemptions,
        "blockings": result.blockings,
        "mean_speed": _time_weighted_mean_speed(result),
        "trace_points": len(result.trace),
    }
    return pd.DataFrame([row])
