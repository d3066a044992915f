from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple
import logging
import math

from .models import Job, Task


logger = logging.getLogger(__name__)


# ----------------------------- Speed table -----------------------------


@dataclass(frozen=True)
class SpeedLevel:
    """One discrete DVFS operating point.

    `level` is the position in the ascending table and is the identity used
    for wattage lookups; `speed` is normalized to the reference (maximum) speed.
    """
    level: int
    speed: float
    wattage: float


@dataclass(frozen=True)
class SpeedTable:
    """Ascending set of available processor speeds and their wattages."""
    levels: Tuple[SpeedLevel, ...]

    @classmethod
    def from_pairs(cls, pairs: Sequence[Tuple[float, float]]) -> "SpeedTable":
        """Build a table from (speed, wattage) pairs; sorted ascending by speed."""
        ordered = sorted((float(s), float(w)) for s, w in pairs)
        table = cls(tuple(SpeedLevel(level=i, speed=s, wattage=w) for i, (s, w) in enumerate(ordered)))
        table.validate()
        return table

    def validate(self) -> None:
        if not self.levels:
            raise ValueError("speed table must contain at least one level.")
        for i, lvl in enumerate(self.levels):
            if lvl.level != i:
                raise ValueError(f"speed level ids must be 0..n-1 in order (got {lvl.level} at {i}).")
            if lvl.speed <= 0:
                raise ValueError(f"speeds must be > 0 (got {lvl.speed}).")
            if lvl.wattage < 0:
                raise ValueError(f"wattages must be nonnegative (got {lvl.wattage}).")
        for lo, hi in zip(self.levels, self.levels[1:]):
            if hi.speed <= lo.speed:
                raise ValueError("speeds must be strictly ascending.")
            if hi.wattage <= lo.wattage:
                raise ValueError("wattage must increase with speed.")

    def __len__(self) -> int:
        return len(self.levels)

    @property
    def lowest(self) -> SpeedLevel:
        return self.levels[0]

    @property
    def highest(self) -> SpeedLevel:
        return self.levels[-1]

    def wattage(self, level: int) -> float:
        return float(self.levels[level].wattage)

    def select(self, target: float) -> Tuple[SpeedLevel, bool]:
        """Smallest level whose speed covers `target`.

        Returns (level, fits); when no level is fast enough the highest one is
        returned with fits=False.
        """
        for lvl in self.levels:
            if target <= lvl.speed:
                return lvl, True
        return self.highest, False


# Six-level reference table: (speed, wattage)
DEFAULT_SPEEDS: List[Tuple[float, float]] = [
    (0.25, 0.116),
    (0.40, 0.279),
    (0.50, 0.390),
    (0.65, 0.570),
    (0.80, 0.747),
    (1.00, 0.925),
]


# ------------------------------ Low speed ------------------------------


def total_utilization(tasks: Sequence[Task]) -> float:
    """U = sum(C_i / T_i)."""
    return float(sum(t.utilization() for t in tasks))


def compute_low_speed(tasks: Sequence[Task], table: SpeedTable) -> Tuple[SpeedLevel, bool]:
    """Static speed: smallest level with U <= speed.

    Returns (level, feasible). An infeasible set runs at the highest level and
    is reported as a warning.
    """
    u = total_utilization(tasks)
    low, feasible = table.select(u)
    if not feasible:
        logger.warning(
            "Task set is infeasible: utilization %.4f exceeds the maximum speed %.4f; "
            "running at the maximum speed.",
            u,
            table.highest.speed,
        )
    return low, feasible


# ------------------------------ High speed -----------------------------


def compute_high_speed(
    blocking: Job,
    running: Job,
    current: SpeedLevel,
    initial_tasks: Sequence[Task],
    table: SpeedTable,
) -> SpeedLevel:
    """Speed that bounds the PCP blocking delay of `blocking`.

    B = rc_run / s_cur is the remaining (wall-clock) execution of the job that
    holds the ceiling. Demand is accumulated over the period-sorted initial set
    up to and including the blocking task:

        S = sum_k floor(T_blk / T_k) * C_k
        s_target = (B + S) / T_blk
    """
    period = int(blocking.period)
    B = float(running.rc) / float(current.speed)

    demand = 0.0
    for t in initial_tasks:
        demand += math.floor(period / t.period) * float(t.wcc)
        if t.index == blocking.task:
            break

    target = (B + demand) / float(period)
    high, _ = table.select(target)
    return high
