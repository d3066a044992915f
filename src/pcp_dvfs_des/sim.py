from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np

from .models import Task, Resource, UNBOUNDED
from .speeds import SpeedTable, DEFAULT_SPEEDS


logger = logging.getLogger(__name__)


# ------------------------------ Configs ------------------------------

@dataclass(frozen=True)
class TaskGenConfig:
    no_of_tasks: int = 10
    no_of_resources: int = 3
    arrival_time: Tuple[int, int] = (0, 50)   # closed integer range
    period: Tuple[int, int] = (20, 200)       # closed integer range
    wcc: Tuple[float, float] = (1.0, 10.0)    # real range
    seed: int = 42

    def validate(self) -> None:
        if self.no_of_tasks < 1:
            raise ValueError("no_of_tasks must be >= 1.")
        if self.no_of_resources < 1:
            raise ValueError("no_of_resources must be >= 1.")
        for name, (lo, hi) in (("arrival_time", self.arrival_time), ("period", self.period), ("wcc", self.wcc)):
            if lo > hi:
                raise ValueError(f"{name} range is inverted: [{lo}, {hi}].")
        if self.arrival_time[0] < 0:
            raise ValueError("arrival_time range must be nonnegative.")
        if self.period[0] <= 0:
            raise ValueError("period range must be > 0.")
        if self.wcc[0] <= 0:
            raise ValueError("wcc range must be > 0.")


@dataclass(frozen=True)
class TaskSpec:
    """An explicitly configured task (replaces random generation)."""
    arrival_time: int
    period: int
    wcc: float
    resource: int = 0

    def validate(self, no_of_resources: int) -> None:
        if self.period <= 0:
            raise ValueError(f"period must be > 0 (got {self.period}).")
        if self.wcc <= 0:
            raise ValueError(f"wcc must be > 0 (got {self.wcc}).")
        if self.arrival_time < 0:
            raise ValueError(f"arrival_time must be >= 0 (got {self.arrival_time}).")
        if not (0 <= self.resource < no_of_resources):
            raise ValueError(f"resource {self.resource} is outside [0, {no_of_resources}).")


@dataclass(frozen=True)
class SimConfig:
    duration: float = 100000.0
    generator: TaskGenConfig = field(default_factory=TaskGenConfig)
    speeds: SpeedTable = field(default_factory=lambda: SpeedTable.from_pairs(DEFAULT_SPEEDS))
    tasks: Optional[Tuple[TaskSpec, ...]] = None

    def validate(self) -> None:
        if self.duration <= 0:
            raise ValueError("duration must be > 0.")
        self.speeds.validate()
        if self.tasks is None:
            self.generator.validate()
            return
        if self.generator.no_of_resources < 1:
            raise ValueError("no_of_resources must be >= 1.")
        if not self.tasks:
            raise ValueError("an explicit task set must contain at least one task.")
        for spec in self.tasks:
            spec.validate(self.generator.no_of_resources)


# ------------------------------ Generators ------------------------------

def make_resources(no_of_resources: int) -> List[Resource]:
    return [Resource(index=i) for i in range(int(no_of_resources))]


def _index_by_arrival(tasks: Sequence[Task]) -> List[Task]:
    # stable: equal arrival times keep generation order
    ordered = sorted(tasks, key=lambda t: float(t.arrival_time))
    for i, t in enumerate(ordered):
        t.index = i
    return ordered


def generate_task_set(cfg: TaskGenConfig) -> Tuple[List[Task], List[Resource]]:
    """Draw a random task set bound to a fresh resource set.

    Draw order per task: arrival time, period, wcc, resource. The result is
    sorted by arrival time and each task's index is its position in that order.
    """
    cfg.validate()
    rng = np.random.default_rng(int(cfg.seed))
    resources = make_resources(cfg.no_of_resources)

    a_lo, a_hi = cfg.arrival_time
    p_lo, p_hi = cfg.period
    c_lo, c_hi = cfg.wcc

    raw: List[Task] = []
    for _ in range(int(cfg.no_of_tasks)):
        arrival = int(rng.integers(int(a_lo), int(a_hi), endpoint=True))
        period = int(rng.integers(int(p_lo), int(p_hi), endpoint=True))
        wcc = float(rng.uniform(float(c_lo), float(c_hi)))
        res = int(rng.integers(0, len(resources)))
        raw.append(Task(index=-1, arrival_time=float(arrival), period=period, wcc=wcc, resource=res))

    tasks = _index_by_arrival(raw)
    logger.debug("Generated %d tasks over %d resources (seed=%d)", len(tasks), len(resources), cfg.seed)
    return tasks, resources


def build_task_set(specs: Sequence[TaskSpec], no_of_resources: int) -> Tuple[List[Task], List[Resource]]:
    """Same output as generate_task_set, from explicit task specs."""
    if no_of_resources < 1:
        raise ValueError("no_of_resources must be >= 1.")
    if not specs:
        raise ValueError("an explicit task set must contain at least one task.")
    for spec in specs:
        spec.validate(no_of_resources)

    raw = [
        Task(
            index=-1,
            arrival_time=float(s.arrival_time),
            period=int(s.period),
            wcc=float(s.wcc),
            resource=int(s.resource),
        )
        for s in specs
    ]
    return _index_by_arrival(raw), make_resources(no_of_resources)


# ------------------------------ Ceilings ------------------------------

def assign_ceilings(resources: Sequence[Resource], tasks: Sequence[Task]) -> None:
    """ceiling(r) = min period over tasks bound to r; unreferenced stays UNBOUNDED."""
    for r in resources:
        r.ceiling = UNBOUNDED
    for t in tasks:
        r = resources[t.resource]
        if t.period < r.ceiling:
            r.ceiling = t.period
