from __future__ import annotations

from dataclasses import dataclass
import math


# Ceiling of a resource that no task locks, and system ceiling while idle.
UNBOUNDED = math.inf


# ------------------------------- Task ----------------------------------


@dataclass
class Task:
    """A periodic real-time task (the template every instance is released from).

    Notation:
      - T_i -> period   (also the implicit relative deadline and RM priority key)
      - C_i -> wcc      (worst-case computation at the maximum speed)
      - r_i -> resource (handle of the single resource locked for the whole run)

    `index` is the stable handle used everywhere else in the engine; it equals
    the task's position in the arrival-sorted set right after generation.
    """
    index: int
    arrival_time: float
    period: int
    wcc: float
    resource: int

    burst_time: float = 0.0

    def utilization(self) -> float:
        return float(self.wcc) / float(self.period)

    def rearm(self) -> None:
        """Advance to the next release."""
        self.arrival_time += self.period


# ------------------------------- Job -----------------------------------


@dataclass
class Job:
    """One released instance of a task.

    `rc` starts at the task's wcc and is consumed at `speed` units per unit of
    time while the job holds the processor.
    """
    task: int
    release_time: float
    period: int
    wcc: float
    rc: float

    blocked: bool = False

    @classmethod
    def release(cls, task: Task) -> "Job":
        return cls(
            task=task.index,
            release_time=float(task.arrival_time),
            period=int(task.period),
            wcc=float(task.wcc),
            rc=float(task.wcc),
        )

    @property
    def deadline(self) -> float:
        return float(self.release_time + self.period)

    def consume(self, speed: float, elapsed: float) -> None:
        self.rc = min(max(self.rc - speed * elapsed, 0.0), self.wcc)


# ----------------------------- Resource --------------------------------


@dataclass
class Resource:
    """A mutually-exclusive resource with its priority ceiling.

    The ceiling is the smallest period among tasks bound to it (highest RM
    priority). It stays UNBOUNDED when no task references the resource.
    """
    index: int
    ceiling: float = UNBOUNDED
