from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple
import logging
import math

from .metrics import MetricsCollector, SimResult
from .models import Job, Resource, Task, UNBOUNDED
from .sim import SimConfig, assign_ceilings, build_task_set, generate_task_set
from .speeds import SpeedLevel, SpeedTable, compute_high_speed, compute_low_speed, total_utilization


logger = logging.getLogger(__name__)


# ------------------------------ Context ------------------------------

@dataclass
class SimContext:
    """All mutable state of one run.

    Tasks and resources live in fixed tables addressed by integer handles.
    `arrivals` holds task handles ordered by next release; `queue` holds the
    released jobs ordered by period (RM priority). The running job is kept
    outside the queue.
    """
    duration: float
    tasks: List[Task]
    resources: List[Resource]
    initial_tasks: Tuple[Task, ...]   # period-sorted copies, fixed for the run
    speeds: SpeedTable
    low: SpeedLevel
    current: SpeedLevel
    feasible: bool
    utilization: float

    arrivals: List[int] = field(default_factory=list)
    queue: List[Job] = field(default_factory=list)
    running: Optional[Job] = None
    system_ceiling: float = UNBOUNDED
    up_time: float = 0.0
    metrics: MetricsCollector = field(default_factory=MetricsCollector)

    @property
    def idle(self) -> bool:
        return self.running is None

    def ceiling_of(self, job: Job) -> float:
        return float(self.resources[self.tasks[job.task].resource].ceiling)

    def result(self) -> SimResult:
        return self.metrics.freeze(
            duration=self.duration,
            low_speed=self.low.speed,
            feasible=self.feasible,
            utilization=self.utilization,
        )


def init_context(cfg: SimConfig) -> SimContext:
    """Build the task/resource tables, ceilings and speeds for a fresh run."""
    cfg.validate()
    if cfg.tasks is not None:
        tasks, resources = build_task_set(cfg.tasks, cfg.generator.no_of_resources)
    else:
        tasks, resources = generate_task_set(cfg.generator)

    # independent reference copy, ordered by period (RM priority)
    initial = tuple(sorted((replace(t) for t in tasks), key=lambda t: t.period))
    assign_ceilings(resources, initial)

    low, feasible = compute_low_speed(initial, cfg.speeds)
    logger.info(
        "Initialized %d tasks, %d resources; low speed %.3f (feasible=%s)",
        len(tasks),
        len(resources),
        low.speed,
        feasible,
    )

    return SimContext(
        duration=float(cfg.duration),
        tasks=tasks,
        resources=resources,
        initial_tasks=initial,
        speeds=cfg.speeds,
        low=low,
        current=low,
        feasible=feasible,
        utilization=total_utilization(initial),
        arrivals=[t.index for t in tasks],
    )


# ------------------------------ Queue helpers ------------------------------

def _sort_queue(ctx: SimContext) -> None:
    ctx.queue.sort(key=lambda j: j.period)


def _sort_arrivals(ctx: SimContext) -> None:
    ctx.arrivals.sort(key=lambda h: ctx.tasks[h].arrival_time)


def _earliest_deadline(queue: List[Job]) -> Optional[int]:
    """Position of the queued job with the earliest deadline (first one on ties)."""
    if not queue:
        return None
    best = 0
    for i in range(1, len(queue)):
        if queue[i].deadline < queue[best].deadline:
            best = i
    return best


# ------------------------------ Event handlers ------------------------------

def _set_speed(ctx: SimContext, level: SpeedLevel) -> None:
    if level.level != ctx.current.level:
        logger.debug("t=%.3f speed %.3f -> %.3f", ctx.up_time, ctx.current.speed, level.speed)
    ctx.current = level


def _finish_running(ctx: SimContext) -> None:
    job = ctx.running
    assert job is not None
    job.rc = 0.0
    logger.debug("t=%.3f task %d finished", ctx.up_time, job.task)
    ctx.metrics.task_finished()

    if job.blocked:
        job.blocked = False
        _set_speed(ctx, ctx.low)

    ctx.running = None
    ctx.system_ceiling = UNBOUNDED


def _drop_late(ctx: SimContext, pos: int) -> None:
    job = ctx.queue.pop(pos)
    logger.debug("t=%.3f task %d is late (deadline %.3f)", ctx.up_time, job.task, job.deadline)
    ctx.metrics.task_late()

    if job.blocked:
        job.blocked = False
        _set_speed(ctx, ctx.low)


def _release_arrivals(ctx: SimContext) -> None:
    # several tasks may release at the same instant
    released = False
    while ctx.tasks[ctx.arrivals[0]].arrival_time <= ctx.up_time:
        task = ctx.tasks[ctx.arrivals[0]]
        ctx.queue.append(Job.release(task))
        logger.debug("t=%.3f task %d released", ctx.up_time, task.index)
        task.rearm()
        _sort_arrivals(ctx)
        released = True
    if released:
        _sort_queue(ctx)


def _dispatch(ctx: SimContext) -> None:
    if not ctx.queue:
        return

    if ctx.idle:
        job = ctx.queue.pop(0)
        ctx.running = job
        ctx.system_ceiling = ctx.ceiling_of(job)
        logger.debug("t=%.3f task %d dispatched (ceiling %s)", ctx.up_time, job.task, ctx.system_ceiling)
        return

    head = ctx.queue[0]
    running = ctx.running
    if head.period >= running.period:
        return

    if head.period < ctx.system_ceiling:
        # priority above the system ceiling: preempt
        ctx.queue.pop(0)
        ctx.queue.append(running)
        _sort_queue(ctx)
        ctx.running = head
        ctx.system_ceiling = ctx.ceiling_of(head)
        ctx.metrics.preemptions += 1
        logger.debug("t=%.3f task %d preempts task %d", ctx.up_time, head.task, running.task)
        return

    # ceiling blocking: speed up instead of preempting
    if not head.blocked:
        ctx.metrics.blockings += 1
        logger.debug("t=%.3f task %d blocked by task %d", ctx.up_time, head.task, running.task)
    head.blocked = True
    high = compute_high_speed(head, running, ctx.current, ctx.initial_tasks, ctx.speeds)
    if high.speed > ctx.current.speed:
        _set_speed(ctx, high)


# ------------------------------ Main loop ------------------------------

def step(ctx: SimContext) -> float:
    """Advance the simulation by one bounded leap; returns the elapsed time."""
    ctx.metrics.record_trace(ctx.up_time, ctx.current.speed)

    next_arrival = float(ctx.tasks[ctx.arrivals[0]].arrival_time)
    to_arrival = next_arrival - ctx.up_time

    running = ctx.running
    to_finish = running.rc / ctx.current.speed if running is not None else math.inf

    late_pos = _earliest_deadline(ctx.queue)
    deadline = ctx.queue[late_pos].deadline if late_pos is not None else math.inf
    # a preempted job may re-enter the queue already past its deadline
    to_deadline = max(deadline - ctx.up_time, 0.0)

    exec_time = min(to_arrival, to_finish, to_deadline)

    if running is not None:
        running.consume(ctx.current.speed, exec_time)
        ctx.tasks[running.task].burst_time += exec_time
        ctx.metrics.add_energy(exec_time, ctx.speeds.wattage(ctx.current.level))

    # snap to absolute event instants so float error never skips a release
    if exec_time == to_arrival:
        ctx.up_time = next_arrival
    elif exec_time == to_deadline:
        ctx.up_time = max(ctx.up_time, deadline)
    else:
        ctx.up_time += exec_time

    if exec_time == to_finish:
        _finish_running(ctx)
    if exec_time == to_deadline:
        assert late_pos is not None
        _drop_late(ctx, late_pos)

    _release_arrivals(ctx)
    _dispatch(ctx)
    return exec_time


def run_simulation(cfg: SimConfig) -> SimResult:
    """Run one simulation until the clock reaches `cfg.duration`."""
    ctx = init_context(cfg)
    while ctx.up_time < ctx.duration:
        step(ctx)

    res = ctx.result()
    logger.info(
        "Finished run: %d finished, %d late, energy %.3f",
        res.total_task_finished,
        res.total_late_count,
        res.total_energy,
    )
    return res
