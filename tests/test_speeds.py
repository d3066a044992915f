from __future__ import annotations

import logging

import pytest

from pcp_dvfs_des.models import Job, Task
from pcp_dvfs_des.speeds import (
    DEFAULT_SPEEDS,
    SpeedLevel,
    SpeedTable,
    compute_high_speed,
    compute_low_speed,
    total_utilization,
)


def _task(index: int, period: int, wcc: float) -> Task:
    return Task(index=index, arrival_time=0.0, period=period, wcc=wcc, resource=0)


def test_low_speed_is_smallest_covering_level(table) -> None:
    tasks = [_task(0, 10, 3.0), _task(1, 20, 6.0)]  # U = 0.6
    low, feasible = compute_low_speed(tasks, table)
    assert low.speed == 0.6
    assert low.level == 1
    assert feasible


def test_low_speed_is_idempotent(table) -> None:
    tasks = [_task(0, 10, 1.0), _task(1, 7, 2.0), _task(2, 50, 4.0)]
    assert compute_low_speed(tasks, table) == compute_low_speed(tasks, table)


def test_low_speed_falls_back_to_highest_and_warns(table, caplog) -> None:
    tasks = [_task(0, 10, 7.0), _task(1, 10, 6.0)]  # U = 1.3
    with caplog.at_level(logging.WARNING, logger="pcp_dvfs_des.speeds"):
        low, feasible = compute_low_speed(tasks, table)

    assert low == table.highest
    assert not feasible
    assert "infeasible" in caplog.text


def test_total_utilization() -> None:
    assert total_utilization([_task(0, 4, 1.0), _task(1, 8, 2.0)]) == pytest.approx(0.5)


def test_wattage_is_looked_up_by_level(table) -> None:
    assert [table.wattage(i) for i in range(len(table))] == [0.2, 0.4, 0.6, 0.9]
    assert table.wattage(table.highest.level) == 0.9


def test_from_pairs_sorts_by_speed() -> None:
    t = SpeedTable.from_pairs([(1.0, 0.9), (0.5, 0.3)])
    assert [lvl.speed for lvl in t.levels] == [0.5, 1.0]
    assert [lvl.level for lvl in t.levels] == [0, 1]


def test_default_table_has_six_levels() -> None:
    t = SpeedTable.from_pairs(DEFAULT_SPEEDS)
    assert len(t) == 6
    assert t.highest.speed == 1.0


@pytest.mark.parametrize(
    "pairs",
    [
        [],
        [(0.5, 0.5), (1.0, 0.4)],   # wattage not increasing
        [(0.0, 0.1), (1.0, 0.9)],   # zero speed
        [(0.5, 0.3), (0.5, 0.4)],   # duplicate speed
    ],
)
def test_invalid_speed_tables_rejected(pairs) -> None:
    with pytest.raises(ValueError):
        SpeedTable.from_pairs(pairs)


def test_level_ids_must_be_positional() -> None:
    with pytest.raises(ValueError):
        SpeedTable((SpeedLevel(level=1, speed=1.0, wattage=1.0),)).validate()


def _job(task: Task, rc: float) -> Job:
    job = Job.release(task)
    job.rc = rc
    return job


def test_high_speed_accumulates_demand_up_to_blocking_task(table) -> None:
    a = _task(2, 5, 1.0)
    b = _task(0, 10, 2.0)
    c = _task(1, 40, 4.0)
    initial = [a, b, c]

    running = _job(c, rc=0.8)   # B = 0.8 / 0.4 = 2
    # S = floor(10/5)*1 + floor(10/10)*2 = 4 ; target = (2 + 4) / 10 = 0.6
    high = compute_high_speed(Job.release(b), running, table.lowest, initial, table)
    assert high.speed == 0.6


def test_high_speed_stops_at_blocking_task_among_equal_periods(table) -> None:
    first = _task(0, 10, 2.0)
    second = _task(1, 10, 3.0)
    initial = [first, second]
    running = _job(second, rc=0.4)  # B = 1

    # only `first` counted: (1 + 2) / 10 = 0.3 -> 0.4
    assert compute_high_speed(Job.release(first), running, table.lowest, initial, table).speed == 0.4
    # both counted: (1 + 5) / 10 = 0.6
    assert compute_high_speed(Job.release(second), running, table.lowest, initial, table).speed == 0.6


def test_high_speed_saturates_at_highest(table) -> None:
    hi = _task(0, 5, 1.0)
    lo = _task(1, 20, 8.0)
    running = _job(lo, rc=7.4)
    assert compute_high_speed(Job.release(hi), running, table.lowest, [hi, lo], table) == table.highest
