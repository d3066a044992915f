from __future__ import annotations

import pytest

from pcp_dvfs_des.sim import SimConfig, TaskGenConfig, TaskSpec
from pcp_dvfs_des.speeds import SpeedTable


@pytest.fixture
def table() -> SpeedTable:
    return SpeedTable.from_pairs([(0.4, 0.2), (0.6, 0.4), (0.8, 0.6), (1.0, 0.9)])


@pytest.fixture
def make_cfg(table):
    def _make(tasks, *, duration: float = 100.0, no_of_resources: int = 1, speeds=None) -> SimConfig:
        return SimConfig(
            duration=duration,
            generator=TaskGenConfig(no_of_resources=no_of_resources),
            speeds=speeds or table,
            tasks=tuple(TaskSpec(*t) for t in tasks),
        )
    return _make


@pytest.fixture
def random_cfg() -> SimConfig:
    return SimConfig(
        duration=5000.0,
        generator=TaskGenConfig(
            no_of_tasks=8,
            no_of_resources=2,
            arrival_time=(0, 30),
            period=(10, 80),
            wcc=(0.5, 6.0),
            seed=7,
        ),
    )
