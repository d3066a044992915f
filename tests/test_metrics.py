from __future__ import annotations

import math

import pytest

from pcp_dvfs_des.engine import run_simulation
from pcp_dvfs_des.metrics import MetricsCollector, summarize_run, trace_frame
from pcp_dvfs_des.plots import plot_late_ratio_by_seed, plot_speed_trace


def test_collector_accumulates_and_freezes() -> None:
    m = MetricsCollector()
    m.record_trace(0.0, 0.4)
    m.record_trace(2.0, 1.0)
    m.add_energy(2.0, 0.5)
    m.add_energy(1.0, 0.9)
    m.task_finished()
    m.task_finished()
    m.task_late()

    res = m.freeze(duration=10.0, low_speed=0.4, feasible=True, utilization=0.3)
    assert res.total_task_finished == 2
    assert res.total_late_count == 1
    assert res.total_energy == pytest.approx(1.9)
    assert res.trace == ((0.0, 0.4), (2.0, 1.0))
    assert res.late_ratio == pytest.approx(1 / 3)

    # frozen snapshot: later writes do not leak into it
    m.task_late()
    assert res.total_late_count == 1


def test_late_ratio_undefined_without_instances() -> None:
    res = MetricsCollector().freeze(duration=1.0, low_speed=1.0, feasible=True, utilization=0.0)
    assert math.isnan(res.late_ratio)


def test_summarize_run_one_row(make_cfg) -> None:
    res = run_simulation(make_cfg([(0, 10, 2.0, 0)], duration=100.0))
    df = summarize_run("single", res)

    assert len(df) == 1
    row = df.iloc[0]
    assert row["scenario"] == "single"
    assert row["total_task_finished"] == 10
    assert row["total_late_count"] == 0
    assert row["low_speed"] == 0.4
    assert row["mean_speed"] == pytest.approx(0.4)
    assert row["trace_points"] == len(res.trace)


def test_trace_frame_columns(make_cfg) -> None:
    res = run_simulation(make_cfg([(0, 10, 2.0, 0)], duration=30.0))
    df = trace_frame(res)
    assert list(df.columns) == ["time", "speed"]
    assert len(df) == len(res.trace)
    assert df["time"].is_monotonic_increasing


def test_plots_write_files(make_cfg, tmp_path) -> None:
    res = run_simulation(make_cfg([(0, 20, 4.0, 0), (1, 5, 1.0, 0)], duration=60.0))

    trace_png = tmp_path / "trace.png"
    plot_speed_trace(res, str(trace_png), title="blocking", t_max=30.0)
    assert trace_png.exists()

    ratio_png = tmp_path / "ratio.png"
    plot_late_ratio_by_seed([1, 2, 3], [0.0, 0.1, 0.05], str(ratio_png))
    assert ratio_png.exists()
