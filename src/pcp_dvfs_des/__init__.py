"""pcp_dvfs_des

A small, reproducible discrete-event simulation (DES) of a single-processor,
energy-aware real-time scheduler: rate-monotonic priorities, the
priority-ceiling protocol for shared resources, and dynamic voltage/frequency
scaling (DVFS) that trades energy for timing margin.

A run reports how many task instances finished on time, how many missed their
deadline, the total energy spent and the time/speed trace.

Design goals:
- Minimal dependencies (PyYAML, numpy, pandas, matplotlib)
- Seeded task-set generation so runs are bit-for-bit repeatable
- All run state in one explicit context object; tasks addressed by handle
"""

# Model
from .models import Task, Job, Resource, UNBOUNDED

# Speeds
from .speeds import (
    SpeedLevel,
    SpeedTable,
    DEFAULT_SPEEDS,
    total_utilization,
    compute_low_speed,
    compute_high_speed,
)

# Configs + generators
from .sim import (
    TaskGenConfig,
    TaskSpec,
    SimConfig,
    generate_task_set,
    build_task_set,
    make_resources,
    assign_ceilings,
)
from .config import sim_config_from_dict, load_sim_config

# Engine
from .engine import SimContext, init_context, step, run_simulation

# Metrics + plots
from .metrics import MetricsCollector, SimResult, summarize_run, trace_frame
from .plots import plot_speed_trace, plot_late_ratio_by_seed


__all__ = [
    # model
    "Task",
    "Job",
    "Resource",
    "UNBOUNDED",
    # speeds
    "SpeedLevel",
    "SpeedTable",
    "DEFAULT_SPEEDS",
    "total_utilization",
    "compute_low_speed",
    "compute_high_speed",
    # configs / generators
    "TaskGenConfig",
    "TaskSpec",
    "SimConfig",
    "generate_task_set",
    "build_task_set",
    "make_resources",
    "assign_ceilings",
    "sim_config_from_dict",
    "load_sim_config",
    # engine
    "SimContext",
    "init_context",
    "step",
    "run_simulation",
    # outputs
    "MetricsCollector",
    "SimResult",
    "summarize_run",
    "trace_frame",
    "plot_speed_trace",
    "plot_late_ratio_by_seed",
]
