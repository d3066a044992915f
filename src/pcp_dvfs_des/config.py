from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .sim import SimConfig, TaskGenConfig, TaskSpec
from .speeds import DEFAULT_SPEEDS, SpeedTable


def _pair(v: Any, name: str) -> Tuple[Any, Any]:
    if not isinstance(v, (list, tuple)) or len(v) != 2:
        raise ValueError(f"{name} must be a [low, high] pair (got {v!r}).")
    return v[0], v[1]


def _whole(v: Any, name: str) -> int:
    """Integer-valued YAML field; fractional values are rejected, not truncated."""
    f = float(v)
    if not f.is_integer():
        raise ValueError(f"{name} must be a whole number (got {v!r}).")
    return int(f)


def _speed_table(raw: Any) -> SpeedTable:
    if raw is None:
        return SpeedTable.from_pairs(DEFAULT_SPEEDS)
    pairs = []
    for entry in raw:
        if isinstance(entry, dict):
            pairs.append((float(entry["speed"]), float(entry["wattage"])))
        else:
            s, w = _pair(entry, "speeds entry")
            pairs.append((float(s), float(w)))
    return SpeedTable.from_pairs(pairs)


def sim_config_from_dict(cfg: Dict[str, Any], seed: Optional[int] = None) -> SimConfig:
    """Build a validated SimConfig from a parsed YAML mapping.

    `seed` overrides `seed` from the mapping (used for multi-seed runs).
    """
    gen = cfg.get("generator", {}) or {}
    defaults = TaskGenConfig()

    gen_seed = int(seed) if seed is not None else int(cfg.get("seed", gen.get("seed", defaults.seed)))
    a_lo, a_hi = _pair(gen.get("arrival_time", defaults.arrival_time), "arrival_time")
    p_lo, p_hi = _pair(gen.get("period", defaults.period), "period")
    c_lo, c_hi = _pair(gen.get("wcc", defaults.wcc), "wcc")

    gen_cfg = TaskGenConfig(
        no_of_tasks=_whole(gen.get("no_of_tasks", defaults.no_of_tasks), "no_of_tasks"),
        no_of_resources=_whole(gen.get("no_of_resources", defaults.no_of_resources), "no_of_resources"),
        arrival_time=(_whole(a_lo, "arrival_time"), _whole(a_hi, "arrival_time")),
        period=(_whole(p_lo, "period"), _whole(p_hi, "period")),
        wcc=(float(c_lo), float(c_hi)),
        seed=gen_seed,
    )

    tasks = None
    # an explicit empty list is kept so validation rejects it
    if cfg.get("tasks") is not None:
        tasks = tuple(
            TaskSpec(
                arrival_time=_whole(t.get("arrival_time", 0), "arrival_time"),
                period=_whole(t["period"], "period"),
                wcc=float(t["wcc"]),
                resource=_whole(t.get("resource", 0), "resource"),
            )
            for t in cfg["tasks"]
        )

    sim_cfg = SimConfig(
        duration=float(cfg.get("duration", SimConfig.duration)),
        generator=gen_cfg,
        speeds=_speed_table(cfg.get("speeds")),
        tasks=tasks,
    )
    sim_cfg.validate()
    return sim_cfg


def load_sim_config(path: Union[str, Path], seed: Optional[int] = None) -> SimConfig:
    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    return sim_config_from_dict(raw, seed=seed)
