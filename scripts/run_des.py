#!/usr/bin/env python
from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

# Allow running without installing the package:
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

import yaml
import pandas as pd

import numpy as np
from pcp_dvfs_des.config import sim_config_from_dict
from pcp_dvfs_des.engine import run_simulation
from pcp_dvfs_des.metrics import summarize_run, trace_frame
from pcp_dvfs_des.plots import plot_speed_trace, plot_late_ratio_by_seed


def _parse_seeds_arg(s: str) -> list[int]:
    s = (s or "").strip()
    if not s:
        return []
    parts = [p.strip() for p in s.split(",") if p.strip()]
    seeds = []
    for p in parts:
        if "-" in p:
            a, b = p.split("-", 1)
            a_i = int(a.strip())
            b_i = int(b.strip())
            if b_i < a_i:
                raise ValueError(f"Bad seed range '{p}' (end < start).")
            seeds.extend(list(range(a_i, b_i + 1)))
        else:
            seeds.append(int(p))
    # de-dup while preserving order
    out = []
    seen = set()
    for x in seeds:
        if x not in seen:
            out.append(x)
            seen.add(x)
    return out


def _resolve_seeds(cfg: dict, args) -> list[int]:
    # CLI > config 'seeds' > config 'seed'
    if args.seeds:
        seeds = _parse_seeds_arg(args.seeds)
        if not seeds:
            raise ValueError("--seeds provided but parsed empty.")
        return seeds

    if args.n_seeds is not None:
        start = int(args.seed_start)
        n = int(args.n_seeds)
        if n <= 0:
            raise ValueError("--n_seeds must be > 0.")
        return list(range(start, start + n))

    if isinstance(cfg.get("seeds", None), (list, tuple)) and len(cfg["seeds"]) > 0:
        return [int(x) for x in cfg["seeds"]]

    return [int(cfg.get("seed", 42))]


def _agg_seed_interval(series: pd.Series, qlo: float = 0.025, qhi: float = 0.975):
    vals = pd.to_numeric(series, errors="coerce").dropna().to_numpy(dtype=float)
    if len(vals) == 0:
        return (np.nan, np.nan, np.nan, 0)
    mean = float(np.mean(vals))
    lo = float(np.quantile(vals, qlo)) if len(vals) >= 2 else np.nan
    hi = float(np.quantile(vals, qhi)) if len(vals) >= 2 else np.nan
    return (mean, lo, hi, int(len(vals)))


def _report(res) -> None:
    print(f"duration: {res.duration:g}")
    print(f"totalLateCount: {res.total_late_count}")
    print(f"totalTaskFinished: {res.total_task_finished}")
    print(f"LowSpeed: {res.low_speed:g}")
    print(f"totalPC: {res.total_energy:g}")
    print(f"Late task ratio: {res.late_ratio:g}")
    if not res.feasible:
        print(f"[WARN] Utilization {res.utilization:.4f} exceeds the maximum speed; results are best-effort.")


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", type=str, required=True, help="Path to YAML config (e.g., configs/run_default.yaml)")

    ap.add_argument("--seeds", type=str, default=None,
                    help="Seeds as CSV or ranges, e.g., '42,43,44' or '1-30'. Overrides config.")
    ap.add_argument("--n_seeds", type=int, default=None,
                    help="Number of seeds to run (uses --seed_start). Overrides config.")
    ap.add_argument("--seed_start", type=int, default=1, help="Start seed for --n_seeds. Default=1.")
    ap.add_argument("--no_plots", action="store_true",
                    help="Disable plot/artifact generation (metrics only).")
    ap.add_argument("--verbose", action="store_true", help="Log every scheduling event (DEBUG).")

    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg_path = Path(args.config)
    cfg = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}

    run_name = str(cfg.get("run_name", cfg_path.stem))
    outdir = ROOT / "results" / run_name
    outdir.mkdir(parents=True, exist_ok=True)

    seeds = _resolve_seeds(cfg, args)
    do_plots = (not args.no_plots)

    print(f"[INFO] Run: {run_name} | seeds={seeds}")

    per_seed_metrics: list[pd.DataFrame] = []
    for seed in seeds:
        sim_cfg = sim_config_from_dict(cfg, seed=seed)
        print(f"[INFO] Seed {seed}: duration={sim_cfg.duration:g}")

        res = run_simulation(sim_cfg)
        _report(res)

        dfm = summarize_run(run_name, res)
        dfm["seed"] = int(seed)
        per_seed_metrics.append(dfm)

        if do_plots and seed == seeds[0]:
            trace_frame(res).to_csv(outdir / "speed_trace.csv", index=False)
            plot_speed_trace(
                res,
                str(outdir / f"fig_{run_name}_speed_trace.pdf"),
                title=f"{run_name}: processor speed (seed {seed})",
                t_max=min(res.duration, 2000.0),
            )

    metrics_by_seed = pd.concat(per_seed_metrics, ignore_index=True)
    metrics_by_seed.to_csv(outdir / "metrics_by_seed.csv", index=False)

    # ===== aggregate across seeds =====
    row = {"run_name": run_name, "seed_count": int(metrics_by_seed["seed"].nunique())}
    for col in ["total_late_count", "total_task_finished", "late_ratio", "total_energy", "low_speed", "mean_speed"]:
        mean, lo, hi, n = _agg_seed_interval(metrics_by_seed[col])
        row[f"{col}_mean"] = mean
        row[f"{col}_lo"] = lo
        row[f"{col}_hi"] = hi
        row[f"{col}_n"] = n
    row["infeasible_seeds"] = int((~metrics_by_seed["feasible"].astype(bool)).sum())
    pd.DataFrame([row]).to_csv(outdir / "metrics_agg.csv", index=False)

    if do_plots and len(seeds) > 1:
        plot_late_ratio_by_seed(
            metrics_by_seed["seed"].tolist(),
            metrics_by_seed["late_ratio"].tolist(),
            str(outdir / f"fig_{run_name}_late_ratio_by_seed.pdf"),
            title=f"{run_name}: late ratio per seed",
        )

    print(f"[OK] Wrote metrics:\n - {outdir/'metrics_by_seed.csv'}\n - {outdir/'metrics_agg.csv'}")
    if do_plots:
        print(f"[OK] Plots/artifacts written for seed={seeds[0]} into {outdir}.")


if __name__ == "__main__":
    main()
