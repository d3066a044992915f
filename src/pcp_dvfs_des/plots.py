from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt

from .metrics import SimResult


# ---------------------------- Figures ----------------------------

def plot_speed_trace(
    result: SimResult,
    outpath: str,
    title: str = "",
    *,
    t_max: Optional[float] = None,
) -> None:
    """
    Step plot of the processor speed over simulated time.

    The low (static) speed is drawn as a dashed reference line; excursions
    above it are PCP blocking boosts.
    """
    arr = np.asarray(result.trace, dtype=float).reshape(-1, 2)
    t, s = arr[:, 0], arr[:, 1]
    if t_max is not None:
        keep = t <= float(t_max)
        t, s = t[keep], s[keep]

    plt.figure(figsize=(6.2, 3.9))
    if t.size:
        plt.step(t, s, where="post", label="speed")
    plt.axhline(result.low_speed, linestyle="--", alpha=0.6, label="low speed")

    plt.xlabel("Simulated time")
    plt.ylabel("Normalized speed")
    if title:
        plt.title(title)

    plt.ylim(0.0, 1.05 * max(1.0, float(np.max(s)) if s.size else 1.0))
    plt.grid(True, alpha=0.3)
    plt.legend()
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_late_ratio_by_seed(
    seeds: Sequence[int],
    late_ratios: Sequence[float],
    outpath: str,
    title: str = "",
) -> None:
    """Late-task ratio per seed (one marker per run)."""
    x = np.asarray(list(seeds), dtype=int)
    y = np.asarray(list(late_ratios), dtype=float)

    plt.figure(figsize=(6.2, 3.9))
    plt.plot(x, y, marker="o", linestyle="")
    plt.xlabel("Seed")
    plt.ylabel("Late ratio")
    plt.ylim(0.0, 1.02)
    if title:
        plt.title(title)

    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
