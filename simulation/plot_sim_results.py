# plot_sim_results.py
"""
plot_sim_results.py
====================

Analysis & Plotting utilities for the follow-target simulation.

This module provides high-level visualization of simulation logs produced by
FollowTargetSimulator. The primary function `plot_sim_results()` accepts a
completed simulation instance and generates a two-axis Matplotlib plot showing:

    • Distance to target vs time
    • Commanded speed vs time (right axis)

The figure is saved to a PNG file and optionally displayed interactively.

Typical usage::

    from simulation.plot_sim_results import plot_sim_results

    sim.run(20.0)
    plot_sim_results(sim, save_path="plots/follow.png", show=True)

This module contains no fuzzy logic, configuration, or simulation code.

Performance metrics:
    - settling time (2% band of the initial gap)
    - time to reach a given distance
    - peak speed
"""
from __future__ import annotations

import os
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np

from simulation.follow_target import FollowTargetSimulator


# ============================================================
# PERFORMANCE METRICS
# ============================================================

def compute_settling_time(t: np.ndarray, distance: np.ndarray, band: float = 0.02) -> float:
    """Time after which the distance stays within band * initial gap of its final value."""
    final = distance[-1]
    tolerance = abs(distance[0] - final) * band
    for i in range(len(distance)):
        window = distance[i:]
        if np.all(np.abs(window - final) <= tolerance):
            return float(t[i])
    return float(t[-1])


def compute_arrival_time(t: np.ndarray, distance: np.ndarray, threshold: float = 1.0) -> float:
    hits = np.where(distance <= threshold)[0]
    if len(hits) == 0:
        return np.nan
    return float(t[hits[0]])


def compute_peak_speed(speed: np.ndarray) -> float:
    return float(np.max(speed)) if len(speed) else 0.0


def compute_metrics(sim: FollowTargetSimulator) -> Dict[str, float]:
    if not sim.log_t:
        return {
            "final_distance": np.nan,
            "settling_time": np.nan,
            "arrival_time": np.nan,
            "peak_speed": np.nan,
        }
    t = np.array(sim.log_t)
    distance = np.array(sim.log_distance)
    speed = np.array(sim.log_speed)
    return {
        "final_distance": float(distance[-1]),
        "settling_time": compute_settling_time(t, distance),
        "arrival_time": compute_arrival_time(t, distance),
        "peak_speed": compute_peak_speed(speed),
    }


# ============================================================
# MAIN PLOTTING FUNCTION
# ============================================================

def plot_sim_results(
    sim: FollowTargetSimulator,
    title: str = "Follow Target Simulation Results",
    save_path: Optional[str] = None,
    show: bool = False,
):
    if not sim.log_t:
        print("No samples logged; nothing to plot.")
        return compute_metrics(sim)

    t = np.array(sim.log_t)
    distance = np.array(sim.log_distance)
    speed = np.array(sim.log_speed)

    fig, ax = plt.subplots(figsize=(11, 6))

    ax.plot(t, distance, label="distance")
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Distance")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)

    ax_speed = ax.twinx()
    ax_speed.plot(t, speed, color='gray', alpha=0.7, label="speed")
    ax_speed.set_ylabel("Speed", color='gray')
    ax_speed.tick_params(axis='y', labelcolor='gray')

    lines = ax.get_lines() + ax_speed.get_lines()
    labels = [ln.get_label() for ln in lines]
    ax.legend(lines, labels, loc="upper right")

    fig.tight_layout()

    if save_path:
        folder = os.path.dirname(save_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        fig.savefig(save_path, dpi=120)
    if show:
        plt.show()
    else:
        plt.close(fig)

    metrics = compute_metrics(sim)
    print("\n=== PERFORMANCE METRICS ===")
    print(f"Final distance: {metrics['final_distance']:.3f}")
    print(f"Settling time:  {metrics['settling_time']:.3f} s")
    print(f"Arrival time:   {metrics['arrival_time']:.3f} s")
    print(f"Peak speed:     {metrics['peak_speed']:.3f}")
    print("====================================\n")
    return metrics
