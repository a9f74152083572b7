# simulation/central_config.py
"""
==================
Unified configuration loader for the follow-target simulation.

One TOML file describes both the fuzzy logic system (see fls/config.py) and
the simulation around it:

    [simulation]
    dt = 0.02
    DURATION_S = 30.0
    steps_per_log = 1
    FRAME_BUDGET_MS = 16.7
    source = [0.0, 0.0, 0.0]
    target = [90.0, 0.0, 0.0]
    target_orbit_radius = 0.0
    target_orbit_speed = 0.0

Returned Values
---------------
load_simulation_config() returns a 5-tuple:

    system      : FuzzyLogicSystem
    sim_cfg     : FollowConfig
    duration    : float
    target_path : TargetPath
    source      : np.ndarray

Typical Usage
-------------
    from simulation.central_config import load_simulation_config
    from simulation.follow_target import FollowTargetSimulator

    system, sim_cfg, duration, path, source = load_simulation_config()

    sim = FollowTargetSimulator(system, path, sim_cfg)
    sim.reset(source)
    sim.run(duration)
"""
from typing import Optional

import numpy as np

from fls.config import build_system, load_config
from fls.registry import SystemRegistry
from simulation.follow_target import FollowConfig, TargetPath


def load_simulation_config(
    path: str = "config/follow_target.toml",
    registry: Optional[SystemRegistry] = None,
):
    cfg = load_config(path)
    system = build_system(cfg, registry=registry)

    sim = cfg.get("simulation", {})
    sim_cfg = FollowConfig(
        dt=float(sim.get("dt", 0.02)),
        steps_per_log=int(sim.get("steps_per_log", 1)),
        frame_budget_ms=float(sim.get("FRAME_BUDGET_MS", 16.7)),
    )
    duration = float(sim.get("DURATION_S", 10.0))

    target_path = TargetPath(
        start=np.array(sim.get("target", [50.0, 0.0, 0.0]), dtype=float),
        orbit_radius=float(sim.get("target_orbit_radius", 0.0)),
        orbit_speed=float(sim.get("target_orbit_speed", 0.0)),
    )
    source = np.array(sim.get("source", [0.0, 0.0, 0.0]), dtype=float)

    return system, sim_cfg, duration, target_path, source
