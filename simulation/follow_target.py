# follow_target.py
"""
follow_target.py
================

Follow-target host simulation for a fuzzy logic system.

Each tick the simulator:

    • measures the distance between the follower (source) and the target
    • feeds it into the system's input variable (default "distance")
    • evaluates the system:  speed = output() * output_variable.max_value
    • moves the source towards the target by speed * dt, never overshooting

The target may stand still or circle around its start position.

Logging:
    The simulator records time, distance, speed and source position at a
    decimated rate (steps_per_log).

Typical usage::

    system, cfg, duration, path, source = load_simulation_config("config/follow_target.toml")

    sim = FollowTargetSimulator(system, path, cfg)
    sim.reset(source)
    sim.run(duration)

    # logs available in sim.log_distance, sim.log_speed, etc.

This simulator contains no configuration parsing or plotting code.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from fls.system import FuzzyLogicSystem
from utils.logger import set_tick_index
from utils.profiler import CodeProfiler, DEFAULT_BUDGET_MS

simulation_log = logging.getLogger("simulation")


# ------------------------------------------------------------
# Dataclasses
# ------------------------------------------------------------

@dataclass
class FollowConfig:
    dt: float = 0.02
    steps_per_log: int = 1
    frame_budget_ms: float = DEFAULT_BUDGET_MS


@dataclass
class TargetPath:
    start: np.ndarray
    orbit_radius: float = 0.0
    orbit_speed: float = 0.0  # rad/s

    def position(self, t: float) -> np.ndarray:
        if self.orbit_radius <= 0.0:
            return np.array(self.start, dtype=float)
        angle = self.orbit_speed * t
        offset = np.array([math.cos(angle) - 1.0, math.sin(angle), 0.0]) * self.orbit_radius
        return np.array(self.start, dtype=float) + offset


def move_towards(current: np.ndarray, target: np.ndarray, max_delta: float) -> np.ndarray:
    """Moves current towards target by at most max_delta, stopping on the target."""
    delta = target - current
    dist = float(np.linalg.norm(delta))
    if dist <= max_delta or dist == 0.0:
        return np.array(target, dtype=float)
    return current + delta / dist * max_delta


# ------------------------------------------------------------
# Simulator
# ------------------------------------------------------------

@dataclass
class FollowTargetSimulator:
    system: FuzzyLogicSystem
    target_path: TargetPath
    cfg: FollowConfig = field(default_factory=FollowConfig)
    input_name: str = "distance"

    source: np.ndarray = field(default_factory=lambda: np.zeros(3))
    t: float = 0.0

    log_t: List[float] = field(default_factory=list)
    log_distance: List[float] = field(default_factory=list)
    log_speed: List[float] = field(default_factory=list)
    log_source: List[np.ndarray] = field(default_factory=list)
    _step_i: int = 0

    # ------------------------------------------------------------
    def reset(self, source: Optional[Sequence[float]] = None, t: float = 0.0):
        self.source = np.zeros(3) if source is None else np.array(source, dtype=float)
        self.t = t
        self._step_i = 0
        self.log_t.clear()
        self.log_distance.clear()
        self.log_speed.clear()
        self.log_source.clear()

    # ------------------------------------------------------------
    def step(self) -> float:
        """Advances one tick and returns the commanded speed."""
        set_tick_index(self._step_i)
        target = self.target_path.position(self.t)
        distance = float(np.linalg.norm(target - self.source))

        with CodeProfiler("FLS tick", self.cfg.frame_budget_ms):
            self.system.set_value(self.input_name, distance)
            output = self.system.output()
        speed = max(0.0, output * self.system.output_variable.max_value)

        self.source = move_towards(self.source, target, speed * self.cfg.dt)

        if self._step_i % self.cfg.steps_per_log == 0:
            self.log_t.append(self.t)
            self.log_distance.append(distance)
            self.log_speed.append(speed)
            self.log_source.append(self.source.copy())
        simulation_log.debug("t=%.3f distance=%.3f speed=%.3f", self.t, distance, speed)

        self.t += self.cfg.dt
        self._step_i += 1
        return speed

    # ------------------------------------------------------------
    def run(self, duration: float):
        steps = int(round(duration / self.cfg.dt))
        simulation_log.info("Running %d steps (%.2f s) of follow-target simulation.", steps, duration)
        for _ in range(steps):
            self.step()
        if self.log_distance:
            simulation_log.info("Final distance %.3f after %.2f s.", self.log_distance[-1], self.t)
