"""Runs the follow-target simulation: the source chases a target at a speed
chosen by the fuzzy logic system loaded from a TOML file.
"""
from __future__ import annotations

import argparse
import logging
import os

from simulation.central_config import load_simulation_config
from simulation.follow_target import FollowTargetSimulator
from simulation.plot_sim_results import plot_sim_results
from utils.logger import setup_logging

DEFAULT_CONFIG = os.path.normpath(
    os.path.join(os.path.dirname(__file__), "..", "config", "follow_target.toml")
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Follow-target fuzzy logic simulation")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="TOML file with system and simulation tables")
    parser.add_argument("--duration", type=float, default=None, help="override DURATION_S")
    parser.add_argument("--save", default=None, help="write the result plot to this PNG path")
    parser.add_argument("--show", action="store_true", help="display the plot interactively")
    parser.add_argument("--log-dir", default="logs")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(log_dir=args.log_dir)
    log = logging.getLogger("main")

    system, sim_cfg, duration, target_path, source = load_simulation_config(args.config)
    if args.duration is not None:
        duration = args.duration
    log.info("Loaded system '%s' from %s", system.name, args.config)

    sim = FollowTargetSimulator(system, target_path, sim_cfg)
    sim.reset(source)
    sim.run(duration)

    metrics = plot_sim_results(sim, save_path=args.save, show=args.show)
    log.info("Final distance %.3f", metrics["final_distance"])
    return metrics


if __name__ == "__main__":
    main()
