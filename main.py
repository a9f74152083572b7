"""
Main entry point for the live follow-target host.

This script loads a fuzzy logic system and its simulation settings from
config/follow_target.toml, then runs the follow-target simulator in real time
at one tick per frame. Every tick feeds the live distance into the system,
evaluates it and moves the follower, the same way a game-engine host would
drive the evaluator from its frame update.
"""

import time
import logging
import os
import signal
import threading

from utils.logger import setup_logging
from simulation.central_config import load_simulation_config
from simulation.follow_target import FollowTargetSimulator

DEFAULT_CONFIG = os.path.join(os.path.dirname(__file__), "config", "follow_target.toml")

# -----------------------------------------------------------------------------
# Cross-platform shutdown handling:
# - SIGINT works on Windows and Linux (Ctrl-C).
# - SIGTERM is installed only on non-Windows.
# - SIGBREAK is tried on Windows consoles but safely ignored elsewhere.
# -----------------------------------------------------------------------------
shutdown = threading.Event()


def _on_signal(_sig, _frm):
    shutdown.set()


def install_signal_handlers():
    signal.signal(signal.SIGINT, _on_signal)  # Ctrl-C everywhere
    try:
        signal.signal(signal.SIGBREAK, _on_signal)  # Windows console Break
    except (AttributeError, OSError):
        pass
    if os.name != "nt":
        signal.signal(signal.SIGTERM, _on_signal)


def main_control_loop(config_path=DEFAULT_CONFIG, duration=None, log_dir="logs"):
    """
    Main loop: measure distance -> evaluate the system -> move the follower at a fixed rate.

    Args:
        config_path (str): TOML file with the system and [simulation] tables.
        duration (float): Seconds to run; None runs until a shutdown signal.
        log_dir (str): Directory for the per-component log files.

    Returns:
        FollowTargetSimulator: The simulator, with its logs filled in.
    """
    setup_logging(log_dir=log_dir)
    main_log = logging.getLogger("main")
    main_log.info("Application starting...")

    system, sim_cfg, _, target_path, source = load_simulation_config(config_path)
    main_log.info("Configuration file '%s' loaded.", config_path)

    loop_period = sim_cfg.dt
    sim = FollowTargetSimulator(system, target_path, sim_cfg)
    sim.reset(source)

    main_log.info("All components initialized successfully.")
    main_log.info("Starting host loop at %.1f Hz (%.1f ms period)...", 1.0 / loop_period, loop_period * 1000.0)

    start_time = time.perf_counter()

    try:
        # exit cleanly when 'shutdown' is set by a signal
        while not shutdown.is_set():
            loop_start_time = time.perf_counter()
            if duration is not None and loop_start_time - start_time >= duration:
                break

            sim.step()

            # Maintain the loop period (sleep only the remainder of the tick)
            processing_time = time.perf_counter() - loop_start_time
            sleep_time = loop_period - processing_time
            if sleep_time > 0:
                # Sleep in small chunks so we respond quickly to shutdown
                end = time.perf_counter() + sleep_time
                while not shutdown.is_set() and time.perf_counter() < end:
                    time.sleep(0.002)

    except KeyboardInterrupt:
        main_log.info("Keyboard interrupt received. Shutting down.")
    except Exception as e:
        main_log.critical(
            "An unhandled exception occurred in the host loop: %s", e, exc_info=True
        )
        raise
    finally:
        if sim.log_distance:
            main_log.info("Final distance %.3f after %d ticks.", sim.log_distance[-1], len(sim.log_distance))
        main_log.info("Application finished.")

    return sim


if __name__ == "__main__":
    install_signal_handlers()
    main_control_loop()
