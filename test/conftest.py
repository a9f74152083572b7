# test/conftest.py
import logging
import os

import matplotlib

matplotlib.use("Agg")

import pytest

from fls.config import load_system
from fls.fuzzifier import FuzzyVariable
from fls.registry import SystemRegistry
from fls.system import FuzzyLogicSystem
from simulation.central_config import load_simulation_config
from simulation.follow_target import FollowTargetSimulator
from utils.logger import LOGGER_NAMES

CONFIG_PATH = os.path.normpath(
    os.path.join(os.path.dirname(__file__), "..", "config", "follow_target.toml")
)


@pytest.fixture
def config_path():
    return CONFIG_PATH


@pytest.fixture
def registry():
    reg = SystemRegistry()
    yield reg
    reg.unregister_all()


@pytest.fixture
def follow_system(registry):
    """The distance -> speed system from config/follow_target.toml, registered."""
    return load_system(CONFIG_PATH, registry=registry)


@pytest.fixture
def bare_system():
    """An initialized system with the default input and output variables."""
    system = FuzzyLogicSystem(name="bare")
    system.initialize()
    return system


@pytest.fixture
def three_set_input():
    """Input variable 0..100 with shoulders and one interior trapezoid."""
    variable = FuzzyVariable(name="x", max_value=100.0)
    variable.add_trapezoid(name="mid")
    variable.reshape([(0.0, 20.0), (40.0, 60.0), (80.0, 100.0)])
    return variable


@pytest.fixture
def output_variable():
    return FuzzyVariable(name="out", max_value=100.0, independent_feet=True)


@pytest.fixture
def isolated_logging():
    """Undo setup_logging() so file handlers do not leak into later tests."""
    yield
    for name in LOGGER_NAMES:
        log = logging.getLogger(name)
        for h in list(log.handlers):
            log.removeHandler(h)
            h.close()
        log.propagate = True
        log.setLevel(logging.NOTSET)


@pytest.fixture
def make_sim():
    """Factory for follow-target simulators built from the sample config."""
    def _builder(**cfg):
        system, sim_cfg, _, path, source = load_simulation_config(CONFIG_PATH)
        for key, value in cfg.items():
            setattr(sim_cfg, key, value)
        sim = FollowTargetSimulator(system, path, sim_cfg)
        sim.reset(source)
        return sim

    return _builder
