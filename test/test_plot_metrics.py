# test/test_plot_metrics.py

import numpy as np
import pytest

from simulation.plot_sim_results import (
    compute_arrival_time, compute_metrics, compute_peak_speed, compute_settling_time, plot_sim_results
)
from simulation.run_simulation import main


def test_metric_functions():
    t = np.linspace(0, 5, 501)
    distance = 90.0 * np.exp(-2.0 * t)

    settling = compute_settling_time(t, distance)
    assert 0.0 < settling < 5.0
    assert compute_arrival_time(t, distance, threshold=1.0) == pytest.approx(np.log(90.0) / 2.0, abs=0.01)
    assert np.isnan(compute_arrival_time(t, distance + 10.0, threshold=1.0))
    assert compute_peak_speed(np.array([0.5, 3.0, 1.0])) == 3.0
    assert compute_peak_speed(np.array([])) == 0.0


def test_plot_sim_results_saves_png(tmp_path, make_sim):
    sim = make_sim()
    sim.run(2.0)
    out = tmp_path / "plots" / "follow.png"

    metrics = plot_sim_results(sim, save_path=str(out))
    assert out.exists()
    assert metrics["final_distance"] == compute_metrics(sim)["final_distance"]
    assert metrics["peak_speed"] == pytest.approx(10.0, abs=1e-6)


def test_run_simulation_cli(tmp_path, config_path, isolated_logging):
    out = tmp_path / "run.png"
    metrics = main(
        ["--config", config_path, "--duration", "1.0", "--save", str(out), "--log-dir", str(tmp_path / "logs")]
    )
    assert out.exists()
    assert metrics["final_distance"] < 90.0
    assert (tmp_path / "logs" / "simulation.log").exists()


def test_empty_run_gives_nan_metrics_and_no_plot(tmp_path, make_sim):
    sim = make_sim()
    sim.run(0.0)
    out = tmp_path / "empty.png"

    assert all(np.isnan(value) for value in compute_metrics(sim).values())
    metrics = plot_sim_results(sim, save_path=str(out))
    assert not out.exists()
    assert np.isnan(metrics["final_distance"])


def test_run_simulation_cli_with_zero_duration(tmp_path, config_path, isolated_logging):
    out = tmp_path / "run.png"
    metrics = main(
        ["--config", config_path, "--duration", "0", "--save", str(out), "--log-dir", str(tmp_path / "logs")]
    )
    assert not out.exists()
    assert np.isnan(metrics["settling_time"])
