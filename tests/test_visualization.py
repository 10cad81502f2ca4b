"""
Test Suite: Plotting Smoke Tests
================================
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from spin_qubit_simulator import SpinEngine, SpinSimulation, sweep_environment
from spin_qubit_simulator.visualization import (
    plot_bloch_trajectory,
    plot_coherence_times,
    plot_population_trace,
    plot_thermal_population,
)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


@pytest.fixture
def sweep():
    return sweep_environment(np.logspace(0, np.log10(4000), 12), [0.5, 1.0, 2.0])


@pytest.fixture
def trace():
    sim = SpinSimulation(engine=SpinEngine(rng=0))
    sim.request_gate("H")
    sim.request_measurement()
    return sim.run(n_ticks=20, dt=1 / 60)


def test_coherence_times(sweep):
    ax = plot_coherence_times(sweep)
    assert isinstance(ax, plt.Axes)
    assert len(ax.get_lines()) == 9


def test_coherence_times_without_t2_star(sweep):
    ax = plot_coherence_times(sweep, show_t2_star=False)
    assert len(ax.get_lines()) == 6


def test_thermal_population_on_given_axes(sweep):
    fig, ax = plt.subplots()
    assert plot_thermal_population(sweep, ax=ax) is ax


def test_population_trace(trace):
    ax = plot_population_trace(trace)
    assert "results" in ax.get_title()
    assert len(ax.get_lines()) == 2


def test_bloch_trajectory(trace):
    ax_theta, ax_phi = plot_bloch_trajectory(trace)
    assert isinstance(ax_theta, plt.Axes) and isinstance(ax_phi, plt.Axes)
