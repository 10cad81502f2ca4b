"""
Spin Qubit Visualization Tools
==============================

Plots for environment sweeps and simulation traces.

Key Functions
-------------
- plot_coherence_times(): T1, T2 and T2* versus temperature, one line per field
- plot_thermal_population(): thermal excited population versus temperature
- plot_population_trace(): P(|0⟩), P(|1⟩) versus time from a SimulationTrace
- plot_bloch_trajectory(): Bloch angles θ, φ versus time
"""

from __future__ import annotations

from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .environment import EnvironmentSweep
from .simulation import SimulationTrace


def _field_colors(n: int) -> np.ndarray:
    return plt.cm.viridis(np.linspace(0, 0.9, max(n, 1)))


def plot_coherence_times(
    sweep: EnvironmentSweep,
    ax: Optional[plt.Axes] = None,
    show_t2_star: bool = True,
    figsize: Tuple[float, float] = (10, 7),
) -> plt.Axes:
    """
    Plot T1 (solid), T2 (dashed) and T2* (dotted) against temperature.

    Parameters
    ----------
    sweep : EnvironmentSweep
        Output of `sweep_environment()`
    ax : plt.Axes, optional
        Axes to plot on. If None, creates new figure.
    show_t2_star : bool
        Whether to include the T2* curves
    figsize : tuple
        Figure size (width, height) in inches

    Returns
    -------
    plt.Axes
        The axes with the plot
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    colors = _field_colors(len(sweep.b_fields))
    for j, (B, color) in enumerate(zip(sweep.b_fields, colors)):
        ax.loglog(sweep.temperatures_mK, sweep.t1[:, j], '-', color=color,
                  linewidth=2, label=f"T1, B = {B:g} T")
        ax.loglog(sweep.temperatures_mK, sweep.t2[:, j], '--', color=color,
                  linewidth=1.5, label=f"T2, B = {B:g} T")
        if show_t2_star:
            ax.loglog(sweep.temperatures_mK, sweep.t2_star[:, j], ':', color=color,
                      linewidth=1.5, label=f"T2*, B = {B:g} T")

    ax.set_xlabel("Temperature (mK)", fontsize=12)
    ax.set_ylabel("Time (s)", fontsize=12)
    ax.set_title("Spin Coherence Times", fontsize=14)
    ax.legend(loc='lower left', fontsize=9, ncol=2)
    ax.grid(True, which='both', alpha=0.3)
    ax.set_axisbelow(True)

    plt.tight_layout()
    return ax


def plot_thermal_population(
    sweep: EnvironmentSweep,
    ax: Optional[plt.Axes] = None,
    figsize: Tuple[float, float] = (10, 6),
) -> plt.Axes:
    """Thermal excited-state population (%) against temperature, one line per field."""
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    colors = _field_colors(len(sweep.b_fields))
    for j, (B, color) in enumerate(zip(sweep.b_fields, colors)):
        ax.semilogx(sweep.temperatures_mK, sweep.thermal_excitation[:, j] * 100,
                    color=color, linewidth=2, label=f"B = {B:g} T")

    ax.axhline(50, color='gray', linestyle='--', alpha=0.5, label='Fully mixed')
    ax.set_xlabel("Temperature (mK)", fontsize=12)
    ax.set_ylabel("Thermal P(|1⟩) (%)", fontsize=12)
    ax.set_title("Thermal Excitation", fontsize=14)
    ax.set_ylim(-2, 52)
    ax.legend(loc='upper left', fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return ax


def plot_population_trace(
    trace: SimulationTrace,
    ax: Optional[plt.Axes] = None,
    mark_measurements: bool = True,
    figsize: Tuple[float, float] = (10, 5),
) -> plt.Axes:
    """
    Plot P(|0⟩) and P(|1⟩) after each tick of a simulation run.

    Parameters
    ----------
    trace : SimulationTrace
        Output of `SpinSimulation.run()`
    ax : plt.Axes, optional
        Axes to plot on. If None, creates new figure.
    mark_measurements : bool
        Annotate the measurement outcomes in the title

    Returns
    -------
    plt.Axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    ax.plot(trace.times, trace.p0, color='tab:blue', linewidth=2, label='P(|0⟩)')
    ax.plot(trace.times, trace.p1, color='tab:red', linewidth=2, label='P(|1⟩)')

    env = trace.final_environment
    title = (f"{env.temperature_mK:g} mK, {env.b_field_tesla:g} T  "
             f"(T1 = {env.t1_string}, T2 = {env.t2_string})")
    if mark_measurements and trace.measurements:
        title += f"  results: {''.join(str(m) for m in trace.measurements)}"

    ax.set_xlabel("Display time", fontsize=12)
    ax.set_ylabel("Population", fontsize=12)
    ax.set_title(title, fontsize=12)
    ax.set_ylim(-0.05, 1.05)
    ax.legend(loc='upper right', fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return ax


def plot_bloch_trajectory(
    trace: SimulationTrace,
    axes: Optional[Tuple[plt.Axes, plt.Axes]] = None,
    figsize: Tuple[float, float] = (10, 6),
) -> Tuple[plt.Axes, plt.Axes]:
    """
    Plot the polar angle θ and the azimuth φ after each tick.

    Returns
    -------
    tuple of plt.Axes
        (θ axes, φ axes)
    """
    if axes is None:
        fig, axes = plt.subplots(2, 1, figsize=figsize, sharex=True)
    ax_theta, ax_phi = axes

    ax_theta.plot(trace.times, trace.theta / np.pi, color='tab:purple', linewidth=2)
    ax_theta.set_ylabel("θ / π", fontsize=12)
    ax_theta.set_ylim(-0.05, 1.05)
    ax_theta.grid(True, alpha=0.3)

    ax_phi.plot(trace.times, trace.phi / np.pi, '.', color='tab:green', markersize=3)
    ax_phi.set_ylabel("φ / π", fontsize=12)
    ax_phi.set_xlabel("Display time", fontsize=12)
    ax_phi.set_ylim(-0.05, 2.05)
    ax_phi.grid(True, alpha=0.3)

    ax_theta.set_title("Bloch Sphere Trajectory", fontsize=14)
    plt.tight_layout()
    return ax_theta, ax_phi
