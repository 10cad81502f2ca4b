#!/usr/bin/env python3
"""
Environment Sweeps for a Silicon Spin Qubit
===========================================

Sweeps of the cryostat knobs for teaching how temperature and field limit a
spin qubit, plus two short simulated experiments.

Generates figures showing:
1. T1, T2, T2* versus temperature at several fields
2. Thermal excited population versus temperature
3. Rabi oscillation under continuous drive (cold vs. hot)
4. Free precession of a superposition (Bloch angles)
5. T1 decay: spin engine vs. Lindblad master equation
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path

# Import simulation components
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spin_qubit_simulator import (
    EnvironmentModel,
    QubitState,
    SpinEngine,
    SpinSimulation,
    compute_environment,
    run_circuit,
    sweep_environment,
)
from spin_qubit_simulator.master_equation import evolve_density_matrix
from spin_qubit_simulator.visualization import (
    plot_bloch_trajectory,
    plot_coherence_times,
    plot_population_trace,
    plot_thermal_population,
)

TEMPERATURES_MK = np.logspace(0, np.log10(4000), 80)
FIELDS_T = [0.5, 1.0, 2.0]


def rabi_experiment(temperature_mK: float, seed: int = 0):
    """Drive continuously for two Rabi periods at zero static field."""
    env = EnvironmentModel(temperature_mK=temperature_mK, b_field=0.0)
    sim = SpinSimulation(environment=env, engine=SpinEngine(rng=seed, b_field=0.0))
    dt = sim.engine.pi_pulse_time / sim.engine.parameters.time_scale / 20
    return sim.run(n_ticks=80, dt=dt, drive=True)


def precession_experiment(seed: int = 0):
    """Prepare |+⟩ and watch it precess at 1 T and 20 mK."""
    sim = SpinSimulation(engine=SpinEngine(rng=seed), verbose=True)
    sim.request_gate("H")
    return sim.run(n_ticks=120, dt=1 / 600)


def plot_t1_comparison(output_path: Path):
    """Engine's per-tick T1 update against the exact density-matrix result."""
    env = compute_environment(300.0, 1.0)
    duration = 3 * env.t1
    n_ticks = 30

    engine = SpinEngine(rng=0)
    engine.apply_gate("X")
    dt = duration / n_ticks / engine.parameters.time_scale
    times = [0.0]
    p1 = [engine.p1]
    for i in range(n_ticks):
        engine.apply_decoherence(dt, env)
        times.append((i + 1) * duration / n_ticks)
        p1.append(engine.p1)

    traj = evolve_density_matrix(QubitState.excited(), env, duration, n_steps=101)

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(traj.times * 1e3, traj.p1, 'k-', linewidth=2, label='Lindblad (QuTiP)')
    ax.plot(np.array(times) * 1e3, p1, 'o', color='tab:red', label='Spin engine ticks')
    ax.axhline(env.thermal_excitation_prob, color='gray', linestyle='--', label='Thermal p_eq')
    ax.set_xlabel("Time (ms)", fontsize=12)
    ax.set_ylabel("P(|1⟩)", fontsize=12)
    ax.set_title(f"T1 decay at 300 mK, 1 T (T1 = {env.t1_string})", fontsize=14)
    ax.legend()
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close()


def main():
    """Run all sweeps and experiments and generate figures"""
    output_dir = Path(__file__).parent.parent / "figures" / "environment_sweeps"
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("Environment Sweeps for a Silicon Spin Qubit")
    print("=" * 60)

    print(compute_environment(20.0, 1.0).summary_table())
    print(compute_environment(20.0, 1.0).rates.summary_table())

    # 1-2. Coherence times and thermal population
    print("\n1-2. Temperature × field sweep")
    sweep = sweep_environment(TEMPERATURES_MK, FIELDS_T)
    plot_coherence_times(sweep)
    plt.savefig(output_dir / "01_coherence_times.png", dpi=150, bbox_inches='tight')
    plt.close()
    plot_thermal_population(sweep)
    plt.savefig(output_dir / "02_thermal_population.png", dpi=150, bbox_inches='tight')
    plt.close()

    # 3. Rabi oscillations, cold vs hot
    print("\n3. Rabi oscillations")
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))
    for ax, T in zip(axes, (20.0, 4000.0)):
        plot_population_trace(rabi_experiment(T), ax=ax)
    plt.savefig(output_dir / "03_rabi_cold_vs_hot.png", dpi=150, bbox_inches='tight')
    plt.close()

    # 4. Free precession
    print("\n4. Free precession")
    plot_bloch_trajectory(precession_experiment())
    plt.savefig(output_dir / "04_precession.png", dpi=150, bbox_inches='tight')
    plt.close()

    # 5. Engine vs master equation
    print("\n5. T1 decay comparison")
    plot_t1_comparison(output_dir / "05_t1_engine_vs_lindblad.png")

    # Measurement statistics of a short circuit
    engine = SpinEngine(rng=2025)
    ones = sum(run_circuit(engine, "H M").measurements[0] for _ in range(1000))
    print(f"\nH then M, 1000 shots: {ones / 10:.1f}% ones")

    print("\n" + "=" * 60)
    print("All figures saved to:", output_dir)
    print("=" * 60)
    for f in sorted(output_dir.glob("*.png")):
        print(f"  - {f.name}")


if __name__ == "__main__":
    main()
