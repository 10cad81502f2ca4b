"""
Exact Two-Level Lindblad Reference
==================================

The spin engine evolves a PURE state and mimics dephasing with random phase
kicks. That is cheap and good enough for a live display, but it is not an
open-system evolution. This module integrates the exact Lindblad master
equation for the same qubit, so the engine's populations and the environment
model's T1/T2 can be validated against a density-matrix calculation.

THE MODEL
---------

In the frame rotating at the drive frequency:

    dρ/dt = −i[H, ρ] + Σⱼ (Lⱼ ρ Lⱼ† − ½{Lⱼ†Lⱼ, ρ})

    H = (Ω_R/2)·σx − (δ/2)·σz        Ω_R = 2π·f_R,  δ = detuning (rad/s)

Collapse operators, with p_eq the thermal excited population:

| Operator        | Rate                          | Process               |
|-----------------|-------------------------------|-----------------------|
| √γ↓ · σ₋        | γ↓ = (1 − p_eq) / T1          | relaxation |1⟩→|0⟩   |
| √γ↑ · σ₊        | γ↑ = p_eq / T1                | thermal excitation    |
| √(γφ/2) · σz    | γφ = 1/T2 − 1/(2·T1)          | pure dephasing        |

With these rates the populations relax as exp(−t/T1) toward p_eq and the
coherence |ρ01| decays as exp(−t/T2), matching the environment model's
definitions. Here σ₋ = |0⟩⟨1| lowers the qubit (|0⟩ is the ground state).

Usage
-----
    >>> env = compute_environment(20.0, 1.0)
    >>> traj = evolve_density_matrix(QubitState.excited(), env, duration=6.0)
    >>> traj.p1[-1]   # ≈ exp(−1) ≈ 0.37
"""

import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

try:
    from qutip import Qobj, ket2dm, mesolve
except ImportError:
    raise ImportError(
        "QuTiP is required for the master-equation reference. "
        "Install with: pip install qutip"
    )

from .constants import TWO_PI
from .environment import EnvironmentSnapshot
from .gates import PAULI
from .spin_engine import QubitState, channel_enabled, relaxed_population

SOLVER_OPTIONS = {"atol": 1e-10, "rtol": 1e-8, "nsteps": 50000}

# |0⟩⟨1| lowers the spin, |1⟩⟨0| raises it.
SIGMA_MINUS = Qobj(np.array([[0, 1], [0, 0]], dtype=complex))
SIGMA_PLUS = Qobj(np.array([[0, 0], [1, 0]], dtype=complex))
SIGMA_X = Qobj(PAULI["x"])
SIGMA_Z = Qobj(PAULI["z"])


# =============================================================================
# RATES AND OPERATORS
# =============================================================================

@dataclass(frozen=True)
class LindbladRates:
    """
    Rates (1/s) of the three collapse channels.

    Attributes
    ----------
    gamma_down : float
        Relaxation |1⟩ → |0⟩
    gamma_up : float
        Thermal excitation |0⟩ → |1⟩
    gamma_phi : float
        Pure dephasing rate of the coherence ρ01
    """
    gamma_down: float = 0.0
    gamma_up: float = 0.0
    gamma_phi: float = 0.0

    @property
    def population_rate(self) -> float:
        """1/T1 = γ↓ + γ↑."""
        return self.gamma_down + self.gamma_up

    @property
    def coherence_rate(self) -> float:
        """1/T2 = (γ↓ + γ↑)/2 + γφ."""
        return 0.5 * self.population_rate + self.gamma_phi


def lindblad_rates(env: EnvironmentSnapshot) -> LindbladRates:
    """
    Split the environment's T1, T2 and p_eq into collapse-channel rates.

    A disabled channel (T ≤ 0 or T ≥ 10⁶ s) contributes zero rate.
    """
    p_eq = env.thermal_excitation_prob
    if channel_enabled(env.t1):
        gamma_down = (1.0 - p_eq) / env.t1
        gamma_up = p_eq / env.t1
    else:
        gamma_down = gamma_up = 0.0

    if channel_enabled(env.t2):
        # T2 ≤ 2·T1 keeps this non-negative; max() guards a disabled T1.
        gamma_phi = max(0.0, 1.0 / env.t2 - 0.5 * (gamma_down + gamma_up))
    else:
        gamma_phi = 0.0

    return LindbladRates(gamma_down=gamma_down, gamma_up=gamma_up, gamma_phi=gamma_phi)


def lindblad_operators(env: EnvironmentSnapshot) -> List[Qobj]:
    """Collapse operators for the environment snapshot (zero-rate channels omitted)."""
    rates = lindblad_rates(env)
    c_ops = []
    if rates.gamma_down > 0:
        c_ops.append(math.sqrt(rates.gamma_down) * SIGMA_MINUS)
    if rates.gamma_up > 0:
        c_ops.append(math.sqrt(rates.gamma_up) * SIGMA_PLUS)
    if rates.gamma_phi > 0:
        c_ops.append(math.sqrt(rates.gamma_phi / 2) * SIGMA_Z)
    return c_ops


def drive_hamiltonian(rabi_frequency: float = 0.0, detuning: float = 0.0) -> Qobj:
    """
    Rotating-frame Hamiltonian H = (Ω_R/2)·σx − (δ/2)·σz (rad/s).

    Parameters
    ----------
    rabi_frequency : float
        Drive Rabi frequency f_R (Hz); Ω_R = 2π·f_R
    detuning : float
        Precession rate left in the rotating frame δ (rad/s)
    """
    omega_r = TWO_PI * float(rabi_frequency)
    return 0.5 * omega_r * SIGMA_X - 0.5 * float(detuning) * SIGMA_Z


# =============================================================================
# ANALYTIC REFERENCE
# =============================================================================

def expected_excited_population(p1: float, env: EnvironmentSnapshot,
                                elapsed: float) -> float:
    """Undriven excited population after `elapsed` seconds (closed form)."""
    if not channel_enabled(env.t1):
        return p1
    return relaxed_population(p1, env.thermal_excitation_prob, elapsed, env.t1)


def expected_coherence(coherence: float, env: EnvironmentSnapshot, elapsed: float) -> float:
    """Undriven |ρ01| after `elapsed` seconds: |ρ01(0)|·exp(−t/T2)."""
    rate = lindblad_rates(env).coherence_rate
    return coherence * float(np.exp(-rate * elapsed))


# =============================================================================
# NUMERICAL INTEGRATION
# =============================================================================

@dataclass
class DensityMatrixTrajectory:
    """
    Result of a master-equation integration.

    Attributes
    ----------
    times : np.ndarray
        Sample times (s)
    p1 : np.ndarray
        Excited population ρ11(t)
    coherence : np.ndarray
        |ρ01(t)|
    purity : np.ndarray
        Tr(ρ²)(t); 1 for a pure state, ½ for the maximally mixed state
    final_rho : np.ndarray
        Density matrix at the last time, 2×2 complex
    """
    times: np.ndarray
    p1: np.ndarray
    coherence: np.ndarray
    purity: np.ndarray
    final_rho: np.ndarray

    @property
    def p0(self) -> np.ndarray:
        return 1.0 - self.p1


def evolve_density_matrix(state: QubitState, env: EnvironmentSnapshot, duration: float,
                          rabi_frequency: float = 0.0, detuning: float = 0.0,
                          n_steps: int = 101,
                          options: Optional[dict] = None) -> DensityMatrixTrajectory:
    """
    Integrate the Lindblad equation from a pure initial state.

    Parameters
    ----------
    state : QubitState
        Initial pure state
    env : EnvironmentSnapshot
        Source of T1, T2 and thermal population
    duration : float
        Physical integration time (s)
    rabi_frequency : float
        Drive Rabi frequency (Hz), 0 for free decay
    detuning : float
        Rotating-frame detuning (rad/s)
    n_steps : int
        Number of sample times including t = 0
    options : dict, optional
        Solver options {'atol', 'rtol', 'nsteps'}

    Returns
    -------
    DensityMatrixTrajectory
    """
    if duration < 0:
        raise ValueError(f"duration must be non-negative, got {duration}")
    if n_steps < 2:
        raise ValueError(f"n_steps must be >= 2, got {n_steps}")

    tlist = np.linspace(0.0, duration, n_steps)
    psi0 = Qobj(state.as_array().reshape(2, 1))
    rho0 = ket2dm(psi0)
    H = drive_hamiltonian(rabi_frequency, detuning)

    result = mesolve(H, rho0, tlist, c_ops=lindblad_operators(env),
                     options=options or dict(SOLVER_OPTIONS))

    rhos = [rho.full() for rho in result.states]
    p1 = np.array([rho[1, 1].real for rho in rhos])
    coherence = np.array([abs(rho[0, 1]) for rho in rhos])
    purity = np.array([np.trace(rho @ rho).real for rho in rhos])

    return DensityMatrixTrajectory(
        times=tlist, p1=p1, coherence=coherence, purity=purity, final_rho=rhos[-1],
    )
