"""
Spin Engine: Single Spin Qubit State Evolution
===============================================

The engine owns the pure state of one electron spin qubit,

    |ψ⟩ = α|0⟩ + β|1⟩,    |α|² + |β|² = 1,

and advances it with four kinds of operation:

1. **Continuous evolution** `evolve(dt, drive)`
   - Resonant drive (rotating frame): rotation about x by the Rabi angle
         H_drive = (Ω_R/2)·σx,   Ω_R = 2π·γ·B1
   - Free precession about z at the Larmor frequency
         H_0 = −(ω_L/2)·σz,      ω_L = 2π·γ·Bz

2. **Decoherence** `apply_decoherence(dt, env)`
   - T1: the excited population relaxes exponentially to the thermal value
         p1(t) = p_eq + (p1(0) − p_eq)·exp(−t/T1)
     by rescaling |α| and |β| while keeping their phases
   - T2: a small random phase kick on β whose width grows with
     1 − exp(−t/T2). This is a stochastic approximation of ensemble
     dephasing, not an exact open-system evolution (see master_equation.py
     for the exact Lindblad reference)

3. **Discrete gates** `apply_gate(gate, θ)` from the gate library

4. **Projective measurement** `measure()` in the computational basis

TIME SCALE
----------

Every dt is multiplied by `EngineParameters.time_scale` (default 50 ns of
physical time per unit of dt). At 1 T the Larmor frequency is 28 GHz; with a
60 Hz display tick this turns a per-frame precession of ~10⁸ turns into a
few radians.

STATE SNAPSHOTS
---------------

`QubitState` is immutable. Every mutation builds a new state and replaces
the engine's reference in one assignment, so a reader polling `engine.state`
always gets α and β from the same mutation event.

Randomness comes from an injected `numpy.random.Generator`; pass a seed or a
generator to make measurement and dephasing reproducible.
"""

import math
import warnings
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Union

import numpy as np

from .complex_amplitude import ONE, ZERO, ComplexAmplitude
from .configurations import EngineParameters, get_default_engine_parameters
from .constants import (
    AMPLITUDE_EPSILON,
    CHANNEL_DISABLE_THRESHOLD,
    NORM_EPSILON,
    TWO_PI,
)
from .environment import EnvironmentSnapshot
from .gate_log import GateLog, GateLogEntry
from .gates import GATE_LIBRARY, GateId, resolve_angle, resolve_gate

DriveSignal = Union[bool, float]


class BlochAngles(NamedTuple):
    """Polar angle θ ∈ [0, π] from |0⟩ and azimuth φ ∈ [0, 2π)."""
    theta: float
    phi: float


def wrap_phase(phi: float) -> float:
    """Wrap an angle onto [0, 2π)."""
    phi = math.fmod(phi, TWO_PI)
    if phi < 0:
        phi += TWO_PI
    if phi >= TWO_PI:
        phi = 0.0
    return phi


# =============================================================================
# QUBIT STATE
# =============================================================================

@dataclass(frozen=True)
class QubitState:
    """
    Immutable pure state α|0⟩ + β|1⟩.

    Attributes
    ----------
    alpha : ComplexAmplitude
        Amplitude of |0⟩
    beta : ComplexAmplitude
        Amplitude of |1⟩
    """
    alpha: ComplexAmplitude = ONE
    beta: ComplexAmplitude = ZERO

    @classmethod
    def ground(cls) -> "QubitState":
        return cls(ONE, ZERO)

    @classmethod
    def excited(cls) -> "QubitState":
        return cls(ZERO, ONE)

    @classmethod
    def from_amplitudes(cls, alpha: complex, beta: complex) -> "QubitState":
        """Build a normalized state from two (unnormalized) complex amplitudes."""
        a = ComplexAmplitude.from_complex(alpha)
        b = ComplexAmplitude.from_complex(beta)
        norm = math.sqrt(a.norm2() + b.norm2())
        if not math.isfinite(norm) or norm <= NORM_EPSILON:
            raise ValueError(f"Cannot normalize amplitudes ({alpha}, {beta})")
        return cls(a.scale(1 / norm), b.scale(1 / norm))

    @property
    def p0(self) -> float:
        return self.alpha.norm2()

    @property
    def p1(self) -> float:
        return self.beta.norm2()

    @property
    def norm2(self) -> float:
        return self.p0 + self.p1

    @property
    def bloch_angles(self) -> BlochAngles:
        """
        θ = 2·acos(√(1 − p1)),  φ = arg(β) − arg(α) wrapped to [0, 2π).
        """
        p0 = min(1.0, max(0.0, 1.0 - self.p1))
        theta = 2 * math.acos(math.sqrt(p0))
        phi = wrap_phase(self.beta.phase - self.alpha.phase)
        return BlochAngles(theta, phi)

    @property
    def bloch_vector(self) -> np.ndarray:
        """Cartesian Bloch vector (⟨σx⟩, ⟨σy⟩, ⟨σz⟩)."""
        coherence = self.alpha.conjugate() * self.beta
        return np.array([2 * coherence.re, 2 * coherence.im, self.p0 - self.p1])

    @property
    def label(self) -> str:
        """
        Short ket label built from √p0 and √p1.

        The relative phase is not shown, so |+⟩ and |−⟩ read the same.
        """
        p0, p1 = self.p0, self.p1
        if p0 > 0.99:
            return "|ψ⟩ = |0⟩"
        if p1 > 0.99:
            return "|ψ⟩ = |1⟩"
        return f"|ψ⟩ = {math.sqrt(p0):.2f}|0⟩ + {math.sqrt(p1):.2f}|1⟩"

    def as_array(self) -> np.ndarray:
        """State vector [α, β] as a complex numpy array."""
        return np.array([complex(self.alpha), complex(self.beta)])

    def is_finite(self) -> bool:
        return self.alpha.is_finite() and self.beta.is_finite()


# =============================================================================
# DECOHERENCE HELPERS
# =============================================================================

def relaxed_population(p1: float, p_eq: float, elapsed: float, t1: float) -> float:
    """
    Excited population after relaxing for `elapsed` seconds.

        p1(t) = p_eq + (p1(0) − p_eq)·exp(−t/T1),  clamped to [0, 1]
    """
    decay = math.exp(-elapsed / t1)
    return min(1.0, max(0.0, p_eq + (p1 - p_eq) * decay))


def channel_enabled(time_constant: float) -> bool:
    """A T1/T2 channel decays only for 0 < T < 10⁶ s."""
    return math.isfinite(time_constant) and 0 < time_constant < CHANNEL_DISABLE_THRESHOLD


def _rescaled(amplitude: ComplexAmplitude, current: float, target: float) -> ComplexAmplitude:
    if current > AMPLITUDE_EPSILON:
        return amplitude.scale(math.sqrt(target / current))
    # No phase to preserve; seed a real amplitude.
    return ComplexAmplitude(math.sqrt(target), 0.0)


# =============================================================================
# SPIN ENGINE
# =============================================================================

class SpinEngine:
    """
    Owner of one qubit state and its gate log.

    Parameters
    ----------
    parameters : EngineParameters, optional
        Time scale, drive amplitude, kick scale and log retention
    rng : numpy.random.Generator or int, optional
        Random source for measurement and dephasing kicks, or a seed for one
    b_field : float
        Static field Bz (T) setting the Larmor frequency
    gate_log : GateLog, optional
        Log to record into. Defaults to a new log with
        `parameters.gate_log_capacity` retention.

    Example
    -------
    >>> engine = SpinEngine(rng=1234)
    >>> entry = engine.apply_gate("H")
    >>> round(entry.p0, 6), round(entry.p1, 6)
    (0.5, 0.5)
    """

    def __init__(self, parameters: Optional[EngineParameters] = None,
                 rng: Union[np.random.Generator, int, None] = None,
                 b_field: float = 1.0, gate_log: Optional[GateLog] = None):
        self.parameters = parameters or get_default_engine_parameters()
        if isinstance(rng, np.random.Generator):
            self.rng = rng
        else:
            self.rng = np.random.default_rng(rng)
        self.gate_log = gate_log if gate_log is not None else GateLog(
            self.parameters.gate_log_capacity
        )
        self._b_field = 1.0
        self.set_b_field(b_field)
        self._rabi_frequency = 0.0
        self._state = QubitState.ground()

    # -------------------------------------------------------------------------
    # Fields and frequencies
    # -------------------------------------------------------------------------

    def set_b_field(self, b_field: float) -> None:
        """Set the static field Bz (T). Non-numeric and non-finite values are ignored."""
        try:
            b_field = float(b_field)
        except (TypeError, ValueError):
            warnings.warn(f"Ignoring non-numeric magnetic field {b_field!r}", RuntimeWarning)
            return
        if not math.isfinite(b_field):
            warnings.warn(f"Ignoring non-finite magnetic field {b_field}", RuntimeWarning)
            return
        self._b_field = b_field

    @property
    def b_field(self) -> float:
        return self._b_field

    @property
    def larmor_frequency(self) -> float:
        """Larmor frequency f_L = γ·Bz (Hz)."""
        return self.parameters.gyromagnetic_ratio * self._b_field

    @property
    def rabi_frequency(self) -> float:
        """Rabi frequency of the last evolve step (Hz); 0 when not driving."""
        return self._rabi_frequency

    @property
    def larmor_ghz(self) -> float:
        return self.larmor_frequency / 1e9

    @property
    def rabi_mhz(self) -> float:
        return self._rabi_frequency / 1e6

    @property
    def pi_pulse_time(self) -> float:
        """Physical drive time for a π rotation at full drive, 1/(2·f_R) (s)."""
        rabi = self.parameters.max_rabi_frequency
        return math.inf if rabi <= 0 else 1.0 / (2.0 * rabi)

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> QubitState:
        return self._state

    def get_state_vector(self) -> QubitState:
        """Consistent (α, β) snapshot."""
        return self._state

    @property
    def p0(self) -> float:
        return self._state.p0

    @property
    def p1(self) -> float:
        return self._state.p1

    @property
    def bloch_angles(self) -> BlochAngles:
        return self._state.bloch_angles

    @property
    def state_label(self) -> str:
        return self._state.label

    def get_gate_log(self) -> List[GateLogEntry]:
        return self.gate_log.entries()

    def clear_gate_log(self) -> None:
        self.gate_log.clear()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _physical_time(self, dt: float) -> float:
        dt = float(dt)
        if not math.isfinite(dt) or dt < 0:
            warnings.warn(f"Ignoring invalid time step dt={dt}", RuntimeWarning)
            return 0.0
        return dt * self.parameters.time_scale

    @staticmethod
    def _drive_amplitude(drive: DriveSignal) -> float:
        if isinstance(drive, (bool, np.bool_)):
            return 1.0 if drive else 0.0
        amplitude = float(drive)
        if not math.isfinite(amplitude):
            warnings.warn(f"Ignoring non-finite drive amplitude {amplitude}", RuntimeWarning)
            return 0.0
        return min(1.0, max(0.0, amplitude))

    def _commit(self, alpha: ComplexAmplitude, beta: ComplexAmplitude) -> None:
        """Renormalize and publish a new state snapshot."""
        norm = math.sqrt(alpha.norm2() + beta.norm2())
        if not math.isfinite(norm) or norm <= NORM_EPSILON:
            warnings.warn(
                f"Degenerate qubit state (norm={norm}); resetting to |0⟩",
                RuntimeWarning,
            )
            self._state = QubitState.ground()
            return
        self._state = QubitState(alpha.scale(1 / norm), beta.scale(1 / norm))

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def evolve(self, dt: float, drive: DriveSignal = False) -> QubitState:
        """
        Advance coherent evolution by one tick.

        1. If driving: rotate about x by the Rabi angle 2a, with half angle
           a = π·f_R·dt·time_scale and f_R = γ·B1_max·amplitude
        2. Free precession: α·e^{+iω_L t/2}, β·e^{−iω_L t/2}
        3. Renormalize

        Parameters
        ----------
        dt : float
            Tick duration in display-time units
        drive : bool or float
            Whether the resonant pulse is on, or its amplitude in [0, 1]
        """
        sim_dt = self._physical_time(dt)
        alpha, beta = self._state.alpha, self._state.beta

        amplitude = self._drive_amplitude(drive)
        if amplitude > 0:
            self._rabi_frequency = self.parameters.max_rabi_frequency * amplitude
            half_angle = np.pi * self._rabi_frequency * sim_dt
            alpha, beta = GATE_LIBRARY[GateId.RX](alpha, beta, 2 * half_angle)
        else:
            self._rabi_frequency = 0.0

        # Rz(−ω_L·t) is exactly the free-precession phase pair.
        omega_t = TWO_PI * self.larmor_frequency * sim_dt
        alpha, beta = GATE_LIBRARY[GateId.RZ](alpha, beta, -omega_t)

        self._commit(alpha, beta)
        return self._state

    def apply_decoherence(self, dt: float,
                          env: Optional[EnvironmentSnapshot]) -> QubitState:
        """
        Apply one tick of T1 relaxation and T2 dephasing.

        Parameters
        ----------
        dt : float
            Tick duration in display-time units
        env : EnvironmentSnapshot
            Time constants and thermal population for this tick. None is a
            no-op. A channel whose time constant is ≤ 0 or ≥ 10⁶ s is off.
        """
        if env is None:
            return self._state
        sim_dt = self._physical_time(dt)
        alpha, beta = self._state.alpha, self._state.beta

        if channel_enabled(env.t1):
            p0, p1 = alpha.norm2(), beta.norm2()
            new_p1 = relaxed_population(p1, env.thermal_excitation_prob, sim_dt, env.t1)
            alpha = _rescaled(alpha, p0, 1.0 - new_p1)
            beta = _rescaled(beta, p1, new_p1)

        if channel_enabled(env.t2):
            decay = math.exp(-sim_dt / env.t2)
            coherence = math.sqrt(alpha.norm2() * beta.norm2())
            if coherence > AMPLITUDE_EPSILON:
                kick = (1.0 - decay) * (self.rng.random() - 0.5) * self.parameters.dephasing_kick_scale
                beta = beta * ComplexAmplitude.unit_phase(kick)

        self._commit(alpha, beta)
        return self._state

    def apply_gate(self, gate: Union[GateId, str],
                   parameter: Optional[float] = None) -> GateLogEntry:
        """
        Apply a discrete gate and log the result.

        Parameters
        ----------
        gate : GateId or str
            One of X, Y, Z, H, S, T, Rx, Ry, Rz, MEASURE
        parameter : float, optional
            Rotation angle for Rx/Ry/Rz (rad), default π/2

        Returns
        -------
        GateLogEntry
            The log entry describing the resulting state

        Raises
        ------
        UnknownGateError
            Identifier outside the gate set; the state is left untouched
        GateParameterError
            Non-finite rotation angle; the state is left untouched
        """
        gate_id = resolve_gate(gate)
        theta = resolve_angle(gate_id, parameter)
        if gate_id is GateId.MEASURE:
            self.measure()
            return self.gate_log.latest

        alpha, beta = GATE_LIBRARY[gate_id](self._state.alpha, self._state.beta, theta)
        self._commit(alpha, beta)

        state = self._state
        angles = state.bloch_angles
        return self.gate_log.record(
            gate_id.value, state.p0, state.p1,
            parameter=theta, theta=angles.theta, phi=angles.phi,
        )

    def measure(self) -> int:
        """
        Projective measurement in the computational basis.

        Draws 1 with probability |β|², collapses onto the matching basis
        state and logs the outcome.
        """
        p1 = self._state.p1
        result = 1 if self.rng.random() < p1 else 0
        self._state = QubitState.excited() if result else QubitState.ground()
        self.gate_log.record("MEASURE", self._state.p0, self._state.p1, result=result)
        return result

    def reset(self) -> None:
        """Return to |0⟩. The gate log is kept; see clear_gate_log()."""
        self._state = QubitState.ground()

    def __repr__(self) -> str:
        return (f"SpinEngine(p1={self.p1:.4f}, B={self._b_field:g} T, "
                f"f_L={self.larmor_ghz:.3f} GHz, log={len(self.gate_log)} entries)")
