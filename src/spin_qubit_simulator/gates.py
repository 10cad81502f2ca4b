"""
Single-Qubit Gate Library
=========================

The closed catalogue of discrete operations the spin engine understands:

| Gate   | Action on (α, β)                              | Matrix              |
|--------|-----------------------------------------------|---------------------|
| X      | (β, α)                                        | σx                  |
| Y      | (−iβ, iα)                                     | σy                  |
| Z      | (α, −β)                                       | σz                  |
| H      | ((α+β)/√2, (α−β)/√2)                          | (σx+σz)/√2          |
| S      | (α, iβ)                                       | diag(1, i)          |
| T      | (α, e^{iπ/4}β)                                | diag(1, e^{iπ/4})   |
| Rx(θ)  | (α cos t − iβ sin t, −iα sin t + β cos t)     | exp(−iθσx/2)        |
| Ry(θ)  | (α cos t − β sin t, α sin t + β cos t)        | exp(−iθσy/2)        |
| Rz(θ)  | (α e^{−it}, β e^{it})                         | exp(−iθσz/2)        |

with half angle t = θ/2. Rotations default to θ = π/2 when no angle is given.

MEASURE belongs to the identifier set but is not unitary; the spin engine
handles it by collapsing the state.

Two views of every gate are provided:

- `apply_gate()`: the closed-form amplitude update used by the engine
- `gate_matrix()`: the 2×2 unitary as a numpy array, with rotations built
  as matrix exponentials of Pauli generators (SciPy), for analysis and for
  cross-checking the closed forms

Unknown identifiers raise `UnknownGateError`; a non-finite rotation angle
raises `GateParameterError`. Both subclass ValueError.
"""

import math
import warnings
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np
from scipy.linalg import expm

from .complex_amplitude import I, MINUS_I, ComplexAmplitude

Amplitudes = Tuple[ComplexAmplitude, ComplexAmplitude]

DEFAULT_ROTATION_ANGLE = np.pi / 2
SQRT_HALF = 1.0 / math.sqrt(2.0)


class UnknownGateError(ValueError):
    """Raised for a gate identifier outside the closed gate set."""


class GateParameterError(ValueError):
    """Raised for an invalid rotation angle."""


class GateId(str, Enum):
    X = "X"
    Y = "Y"
    Z = "Z"
    H = "H"
    S = "S"
    T = "T"
    RX = "Rx"
    RY = "Ry"
    RZ = "Rz"
    MEASURE = "MEASURE"

    @property
    def is_parameterized(self) -> bool:
        return self in PARAMETERIZED_GATES

    @property
    def is_unitary(self) -> bool:
        return self is not GateId.MEASURE

    def __str__(self) -> str:
        return self.value


PARAMETERIZED_GATES = frozenset({GateId.RX, GateId.RY, GateId.RZ})

_GATES_BY_NAME = {gate.value.upper(): gate for gate in GateId}


def resolve_gate(gate: Union[GateId, str]) -> GateId:
    """
    Map a GateId or its text value (case-insensitive) onto a GateId.

    Raises
    ------
    UnknownGateError
        If the identifier is not in the gate set.
    """
    if isinstance(gate, GateId):
        return gate
    if isinstance(gate, str):
        resolved = _GATES_BY_NAME.get(gate.strip().upper())
        if resolved is not None:
            return resolved
    raise UnknownGateError(
        f"Unknown gate: {gate!r}. Available: {[g.value for g in GateId]}"
    )


def resolve_angle(gate: GateId, parameter: Optional[float]) -> Optional[float]:
    """
    Validate the parameter for `gate`.

    Returns the rotation angle for Rx/Ry/Rz (π/2 when `parameter` is None)
    and None for fixed gates, which ignore any parameter with a warning.
    """
    if not gate.is_parameterized:
        if parameter is not None:
            warnings.warn(
                f"Gate {gate.value} takes no parameter; ignoring {parameter!r}",
                RuntimeWarning,
            )
        return None
    if parameter is None:
        return DEFAULT_ROTATION_ANGLE
    try:
        theta = float(parameter)
    except (TypeError, ValueError):
        raise GateParameterError(
            f"Rotation angle for {gate.value} must be a number, got {parameter!r}"
        ) from None
    if not math.isfinite(theta):
        raise GateParameterError(
            f"Rotation angle for {gate.value} must be finite, got {theta}"
        )
    return theta


# =============================================================================
# CLOSED-FORM AMPLITUDE UPDATES
# =============================================================================

def _pauli_x(alpha: ComplexAmplitude, beta: ComplexAmplitude, theta) -> Amplitudes:
    return beta, alpha


def _pauli_y(alpha: ComplexAmplitude, beta: ComplexAmplitude, theta) -> Amplitudes:
    return MINUS_I * beta, I * alpha


def _pauli_z(alpha: ComplexAmplitude, beta: ComplexAmplitude, theta) -> Amplitudes:
    return alpha, -beta


def _hadamard(alpha: ComplexAmplitude, beta: ComplexAmplitude, theta) -> Amplitudes:
    return (alpha + beta).scale(SQRT_HALF), (alpha - beta).scale(SQRT_HALF)


def _phase_s(alpha: ComplexAmplitude, beta: ComplexAmplitude, theta) -> Amplitudes:
    return alpha, I * beta


def _phase_t(alpha: ComplexAmplitude, beta: ComplexAmplitude, theta) -> Amplitudes:
    return alpha, ComplexAmplitude.unit_phase(np.pi / 4) * beta


def _rotation_x(alpha: ComplexAmplitude, beta: ComplexAmplitude, theta: float) -> Amplitudes:
    t = theta / 2
    c, s = math.cos(t), math.sin(t)
    return (alpha.scale(c) + (MINUS_I * beta).scale(s),
            (MINUS_I * alpha).scale(s) + beta.scale(c))


def _rotation_y(alpha: ComplexAmplitude, beta: ComplexAmplitude, theta: float) -> Amplitudes:
    t = theta / 2
    c, s = math.cos(t), math.sin(t)
    return alpha.scale(c) - beta.scale(s), alpha.scale(s) + beta.scale(c)


def _rotation_z(alpha: ComplexAmplitude, beta: ComplexAmplitude, theta: float) -> Amplitudes:
    t = theta / 2
    return (ComplexAmplitude.unit_phase(-t) * alpha,
            ComplexAmplitude.unit_phase(t) * beta)


GATE_LIBRARY: Dict[GateId, Callable[..., Amplitudes]] = {
    GateId.X: _pauli_x,
    GateId.Y: _pauli_y,
    GateId.Z: _pauli_z,
    GateId.H: _hadamard,
    GateId.S: _phase_s,
    GateId.T: _phase_t,
    GateId.RX: _rotation_x,
    GateId.RY: _rotation_y,
    GateId.RZ: _rotation_z,
}


def apply_gate(gate: Union[GateId, str], alpha: ComplexAmplitude, beta: ComplexAmplitude,
               parameter: Optional[float] = None) -> Amplitudes:
    """
    Apply one unitary gate to the amplitude pair (α, β).

    Parameters
    ----------
    gate : GateId or str
        Gate identifier, e.g. GateId.H, "H" or "rx"
    alpha, beta : ComplexAmplitude
        Amplitudes of |0⟩ and |1⟩
    parameter : float, optional
        Rotation angle θ (rad) for Rx/Ry/Rz; defaults to π/2

    Returns
    -------
    tuple of ComplexAmplitude
        The new (α, β). Not renormalized.

    Raises
    ------
    UnknownGateError
        Unknown identifier, or MEASURE (not a unitary)
    GateParameterError
        Non-finite rotation angle

    Example
    -------
    >>> from spin_qubit_simulator.complex_amplitude import ONE, ZERO
    >>> apply_gate("X", ONE, ZERO)
    (ComplexAmplitude(0 + 0i), ComplexAmplitude(1 + 0i))
    """
    gate_id = resolve_gate(gate)
    if not gate_id.is_unitary:
        raise UnknownGateError(
            "MEASURE is not a unitary gate; use SpinEngine.measure() instead"
        )
    theta = resolve_angle(gate_id, parameter)
    return GATE_LIBRARY[gate_id](alpha, beta, theta)


# =============================================================================
# MATRIX REPRESENTATION
# =============================================================================

PAULI = {
    "x": np.array([[0, 1], [1, 0]], dtype=complex),
    "y": np.array([[0, -1j], [1j, 0]], dtype=complex),
    "z": np.array([[1, 0], [0, -1]], dtype=complex),
}

_FIXED_MATRICES = {
    GateId.X: PAULI["x"],
    GateId.Y: PAULI["y"],
    GateId.Z: PAULI["z"],
    GateId.H: SQRT_HALF * np.array([[1, 1], [1, -1]], dtype=complex),
    GateId.S: np.diag([1, 1j]).astype(complex),
    GateId.T: np.diag([1, np.exp(1j * np.pi / 4)]),
}

_ROTATION_AXES = {GateId.RX: "x", GateId.RY: "y", GateId.RZ: "z"}


def rotation_matrix(axis: str, theta: float) -> np.ndarray:
    """
    Rotation by θ about a Bloch-sphere axis, R(θ) = exp(−iθσ/2).

    Parameters
    ----------
    axis : str
        "x", "y" or "z"
    theta : float
        Rotation angle (rad)
    """
    try:
        generator = PAULI[axis.lower()]
    except KeyError:
        raise ValueError(f"Unknown rotation axis: {axis!r}. Available: {list(PAULI)}") from None
    return expm(-0.5j * theta * generator)


def gate_matrix(gate: Union[GateId, str], parameter: Optional[float] = None) -> np.ndarray:
    """
    2×2 unitary of a gate in the (|0⟩, |1⟩) basis.

    `gate_matrix(g, θ) @ [α, β]` equals `apply_gate(g, α, β, θ)`.
    """
    gate_id = resolve_gate(gate)
    if not gate_id.is_unitary:
        raise UnknownGateError("MEASURE has no unitary matrix")
    theta = resolve_angle(gate_id, parameter)
    if gate_id in _ROTATION_AXES:
        return rotation_matrix(_ROTATION_AXES[gate_id], theta)
    return _FIXED_MATRICES[gate_id].copy()
