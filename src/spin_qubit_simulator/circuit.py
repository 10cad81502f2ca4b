"""
Gate Circuits
=============

Short single-qubit programs written as text, e.g.

    "H X Rx(0.5pi) MEASURE"

Tokens are whitespace separated and case-insensitive. `M` is an alias for
`MEASURE`. Rotation angles accept

| Syntax    | Value (rad) |
|-----------|-------------|
| `pi`      | π           |
| `0.5pi`   | π/2         |
| `-0.25pi` | −π/4        |
| `pi/2`    | π/2         |
| `1.2`     | 1.2         |

A rotation written without parentheses (`Rx`) uses the default π/2.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np

from .gate_log import GateLogEntry
from .gates import GateId, GateParameterError, UnknownGateError, gate_matrix, resolve_gate
from .spin_engine import QubitState, SpinEngine

_TOKEN = re.compile(r"^\s*([A-Za-z]+)\s*(?:\(\s*([^()]*?)\s*\))?\s*$")
_PI_MULTIPLE = re.compile(r"^([+-]?(?:\d+\.?\d*|\.\d+)?)\s*\*?\s*pi(?:\s*/\s*(\d+\.?\d*))?$")

_ALIASES = {"M": GateId.MEASURE}


@dataclass(frozen=True)
class GateInstruction:
    """One step of a circuit: a gate and its (optional) rotation angle."""
    gate: GateId
    parameter: Optional[float] = None

    def __str__(self) -> str:
        return format_gate(self.gate, self.parameter)


@dataclass
class CircuitResult:
    """
    Outcome of `run_circuit()`.

    Attributes
    ----------
    measurements : list of int
        Measurement outcomes in program order
    final_state : QubitState
        State after the last instruction
    log : list of GateLogEntry
        Log entries produced by the circuit
    """
    measurements: List[int]
    final_state: QubitState
    log: List[GateLogEntry] = field(default_factory=list)


# =============================================================================
# PARSING
# =============================================================================

def parse_angle(text: str) -> float:
    """
    Parse `pi`, `0.5pi`, `-0.25pi`, `pi/2` or a plain number (radians).

    Raises
    ------
    GateParameterError
        If the text is not one of the accepted forms.
    """
    cleaned = text.strip().lower().replace("π", "pi")
    match = _PI_MULTIPLE.match(cleaned)
    if match:
        coefficient, divisor = match.groups()
        if coefficient in ("", "+"):
            value = 1.0
        elif coefficient == "-":
            value = -1.0
        else:
            value = float(coefficient)
        value *= np.pi
        if divisor is not None:
            if float(divisor) == 0:
                raise GateParameterError(f"Division by zero in angle {text!r}")
            value /= float(divisor)
        return value
    try:
        value = float(cleaned)
    except ValueError:
        raise GateParameterError(f"Cannot parse rotation angle {text!r}") from None
    if not np.isfinite(value):
        raise GateParameterError(f"Rotation angle must be finite, got {text!r}")
    return value


def parse_instruction(token: str) -> GateInstruction:
    match = _TOKEN.match(token)
    if not match:
        raise UnknownGateError(f"Cannot parse gate token {token!r}")
    name, angle = match.groups()
    gate = _ALIASES.get(name.upper()) or resolve_gate(name)

    if angle is None:
        return GateInstruction(gate)
    if not gate.is_parameterized:
        raise GateParameterError(f"Gate {gate.value} takes no parameter: {token!r}")
    return GateInstruction(gate, parse_angle(angle))


def parse_circuit(text: str) -> List[GateInstruction]:
    """
    Parse a whitespace-separated gate program.

    Example
    -------
    >>> [str(g) for g in parse_circuit("h Rx(0.5pi) m")]
    ['H', 'Rx(0.50π)', 'MEASURE']
    """
    # Keep "Rx( pi / 2 )" together as one token.
    tokens = re.findall(r"[A-Za-z]+\s*\([^()]*\)|\S+", text)
    return [parse_instruction(token) for token in tokens]


def format_gate(gate: Union[GateId, str], parameter: Optional[float] = None) -> str:
    """Render a gate the way the log shows it: `H`, `Rx(0.50π)`."""
    gate_id = resolve_gate(gate)
    if gate_id.is_parameterized and parameter is not None:
        return f"{gate_id.value}({parameter / np.pi:.2f}π)"
    return gate_id.value


# =============================================================================
# EXECUTION
# =============================================================================

Circuit = Union[str, Sequence[GateInstruction]]


def _instructions(circuit: Circuit) -> List[GateInstruction]:
    if isinstance(circuit, str):
        return parse_circuit(circuit)
    return list(circuit)


def run_circuit(engine: SpinEngine, circuit: Circuit, reset: bool = True,
                verbose: bool = False) -> CircuitResult:
    """
    Execute a circuit on an engine.

    Parameters
    ----------
    engine : SpinEngine
        Target qubit
    circuit : str or sequence of GateInstruction
        Program text or parsed instructions
    reset : bool
        Start from |0⟩ with an empty gate log
    verbose : bool
        Print each step with the resulting state label

    Returns
    -------
    CircuitResult
    """
    instructions = _instructions(circuit)
    if reset:
        engine.reset()
        engine.clear_gate_log()

    measurements = []
    log = []
    for instruction in instructions:
        entry = engine.apply_gate(instruction.gate, instruction.parameter)
        log.append(entry)
        if entry.is_measurement:
            measurements.append(entry.result)
        if verbose:
            suffix = f" → {entry.result}" if entry.is_measurement else ""
            print(f"  {format_gate(instruction.gate, entry.parameter):<12s}"
                  f"{engine.state_label}{suffix}")

    return CircuitResult(measurements=measurements, final_state=engine.state, log=log)


def circuit_unitary(circuit: Circuit) -> np.ndarray:
    """
    Product of the gate matrices, last gate leftmost.

    Raises
    ------
    UnknownGateError
        If the circuit contains MEASURE.
    """
    unitary = np.eye(2, dtype=complex)
    for instruction in _instructions(circuit):
        if not instruction.gate.is_unitary:
            raise UnknownGateError("Circuit contains MEASURE and has no unitary")
        unitary = gate_matrix(instruction.gate, instruction.parameter) @ unitary
    return unitary
