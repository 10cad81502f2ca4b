"""
Spin Qubit Simulator
====================

Simulation of a single electron spin qubit in an isotopically purified
silicon-28 quantum dot, coupled to a cryogenic environment.

PHYSICS OVERVIEW FOR BEGINNERS
------------------------------

**What is a spin qubit?**
    An electron carries a magnetic moment. In a static field Bz its two spin
    orientations split in energy by the Zeeman energy

        ΔE = g·μB·Bz        (≈ 0.116 meV at 1 T, i.e. f_L ≈ 28 GHz)

    The lower level is |0⟩, the upper level is |1⟩. A superposition
    α|0⟩ + β|1⟩ precesses about z at the Larmor frequency.

**How is it controlled?**
    A small oscillating field B1 at the Larmor frequency drives Rabi
    oscillations between |0⟩ and |1⟩ at f_R = γ·B1. Discrete gates (X, H,
    Rx(θ), ...) are idealized versions of such pulses.

**What destroys the information?**
    - T1 (relaxation): the excited spin gives its energy to the lattice
      (Johnson noise, direct phonon, Raman and Orbach processes). The
      populations relax toward the thermal value.
    - T2 (dephasing): fluctuating fields randomize the relative phase of α
      and β. T2 can never exceed 2·T1.
    - Temperature: at 20 mK and 1 T the thermal excited population is
      ~10⁻²⁹; at 4 K it is ~40%.

MODULE STRUCTURE
----------------

Core Physics:
    - constants: Physical constants and numerical thresholds
    - configurations: Material and engine parameter dataclasses
    - environment: T1, T2, T2*, thermal excitation and noise level versus
      temperature and field; thread-safe EnvironmentModel

Qubit State:
    - complex_amplitude: Immutable complex amplitude value type
    - gates: The gate library, closed forms and matrices
    - gate_log: Bounded or unbounded event log
    - spin_engine: SpinEngine (evolve, decoherence, gates, measurement)

Driving and Analysis:
    - simulation: SpinSimulation tick loop coupling environment and engine
    - circuit: Parse and run gate programs such as "H Rx(0.5pi) M"
    - master_equation: Exact Lindblad reference (QuTiP)
    - visualization: Coherence-time and trajectory plots (matplotlib)

References
----------
[1] Zwanenburg et al., "Silicon quantum electronics",
    Rev. Mod. Phys. 85, 961 (2013)

[2] Veldhorst et al., "An addressable quantum dot qubit with
    fault-tolerant control-fidelity", Nat. Nanotechnol. 9, 981 (2014)

[3] Tahan & Joynt, "Relaxation of excited spin, orbital, and valley
    qubit states in ideal silicon quantum dots", Phys. Rev. B 89, 075302 (2014)
"""

from .constants import (
    HBAR, KB, MU_B, E_CHARGE, G_FACTOR, GYROMAGNETIC_RATIO,
)

from .configurations import (
    MaterialParameters,
    EngineParameters,
    get_silicon28_material,
    get_default_engine_parameters,
)

from .complex_amplitude import ComplexAmplitude

from .environment import (
    EnvironmentModel,
    EnvironmentSnapshot,
    EnvironmentSweep,
    RelaxationRates,
    compute_environment,
    relaxation_rates,
    sweep_environment,
    zeeman_splitting,
    thermal_excitation_probability,
    format_time,
)

from .gates import (
    GateId,
    UnknownGateError,
    GateParameterError,
    GATE_LIBRARY,
    apply_gate,
    gate_matrix,
    rotation_matrix,
    resolve_gate,
)

from .gate_log import GateLog, GateLogEntry

from .spin_engine import (
    SpinEngine,
    QubitState,
    BlochAngles,
    relaxed_population,
)

from .simulation import (
    SpinSimulation,
    TickResult,
    SimulationTrace,
)

from .circuit import (
    GateInstruction,
    CircuitResult,
    parse_circuit,
    run_circuit,
    circuit_unitary,
    format_gate,
)

__version__ = "0.1.0"
__all__ = [
    # =========================================================================
    # ENVIRONMENT
    # =========================================================================
    "EnvironmentModel", "EnvironmentSnapshot", "EnvironmentSweep",
    "RelaxationRates", "compute_environment", "relaxation_rates",
    "sweep_environment", "zeeman_splitting", "thermal_excitation_probability",
    "format_time",

    # =========================================================================
    # QUBIT ENGINE
    # =========================================================================
    "SpinEngine", "QubitState", "BlochAngles", "relaxed_population",
    "ComplexAmplitude", "GateLog", "GateLogEntry",

    # =========================================================================
    # GATES AND CIRCUITS
    # =========================================================================
    "GateId", "UnknownGateError", "GateParameterError", "GATE_LIBRARY",
    "apply_gate", "gate_matrix", "rotation_matrix", "resolve_gate",
    "GateInstruction", "CircuitResult", "parse_circuit", "run_circuit",
    "circuit_unitary", "format_gate",

    # =========================================================================
    # SIMULATION LOOP
    # =========================================================================
    "SpinSimulation", "TickResult", "SimulationTrace",

    # =========================================================================
    # CONFIGURATION AND CONSTANTS
    # =========================================================================
    "MaterialParameters", "EngineParameters",
    "get_silicon28_material", "get_default_engine_parameters",
    "HBAR", "KB", "MU_B", "E_CHARGE", "G_FACTOR", "GYROMAGNETIC_RATIO",
]
