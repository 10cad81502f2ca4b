"""
Environment Model: Temperature and Field Dependent Decoherence
===============================================================

This module turns the two experimental knobs of a spin qubit cryostat, the
mixing-chamber TEMPERATURE and the static magnetic FIELD, into the time
constants that limit the qubit:

- **T1**: energy relaxation (|1⟩ decays toward thermal equilibrium)
- **T2**: Hahn-echo coherence time (refocused dephasing)
- **T2***: Ramsey / free-induction dephasing time
- **thermal excitation**: equilibrium population of |1⟩

PHYSICS OVERVIEW
----------------

**Zeeman splitting**

    ΔE = g · μB · B

The qubit energy gap. It also sets the Boltzmann factor that decides the
equilibrium population of the excited state:

    P_exc = 1 / (1 + exp(ΔE / kB·T))

**Spin-lattice relaxation (T1)**

Four mechanisms add as rates, with r = T / T_ref:

| Mechanism            | Rate                        | Dominates     |
|----------------------|-----------------------------|---------------|
| Johnson noise        | r / T1_ref                  | base temp     |
| Direct (one-phonon)  | 10⁻³ · r · B⁴               | high field    |
| Raman (two-phonon)   | 10⁻⁸ · r⁷                   | > ~1 K        |
| Orbach               | 10³ · exp(−ΔE_valley/kB·T)  | ~0.1-1 K      |

    1/T1 = Σ rates,   T1 clamped to [1 ns, 100 s]

**Dephasing (T2, T2*)**

    T2  = T2_ref  · (T_ref/T)³    (phonon-mediated, Hahn echo)
    T2* = T2*_ref · (T_ref/T)     (charge noise + phonons, Ramsey)

with the fundamental bound T2 ≤ 2·T1 and T2* ≤ T2 enforced by clamping.

**Noise level**

A dimensionless severity proxy that is 0 at the reference temperature and
saturates at 1 at 4 K on a logarithmic scale.

At the reference point (20 mK, 1 T) the model reproduces the ²⁸Si literature
values T1 ≈ 6 s and T2 ≈ 28 ms.

THREADING
---------

`EnvironmentModel` setters are typically called from an input handler while
the simulation loop reads snapshots every tick. The stored inputs and the
memoized snapshot are guarded by a single lock, and the snapshot is an
immutable value, so the loop always sees one consistent (T, B) pair.

References
----------
[1] Muhonen et al., Nature Nanotechnology 9, 986 (2014)
[2] Veldhorst et al., Nature Nanotechnology 9, 981 (2014)
[3] Tahan & Joynt, PRB 89, 075302 (2014) - relaxation in Si/SiGe dots
"""

import threading
import warnings
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

import numpy as np

from .configurations import MaterialParameters, get_silicon28_material
from .constants import (
    BOLTZMANN_EXPONENT_CUTOFF,
    JOULES_PER_MEV,
    KB,
    MIN_TEMPERATURE_K,
    MU_B,
)

T1_MIN = 1e-9    # [s]
T1_MAX = 100.0   # [s]
T2_MIN = 1e-9    # [s]
T2_STAR_MIN = 1e-10  # [s]


# =============================================================================
# HELPERS
# =============================================================================

def effective_temperature(temperature_mK: float) -> float:
    """Convert mK to K and apply the 1 mK floor that protects every 1/T."""
    return max(temperature_mK / 1000.0, MIN_TEMPERATURE_K)


def format_time(seconds: float) -> str:
    """
    Format a duration with a human-friendly unit.

    >>> format_time(6.0)
    '6.0 s'
    >>> format_time(0.028)
    '28.0 ms'
    >>> format_time(3.5e-9)
    '3.5 ns'
    """
    if seconds >= 1:
        return f"{seconds:.1f} s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.1f} ms"
    if seconds >= 1e-6:
        return f"{seconds * 1e6:.1f} μs"
    if seconds >= 1e-9:
        return f"{seconds * 1e9:.1f} ns"
    return f"{seconds * 1e12:.0f} ps"


# =============================================================================
# ZEEMAN SPLITTING AND THERMAL POPULATION
# =============================================================================

def zeeman_splitting(b_field: float, g_factor: float = 2.0) -> float:
    """
    Qubit energy gap ΔE = g · μB · B.

    Parameters
    ----------
    b_field : float
        Static magnetic field (T)
    g_factor : float
        Electron g-factor (2.0 in silicon)

    Returns
    -------
    float
        Zeeman splitting (J). ~1.85×10⁻²³ J (0.116 meV) at 1 T.
    """
    return g_factor * MU_B * b_field


def thermal_excitation_probability(splitting: float, temperature: float) -> float:
    """
    Equilibrium population of the excited spin state.

    **Fermi-like two-level occupation:**

        P_exc = 1 / (1 + exp(β)),   β = ΔE / (kB·T)

    For β > 500 the exponential would overflow; the population is 0 to
    machine precision there anyway.

    Parameters
    ----------
    splitting : float
        Zeeman splitting ΔE (J)
    temperature : float
        Temperature (K), already floored

    Returns
    -------
    float
        Excited-state population in [0, 1]
    """
    beta = splitting / (KB * temperature)
    if beta > BOLTZMANN_EXPONENT_CUTOFF:
        return 0.0
    return float(1.0 / (1.0 + np.exp(beta)))


# =============================================================================
# SPIN-LATTICE RELAXATION RATES (T1)
# =============================================================================

def johnson_noise_rate(temperature: float,
                       material: Optional[MaterialParameters] = None) -> float:
    """
    Relaxation rate from Johnson (thermal electrical) noise, linear in T.

    Anchored so that at T_ref alone it gives 1/T1_ref.
    """
    material = material or get_silicon28_material()
    ratio_T = temperature / material.reference_temperature
    return ratio_T / material.t1_ref


def direct_phonon_rate(temperature: float, b_field: float,
                       material: Optional[MaterialParameters] = None) -> float:
    """
    One-phonon (direct) process: rate ∝ T · B⁴.

    The phonon density of states at the Zeeman energy grows as ΔE² and the
    spin-phonon matrix element brings another B², hence B⁴. Significant only
    above a few Tesla.
    """
    material = material or get_silicon28_material()
    ratio_T = np.float64(temperature) / material.reference_temperature
    with np.errstate(over="ignore"):
        return float(material.direct_phonon_coeff * ratio_T * np.float64(b_field) ** 4)


def raman_rate(temperature: float,
               material: Optional[MaterialParameters] = None) -> float:
    """
    Two-phonon Raman process: rate ∝ T⁷.

    Negligible at base temperature (10⁻⁸ s⁻¹) but grows by 10⁷ per decade of
    temperature, which is what kills T1 in a 4 K cryostat.
    """
    material = material or get_silicon28_material()
    ratio_T = np.float64(temperature) / material.reference_temperature
    with np.errstate(over="ignore"):
        return float(material.raman_coeff * ratio_T ** 7)


def orbach_rate(temperature: float,
                material: Optional[MaterialParameters] = None) -> float:
    """
    Orbach process through the excited valley state.

    **Thermally activated:**

        rate = A · exp(−ΔE_valley / kB·T)

    With ΔE_valley = 0.1 meV the exponent is ≈ −58 at 20 mK. Below −500 the
    contribution is set to 0 rather than evaluating a denormal exponential.
    """
    material = material or get_silicon28_material()
    exponent = -material.valley_splitting / (KB * temperature)
    if exponent < -BOLTZMANN_EXPONENT_CUTOFF:
        return 0.0
    return float(material.orbach_prefactor * np.exp(exponent))


@dataclass(frozen=True)
class RelaxationRates:
    """
    Per-mechanism spin-lattice relaxation rates (1/s).

    Attributes
    ----------
    johnson : float
        Johnson noise rate
    direct : float
        One-phonon direct process rate
    raman : float
        Two-phonon Raman rate
    orbach : float
        Orbach (valley) rate
    """
    johnson: float = 0.0
    direct: float = 0.0
    raman: float = 0.0
    orbach: float = 0.0

    @property
    def total(self) -> float:
        return self.johnson + self.direct + self.raman + self.orbach

    @property
    def dominant_mechanism(self) -> str:
        """Name of the mechanism contributing the largest rate."""
        rates = self.to_dict()
        rates.pop("total")
        return max(rates, key=rates.get)

    def to_dict(self) -> Dict[str, float]:
        return {
            "johnson": self.johnson,
            "direct": self.direct,
            "raman": self.raman,
            "orbach": self.orbach,
            "total": self.total,
        }

    def summary_table(self) -> str:
        """Generate a formatted table of the mechanism rates."""
        total = self.total
        lines = [
            "=" * 50,
            "T1 RELAXATION RATES",
            "=" * 50,
            f"{'Mechanism':<20} {'Rate (1/s)':<15} {'Share (%)'}",
            "-" * 50,
        ]
        for name in ("johnson", "direct", "raman", "orbach"):
            rate = getattr(self, name)
            share = 100 * rate / total if total > 0 else 0.0
            lines.append(f"{name:<20} {rate:<15.4e} {share:.2f}")
        lines.extend([
            "-" * 50,
            f"{'TOTAL':<20} {total:<15.4e} 100.00",
            "=" * 50,
        ])
        return "\n".join(lines)


def relaxation_rates(temperature: float, b_field: float,
                     material: Optional[MaterialParameters] = None) -> RelaxationRates:
    """
    Compute all T1 mechanism rates at once.

    Parameters
    ----------
    temperature : float
        Temperature (K), already floored at 1 mK
    b_field : float
        Static field (T)
    material : MaterialParameters, optional
        Decoherence model parameters. Defaults to ²⁸Si.
    """
    material = material or get_silicon28_material()
    return RelaxationRates(
        johnson=johnson_noise_rate(temperature, material),
        direct=direct_phonon_rate(temperature, b_field, material),
        raman=raman_rate(temperature, material),
        orbach=orbach_rate(temperature, material),
    )


# =============================================================================
# TIME CONSTANTS
# =============================================================================

def t1_time(rates: RelaxationRates) -> float:
    """T1 = 1 / Σ rates, clamped to [1 ns, 100 s]."""
    total = rates.total
    if total <= 0:
        return T1_MAX
    return float(np.clip(1.0 / total, T1_MIN, T1_MAX))


def t2_time(temperature: float, t1: float,
            material: Optional[MaterialParameters] = None) -> float:
    """
    Hahn-echo coherence time T2 = T2_ref · (T_ref/T)³, bounded by 2·T1.

    **Why T2 ≤ 2·T1?**

    Energy relaxation destroys phase coherence too: the off-diagonal density
    matrix element decays at least at rate 1/(2·T1). No refocusing can beat
    that limit.
    """
    material = material or get_silicon28_material()
    t2_phonon = material.t2_ref * (material.reference_temperature / temperature) ** 3
    return max(T2_MIN, min(t2_phonon, 2.0 * t1))


def t2_star_time(temperature: float, t2: float,
                 material: Optional[MaterialParameters] = None) -> float:
    """Ramsey dephasing time T2* = T2*_ref · (T_ref/T), bounded by T2."""
    material = material or get_silicon28_material()
    t2_star = material.t2_star_ref * (material.reference_temperature / temperature)
    return max(T2_STAR_MIN, min(t2_star, t2))


def noise_level(temperature: float,
                material: Optional[MaterialParameters] = None) -> float:
    """
    Dimensionless severity proxy in [0, 1].

        noise = log10(T/T_ref) / log10(T_sat/T_ref)

    0 at the reference temperature (and below), 1 at 4 K (and above).
    """
    material = material or get_silicon28_material()
    T_ref = material.reference_temperature
    level = np.log10(temperature / T_ref) / np.log10(material.saturation_temperature / T_ref)
    return float(np.clip(level, 0.0, 1.0))


# =============================================================================
# ENVIRONMENT SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class EnvironmentSnapshot:
    """
    Immutable view of the environment and its derived time constants.

    The spin engine receives one snapshot per tick and never calls back into
    the environment model.

    Attributes
    ----------
    temperature_mK : float
        Temperature as set (mK). Physics uses `temperature_kelvin` (floored).
    b_field_tesla : float
        Static magnetic field (T)
    t1 : float
        Energy relaxation time (s)
    t2 : float
        Hahn-echo coherence time (s), always ≤ 2·t1
    t2_star : float
        Ramsey dephasing time (s), always ≤ t2
    thermal_excitation_prob : float
        Equilibrium |1⟩ population
    zeeman_splitting_joules : float
        Qubit energy gap (J)
    noise_level : float
        Dimensionless severity in [0, 1]
    rates : RelaxationRates
        T1 mechanism breakdown
    """
    temperature_mK: float
    b_field_tesla: float
    t1: float
    t2: float
    t2_star: float
    thermal_excitation_prob: float
    zeeman_splitting_joules: float
    noise_level: float
    rates: RelaxationRates = field(default_factory=RelaxationRates)

    @property
    def temperature_kelvin(self) -> float:
        return effective_temperature(self.temperature_mK)

    @property
    def zeeman_splitting_meV(self) -> float:
        return self.zeeman_splitting_joules / JOULES_PER_MEV

    @property
    def thermal_energy_meV(self) -> float:
        """kB·T in meV, using the temperature as set."""
        return KB * (self.temperature_mK / 1000.0) / JOULES_PER_MEV

    @property
    def t1_string(self) -> str:
        return format_time(self.t1)

    @property
    def t2_string(self) -> str:
        return format_time(self.t2)

    @property
    def t2_star_string(self) -> str:
        return format_time(self.t2_star)

    def to_dict(self) -> Dict[str, float]:
        return {
            "temperature_mK": self.temperature_mK,
            "temperature_K": self.temperature_kelvin,
            "b_field_T": self.b_field_tesla,
            "T1_s": self.t1,
            "T2_s": self.t2,
            "T2_star_s": self.t2_star,
            "thermal_excitation": self.thermal_excitation_prob,
            "zeeman_splitting_J": self.zeeman_splitting_joules,
            "zeeman_splitting_meV": self.zeeman_splitting_meV,
            "kBT_meV": self.thermal_energy_meV,
            "noise_level": self.noise_level,
        }

    def summary_table(self) -> str:
        """Generate a formatted summary of the environment."""
        lines = [
            "=" * 50,
            "ENVIRONMENT SUMMARY",
            "=" * 50,
            f"{'Temperature':<25} {self.temperature_mK:.1f} mK",
            f"{'Magnetic field':<25} {self.b_field_tesla:.3f} T",
            f"{'Zeeman splitting':<25} {self.zeeman_splitting_meV:.4f} meV",
            f"{'Thermal energy kB·T':<25} {self.thermal_energy_meV:.4f} meV",
            "-" * 50,
            f"{'T1':<25} {self.t1_string}",
            f"{'T2 (Hahn echo)':<25} {self.t2_string}",
            f"{'T2* (Ramsey)':<25} {self.t2_star_string}",
            f"{'Thermal excitation':<25} {self.thermal_excitation_prob:.3e}",
            f"{'Noise level':<25} {self.noise_level:.3f}",
            f"{'Dominant T1 mechanism':<25} {self.rates.dominant_mechanism}",
            "=" * 50,
        ]
        return "\n".join(lines)


def compute_environment(temperature_mK: float, b_field: float,
                        material: Optional[MaterialParameters] = None) -> EnvironmentSnapshot:
    """
    Pure function (temperature, field) → EnvironmentSnapshot.

    Parameters
    ----------
    temperature_mK : float
        Temperature in millikelvin. Floored at 1 mK for the physics.
    b_field : float
        Static magnetic field (T)
    material : MaterialParameters, optional
        Decoherence model parameters. Defaults to ²⁸Si.

    Returns
    -------
    EnvironmentSnapshot

    Example
    -------
    >>> env = compute_environment(20.0, 1.0)
    >>> round(env.t1, 2), env.t2
    (5.96, 0.028)
    """
    material = material or get_silicon28_material()
    T = effective_temperature(temperature_mK)

    splitting = zeeman_splitting(b_field, material.g_factor)
    rates = relaxation_rates(T, b_field, material)
    t1 = t1_time(rates)
    t2 = t2_time(T, t1, material)
    t2_star = t2_star_time(T, t2, material)

    return EnvironmentSnapshot(
        temperature_mK=temperature_mK,
        b_field_tesla=b_field,
        t1=t1,
        t2=t2,
        t2_star=t2_star,
        thermal_excitation_prob=thermal_excitation_probability(splitting, T),
        zeeman_splitting_joules=splitting,
        noise_level=noise_level(T, material),
        rates=rates,
    )


# =============================================================================
# ENVIRONMENT MODEL (STATEFUL, THREAD-SAFE)
# =============================================================================

class EnvironmentModel:
    """
    Memoized, lock-guarded environment state.

    Setters store the input, recompute every derived quantity, and replace
    the snapshot. `get_state()` returns the memoized snapshot without any
    recomputation.

    Input validation: negative values are clamped to 0 and non-finite values
    are rejected (previous value kept). Both emit a RuntimeWarning; no setter
    ever raises.

    Parameters
    ----------
    temperature_mK : float
        Initial temperature (mK), default 20 mK
    b_field : float
        Initial static field (T), default 1 T
    material : MaterialParameters, optional
        Decoherence model parameters. Defaults to ²⁸Si.
    """

    def __init__(self, temperature_mK: float = 20.0, b_field: float = 1.0,
                 material: Optional[MaterialParameters] = None):
        self.material = material or get_silicon28_material()
        self._lock = threading.Lock()
        self._temperature_mK = self._validated("temperature", temperature_mK, 20.0)
        self._b_field = self._validated("magnetic field", b_field, 1.0)
        self._snapshot = compute_environment(self._temperature_mK, self._b_field, self.material)

    @staticmethod
    def _validated(name: str, value: float, fallback: float) -> float:
        try:
            value = float(value)
        except (TypeError, ValueError):
            warnings.warn(f"Ignoring non-numeric {name} {value!r}", RuntimeWarning)
            return fallback
        if not np.isfinite(value):
            warnings.warn(f"Ignoring non-finite {name} {value}", RuntimeWarning)
            return fallback
        if value < 0:
            warnings.warn(f"Negative {name} {value} clamped to 0", RuntimeWarning)
            return 0.0
        return value

    def set_temperature(self, temperature_mK: float) -> EnvironmentSnapshot:
        """Set the temperature (mK) and recompute. Returns the new snapshot."""
        with self._lock:
            self._temperature_mK = self._validated(
                "temperature", temperature_mK, self._temperature_mK
            )
            self._snapshot = compute_environment(
                self._temperature_mK, self._b_field, self.material
            )
            return self._snapshot

    def set_b_field(self, b_field: float) -> EnvironmentSnapshot:
        """Set the static field (T) and recompute. Returns the new snapshot."""
        with self._lock:
            self._b_field = self._validated("magnetic field", b_field, self._b_field)
            self._snapshot = compute_environment(
                self._temperature_mK, self._b_field, self.material
            )
            return self._snapshot

    def get_state(self) -> EnvironmentSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def temperature_mK(self) -> float:
        with self._lock:
            return self._temperature_mK

    @property
    def b_field(self) -> float:
        with self._lock:
            return self._b_field

    def __repr__(self) -> str:
        snap = self.get_state()
        return (f"EnvironmentModel(T={snap.temperature_mK:g} mK, B={snap.b_field_tesla:g} T, "
                f"T1={snap.t1_string}, T2={snap.t2_string})")


# =============================================================================
# PARAMETER SWEEPS
# =============================================================================

@dataclass
class EnvironmentSweep:
    """
    Grids of derived quantities over a (temperature, field) sweep.

    Every array has shape (len(temperatures_mK), len(b_fields)).
    """
    temperatures_mK: np.ndarray
    b_fields: np.ndarray
    t1: np.ndarray
    t2: np.ndarray
    t2_star: np.ndarray
    thermal_excitation: np.ndarray
    noise_level: np.ndarray


def sweep_environment(temperatures_mK: Sequence[float], b_fields: Sequence[float],
                      material: Optional[MaterialParameters] = None) -> EnvironmentSweep:
    """
    Evaluate the environment model on a temperature × field grid.

    Example
    -------
    >>> sweep = sweep_environment(np.logspace(0, np.log10(4000), 50), [0.5, 1.0, 2.0])
    >>> sweep.t1.shape
    (50, 3)
    """
    material = material or get_silicon28_material()
    temps = np.asarray(temperatures_mK, dtype=float)
    fields = np.asarray(b_fields, dtype=float)
    shape = (temps.size, fields.size)

    grids = {key: np.empty(shape) for key in
             ("t1", "t2", "t2_star", "thermal_excitation", "noise_level")}
    for i, T in enumerate(temps):
        for j, B in enumerate(fields):
            env = compute_environment(T, B, material)
            grids["t1"][i, j] = env.t1
            grids["t2"][i, j] = env.t2
            grids["t2_star"][i, j] = env.t2_star
            grids["thermal_excitation"][i, j] = env.thermal_excitation_prob
            grids["noise_level"][i, j] = env.noise_level

    return EnvironmentSweep(temperatures_mK=temps, b_fields=fields, **grids)
