"""
Configuration Dataclasses for Spin Qubit Simulations
=====================================================

This module groups the tunable simulation parameters into two dataclasses:

1. **MaterialParameters**: the phenomenological decoherence model of the host
   material. Reference coherence times, the temperature they were measured
   at, and the prefactors of each spin-lattice relaxation mechanism.

2. **EngineParameters**: how the spin engine maps display ticks onto physical
   time, how strongly it drives the qubit, and how it keeps its gate log.

PRESET CONFIGURATIONS
---------------------

- `get_silicon28_material()`: isotopically purified ²⁸Si at 20 mK
- `get_default_engine_parameters()`: 50 ns per tick, 0.1 T drive field

References
----------
[1] Muhonen et al., Nature Nanotechnology 9, 986 (2014) - T1 ~ 6 s
[2] Veldhorst et al., Nature Nanotechnology 9, 981 (2014) - T2 ~ 28 ms
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .constants import E_CHARGE, G_FACTOR, GYROMAGNETIC_RATIO, JOULES_PER_MEV


# =============================================================================
# MATERIAL (DECOHERENCE MODEL) PARAMETERS
# =============================================================================

@dataclass(frozen=True)
class MaterialParameters:
    """
    Reference values of the phenomenological spin decoherence model.

    The model anchors every time constant to a measured value at a reference
    temperature and scales it with a power law (T2, T2*) or sums mechanism
    rates that each scale differently with T and B (T1).

    Attributes
    ----------
    t1_ref : float
        Spin-lattice relaxation time at the reference temperature (s).
    t2_ref : float
        Hahn-echo coherence time at the reference temperature (s).
    t2_star_ref : float
        Ramsey (free induction) dephasing time at the reference temperature (s).
    reference_temperature : float
        Temperature at which the reference values hold (K).
    saturation_temperature : float
        Temperature at which the dimensionless noise level reaches 1 (K).
    valley_splitting : float
        Valley splitting that activates the Orbach process (J).
    direct_phonon_coeff : float
        Prefactor of the one-phonon rate, rate = coeff · (T/T_ref) · B⁴ (1/s).
    raman_coeff : float
        Prefactor of the two-phonon rate, rate = coeff · (T/T_ref)⁷ (1/s).
    orbach_prefactor : float
        Attempt rate of the Orbach process (1/s).
    g_factor : float
        Electron g-factor used for the Zeeman splitting.
    """
    t1_ref: float = 6.0
    t2_ref: float = 0.028
    t2_star_ref: float = 120e-6
    reference_temperature: float = 0.020
    saturation_temperature: float = 4.0
    valley_splitting: float = 0.1e-3 * E_CHARGE  # 0.1 meV
    direct_phonon_coeff: float = 1e-3
    raman_coeff: float = 1e-8
    orbach_prefactor: float = 1e3
    g_factor: float = G_FACTOR

    def __post_init__(self):
        for name in ("t1_ref", "t2_ref", "t2_star_ref",
                     "reference_temperature", "saturation_temperature"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive finite number, got {value}")
        if self.saturation_temperature <= self.reference_temperature:
            raise ValueError(
                f"saturation_temperature ({self.saturation_temperature} K) must exceed "
                f"reference_temperature ({self.reference_temperature} K)"
            )

    @property
    def valley_splitting_meV(self) -> float:
        return self.valley_splitting / JOULES_PER_MEV


def get_silicon28_material() -> MaterialParameters:
    """
    Isotopically purified ²⁸Si donor/dot electron spin.

    T1 ≈ 6 s and T2(Hahn) ≈ 28 ms at 20 mK and 1 T; Ramsey T2* ≈ 120 μs.
    """
    return MaterialParameters()


# =============================================================================
# ENGINE PARAMETERS
# =============================================================================

@dataclass(frozen=True)
class EngineParameters:
    """
    Parameters of the spin engine's time stepping.

    **Why a time scale?**

    Larmor and Rabi frequencies of an electron spin are GHz-scale. A display
    loop ticks at ~60 Hz with dt ~ 16 ms, so evolving by real dt would spin
    the state through ~10⁸ turns per frame. Every engine step multiplies dt
    by `time_scale`, the physical seconds represented by one unit of dt.

    Attributes
    ----------
    time_scale : float
        Physical seconds per unit of tick dt (default 50 ns).
    b1_max : float
        Drive field amplitude at full drive (T). Rabi frequency = γ·B1.
    gyromagnetic_ratio : float
        γ/2π in Hz/T.
    dephasing_kick_scale : float
        Maximum width of the uniform random phase kick used to mimic T2
        dephasing (rad), scaled by the per-step decay 1 − exp(−dt/T2).
    gate_log_capacity : int or None
        Maximum number of retained gate log entries. None keeps everything.
    """
    time_scale: float = 50e-9
    b1_max: float = 0.1
    gyromagnetic_ratio: float = GYROMAGNETIC_RATIO
    dephasing_kick_scale: float = 0.1
    gate_log_capacity: Optional[int] = None

    def __post_init__(self):
        if not np.isfinite(self.time_scale) or self.time_scale <= 0:
            raise ValueError(f"time_scale must be positive, got {self.time_scale}")
        if not np.isfinite(self.b1_max) or self.b1_max < 0:
            raise ValueError(f"b1_max must be non-negative, got {self.b1_max}")
        if not np.isfinite(self.gyromagnetic_ratio) or self.gyromagnetic_ratio <= 0:
            raise ValueError(
                f"gyromagnetic_ratio must be positive, got {self.gyromagnetic_ratio}"
            )
        if not np.isfinite(self.dephasing_kick_scale) or self.dephasing_kick_scale < 0:
            raise ValueError(
                f"dephasing_kick_scale must be non-negative, got {self.dephasing_kick_scale}"
            )
        if self.gate_log_capacity is not None and self.gate_log_capacity < 1:
            raise ValueError(
                f"gate_log_capacity must be None or >= 1, got {self.gate_log_capacity}"
            )

    @property
    def max_rabi_frequency(self) -> float:
        """Rabi frequency at full drive, f_R = γ·B1 (Hz)."""
        return self.gyromagnetic_ratio * self.b1_max


def get_default_engine_parameters() -> EngineParameters:
    """50 ns per tick, 0.1 T drive (≈2.8 GHz Rabi), unbounded gate log."""
    return EngineParameters()
