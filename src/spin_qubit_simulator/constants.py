"""
Physical Constants for Spin Qubit Simulations
==============================================

This module defines the fundamental physical constants and numerical
thresholds used throughout the spin qubit simulation. All values are in SI
units unless otherwise noted.

WHY THESE CONSTANTS MATTER FOR SPIN QUBITS
------------------------------------------

**μB (MU_B) - Bohr magneton**
    The quantum of electron magnetic moment. Together with the g-factor it
    sets the Zeeman splitting of the qubit levels:

        ΔE = g · μB · B

    At B = 1 T and g = 2: ΔE ≈ 1.85×10⁻²³ J ≈ 0.116 meV ≈ 28 GHz.

**kB (KB) - Boltzmann constant**
    Converts temperature into energy. The ratio ΔE / (kB·T) decides whether
    the qubit is thermally polarized:
    - 20 mK, 1 T: ΔE/kBT ≈ 67 → excited population ~ 10⁻²⁹ (frozen out)
    - 1 K, 1 T:   ΔE/kBT ≈ 1.3 → excited population ~ 0.2 (hot!)

**γ (GYROMAGNETIC_RATIO) - Electron gyromagnetic ratio**
    Converts field to precession frequency, f = γ·B. For an electron bound
    in silicon γ/2π ≈ 28.024 GHz/T, so the Larmor frequency at 1 T is
    ~28 GHz and a 0.1 T drive field gives a ~2.8 GHz Rabi frequency.

References
----------
CODATA 2018 recommended values:
https://physics.nist.gov/cuu/Constants/
"""

import numpy as np

# =============================================================================
# FUNDAMENTAL CONSTANTS (CODATA 2018)
# =============================================================================

HBAR = 1.054571817e-34  # Reduced Planck constant [J·s]

KB = 1.380649e-23  # Boltzmann constant [J/K] (exact by definition)
"""
Connects temperature to energy.

**For spin qubits in a dilution refrigerator**:
- 20 mK base temperature: kBT = 1.7 μeV
- 1 K (pumped He-4 stage): kBT = 86 μeV
- 4 K (He-4 bath): kBT = 345 μeV, comparable to a 3 T Zeeman splitting
"""

MU_B = 9.2740100783e-24  # Bohr magneton [J/T]
"""
The natural unit of electron magnetic moment, μB = eℏ/(2mₑ).

**For spin qubits**: Sets the Zeeman energy ΔE = g·μB·B which is both the
qubit transition energy and the Boltzmann gap for thermal excitation.
"""

E_CHARGE = 1.602176634e-19  # Elementary charge [C] (exact by definition)
"""
Used here only to convert between Joules and electron-volts:
1 meV = 1.602×10⁻²² J.
"""

JOULES_PER_MEV = E_CHARGE * 1e-3  # [J/meV]

# =============================================================================
# ELECTRON SPIN IN SILICON
# =============================================================================

G_FACTOR = 2.0  # Electron g-factor in silicon (dimensionless)

GYROMAGNETIC_RATIO = 28.024e9  # γ/2π for an electron in silicon [Hz/T]
"""
Electron gyromagnetic ratio divided by 2π.

**Larmor frequency**: f_L = γ·Bz (28.024 GHz at 1 T)
**Rabi frequency**: f_R = γ·B1 (2.8 GHz for a 0.1 T drive field)

These are GHz-scale frequencies; the engine rescales simulation time with
`EngineParameters.time_scale` so a display tick rotates the state by a
tractable angle.
"""

# =============================================================================
# NUMERICAL THRESHOLDS
# =============================================================================

MIN_TEMPERATURE_K = 1e-3  # Floor applied before any division by T [K]

NORM_TOLERANCE = 1e-6
"""Allowed deviation of |α|²+|β|² from 1 after any state mutation."""

NORM_EPSILON = 1e-10
"""Below this norm the state is considered degenerate and cannot be rescaled."""

AMPLITUDE_EPSILON = 1e-12
"""Population below which an amplitude's phase is treated as undefined."""

CHANNEL_DISABLE_THRESHOLD = 1e6
"""T1 or T2 at or above this value [s] switches the decay channel off."""

BOLTZMANN_EXPONENT_CUTOFF = 500.0
"""Exponent magnitude beyond which exp() is treated as 0 (overflow guard)."""

TWO_PI = 2 * np.pi
