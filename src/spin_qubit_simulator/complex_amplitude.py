"""
Complex Amplitude Value Type
============================

A qubit state ψ = α|0⟩ + β|1⟩ is a pair of complex probability amplitudes.
`ComplexAmplitude` is an immutable (re, im) pair with exactly the arithmetic
the spin engine needs:

- addition / subtraction / negation
- multiplication by another amplitude or by a real scalar
- complex conjugate
- squared magnitude |z|² (a probability for a normalized state)
- unit-phase exponential e^{iθ} (precession and phase gates)

Keeping the operations on a single value type makes the order of complex
multiplications explicit in the gate formulas, e.g.

    >>> alpha, beta = ComplexAmplitude(1.0), ComplexAmplitude()
    >>> minus_i = ComplexAmplitude(0.0, -1.0)
    >>> new_beta = minus_i * alpha * s + beta * c   # -i·α·sin t + β·cos t
"""

import math
from dataclasses import dataclass
from typing import Union

Scalar = Union[int, float]


@dataclass(frozen=True)
class ComplexAmplitude:
    """Immutable complex number (re + i·im) used for qubit amplitudes."""
    re: float = 0.0
    im: float = 0.0

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def unit_phase(cls, theta: float) -> "ComplexAmplitude":
        """e^{iθ} = cos θ + i sin θ."""
        return cls(math.cos(theta), math.sin(theta))

    @classmethod
    def from_complex(cls, z: complex) -> "ComplexAmplitude":
        z = complex(z)
        return cls(z.real, z.imag)

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def __add__(self, other: "ComplexAmplitude") -> "ComplexAmplitude":
        if not isinstance(other, ComplexAmplitude):
            return NotImplemented
        return ComplexAmplitude(self.re + other.re, self.im + other.im)

    def __sub__(self, other: "ComplexAmplitude") -> "ComplexAmplitude":
        if not isinstance(other, ComplexAmplitude):
            return NotImplemented
        return ComplexAmplitude(self.re - other.re, self.im - other.im)

    def __neg__(self) -> "ComplexAmplitude":
        return ComplexAmplitude(-self.re, -self.im)

    def __mul__(self, other: Union["ComplexAmplitude", Scalar]) -> "ComplexAmplitude":
        if isinstance(other, ComplexAmplitude):
            return ComplexAmplitude(
                self.re * other.re - self.im * other.im,
                self.re * other.im + self.im * other.re,
            )
        if isinstance(other, (int, float)):
            return self.scale(other)
        return NotImplemented

    def __rmul__(self, other: Scalar) -> "ComplexAmplitude":
        if isinstance(other, (int, float)):
            return self.scale(other)
        return NotImplemented

    def scale(self, s: float) -> "ComplexAmplitude":
        """Multiply by a real scalar."""
        return ComplexAmplitude(self.re * s, self.im * s)

    def conjugate(self) -> "ComplexAmplitude":
        return ComplexAmplitude(self.re, -self.im)

    # -------------------------------------------------------------------------
    # Derived quantities
    # -------------------------------------------------------------------------

    def norm2(self) -> float:
        """Squared magnitude |z|² = re² + im²."""
        return self.re * self.re + self.im * self.im

    @property
    def magnitude(self) -> float:
        return math.hypot(self.re, self.im)

    @property
    def phase(self) -> float:
        """Argument of z in (-π, π]; 0 for z = 0."""
        return math.atan2(self.im, self.re)

    def is_finite(self) -> bool:
        return math.isfinite(self.re) and math.isfinite(self.im)

    def is_close(self, other: "ComplexAmplitude", tol: float = 1e-9) -> bool:
        return abs(self.re - other.re) <= tol and abs(self.im - other.im) <= tol

    def __complex__(self) -> complex:
        return complex(self.re, self.im)

    def __repr__(self) -> str:
        sign = "+" if self.im >= 0 else "-"
        return f"ComplexAmplitude({self.re:.6g} {sign} {abs(self.im):.6g}i)"


ZERO = ComplexAmplitude(0.0, 0.0)
ONE = ComplexAmplitude(1.0, 0.0)
I = ComplexAmplitude(0.0, 1.0)
MINUS_I = ComplexAmplitude(0.0, -1.0)
