"""
Three-component vector type and angle helpers.

``Vector3`` is immutable; every operation returns a new vector, so there is
no scratch state shared between callers. The magnitude ``w`` is always
derived from the components.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .constants import DE2RA, PIO2, TWOPI, X3PIO2


@dataclass(frozen=True)
class Vector3:
    """Cartesian 3-vector (km, km/s or earth radii depending on context)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @property
    def w(self) -> float:
        """Euclidean magnitude."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, k: float) -> "Vector3":
        return Vector3(k * self.x, k * self.y, k * self.z)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def angle(self, other: "Vector3") -> float:
        """Angle between two vectors in radians, in [0, pi]."""
        denom = self.w * other.w
        if denom == 0.0:
            raise ValueError("Angle is undefined for a zero-length vector")
        # Clip guards acos against rounding just outside [-1, 1]
        cosine = float(np.clip(self.dot(other) / denom, -1.0, 1.0))
        return math.acos(cosine)

    def normalized(self) -> "Vector3":
        magnitude = self.w
        if magnitude == 0.0:
            raise ValueError("Cannot normalize a zero-length vector")
        return Vector3(self.x / magnitude, self.y / magnitude, self.z / magnitude)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


ZERO_VECTOR = Vector3()


def ac_tan(sinx: float, cosx: float) -> float:
    """Four-quadrant arctangent returning a value in [0, 2*pi)."""
    if cosx == 0.0:
        return PIO2 if sinx > 0.0 else X3PIO2
    if cosx > 0.0:
        if sinx >= 0.0:
            return math.atan(sinx / cosx)
        return TWOPI + math.atan(sinx / cosx)
    return math.pi + math.atan(sinx / cosx)


def fmod2p(arg: float) -> float:
    """Reduce an angle to [0, 2*pi)."""
    value = arg - math.floor(arg / TWOPI) * TWOPI
    if value < 0.0:
        value += TWOPI
    if value >= TWOPI:
        value -= TWOPI
    return value


def frac(arg: float) -> float:
    """Fractional part, always non-negative."""
    return arg - math.floor(arg)


def radians(degrees_value: float) -> float:
    return degrees_value * DE2RA


def degrees(radians_value: float) -> float:
    return radians_value / DE2RA
