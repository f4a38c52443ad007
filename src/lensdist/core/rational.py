from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import numpy as np

from lensdist.core.distortion import _IterativeInverseDistortion, _radial_polynomial, _tangential
from lensdist.core.radial import TANGENTIAL_NAMES

RATIONAL_NAMES = ("k1", "k2", "k3", "k4", "k5", "k6")
THIN_PRISM_NAMES = ("s1", "s2", "s3", "s4")

# Smallest magnitude of the rational denominator; the sign is kept.
DENOMINATOR_EPS = 1e-12


def _clamp_denominator(d: np.ndarray) -> np.ndarray:
    eps = np.where(d < 0.0, -DENOMINATOR_EPS, DENOMINATOR_EPS)
    return np.where(np.abs(d) < DENOMINATOR_EPS, eps, d)


def _rational_tangential(kd: np.ndarray, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    r2 = x * x + y * y
    num = _radial_polynomial(kd[2:5], r2)
    den = _radial_polynomial(kd[5:8], r2)
    s = num / _clamp_denominator(den)
    dx, dy = _tangential(kd[0], kd[1], x, y, r2)
    return x * s + dx, y * s + dy, r2


class RationalTangentialDistortion(_IterativeInverseDistortion):
    """
    Radial and tangential lens distortion with a rational radial term.

      r2 = x^2 + y^2
      s  = (1 + k1*r2 + k2*r2^2 + k3*r2^3) / (1 + k4*r2 + k5*r2^2 + k6*r2^3)
      xd = x*s + 2*p1*x*y         + p2*(r2 + 2*x^2)
      yd = y*s + p1*(r2 + 2*y^2)  + 2*p2*x*y

    A denominator closer to zero than DENOMINATOR_EPS is clamped to that
    magnitude. The result is finite but meaningless in that regime.

    Parameter order: p1, p2, k1, k2, k3, k4, k5, k6
    """

    def __init__(self) -> None:
        super().__init__(TANGENTIAL_NAMES + RATIONAL_NAMES)

    @classmethod
    def from_properties(cls, prop: Mapping[str, Any], cam_id: int = -1) -> RationalTangentialDistortion:
        model = cls()
        model._read_properties(prop, cam_id)
        return model

    def _forward(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        xd, yd, _r2 = _rational_tangential(self._kd, x, y)
        return xd, yd


class RationalTangentialThinPrismDistortion(_IterativeInverseDistortion):
    """
    Rational radial, tangential and thin prism lens distortion.

      r2 = x^2 + y^2
      s  = (1 + k1*r2 + k2*r2^2 + k3*r2^3) / (1 + k4*r2 + k5*r2^2 + k6*r2^3)
      xd = x*s + 2*p1*x*y         + p2*(r2 + 2*x^2) + s1*r2 + s2*r2^2
      yd = y*s + p1*(r2 + 2*y^2)  + 2*p2*x*y        + s3*r2 + s4*r2^2

    This is the full OpenCV model without sensor tilt.

    Parameter order: p1, p2, k1, k2, k3, k4, k5, k6, s1, s2, s3, s4
    """

    def __init__(self) -> None:
        super().__init__(TANGENTIAL_NAMES + RATIONAL_NAMES + THIN_PRISM_NAMES)

    @classmethod
    def from_properties(cls, prop: Mapping[str, Any], cam_id: int = -1) -> RationalTangentialThinPrismDistortion:
        model = cls()
        model._read_properties(prop, cam_id)
        return model

    def _forward(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        xd, yd, r2 = _rational_tangential(self._kd, x, y)
        s1, s2, s3, s4 = self._kd[8:12]
        r4 = r2 * r2
        return xd + s1 * r2 + s2 * r4, yd + s3 * r2 + s4 * r4
