from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import numpy as np

from lensdist.core.distortion import _IterativeInverseDistortion, _radial_polynomial, _tangential
from lensdist.properties import properties_key

RADIAL_NAMES = ("k1", "k2", "k3")
TANGENTIAL_NAMES = ("p1", "p2")


def _check_radial_count(n: int) -> int:
    n = int(n)
    if n not in (1, 2, 3):
        raise ValueError(f"number of radial parameters must be 1, 2 or 3, got {n}")
    return n


def radial_count_from_properties(prop: Mapping[str, Any], cam_id: int = -1) -> int:
    """
    Highest radial coefficient index stored for the camera (at least 1).
    """
    n = 1
    for i, name in enumerate(RADIAL_NAMES, start=1):
        if properties_key(name, cam_id) in prop:
            n = i
    return n


class RadialDistortion(_IterativeInverseDistortion):
    """
    Radial lens distortion.

      r2 = x^2 + y^2
      s  = 1 + k1*r2 + k2*r2^2 + k3*r2^3
      xd = x*s
      yd = y*s

    The number of radial parameters n can be 1, 2 or 3.
    Parameter order: k1, k2, k3
    """

    def __init__(self, n: int = 3) -> None:
        super().__init__(RADIAL_NAMES[: _check_radial_count(n)])

    @classmethod
    def from_properties(cls, prop: Mapping[str, Any], cam_id: int = -1) -> RadialDistortion:
        model = cls(radial_count_from_properties(prop, cam_id))
        model._read_properties(prop, cam_id)
        return model

    def _forward(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        s = _radial_polynomial(self._kd, x * x + y * y)
        return x * s, y * s


class RadialTangentialDistortion(_IterativeInverseDistortion):
    """
    Radial and tangential lens distortion (Brown-Conrady).

      r2 = x^2 + y^2
      s  = 1 + k1*r2 + k2*r2^2 + k3*r2^3
      xd = x*s + 2*p1*x*y         + p2*(r2 + 2*x^2)
      yd = y*s + p1*(r2 + 2*y^2)  + 2*p2*x*y

    The number of radial parameters n can be 1, 2 or 3, the tangential pair is
    always present.
    Parameter order: p1, p2, k1, k2, k3
    """

    def __init__(self, n: int = 3) -> None:
        super().__init__(TANGENTIAL_NAMES + RADIAL_NAMES[: _check_radial_count(n)])

    @classmethod
    def from_properties(cls, prop: Mapping[str, Any], cam_id: int = -1) -> RadialTangentialDistortion:
        model = cls(radial_count_from_properties(prop, cam_id))
        model._read_properties(prop, cam_id)
        return model

    def _forward(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        r2 = x * x + y * y
        s = _radial_polynomial(self._kd[2:], r2)
        dx, dy = _tangential(self._kd[0], self._kd[1], x, y, r2)
        return x * s + dx, y * s + dy
