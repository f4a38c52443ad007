from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import numpy as np

from lensdist.core.distortion import INV_MAX_ITERATIONS, INV_TOLERANCE, Distortion, _radial_polynomial

EQUIDISTANT_NAMES = ("e1", "e2", "e3", "e4")

# Below this radius atan(r)/r is replaced by its limit 1.
_SMALL_RADIUS = 1e-12

# d(theta_d)/d(theta) = 1 + 3*e1*theta^2 + 5*e2*theta^4 + 7*e3*theta^6 + 9*e4*theta^8
_DERIVATIVE_FACTORS = np.array([3.0, 5.0, 7.0, 9.0])

# Incidence angles are kept in [0, pi/2) so that tan(theta) stays finite.
_MAX_THETA = np.pi / 2 - 1e-9


class EquidistantDistortion(Distortion):
    """
    Equidistant (fisheye) lens distortion, as in OpenCV's fisheye module.

      r       = sqrt(x^2 + y^2)
      theta   = atan(r)
      theta_d = theta * (1 + e1*theta^2 + e2*theta^4 + e3*theta^6 + e4*theta^8)
      xd      = x * theta_d / r
      yd      = y * theta_d / r

    The inverse solves theta_d(theta) = sqrt(xd^2 + yd^2) for theta with Newton
    iterations and sets r = tan(theta), which stays accurate at wide field angles.

    Parameter order: e1, e2, e3, e4
    """

    def __init__(self) -> None:
        super().__init__(EQUIDISTANT_NAMES)

    @classmethod
    def from_properties(cls, prop: Mapping[str, Any], cam_id: int = -1) -> EquidistantDistortion:
        model = cls()
        model._read_properties(prop, cam_id)
        return model

    def _forward(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        r = np.hypot(x, y)
        theta = np.arctan(r)
        theta_d = theta * _radial_polynomial(self._kd, theta * theta)
        small = r < _SMALL_RADIUS
        s = np.where(small, 1.0, theta_d / np.where(small, 1.0, r))
        return x * s, y * s

    def _solve_theta(self, theta_d: np.ndarray) -> np.ndarray:
        theta = theta_d.copy()
        best_theta = theta
        best_err = np.full(theta_d.shape, np.inf)
        deriv_coeffs = self._kd * _DERIVATIVE_FACTORS
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            for _ in range(INV_MAX_ITERATIONS):
                t2 = theta * theta
                res = theta * _radial_polynomial(self._kd, t2) - theta_d
                err = res * res

                better = err < best_err
                best_theta = np.where(better, theta, best_theta)
                best_err = np.where(better, err, best_err)

                deriv = _radial_polynomial(deriv_coeffs, t2)
                deriv = np.where(np.abs(deriv) < _SMALL_RADIUS, _SMALL_RADIUS, deriv)
                theta = theta - res / deriv
                if np.all(err <= INV_TOLERANCE):
                    best_theta = np.where(np.isfinite(theta), theta, best_theta)
                    break
        return np.clip(best_theta, 0.0, _MAX_THETA)

    def _inverse(self, xd: np.ndarray, yd: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        theta_d = np.hypot(xd, yd)
        theta = self._solve_theta(theta_d)
        small = theta_d < _SMALL_RADIUS
        s = np.where(small, 1.0, np.tan(theta) / np.where(small, 1.0, theta_d))
        return xd * s, yd * s
