from __future__ import annotations

import copy
import operator
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any

import numpy as np

from lensdist.properties import get_float, properties_key

# Inverse transform: squared residual (normalized image units) and iteration cap.
INV_TOLERANCE = 1e-12
INV_MAX_ITERATIONS = 100


class ParameterIndexError(IndexError):
    pass


def _as_points(x: Any, y: Any) -> tuple[np.ndarray, np.ndarray]:
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        x, y = np.broadcast_arrays(x, y)
    return x, y


def _restore(a: np.ndarray) -> float | np.ndarray:
    if np.ndim(a) == 0:
        return float(a)
    return a


def _radial_polynomial(coeffs: np.ndarray, r2: np.ndarray) -> np.ndarray:
    """
    1 + c[0]*r2 + c[1]*r2^2 + ... evaluated with Horner's scheme.
    """
    s = np.zeros_like(r2)
    for c in coeffs[::-1]:
        s = (s + c) * r2
    return 1.0 + s


def _tangential(p1: float, p2: float, x: np.ndarray, y: np.ndarray, r2: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    xy = x * y
    dx = 2.0 * p1 * xy + p2 * (r2 + 2.0 * x * x)
    dy = p1 * (r2 + 2.0 * y * y) + 2.0 * p2 * xy
    return dx, dy


def _invert_by_fixed_point(
    forward: Callable[[np.ndarray, np.ndarray], tuple[np.ndarray, np.ndarray]],
    xd: np.ndarray,
    yd: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Iterative inverse of a forward distortion for small/moderate distortion.

    Starts at the distorted point and subtracts the residual of the forward
    transform until every point's squared residual is below INV_TOLERANCE. If the
    iteration cap is reached, the estimate with the smallest residual seen is
    returned for each point.
    """
    x = xd.copy()
    y = yd.copy()
    best_x = x
    best_y = y
    best_err = np.full(xd.shape, np.inf)
    with np.errstate(over="ignore", invalid="ignore"):
        for _ in range(INV_MAX_ITERATIONS):
            x_est, y_est = forward(x, y)
            ex = x_est - xd
            ey = y_est - yd
            err = ex * ex + ey * ey

            better = err < best_err
            best_x = np.where(better, x, best_x)
            best_y = np.where(better, y, best_y)
            best_err = np.where(better, err, best_err)

            x = x - ex
            y = y - ey
            if np.all(err <= INV_TOLERANCE):
                return x, y
    return best_x, best_y


class Distortion:
    """
    Lens distortion model on normalized camera coordinates (x=X/Z, y=Y/Z).

    The base class is the identity: it has no parameters and maps every point
    onto itself. Variants hold a fixed-size vector of float parameters whose
    index meaning is given by `parameter_names`, which are also the keys used
    in a property store.

    Instances are not synchronized. Concurrent set_parameter() calls on the same
    instance must be serialized by the caller.
    """

    def __init__(self, names: tuple[str, ...] = ()) -> None:
        self._names = tuple(names)
        self._kd = np.zeros(len(self._names), dtype=np.float64)

    @staticmethod
    def create(prop: Mapping[str, Any], cam_id: int = -1) -> Distortion | None:
        from lensdist.core.factory import create_distortion

        return create_distortion(prop, cam_id)

    @staticmethod
    def clean_all_properties(prop: MutableMapping[str, Any], cam_id: int = -1) -> None:
        from lensdist.core.factory import clean_all_properties

        clean_all_properties(prop, cam_id)

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return self._names

    def count_parameters(self) -> int:
        return len(self._kd)

    def _check_index(self, i: int) -> int:
        i = operator.index(i)
        if i < 0 or i >= len(self._kd):
            raise ParameterIndexError(
                f"{type(self).__name__}: parameter index {i} out of range [0, {len(self._kd)})"
            )
        return i

    def get_parameter(self, i: int) -> float:
        return float(self._kd[self._check_index(i)])

    def set_parameter(self, i: int, v: float) -> None:
        self._kd[self._check_index(i)] = float(v)

    def parameters(self) -> np.ndarray:
        return self._kd.copy()

    def clone(self) -> Distortion:
        return copy.deepcopy(self)

    def transform(self, x: Any, y: Any) -> tuple[Any, Any]:
        """
        Ideal -> distorted. Accepts scalars or arrays; scalars give floats.
        """
        x, y = _as_points(x, y)
        xd, yd = self._forward(x, y)
        return _restore(xd), _restore(yd)

    def inv_transform(self, xd: Any, yd: Any) -> tuple[Any, Any]:
        """
        Distorted -> ideal. Accepts scalars or arrays; scalars give floats.
        """
        xd, yd = _as_points(xd, yd)
        x, y = self._inverse(xd, yd)
        return _restore(x), _restore(y)

    def _forward(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        return x.copy(), y.copy()

    def _inverse(self, xd: np.ndarray, yd: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        return xd.copy(), yd.copy()

    def _read_properties(self, prop: Mapping[str, Any], cam_id: int) -> None:
        for i, name in enumerate(self._names):
            self._kd[i] = get_float(prop, properties_key(name, cam_id))

    def get_properties(self, prop: MutableMapping[str, Any], cam_id: int = -1) -> None:
        for name, v in zip(self._names, self._kd):
            prop[properties_key(name, cam_id)] = float(v)

    def clean_properties(self, prop: MutableMapping[str, Any], cam_id: int = -1) -> None:
        for name in self._names:
            prop.pop(properties_key(name, cam_id), None)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._names == other._names and np.array_equal(self._kd, other._kd)

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        args = ", ".join(f"{name}={float(v)!r}" for name, v in zip(self._names, self._kd))
        return f"{type(self).__name__}({args})"


class _IterativeInverseDistortion(Distortion):
    def _inverse(self, xd: np.ndarray, yd: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        return _invert_by_fixed_point(self._forward, xd, yd)
