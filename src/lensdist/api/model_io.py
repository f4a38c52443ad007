from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from lensdist.core.distortion import Distortion
from lensdist.core.equidistant import EquidistantDistortion
from lensdist.core.factory import VARIANTS, clean_all_properties, create_distortion, variant_name
from lensdist.core.radial import RadialTangentialDistortion
from lensdist.core.rational import RationalTangentialDistortion, RationalTangentialThinPrismDistortion
from lensdist.properties import Properties

SCHEMA_VERSION = "lensdist.distortion.v0"

_OPENCV_NAMES = ("k1", "k2", "p1", "p2", "k3", "k4", "k5", "k6", "s1", "s2", "s3", "s4")


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ValueError(msg)


def _set_named(model: Distortion, values: dict[str, float]) -> Distortion:
    for i, name in enumerate(model.parameter_names):
        model.set_parameter(i, values.get(name, 0.0))
    return model


def distortion_to_dict(model: Distortion) -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "model": variant_name(model),
        "parameters": {name: float(v) for name, v in zip(model.parameter_names, model.parameters())},
    }


def distortion_from_dict(data: dict[str, Any]) -> Distortion:
    _require(isinstance(data, dict), "distortion file must hold a JSON object")
    _require(data.get("schema_version") == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")
    name = data.get("model")
    _require(name in VARIANTS, f"unknown distortion model: {name!r}")
    params = data.get("parameters", {})
    _require(isinstance(params, dict), "parameters must be an object")

    cls = VARIANTS[name]
    model = Distortion() if cls is Distortion else cls.from_properties(params)
    unknown = sorted(set(params) - set(model.parameter_names))
    _require(not unknown, f"unexpected parameters for {name}: {unknown}")
    return model


def save_distortion(path: Path, model: Distortion, cam_id: int = -1) -> Path:
    """
    Save a distortion model.

    A ``.json`` path holds exactly one model (cam_id is ignored). Any other
    suffix is a ``key=value`` property file: an existing file is updated in
    place, replacing only the distortion parameters of camera `cam_id`.
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        path.write_text(json.dumps(distortion_to_dict(model), indent=2, sort_keys=True), encoding="utf-8")
        return path

    prop = Properties.load(path) if path.exists() else Properties()
    clean_all_properties(prop, cam_id)
    model.get_properties(prop, cam_id)
    return prop.save(path)


def load_distortion(path: Path, cam_id: int = -1) -> Distortion | None:
    """
    Load a distortion model saved by `save_distortion`.

    Returns None if a property file holds no distortion parameter for the camera.
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        return distortion_from_dict(json.loads(path.read_text(encoding="utf-8")))
    return create_distortion(Properties.load(path), cam_id)


def to_opencv_coeffs(model: Distortion) -> np.ndarray:
    """
    OpenCV ``distCoeffs`` vector of a model.

    Equidistant models give the 4 coefficients of ``cv2.fisheye``.
    """
    values = dict(zip(model.parameter_names, model.parameters()))
    if isinstance(model, EquidistantDistortion):
        return np.array([values[name] for name in model.parameter_names], dtype=np.float64)

    if isinstance(model, RationalTangentialThinPrismDistortion):
        size = 12
    elif isinstance(model, RationalTangentialDistortion):
        size = 8
    elif "k3" in values:
        size = 5
    else:
        size = 4
    return np.array([values.get(name, 0.0) for name in _OPENCV_NAMES[:size]], dtype=np.float64)


def from_opencv_coeffs(coeffs: Any, fisheye: bool = False) -> Distortion:
    coeffs = np.asarray(coeffs, dtype=np.float64).reshape(-1)
    _require(np.all(np.isfinite(coeffs)), "distortion coefficients must be finite")
    if fisheye:
        _require(coeffs.size == 4, f"fisheye models have 4 coefficients, got {coeffs.size}")
        return _set_named(EquidistantDistortion(), dict(zip(("e1", "e2", "e3", "e4"), coeffs)))

    n = coeffs.size
    if n == 14:
        _require(np.all(coeffs[12:] == 0.0), "sensor tilt coefficients are not supported")
        coeffs = coeffs[:12]
        n = 12
    values = dict(zip(_OPENCV_NAMES, coeffs))
    if n == 4:
        model: Distortion = RadialTangentialDistortion(2)
    elif n == 5:
        model = RadialTangentialDistortion(3)
    elif n == 8:
        model = RationalTangentialDistortion()
    elif n == 12:
        model = RationalTangentialThinPrismDistortion()
    else:
        raise ValueError(f"unsupported number of distortion coefficients: {n}")
    return _set_named(model, values)
