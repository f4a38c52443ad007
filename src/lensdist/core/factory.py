from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any

from lensdist.core.distortion import Distortion
from lensdist.core.equidistant import EQUIDISTANT_NAMES, EquidistantDistortion
from lensdist.core.radial import RADIAL_NAMES, TANGENTIAL_NAMES, RadialDistortion, RadialTangentialDistortion
from lensdist.core.rational import (
    RATIONAL_NAMES,
    THIN_PRISM_NAMES,
    RationalTangentialDistortion,
    RationalTangentialThinPrismDistortion,
)
from lensdist.properties import properties_key

logger = logging.getLogger(__name__)

# Checked in this order; the first variant with any of its marker keys present wins.
_PRECEDENCE: tuple[tuple[tuple[str, ...], type], ...] = (
    (THIN_PRISM_NAMES, RationalTangentialThinPrismDistortion),
    (RATIONAL_NAMES[3:], RationalTangentialDistortion),
    (TANGENTIAL_NAMES, RadialTangentialDistortion),
    (RADIAL_NAMES, RadialDistortion),
    (EQUIDISTANT_NAMES, EquidistantDistortion),
)

ALL_PARAMETER_NAMES = TANGENTIAL_NAMES + RATIONAL_NAMES + THIN_PRISM_NAMES + EQUIDISTANT_NAMES

VARIANTS: dict[str, type] = {
    "identity": Distortion,
    "radial": RadialDistortion,
    "radial_tangential": RadialTangentialDistortion,
    "rational_tangential": RationalTangentialDistortion,
    "rational_tangential_thin_prism": RationalTangentialThinPrismDistortion,
    "equidistant": EquidistantDistortion,
}


def variant_name(model: Distortion) -> str:
    for name, cls in VARIANTS.items():
        if type(model) is cls:
            return name
    raise ValueError(f"unknown distortion variant: {type(model).__name__}")


def _has_any(prop: Mapping[str, Any], names: tuple[str, ...], cam_id: int) -> bool:
    return any(properties_key(name, cam_id) in prop for name in names)


def create_distortion(prop: Mapping[str, Any], cam_id: int = -1) -> Distortion | None:
    """
    Create the distortion model whose parameters are stored in `prop`.

    If keys of several variants are present, the most specific one wins:
    thin prism, rational, radial-tangential, radial, equidistant. Absent
    coefficients of the selected variant are zero. Returns None if no
    distortion parameter is stored for the camera.
    """
    for markers, cls in _PRECEDENCE:
        if _has_any(prop, markers, cam_id):
            model = cls.from_properties(prop, cam_id)
            logger.debug("camera %d: %r", cam_id, model)
            return model

    logger.debug("camera %d: no distortion parameters", cam_id)
    return None


def clean_all_properties(prop: MutableMapping[str, Any], cam_id: int = -1) -> None:
    """
    Remove the parameters of every distortion variant of a camera.
    """
    for name in ALL_PARAMETER_NAMES:
        prop.pop(properties_key(name, cam_id), None)
