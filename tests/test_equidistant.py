from __future__ import annotations

import numpy as np
import pytest

from lensdist.core.equidistant import EquidistantDistortion

VALUES = (-0.01, 0.003, -0.0008, 0.0001)


def _model(values=VALUES) -> EquidistantDistortion:
    model = EquidistantDistortion()
    for i, v in enumerate(values):
        model.set_parameter(i, v)
    return model


def test_zero_parameters_give_pure_equidistant_projection() -> None:
    model = EquidistantDistortion()
    xd, yd = model.transform(0.6, 0.8)
    assert xd == pytest.approx(0.6 * np.arctan(1.0), abs=1e-15)
    assert yd == pytest.approx(0.8 * np.arctan(1.0), abs=1e-15)


def test_optical_center_is_fixed() -> None:
    model = _model()
    assert model.transform(0.0, 0.0) == (0.0, 0.0)
    xd, yd = model.transform(1e-14, -1e-14)
    assert xd == pytest.approx(1e-14, rel=1e-9)
    assert yd == pytest.approx(-1e-14, rel=1e-9)


def test_parameter_names_are_disjoint_from_radial_family() -> None:
    assert EquidistantDistortion().parameter_names == ("e1", "e2", "e3", "e4")


def test_roundtrip() -> None:
    model = _model()
    g = np.linspace(-1.0, 1.0, 21)
    x, y = np.meshgrid(g, g)
    xi, yi = model.inv_transform(*model.transform(x, y))
    assert np.max(np.abs(xi - x)) < 1e-5
    assert np.max(np.abs(yi - y)) < 1e-5


def test_matches_opencv_fisheye() -> None:
    cv2 = pytest.importorskip("cv2")
    model = _model()
    rng = np.random.default_rng(2)
    pts = rng.uniform(-1.0, 1.0, size=(100, 1, 2))

    dist = cv2.fisheye.distortPoints(pts, np.eye(3), np.array(VALUES, dtype=np.float64))
    dist = dist.reshape(-1, 2)

    xd, yd = model.transform(pts[:, 0, 0], pts[:, 0, 1])
    np.testing.assert_allclose(xd, dist[:, 0], rtol=0, atol=1e-9)
    np.testing.assert_allclose(yd, dist[:, 1], rtol=0, atol=1e-9)


@pytest.mark.parametrize("values", [(0.0, 0.0, 0.0, 0.0), VALUES], ids=["pure", "distorted"])
@pytest.mark.parametrize("r", [3.0, 5.0])
def test_roundtrip_at_wide_field_angles(values, r: float) -> None:
    model = _model(values)
    angles = np.linspace(0.0, 2.0 * np.pi, 12, endpoint=False)
    x = r * np.cos(angles)
    y = r * np.sin(angles)
    xi, yi = model.inv_transform(*model.transform(x, y))
    assert np.max(np.abs(xi - x)) < 1e-8
    assert np.max(np.abs(yi - y)) < 1e-8


def test_unreachable_radius_gives_finite_estimate() -> None:
    # theta_d beyond pi/2 has no incidence angle in front of the camera.
    x, y = EquidistantDistortion().inv_transform(2.0, 1.0)
    assert np.isfinite(x) and np.isfinite(y)
    assert x > 0.0 and y > 0.0
