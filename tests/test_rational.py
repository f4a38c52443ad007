from __future__ import annotations

import numpy as np
import pytest

from lensdist.core.radial import RadialTangentialDistortion
from lensdist.core.rational import RationalTangentialDistortion, RationalTangentialThinPrismDistortion

THIN_PRISM_VALUES = (2e-4, -3e-4, -9e-4, 2e-4, 5e-5, 1e-4, -2e-5, 1e-5, 3e-4, -1e-4, -2e-4, 5e-5)


def _with_values(model, values):
    for i, v in enumerate(values):
        model.set_parameter(i, v)
    return model


def _grid(n: int = 21) -> tuple[np.ndarray, np.ndarray]:
    g = np.linspace(-1.0, 1.0, n)
    return np.meshgrid(g, g)


def test_rational_without_denominator_matches_radial_tangential() -> None:
    values = (0.001, -0.002, -0.1, 0.02, -0.003)
    rt = _with_values(RadialTangentialDistortion(3), values)
    rational = _with_values(RationalTangentialDistortion(), values + (0.0, 0.0, 0.0))
    x, y = _grid(11)
    np.testing.assert_allclose(rational.transform(x, y), rt.transform(x, y), rtol=0, atol=1e-15)


def test_rational_denominator() -> None:
    model = _with_values(RationalTangentialDistortion(), (0.0, 0.0, 0.1, 0.0, 0.0, 0.2, 0.0, 0.0))
    xd, yd = model.transform(0.6, 0.8)
    s = 1.1 / 1.2
    assert xd == pytest.approx(0.6 * s, abs=1e-15)
    assert yd == pytest.approx(0.8 * s, abs=1e-15)


def test_rational_zero_denominator_stays_finite() -> None:
    # 1 + k4*r2 == 0 at r2 == 1
    model = _with_values(RationalTangentialDistortion(), (0.0, 0.0, 0.0, 0.0, 0.0, -1.0, 0.0, 0.0))
    xd, yd = model.transform(1.0, 0.0)
    assert np.isfinite(xd) and np.isfinite(yd)
    assert xd > 0.0


def test_thin_prism_adds_prism_terms() -> None:
    prism = np.zeros(12)
    prism[8:12] = (0.01, 0.02, 0.03, 0.04)
    model = _with_values(RationalTangentialThinPrismDistortion(), prism)
    xd, yd = model.transform(0.3, 0.4)
    r2 = 0.25
    assert xd == pytest.approx(0.3 + 0.01 * r2 + 0.02 * r2 * r2, abs=1e-15)
    assert yd == pytest.approx(0.4 + 0.03 * r2 + 0.04 * r2 * r2, abs=1e-15)


def test_parameter_order() -> None:
    assert RationalTangentialDistortion().parameter_names == ("p1", "p2", "k1", "k2", "k3", "k4", "k5", "k6")
    assert RationalTangentialThinPrismDistortion().parameter_names[8:] == ("s1", "s2", "s3", "s4")


@pytest.mark.parametrize(
    "model",
    [
        _with_values(RationalTangentialDistortion(), THIN_PRISM_VALUES[:8]),
        _with_values(RationalTangentialThinPrismDistortion(), THIN_PRISM_VALUES),
    ],
    ids=["rational", "thin_prism"],
)
def test_roundtrip_realistic_parameters(model) -> None:
    x, y = _grid()
    xi, yi = model.inv_transform(*model.transform(x, y))
    assert np.max(np.abs(xi - x)) < 1e-9
    assert np.max(np.abs(yi - y)) < 1e-9


def test_thin_prism_matches_opencv_project_points() -> None:
    cv2 = pytest.importorskip("cv2")
    values = (0.001, -0.002, -0.1, 0.02, -0.003, 0.05, -0.01, 0.002, 0.001, -0.0005, 0.0008, 0.0002)
    model = _with_values(RationalTangentialThinPrismDistortion(), values)

    rng = np.random.default_rng(1)
    pts = np.column_stack([rng.uniform(-0.8, 0.8, 100), rng.uniform(-0.8, 0.8, 100), np.ones(100)])
    # OpenCV order: k1 k2 p1 p2 k3 k4 k5 k6 s1 s2 s3 s4
    d = np.array([values[i] for i in (2, 3, 0, 1, 4, 5, 6, 7, 8, 9, 10, 11)], dtype=np.float64)
    img, _ = cv2.projectPoints(pts, np.zeros(3), np.zeros(3), np.eye(3), d)
    img = img.reshape(-1, 2)

    xd, yd = model.transform(pts[:, 0], pts[:, 1])
    np.testing.assert_allclose(xd, img[:, 0], rtol=0, atol=1e-9)
    np.testing.assert_allclose(yd, img[:, 1], rtol=0, atol=1e-9)
