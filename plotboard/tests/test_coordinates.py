from __future__ import annotations

import numpy as np
import pytest

from plotboard.coordinates import Bounds, CoordinateSystem
from plotboard.errors import ConfigurationError


def _square() -> CoordinateSystem:
    return CoordinateSystem.create(500, 500, -5, 5, -5, 5, padding=20)


def test_scale_and_origin() -> None:
    cs = _square()
    assert cs.x_scale == pytest.approx(46.0)
    assert cs.y_scale == pytest.approx(46.0)
    assert cs.origin == (pytest.approx(250.0), pytest.approx(250.0))


def test_math_to_device_flips_y() -> None:
    cs = _square()
    assert cs.to_device((0.0, 0.0)) == (pytest.approx(250.0), pytest.approx(250.0))
    assert cs.to_device((5.0, 5.0)) == (pytest.approx(480.0), pytest.approx(20.0))
    assert cs.to_device((-5.0, -5.0)) == (pytest.approx(20.0), pytest.approx(480.0))


def test_to_math_inverts_to_device() -> None:
    cs = CoordinateSystem.create(640, 360, -2, 7, -1, 3, padding=15)
    for point in [(0.0, 0.0), (1.25, -0.5), (7.0, 3.0), (-2.0, 2.2)]:
        back = cs.to_math(cs.to_device(point))
        assert back == (pytest.approx(point[0]), pytest.approx(point[1]))


def test_to_device_array_matches_scalar_transform() -> None:
    cs = _square()
    pts = np.array([[0.0, 0.0], [1.0, 2.0], [-3.0, 4.5]])
    out = cs.to_device_array(pts)
    for row, point in zip(out, pts):
        assert tuple(row) == pytest.approx(cs.to_device(tuple(point)))


def test_equal_scale_derives_y_max() -> None:
    cs = CoordinateSystem.create(500, 300, -5, 5, -2, None, padding=20)
    assert cs.equal_scale
    assert cs.y_scale == cs.x_scale
    assert cs.math_bounds.y_max == pytest.approx(-2 + 260 / 46)


def test_nested_bounds() -> None:
    cs = _square()
    ext = cs.extended_bounds
    assert ext.x_min == pytest.approx(-5 - 20 / 46)
    assert ext.y_max == pytest.approx(5 + 20 / 46)
    plot = cs.plot_bounds
    assert plot.x_max == pytest.approx(ext.x_max + 2.5)
    assert plot.contains_bounds(ext)
    assert ext.contains_bounds(cs.math_bounds)


def test_inverted_bounds_are_corrected_with_warning() -> None:
    with pytest.warns(UserWarning, match="x_max corrected"):
        cs = CoordinateSystem.create(500, 500, 3, 3, -5, 5)
    assert cs.math_bounds.x_range == (3.0, 4.0)


def test_non_finite_bounds_raise() -> None:
    with pytest.raises(ConfigurationError):
        CoordinateSystem.create(500, 500, float("-inf"), 5, -5, 5)


@pytest.mark.parametrize("width, height, padding", [(30, 500, 20), (500, 40, 20), (500, 500, -1)])
def test_frame_without_drawing_area_raises(width: float, height: float, padding: float) -> None:
    with pytest.raises(ConfigurationError):
        CoordinateSystem.create(width, height, -5, 5, -5, 5, padding=padding)


def test_resized_keeps_window_and_recomputes_scale() -> None:
    cs = _square()
    bigger = cs.resized(960, 500)
    assert bigger.math_bounds == cs.math_bounds
    assert bigger.x_scale == pytest.approx(92.0)
    assert cs.width == 500  # old instance untouched


def test_bounds_helpers() -> None:
    b = Bounds(-1, 1, -2, 2)
    assert b.contains((0.5, -2.0))
    assert not b.contains((1.5, 0.0))
    assert b.grown(1, 1) == Bounds(-2, 2, -3, 3)


def test_plot_bounds_for_other_overscan() -> None:
    cs = _square()
    assert cs.plot_bounds_for(cs.overscan) == cs.plot_bounds
    assert cs.plot_bounds_for(0.0) == cs.extended_bounds
    assert cs.plot_bounds_for(0.5).x_max == pytest.approx(cs.extended_bounds.x_max + 5.0)


def test_device_y_accepts_scalars_and_arrays() -> None:
    cs = _square()
    assert cs.device_y(5.0) == pytest.approx(20.0)
    np.testing.assert_allclose(cs.device_y(np.array([-5.0, 0.0, 5.0])), [480.0, 250.0, 20.0])
