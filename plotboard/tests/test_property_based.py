"""Property-based tests for conversion, compilation, coordinates and sampling.

These exercise numeric edge cases across wide input ranges to back up the
example-based unit tests.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given, settings  # noqa: E402
from hypothesis import strategies as st  # noqa: E402

from plotboard.InputConvert import InputConvert  # noqa: E402
from plotboard.board_shapes import format_tick  # noqa: E402
from plotboard.coordinates import CoordinateSystem  # noqa: E402
from plotboard.expression_compiler import compile_expression  # noqa: E402
from plotboard.sampler import sample  # noqa: E402

FINITE_FLOATS = st.floats(allow_nan=False, allow_infinity=False, width=64)
NONZERO_FINITE_FLOATS = FINITE_FLOATS.filter(lambda v: v != 0.0)
# Keep polynomial checks away from overflow so failures point at semantics.
SAFE_FLOATS = st.floats(min_value=-1e100, max_value=1e100, allow_nan=False, allow_infinity=False)
WINDOW_FLOATS = st.floats(min_value=-1e3, max_value=1e3, allow_nan=False, allow_infinity=False)
COEFFS = st.integers(min_value=-9, max_value=9)


@given(value=FINITE_FLOATS)
def test_inputconvert_float_roundtrip_for_finite_reals(value: float) -> None:
    assert InputConvert(value, float, truncate=False) == value


@given(real=FINITE_FLOATS, imag=NONZERO_FINITE_FLOATS)
def test_inputconvert_complex_rejects_nonreal_without_truncation(real: float, imag: float) -> None:
    with pytest.raises(ValueError, match="imaginary part is non-zero"):
        InputConvert(complex(real, imag), float, truncate=False)


@given(value=SAFE_FLOATS)
def test_compiled_polynomial_matches_numpy(value: float) -> None:
    observed = compile_expression("x^2+2x-3")(value)
    assert observed == pytest.approx(value**2 + 2 * value - 3)


@given(values=st.lists(SAFE_FLOATS, min_size=1, max_size=20))
def test_compiled_expression_vectorises(values: list[float]) -> None:
    arr = np.asarray(values, dtype=float)
    observed = compile_expression("3x-1")(arr)
    assert isinstance(observed, np.ndarray)
    np.testing.assert_allclose(observed, 3 * arr - 1)


@given(
    x_min=WINDOW_FLOATS,
    span=st.floats(min_value=1e-3, max_value=1e3),
    px=st.floats(min_value=-1e3, max_value=1e3),
    py=st.floats(min_value=-1e3, max_value=1e3),
)
def test_device_round_trip(x_min: float, span: float, px: float, py: float) -> None:
    cs = CoordinateSystem.create(640, 480, x_min, x_min + span, -span, span, padding=20)
    back = cs.to_math(cs.to_device((px, py)))
    assert back[0] == pytest.approx(px, rel=1e-9, abs=1e-9 * span)
    assert back[1] == pytest.approx(py, rel=1e-9, abs=1e-9 * span)


@settings(max_examples=30, deadline=None)
@given(a=COEFFS, b=COEFFS, c=COEFFS)
def test_sampled_points_stay_inside_plot_bounds(a: int, b: int, c: int) -> None:
    cs = CoordinateSystem.create(500, 500, -5, 5, -5, 5, padding=20)
    result = sample(compile_expression(f"({a})x^2+({b})x+({c})"), None, 50, cs)
    bounds = cs.plot_bounds
    for seg in result.segments:
        assert len(seg) >= 2
        assert np.all((seg.ys > bounds.y_min) & (seg.ys < bounds.y_max))


@given(k=st.integers(min_value=-1000, max_value=1000), exp=st.integers(min_value=-3, max_value=2))
def test_tick_labels_have_no_trailing_zeros(k: int, exp: int) -> None:
    step = 10.0**exp
    text = format_tick(k * step, max(0, -exp))
    assert not (("." in text) and text.endswith("0"))
    assert math.isclose(float(text), k * step, abs_tol=step / 2)
