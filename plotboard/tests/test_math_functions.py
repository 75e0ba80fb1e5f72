from __future__ import annotations

import math

import numpy as np
import pytest

from plotboard.math_functions import FUNCTIONS, binomial, chop, factorial, ran, seed_random


def test_factorial_and_multifactorial() -> None:
    assert factorial(5.0) == 120.0
    assert factorial(0.0) == 1.0
    assert factorial(7.0, 2.0) == 105.0
    assert math.isnan(factorial(-1.0))


def test_factorial_is_vectorised() -> None:
    np.testing.assert_allclose(factorial(np.array([1.0, 2.0, 3.0, 4.0])), [1.0, 2.0, 6.0, 24.0])


def test_binomial() -> None:
    assert binomial(5.0, 2.0) == pytest.approx(10.0)
    assert binomial(4.0, 0.0) == 1.0


def test_chop_truncates_toward_negative_infinity() -> None:
    assert chop(3.14159, 2) == pytest.approx(3.14)
    assert chop(-1.5) == -2.0


def test_ran_is_reproducible_after_seeding() -> None:
    seed_random(7)
    first = [float(ran(0, 10)) for _ in range(5)]
    seed_random(7)
    second = [float(ran(0, 10)) for _ in range(5)]
    assert first == second
    assert all(v == int(v) and 0 <= v <= 10 for v in first)


def test_reciprocal_trig() -> None:
    assert FUNCTIONS["sec"].impl(0.0) == pytest.approx(1.0)
    assert FUNCTIONS["cot"].impl(math.pi / 4) == pytest.approx(1.0)
    assert FUNCTIONS["arcsec"].impl(1.0) == pytest.approx(0.0)


def test_arity_ranges() -> None:
    assert FUNCTIONS["sin"].accepts(1)
    assert not FUNCTIONS["sin"].accepts(2)
    assert FUNCTIONS["ran"].accepts(2) and FUNCTIONS["ran"].accepts(3)
    assert not FUNCTIONS["pow"].accepts(1)
