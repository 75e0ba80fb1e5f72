"""Evaluation namespace for compiled expressions.

Every function here accepts floats or NumPy arrays and returns NaN or an
infinity for inputs outside its domain instead of raising. Callers are
expected to evaluate inside ``np.errstate(all="ignore")`` (the compiled
expression does this) so NumPy does not emit ``RuntimeWarning`` noise either.

Public API
----------
- :data:`FUNCTIONS`: name → :class:`FunctionSpec`
- :data:`CONSTANTS`: ``pi`` and ``e``
- :data:`INVERTIBLE_TRIG`: names accepted by the ``fn^-1`` shorthand
- :func:`seed_random`: reseed the generator behind ``ran``
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

__all__ = ["CONSTANTS", "FUNCTIONS", "INVERTIBLE_TRIG", "FunctionSpec", "seed_random"]


_rng = np.random.default_rng()


def seed_random(seed: Optional[int] = None) -> None:
    """Reseed the generator used by ``ran``; ``None`` draws fresh entropy."""
    global _rng
    _rng = np.random.default_rng(seed)


@dataclass(frozen=True)
class FunctionSpec:
    """One callable in the namespace together with its accepted arity."""

    name: str
    impl: Callable[..., Any]
    min_args: int = 1
    max_args: int = 1

    def accepts(self, count: int) -> bool:
        return self.min_args <= count <= self.max_args


def _recip(x: Any) -> Any:
    return np.divide(1.0, x)


def _factorial_scalar(x: float, n: float = 1.0) -> float:
    # x * (x-n) * (x-2n) * ... over the positive terms; 0! == 1.
    if math.isnan(x) or math.isnan(n) or x < 0 or n <= 0:
        return math.nan
    if x == 0:
        return 1.0
    if math.isinf(x):
        return math.inf
    result = x
    i = x - n
    while i > 0:
        result *= i
        if math.isinf(result) or result == 0.0:
            break
        i -= n
    return result


def _binomial_scalar(x: float, k: float) -> float:
    if math.isnan(x) or not math.isfinite(k):
        return math.nan
    result = 1.0
    i = 0
    while i < k:
        result *= (x - i) / (k - i)
        if not math.isfinite(result) or result == 0.0:
            break
        i += 1
    return result


_factorial = np.vectorize(_factorial_scalar, otypes=[float])
_binomial = np.vectorize(_binomial_scalar, otypes=[float])


def factorial(x: Any, n: Any = 1.0) -> Any:
    """Multi-factorial ``x (x-n) (x-2n) ...``; NaN for negative ``x``."""
    return _factorial(x, n)


def binomial(x: Any, k: Any) -> Any:
    """Generalised binomial coefficient ``C(x, k)``."""
    return _binomial(x, k)


def chop(x: Any, n: Any = 0) -> Any:
    """Truncate ``x`` toward -inf at ``n`` decimal places."""
    scale = np.power(10.0, n)
    return np.floor(np.multiply(x, scale)) / scale


def ran(a: Any, b: Any, n: Any = 0) -> Any:
    """Uniform random number in ``[a, b]`` chopped to ``n`` decimals."""
    width = np.add(b, np.power(10.0, np.negative(n))) - a
    draw = _rng.random(size=np.broadcast(width, a).shape or None)
    return chop(width * draw + a, n)


def power(base: Any, exponent: Any) -> Any:
    return np.power(np.asarray(base, dtype=float), exponent)


FUNCTIONS: dict[str, FunctionSpec] = {
    spec.name: spec
    for spec in (
        FunctionSpec("sin", np.sin),
        FunctionSpec("cos", np.cos),
        FunctionSpec("tan", np.tan),
        FunctionSpec("sec", lambda x: _recip(np.cos(x))),
        FunctionSpec("csc", lambda x: _recip(np.sin(x))),
        FunctionSpec("cot", lambda x: _recip(np.tan(x))),
        FunctionSpec("arcsin", np.arcsin),
        FunctionSpec("arccos", np.arccos),
        FunctionSpec("arctan", np.arctan),
        FunctionSpec("arcsec", lambda x: np.arccos(_recip(x))),
        FunctionSpec("arccsc", lambda x: np.arcsin(_recip(x))),
        FunctionSpec("arccot", lambda x: np.arctan(_recip(x))),
        FunctionSpec("sinh", np.sinh),
        FunctionSpec("cosh", np.cosh),
        FunctionSpec("tanh", np.tanh),
        FunctionSpec("sech", lambda x: _recip(np.cosh(x))),
        FunctionSpec("csch", lambda x: _recip(np.sinh(x))),
        FunctionSpec("coth", lambda x: _recip(np.tanh(x))),
        FunctionSpec("arcsinh", np.arcsinh),
        FunctionSpec("arccosh", np.arccosh),
        FunctionSpec("arctanh", np.arctanh),
        FunctionSpec("arcsech", lambda x: np.arccosh(_recip(x))),
        FunctionSpec("arccsch", lambda x: np.arcsinh(_recip(x))),
        FunctionSpec("arccoth", lambda x: np.arctanh(_recip(x))),
        FunctionSpec("ln", np.log),
        FunctionSpec("log10", np.log10),
        FunctionSpec("exp", np.exp),
        FunctionSpec("sqrt", np.sqrt),
        FunctionSpec("abs", np.abs),
        FunctionSpec("sign", np.sign),
        FunctionSpec("pow", power, 2, 2),
        FunctionSpec("factorial", factorial, 1, 2),
        FunctionSpec("C", binomial, 2, 2),
        FunctionSpec("chop", chop, 1, 2),
        FunctionSpec("ran", ran, 2, 3),
    )
}

CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}

INVERTIBLE_TRIG = frozenset(
    {"sin", "cos", "tan", "sec", "csc", "cot", "sinh", "cosh", "tanh", "sech", "csch", "coth"}
)
