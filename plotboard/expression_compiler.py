"""
expression_compiler: turn infix text into NumPy-callable functions
===================================================================

Purpose
-------
Compile a user-typed formula such as ``"2x^2 - sin(x)"`` into a callable that
evaluates on floats or NumPy arrays. The text is parsed by
:mod:`plotboard.expression_parser` and the resulting tree is folded into a
chain of NumPy closures, so there is no ``eval`` and no generated source.

Public API
----------
- :func:`compile_expression` (LRU cached)
- :func:`try_compile`
- :func:`infer_variable`
- :func:`compile_parametric`
- :class:`CompiledExpression`, :class:`ParametricExpression`,
  :class:`CompileResult`

Numeric behavior
----------------
Compiled callables never raise for domain problems: ``sqrt(-1)`` is NaN,
``1/0`` is ``inf``. Evaluation runs under ``np.errstate(all="ignore")`` so
these cases are also silent.

Examples
--------
>>> f = compile_expression("x^2")
>>> f(3.0)
9.0
>>> f.rewritten
'pow(x,2)'

Logging
-------
Cache misses are logged at DEBUG on ``logging.getLogger(__name__)``; the
module is silent by default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional, Union

import numpy as np
import sympy as sp

from .errors import ExpressionSyntaxError
from .expression_ast import BinaryOp, Call, Literal, Node, UnaryOp, Variable, to_sympy, variables
from .expression_parser import parse
from .math_functions import FUNCTIONS, power

__all__ = [
    "CompileResult",
    "CompiledExpression",
    "ParametricExpression",
    "clear_cache",
    "compile_expression",
    "compile_parametric",
    "infer_variable",
    "try_compile",
]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_COMPILE_CACHE_MAXSIZE = 256

KNOWN_VARIABLES = ("x", "y", "t")

_BINARY = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.divide,
    "^": power,
}

_Evaluator = Callable[[Any], Any]


def _build(node: Node) -> _Evaluator:
    """Fold ``node`` into a closure of one argument (the free variable)."""
    if isinstance(node, Literal):
        value = float(node.value)
        return lambda v: value
    if isinstance(node, Variable):
        return lambda v: v
    if isinstance(node, UnaryOp):
        inner = _build(node.operand)
        if node.op == "-":
            return lambda v: np.negative(inner(v))
        return inner
    if isinstance(node, BinaryOp):
        op = _BINARY[node.op]
        left, right = _build(node.left), _build(node.right)
        return lambda v: op(left(v), right(v))
    if isinstance(node, Call):
        impl = FUNCTIONS[node.name].impl
        args = tuple(_build(a) for a in node.args)
        return lambda v: impl(*(a(v) for a in args))
    raise TypeError(f"Unsupported node type: {type(node).__name__}")


class CompiledExpression:
    """Compiled single-variable expression.

    Attributes
    ----------
    source : str
        Expression text as given.
    rewritten : str
        Canonical text with ``pow``/``factorial`` calls and explicit products.
    variable : str
        Name of the free variable (``"x"``, ``"y"`` or ``"t"``).
    ast : Node
        Parsed expression tree.
    """

    __slots__ = ("_fn", "source", "rewritten", "variable", "ast")

    def __init__(self, fn: _Evaluator, source: str, rewritten: str, variable: str, ast: Node) -> None:
        self._fn = fn
        self.source = source
        self.rewritten = rewritten
        self.variable = variable
        self.ast = ast

    def __call__(self, value: Any) -> Any:
        arr = np.asarray(value, dtype=float)
        with np.errstate(all="ignore"):
            out = np.asarray(self._fn(arr), dtype=float)
        if arr.ndim == 0:
            return float(out.reshape(-1)[0]) if out.size else float("nan")
        if out.shape != arr.shape:
            out = np.broadcast_to(out, arr.shape).copy()
        return out

    @property
    def is_constant(self) -> bool:
        return not variables(self.ast)

    def to_sympy(self) -> sp.Expr:
        """Return the expression as a SymPy object (variables are real symbols)."""
        return to_sympy(self.ast)

    def __repr__(self) -> str:
        return f"CompiledExpression({self.source!r}, variable={self.variable!r})"


class ParametricExpression:
    """Pair of compiled expressions in ``t`` evaluating to ``(x, y)``."""

    __slots__ = ("x_expr", "y_expr")

    variable = "t"

    def __init__(self, x_expr: CompiledExpression, y_expr: CompiledExpression) -> None:
        self.x_expr = x_expr
        self.y_expr = y_expr

    def __call__(self, t: Any) -> tuple[Any, Any]:
        return self.x_expr(t), self.y_expr(t)

    @property
    def source(self) -> tuple[str, str]:
        return self.x_expr.source, self.y_expr.source

    def __repr__(self) -> str:
        return f"ParametricExpression({self.x_expr.source!r}, {self.y_expr.source!r})"


@dataclass(frozen=True)
class CompileResult:
    """Outcome of :func:`try_compile`: exactly one of the fields is set."""

    expression: Optional[CompiledExpression] = None
    error: Optional[ExpressionSyntaxError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> CompiledExpression:
        if self.error is not None:
            raise self.error
        assert self.expression is not None
        return self.expression


@lru_cache(maxsize=_COMPILE_CACHE_MAXSIZE)
def _compile_cached(source: str, variable: str) -> CompiledExpression:
    # Only runs on cache misses.
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("compile_expression: cache MISS (source=%r, variable=%s)", source, variable)
    parsed = parse(source, variables=(variable,))
    return CompiledExpression(
        fn=_build(parsed.ast),
        source=source,
        rewritten=parsed.rewritten,
        variable=variable,
        ast=parsed.ast,
    )


def compile_expression(source: str, variable: str = "x") -> CompiledExpression:
    """Compile ``source`` into a callable of ``variable``.

    Parameters
    ----------
    source : str
        Infix expression, e.g. ``"3x^2+1"`` or ``"sin^-1(x)"``.
    variable : str, default "x"
        Free variable name.

    Returns
    -------
    CompiledExpression
        Callable on floats (returns float) or arrays (returns array).
        Repeated calls with the same arguments return the same object.

    Raises
    ------
    ExpressionSyntaxError
        If the text cannot be parsed, references an unknown identifier or
        calls a function with the wrong number of arguments.
    """
    if not isinstance(source, str):
        raise TypeError(f"Expression source must be str, got {type(source).__name__}")
    if not variable.isalpha():
        raise ValueError(f"Variable name must be alphabetic, got {variable!r}")
    return _compile_cached(source, variable)


def try_compile(source: str, variable: str = "x") -> CompileResult:
    """Like :func:`compile_expression` but returns errors as a value."""
    try:
        return CompileResult(expression=compile_expression(source, variable))
    except ExpressionSyntaxError as exc:
        return CompileResult(error=exc)


def infer_variable(source: str, default: str = "x") -> str:
    """Return which of ``x``, ``y`` or ``t`` the expression is written in.

    Expressions without a free variable report ``default``.

    Raises
    ------
    ExpressionSyntaxError
        If the expression is malformed or mixes more than one variable.
    """
    parsed = parse(source, variables=KNOWN_VARIABLES)
    used = variables(parsed.ast)
    if len(used) > 1:
        names = ", ".join(sorted(used))
        raise ExpressionSyntaxError(
            f"expression mixes variables {names}; use a single variable", source=parsed.stripped
        )
    return next(iter(used)) if used else default


def compile_parametric(
    x_source: Union[str, CompiledExpression],
    y_source: Union[str, CompiledExpression],
    variable: str = "t",
) -> ParametricExpression:
    """Compile a parametric curve ``t -> (x(t), y(t))``."""

    def _coerce(src: Union[str, CompiledExpression]) -> CompiledExpression:
        if isinstance(src, CompiledExpression):
            if src.variable != variable and not src.is_constant:
                raise ValueError(
                    f"Parametric component {src.source!r} uses {src.variable!r}, expected {variable!r}"
                )
            return src
        return compile_expression(src, variable)

    return ParametricExpression(_coerce(x_source), _coerce(y_source))


def clear_cache() -> None:
    """Drop every cached compilation."""
    _compile_cached.cache_clear()
