"""Expression tree produced by :mod:`plotboard.expression_parser`.

The tree has five node types:

- ``Literal``: a numeric constant (``2``, ``0.5``, ``pi``, ``e``),
- ``Variable``: the free variable (``x``, ``y`` or ``t``),
- ``UnaryOp``: prefix sign,
- ``BinaryOp``: ``+ - * /`` and ``^`` (stored as ``"^"``),
- ``Call``: a named function from the evaluation namespace.

Nodes are immutable and hashable so compiled expressions can be cached and
compared structurally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Union

import sympy as sp


@dataclass(frozen=True)
class Literal:
    value: float
    name: Optional[str] = None  # "pi" / "e" for named constants


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Node", ...]


Node = Union[Literal, Variable, UnaryOp, BinaryOp, Call]


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all of its descendants, depth first."""
    yield node
    if isinstance(node, UnaryOp):
        yield from iter_nodes(node.operand)
    elif isinstance(node, BinaryOp):
        yield from iter_nodes(node.left)
        yield from iter_nodes(node.right)
    elif isinstance(node, Call):
        for arg in node.args:
            yield from iter_nodes(arg)


def variables(node: Node) -> frozenset[str]:
    """Return the names of all free variables referenced by ``node``."""
    return frozenset(n.name for n in iter_nodes(node) if isinstance(n, Variable))


# Functions without a direct SymPy class are spelled out in terms of ones that
# have one, so exported expressions simplify and differentiate normally.
_SYMPY_CALLS = {
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "sec": sp.sec,
    "csc": sp.csc,
    "cot": sp.cot,
    "arcsin": sp.asin,
    "arccos": sp.acos,
    "arctan": sp.atan,
    "arcsec": sp.asec,
    "arccsc": sp.acsc,
    "arccot": sp.acot,
    "sinh": sp.sinh,
    "cosh": sp.cosh,
    "tanh": sp.tanh,
    "sech": sp.sech,
    "csch": sp.csch,
    "coth": sp.coth,
    "arcsinh": sp.asinh,
    "arccosh": sp.acosh,
    "arctanh": sp.atanh,
    "arcsech": sp.asech,
    "arccsch": sp.acsch,
    "arccoth": sp.acoth,
    "ln": sp.log,
    "log10": lambda a: sp.log(a, 10),
    "exp": sp.exp,
    "sqrt": sp.sqrt,
    "abs": sp.Abs,
    "sign": sp.sign,
    "pow": sp.Pow,
    "C": sp.binomial,
}


def to_sympy(node: Node, symbols: Optional[dict[str, sp.Symbol]] = None) -> sp.Expr:
    """Convert an expression tree to a SymPy expression.

    ``chop`` and ``ran`` have no symbolic counterpart and raise
    :class:`NotImplementedError`. Multi-factorials (``factorial(x, n)`` with
    ``n != 1``) are rejected the same way.
    """
    symbols = {} if symbols is None else symbols

    def convert(n: Node) -> sp.Expr:
        if isinstance(n, Literal):
            if n.name == "pi":
                return sp.pi
            if n.name == "e":
                return sp.E
            return sp.Integer(int(n.value)) if float(n.value).is_integer() else sp.Float(n.value)
        if isinstance(n, Variable):
            if n.name not in symbols:
                symbols[n.name] = sp.Symbol(n.name, real=True)
            return symbols[n.name]
        if isinstance(n, UnaryOp):
            inner = convert(n.operand)
            return -inner if n.op == "-" else inner
        if isinstance(n, BinaryOp):
            left, right = convert(n.left), convert(n.right)
            if n.op == "+":
                return left + right
            if n.op == "-":
                return left - right
            if n.op == "*":
                return left * right
            if n.op == "/":
                return left / right
            return sp.Pow(left, right)
        if n.name == "factorial":
            if len(n.args) == 2 and convert(n.args[1]) != 1:
                raise NotImplementedError("multi-factorials have no SymPy equivalent")
            return sp.factorial(convert(n.args[0]))
        if n.name not in _SYMPY_CALLS:
            raise NotImplementedError(f"{n.name}() has no SymPy equivalent")
        return _SYMPY_CALLS[n.name](*(convert(a) for a in n.args))

    return convert(node)


__all__ = [
    "BinaryOp",
    "Call",
    "Literal",
    "Node",
    "UnaryOp",
    "Variable",
    "iter_nodes",
    "to_sympy",
    "variables",
]
