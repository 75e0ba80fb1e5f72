"""Parser for informal infix math such as ``"sin(x)^2-1/x"`` or ``"3x!"``.

Purpose
-------
Turn a user-typed formula into an expression tree (:mod:`.expression_ast`)
plus a canonical rewritten form in which every power is spelled
``pow(a,b)``, every factorial ``factorial(a)``, every implicit product has
an explicit ``*`` and ``log`` reads ``log10``.

Pipeline
--------
1. Strip all whitespace and tokenize. Identifiers are maximal runs of ASCII
   letters, so ``e`` is Euler's number only when it stands alone (``exp`` and
   ``sec`` are untouched).
2. Rewrite ``fn^-1`` and ``fn^(-1)`` into ``arcfn`` for the trigonometric and
   hyperbolic names. This must run before step 3, otherwise ``-1(`` would
   read as a product.
3. Insert ``*`` after a number, a ``)`` or the constant ``e`` when the next
   token is a letter or ``(`` (and a digit, except after a number).
4. Rename ``log`` to ``log10``.
5. Precedence-climbing parse. ``^`` is right associative and binds tighter
   than prefix signs; its left operand is a number, identifier, function call
   or parenthesized group, its right operand the same optionally preceded by
   a sign. Postfix ``!`` applies to the whole power on its left, so ``x^2!``
   is ``(x^2)!`` and ``x!^2`` is rejected.

Gotchas
-------
- Positions in :class:`~plotboard.errors.ExpressionSyntaxError` index into the
  whitespace-stripped text.
- Identifiers and digits never merge: ``x2`` is an identifier followed by a
  number and therefore a syntax error, matching the historical behavior.
- Exponent notation (``2e3``) is not a numeric literal; it reads as
  ``2*e*3``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import ExpressionSyntaxError
from .expression_ast import BinaryOp, Call, Literal, Node, UnaryOp, Variable
from .math_functions import CONSTANTS, FUNCTIONS, INVERTIBLE_TRIG

__all__ = ["ParsedExpression", "Token", "normalize", "parse", "tokenize"]

_TOKEN_RE = re.compile(r"(?P<number>\d+(?:\.\d*)?|\.\d+)|(?P<name>[A-Za-z]+)|(?P<op>[-+*/^!(),])")


@dataclass(frozen=True)
class Token:
    kind: str  # "number", "name" or "op"
    text: str
    pos: int

    def is_op(self, *ops: str) -> bool:
        return self.kind == "op" and self.text in ops


@dataclass(frozen=True)
class ParsedExpression:
    """Result of :func:`parse`."""

    ast: Node
    rewritten: str
    stripped: str


def normalize(source: str) -> str:
    """Return ``source`` with all whitespace removed."""
    return re.sub(r"\s+", "", source)


def tokenize(source: str) -> list[Token]:
    """Split the whitespace-stripped ``source`` into tokens.

    Raises
    ------
    ExpressionSyntaxError
        On any character outside the accepted alphabet.
    """
    stripped = normalize(source)
    tokens: list[Token] = []
    pos = 0
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if match is None:
            raise ExpressionSyntaxError(
                f"unexpected character {stripped[pos]!r}", source=stripped, position=pos
            )
        kind = match.lastgroup or "op"
        tokens.append(Token(kind, match.group(), pos))
        pos = match.end()
    return tokens


def _rewrite_inverse_trig(tokens: list[Token]) -> list[Token]:
    out: list[Token] = []
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.kind == "name" and tok.text in INVERTIBLE_TRIG:
            tail = [t.text for t in tokens[i + 1 : i + 6]]
            if tail[:3] == ["^", "-", "1"]:
                out.append(Token("name", "arc" + tok.text, tok.pos))
                i += 4
                continue
            if tail[:5] == ["^", "(", "-", "1", ")"]:
                out.append(Token("name", "arc" + tok.text, tok.pos))
                i += 6
                continue
        out.append(tok)
        i += 1
    return out


def _needs_product(prev: Token, cur: Token) -> bool:
    if cur.kind == "name" or cur.is_op("("):
        starts = True
    else:
        starts = cur.kind == "number"
    if not starts:
        return False
    if prev.kind == "number":
        return cur.kind != "number"
    return prev.is_op(")") or (prev.kind == "name" and prev.text == "e")


def _insert_implicit_products(tokens: list[Token]) -> list[Token]:
    out: list[Token] = []
    for tok in tokens:
        if out and _needs_product(out[-1], tok):
            out.append(Token("op", "*", tok.pos))
        out.append(tok)
    return out


def _remap_names(tokens: Iterable[Token]) -> list[Token]:
    return [Token("name", "log10", t.pos) if t.kind == "name" and t.text == "log" else t for t in tokens]


class _Parser:
    def __init__(self, tokens: list[Token], stripped: str, variables: frozenset[str]) -> None:
        self._tokens = tokens
        self._stripped = stripped
        self._variables = variables
        self._i = 0

    # --- token helpers ---

    def _peek(self, offset: int = 0) -> Optional[Token]:
        j = self._i + offset
        return self._tokens[j] if j < len(self._tokens) else None

    def _next(self) -> Token:
        tok = self._tokens[self._i]
        self._i += 1
        return tok

    def _error(self, message: str, position: Optional[int]) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(message, source=self._stripped, position=position)

    def _end_pos(self) -> int:
        return len(self._stripped)

    # --- grammar ---

    def parse(self) -> tuple[Node, str]:
        if not self._tokens:
            raise self._error("empty expression", None)
        node, text = self._sum()
        tok = self._peek()
        if tok is not None:
            if tok.is_op(")"):
                raise self._error("unbalanced ')'", tok.pos)
            if tok.is_op("^", "!"):
                raise self._error(f"'{tok.text}' is missing its left operand", tok.pos)
            raise self._error(f"unexpected {tok.text!r}", tok.pos)
        return node, text

    def _sum(self) -> tuple[Node, str]:
        node, text = self._product()
        while (tok := self._peek()) is not None and tok.is_op("+", "-"):
            self._next()
            right, rtext = self._product()
            node, text = BinaryOp(tok.text, node, right), f"{text}{tok.text}{rtext}"
        return node, text

    def _product(self) -> tuple[Node, str]:
        node, text = self._signed()
        while (tok := self._peek()) is not None and tok.is_op("*", "/"):
            self._next()
            right, rtext = self._signed()
            node, text = BinaryOp(tok.text, node, right), f"{text}{tok.text}{rtext}"
        return node, text

    def _signed(self) -> tuple[Node, str]:
        tok = self._peek()
        if tok is not None and tok.is_op("+", "-"):
            self._next()
            operand, text = self._signed()
            return UnaryOp(tok.text, operand), tok.text + text
        return self._factorial()

    def _factorial(self) -> tuple[Node, str]:
        node, text = self._power()
        while (tok := self._peek()) is not None and tok.is_op("!"):
            self._next()
            node, text = Call("factorial", (node,)), f"factorial({text})"
        return node, text

    def _power(self) -> tuple[Node, str]:
        base, btext = self._operand()
        tok = self._peek()
        if tok is None or not tok.is_op("^"):
            return base, btext
        self._next()
        exponent, etext = self._exponent(tok)
        return BinaryOp("^", base, exponent), f"pow({btext},{etext})"

    def _exponent(self, caret: Token) -> tuple[Node, str]:
        tok = self._peek()
        if tok is None or not (tok.kind != "op" or tok.is_op("(", "+", "-")):
            raise self._error("'^' is missing its right operand", caret.pos)
        if tok.is_op("+", "-"):
            self._next()
            operand, text = self._exponent(caret)
            return UnaryOp(tok.text, operand), tok.text + text
        base, btext = self._operand()
        nxt = self._peek()
        if nxt is not None and nxt.is_op("^"):
            self._next()
            exponent, etext = self._exponent(nxt)
            return BinaryOp("^", base, exponent), f"pow({btext},{etext})"
        return base, btext

    def _operand(self) -> tuple[Node, str]:
        tok = self._peek()
        if tok is None:
            raise self._error("expression ends where an operand was expected", self._end_pos())
        if tok.kind == "number":
            self._next()
            return Literal(float(tok.text)), tok.text
        if tok.kind == "name":
            return self._named()
        if tok.is_op("("):
            self._next()
            inner, text = self._sum()
            self._expect_close(tok)
            return inner, f"({text})"
        if tok.is_op("^", "!"):
            raise self._error(f"'{tok.text}' is missing its left operand", tok.pos)
        raise self._error(f"unexpected {tok.text!r}", tok.pos)

    def _expect_close(self, opener: Token) -> None:
        tok = self._peek()
        if tok is None:
            raise self._error("missing ')'", opener.pos)
        if not tok.is_op(")"):
            raise self._error(f"expected ')' but found {tok.text!r}", tok.pos)
        self._next()

    def _named(self) -> tuple[Node, str]:
        tok = self._next()
        name = tok.text
        nxt = self._peek()
        calls = nxt is not None and nxt.is_op("(")
        if name in FUNCTIONS:
            if not calls:
                raise self._error(f"function {name!r} must be followed by '('", tok.pos)
            return self._call(tok)
        if calls:
            raise self._error(f"{name!r} is not a function", tok.pos)
        if name in self._variables:
            return Variable(name), name
        if name in CONSTANTS:
            return Literal(CONSTANTS[name], name), name
        raise self._error(f"unknown identifier {name!r}", tok.pos)

    def _call(self, name_tok: Token) -> tuple[Node, str]:
        opener = self._next()
        args: list[Node] = []
        texts: list[str] = []
        tok = self._peek()
        if tok is not None and tok.is_op(")"):
            self._next()
        else:
            while True:
                arg, text = self._sum()
                args.append(arg)
                texts.append(text)
                tok = self._peek()
                if tok is not None and tok.is_op(","):
                    self._next()
                    continue
                self._expect_close(opener)
                break
        spec = FUNCTIONS[name_tok.text]
        if not spec.accepts(len(args)):
            expected = (
                str(spec.min_args) if spec.min_args == spec.max_args else f"{spec.min_args}-{spec.max_args}"
            )
            raise self._error(
                f"{spec.name}() takes {expected} argument(s), got {len(args)}", name_tok.pos
            )
        return Call(spec.name, tuple(args)), f"{spec.name}({','.join(texts)})"


def parse(source: str, variables: Iterable[str] = ("x",)) -> ParsedExpression:
    """Parse ``source`` into a tree plus its canonical rewritten text.

    Parameters
    ----------
    source : str
        Infix expression.
    variables : iterable of str
        Identifiers allowed as free variables.

    Raises
    ------
    ExpressionSyntaxError
        For malformed input, unknown identifiers and wrong call arity.

    Examples
    --------
    >>> parse("2sin(x)^2").rewritten
    '2*pow(sin(x),2)'
    >>> parse("sin^-1(x)").rewritten
    'arcsin(x)'
    """
    stripped = normalize(source)
    tokens = tokenize(stripped)
    tokens = _rewrite_inverse_trig(tokens)
    tokens = _insert_implicit_products(tokens)
    tokens = _remap_names(tokens)
    node, text = _Parser(tokens, stripped, frozenset(variables)).parse()
    return ParsedExpression(ast=node, rewritten=text, stripped=stripped)
