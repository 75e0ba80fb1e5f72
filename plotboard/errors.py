"""Exception and warning types shared across ``plotboard``.

Compile-time problems raise :class:`ExpressionSyntaxError`; caller misuse of
boards, windows and samplers raises :class:`ConfigurationError`. Both derive
from :class:`ValueError` so code that already guards numeric input with
``except ValueError`` keeps working.

Numeric anomalies during evaluation (NaN, infinities) are *not* errors: the
compiled callables return them and the sampler breaks or clamps curves.
"""

from __future__ import annotations

from typing import Optional


class ExpressionSyntaxError(ValueError):
    """Malformed infix expression.

    Parameters
    ----------
    message : str
        Human-readable description.
    source : str
        Expression text as given by the caller.
    position : int or None
        Index into the whitespace-stripped expression where the problem was
        detected, when known.
    """

    def __init__(self, message: str, *, source: str = "", position: Optional[int] = None) -> None:
        self.source = source
        self.position = position
        self.message = message
        if position is not None:
            message = f"{message} (at position {position} in {source!r})"
        elif source:
            message = f"{message} (in {source!r})"
        super().__init__(message)


class ConfigurationError(ValueError):
    """Invalid board, window or sampler configuration."""


class DegeneratePlotWarning(UserWarning):
    """A plot produced no drawable segments (curve entirely out of frame)."""


__all__ = ["ConfigurationError", "DegeneratePlotWarning", "ExpressionSyntaxError"]
