"""Immutable snapshot of a single Plot's reproducible state.

A ``PlotSnapshot`` captures everything needed to emit a ``board.plot(...)``
call that reconstructs the curve: the expression text, its variable, the
domain and sampling overrides, plus a summary of the last sampling walk.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class PlotSnapshot:
    """Immutable record of one plot's state.

    Parameters
    ----------
    id : str
        Plot identifier (key in ``Board.plots``).
    source : str or tuple[str, str]
        Expression text, or the ``(x, y)`` pair of a parametric curve.
    rewritten : str or tuple[str, str]
        Canonical form of ``source`` as produced by the compiler.
    variable : str
        Free variable (``"x"``, ``"y"`` or ``"t"``).
    mode : str
        Sampling mode of the last render (``"explicit"``, ``"inverse"`` or
        ``"parametric"``).
    domain : tuple[float, float] or None
        Explicit domain override, or ``None`` for the board window.
    sampling_points : int or None
        Per-plot point count override, or ``None`` for the board default.
    segment_count : int
        Number of segments produced by the last render.
    point_count : int
        Total number of points across those segments.
    """

    id: str
    source: Union[str, Tuple[str, str]]
    rewritten: Union[str, Tuple[str, str]]
    variable: str
    mode: str
    domain: Optional[Tuple[float, float]]
    sampling_points: Optional[int]
    segment_count: int
    point_count: int

    def __repr__(self) -> str:
        return (
            f"PlotSnapshot(id={self.id!r}, source={self.source!r}, "
            f"variable={self.variable!r}, segments={self.segment_count})"
        )
