"""Immutable snapshot of an entire Board's reproducible state.

A ``BoardSnapshot`` aggregates the frame geometry, the math window, plot
snapshots and the list of other drawings into a single frozen object that can
be inspected or compared programmatically.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from .PlotSnapshot import PlotSnapshot


@dataclass(frozen=True)
class DrawingSnapshot:
    """Immutable record of one non-plot drawing.

    Parameters
    ----------
    id : str
        Drawing identifier (key in the board's primitive registry).
    kind : str
        Board call that created it (``"line"``, ``"axes"``, ...).
    primitive_ids : tuple[str, ...]
        Renderer-level ids emitted for the drawing.
    """

    id: str
    kind: str
    primitive_ids: Tuple[str, ...]


@dataclass(frozen=True)
class BoardSnapshot:
    """Immutable record of a full board's state.

    Parameters
    ----------
    id : str
        Board identifier.
    width, height, padding : float
        Frame geometry in pixels.
    x_range, y_range : tuple[float, float]
        Math window (``y_range`` is derived in equal-scale mode).
    equal_scale : bool
        Whether the y-range follows the x-scale.
    plots : dict[str, PlotSnapshot]
        Plot snapshots keyed by plot id, in drawing order.
    drawings : tuple[DrawingSnapshot, ...]
        Every other drawing, in drawing order.
    """

    id: str
    width: float
    height: float
    padding: float
    x_range: Tuple[float, float]
    y_range: Tuple[float, float]
    equal_scale: bool
    plots: Dict[str, PlotSnapshot] = field(default_factory=dict)
    drawings: Tuple[DrawingSnapshot, ...] = ()

    def __repr__(self) -> str:
        return (
            f"BoardSnapshot(id={self.id!r}, size={self.width:g}x{self.height:g}, "
            f"x_range={self.x_range}, y_range={self.y_range}, "
            f"plots={len(self.plots)}, drawings={len(self.drawings)})"
        )
