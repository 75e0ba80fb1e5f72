"""Plotly renderer: one ``go.Scatter`` trace per primitive, addressed by ``uid``.

The figure's axes are set to device pixels with the y-axis reversed, so
primitives are plotted exactly as a board emits them. Circles, ellipses and
rectangles are drawn as closed sampled outlines; several polylines of one
``segment-path`` share a trace and are separated by ``None`` gaps.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

import plotly.graph_objects as go

from .board_primitives import Primitive

__all__ = ["PlotlyRenderer", "primitive_xy"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_OUTLINE_STEPS = 48
_TEXT_POSITION = {"start": "middle right", "middle": "middle center", "end": "middle left"}


def _outline(cx: float, cy: float, rx: float, ry: float) -> Tuple[List[float], List[float]]:
    angles = [2 * math.pi * k / _OUTLINE_STEPS for k in range(_OUTLINE_STEPS + 1)]
    return [cx + rx * math.cos(a) for a in angles], [cy + ry * math.sin(a) for a in angles]


def primitive_xy(primitive: Primitive) -> Tuple[List[Optional[float]], List[Optional[float]]]:
    """Device-space ``x``/``y`` arrays for a primitive's trace."""
    kind = primitive.kind
    if kind in ("circle", "ellipse"):
        cx, cy = primitive.center or (0.0, 0.0)
        return _outline(cx, cy, *primitive.radii)  # type: ignore[return-value]
    if kind == "rect":
        x, y = primitive.center or (0.0, 0.0)
        w, h = primitive.size
        return [x, x + w, x + w, x, x], [y, y, y + h, y + h, y]
    if kind == "text":
        x, y = primitive.center or (0.0, 0.0)
        return [x], [y]
    closed = kind in ("polygon", "arrowhead")
    xs: List[Optional[float]] = []
    ys: List[Optional[float]] = []
    for i, path in enumerate(primitive.paths):
        if i:
            xs.append(None)
            ys.append(None)
        pts = list(path) + ([path[0]] if closed and path else [])
        xs.extend(p[0] for p in pts)
        ys.extend(p[1] for p in pts)
    return xs, ys


class PlotlyRenderer:
    """Render primitives into a :class:`plotly.graph_objects.Figure`.

    Parameters
    ----------
    width, height : float
        Device frame size; used for the axis ranges and the figure size.
    color : str
        Line, fill and text color.
    figure : go.Figure, optional
        Existing figure to draw into (e.g. a ``go.FigureWidget``).
    """

    def __init__(
        self, width: float = 500, height: float = 500, color: str = "black", figure: Optional[go.Figure] = None
    ) -> None:
        self.color = color
        self.figure = figure if figure is not None else go.Figure()
        self.figure.update_layout(
            showlegend=False,
            margin=dict(l=0, r=0, t=0, b=0),
            plot_bgcolor="white",
            xaxis=dict(visible=False, showgrid=False, zeroline=False),
            yaxis=dict(visible=False, showgrid=False, zeroline=False, scaleanchor="x", scaleratio=1),
        )
        self.resize(width, height)

    def resize(self, width: float, height: float) -> None:
        self.figure.update_layout(width=width, height=height)
        self.figure.update_xaxes(range=[0, width])
        self.figure.update_yaxes(range=[height, 0])

    def _trace(self, primitive_id: str) -> Optional[go.Scatter]:
        for trace in self.figure.data:
            if trace.uid == primitive_id:
                return trace
        return None

    def _props(self, primitive: Primitive) -> dict:
        xs, ys = primitive_xy(primitive)
        props = dict(x=xs, y=ys, name=primitive.id, hoverinfo="skip")
        if primitive.kind == "text":
            props.update(
                mode="text",
                text=[primitive.text],
                textposition=_TEXT_POSITION.get(primitive.anchor, "middle center"),
                textfont=dict(color=self.color, size=14.4),
            )
        else:
            props.update(mode="lines", line=dict(color=self.color, width=1.5), connectgaps=False)
            props["fill"] = "toself" if primitive.filled else "none"
            if primitive.filled:
                props["fillcolor"] = self.color
        return props

    def upsert(self, primitive: Primitive) -> None:
        props = self._props(primitive)
        trace = self._trace(primitive.id)
        if trace is None:
            self.figure.add_trace(go.Scatter(uid=primitive.id, **props))
        else:
            trace.update(**props)

    def delete(self, primitive_id: str) -> None:
        self.figure.data = tuple(t for t in self.figure.data if t.uid != primitive_id)

    def trace_ids(self) -> Tuple[str, ...]:
        return tuple(t.uid for t in self.figure.data)
