"""SVG renderer: keeps one ``svgwrite`` element per primitive id in a drawing.

Upserting an id that is already present replaces the element at the same
position among the drawing's children, so the paint order of a drawing does
not change when it is re-drawn.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

import svgwrite

from .board_primitives import Primitive

__all__ = ["SvgRenderer", "path_data"]

Point = Tuple[float, float]


def _num(value: float) -> str:
    return f"{value:g}"


def path_data(paths: Sequence[Sequence[Point]], closed: bool = False) -> str:
    """SVG ``d`` attribute: one ``M`` command per polyline, ``Z`` when closed."""
    parts = []
    for path in paths:
        if not path:
            continue
        coords = " ".join(f"{_num(x)},{_num(y)}" for x, y in path)
        parts.append(f"M {coords}" + (" Z" if closed else ""))
    return " ".join(parts)


class SvgRenderer:
    """Render primitives into an :class:`svgwrite.Drawing`.

    Parameters
    ----------
    width, height : float
        Size of the ``<svg>`` element in pixels.
    stroke : str
        Stroke (and fill) color of every shape.
    stroke_width : float
        Line width in pixels.
    """

    def __init__(self, width: float = 500, height: float = 500, stroke: str = "black", stroke_width: float = 1.5):
        self.stroke = stroke
        self.stroke_width = stroke_width
        # primitive ids are caller-chosen and need not be valid XML names
        self.drawing = svgwrite.Drawing(size=(width, height), debug=False)
        self._elements: Dict[str, Any] = {}

    def resize(self, width: float, height: float) -> None:
        self.drawing["width"] = width
        self.drawing["height"] = height

    def __contains__(self, primitive_id: str) -> bool:
        return primitive_id in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def element(self, primitive_id: str) -> Optional[Any]:
        return self._elements.get(primitive_id)

    def element_ids(self) -> Tuple[str, ...]:
        """Primitive ids in paint order."""
        by_identity = {id(el): pid for pid, el in self._elements.items()}
        return tuple(by_identity[id(el)] for el in self.drawing.elements if id(el) in by_identity)

    def _element_for(self, primitive: Primitive) -> Any:
        dwg = self.drawing
        stroke = dict(
            stroke=self.stroke,
            stroke_width=self.stroke_width,
            fill=self.stroke if primitive.filled else "none",
        )
        kind = primitive.kind
        center = primitive.center or (0.0, 0.0)
        if kind == "segment-path":
            return dwg.path(d=path_data(primitive.paths), id=primitive.id, **stroke)
        if kind in ("polygon", "arrowhead"):
            return dwg.path(d=path_data(primitive.paths, closed=True), id=primitive.id, **stroke)
        if kind == "circle":
            return dwg.circle(center=center, r=primitive.radii[0], id=primitive.id, **stroke)
        if kind == "ellipse":
            return dwg.ellipse(center=center, r=primitive.radii, id=primitive.id, **stroke)
        if kind == "rect":
            extra = {}
            if primitive.radii != (0.0, 0.0):
                extra = dict(rx=primitive.radii[0], ry=primitive.radii[1])
            return dwg.rect(insert=center, size=primitive.size, id=primitive.id, **extra, **stroke)
        return dwg.text(
            primitive.text,
            insert=center,
            id=primitive.id,
            text_anchor=primitive.anchor,
            font_size=14.4,
            fill=self.stroke,
        )

    def upsert(self, primitive: Primitive) -> None:
        new = self._element_for(primitive)
        old = self._elements.get(primitive.id)
        children = self.drawing.elements
        if old is None:
            self.drawing.add(new)
        else:
            children[next(i for i, el in enumerate(children) if el is old)] = new
        self._elements[primitive.id] = new

    def delete(self, primitive_id: str) -> None:
        old = self._elements.pop(primitive_id, None)
        if old is not None:
            self.drawing.elements[:] = [el for el in self.drawing.elements if el is not old]

    def to_svg(self) -> str:
        """Serialize the drawing as a string."""
        return self.drawing.tostring()
