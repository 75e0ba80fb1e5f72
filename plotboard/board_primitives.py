"""Device-space primitives, the per-board primitive registry and the renderer seam.

Purpose
-------
Every drawing call on a board ends up as one or more :class:`Primitive`
records in device coordinates. The :class:`PrimitiveRegistry` remembers, per
board-level id, which primitives were emitted and how to rebuild them, so an
upsert replaces earlier output and a resize can replay every drawing against
the new coordinate system.

Renderers only see primitives. They implement :class:`Renderer`
(``upsert``/``delete``); :class:`NullRenderer` keeps the latest primitive per
id in memory for headless use and tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Protocol, Tuple, runtime_checkable

from .coordinates import CoordinateSystem

__all__ = [
    "PRIMITIVE_KINDS",
    "NullRenderer",
    "Primitive",
    "PrimitiveEntry",
    "PrimitiveRegistry",
    "Renderer",
    "round_point",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Point = Tuple[float, float]

PRIMITIVE_KINDS = frozenset({"segment-path", "circle", "ellipse", "polygon", "rect", "text", "arrowhead"})


def round_point(point: Point) -> Point:
    """Round a device point to 2 decimals (the precision emitted to renderers)."""
    return (round(float(point[0]), 2), round(float(point[1]), 2))


@dataclass(frozen=True)
class Primitive:
    """One renderable shape in device coordinates.

    Parameters
    ----------
    id : str
        Renderer-level identifier; unique within a board.
    kind : str
        One of :data:`PRIMITIVE_KINDS`.
    paths : tuple of point tuples
        Polylines for ``segment-path`` (one per segment), the ring of a
        ``polygon`` or the triangle of an ``arrowhead``.
    center : tuple[float, float] or None
        Center of a ``circle``/``ellipse``, top-left corner of a ``rect``,
        anchor of a ``text``.
    radii : tuple[float, float]
        ``(rx, ry)`` of a circle or ellipse, corner radii of a rect.
    size : tuple[float, float]
        ``(width, height)`` of a rect.
    text : str
        Content of a ``text`` primitive.
    anchor : str
        Horizontal text alignment: ``"start"``, ``"middle"`` or ``"end"``.
    filled : bool
        Whether the shape is filled with the stroke color.
    """

    id: str
    kind: str
    paths: Tuple[Tuple[Point, ...], ...] = ()
    center: Optional[Point] = None
    radii: Tuple[float, float] = (0.0, 0.0)
    size: Tuple[float, float] = (0.0, 0.0)
    text: str = ""
    anchor: str = "middle"
    filled: bool = False

    def __post_init__(self) -> None:
        if self.kind not in PRIMITIVE_KINDS:
            raise ValueError(f"Unknown primitive kind {self.kind!r}; expected one of {sorted(PRIMITIVE_KINDS)}")


@runtime_checkable
class Renderer(Protocol):
    """Drawing backend fed by a board."""

    def upsert(self, primitive: Primitive) -> None: ...

    def delete(self, primitive_id: str) -> None: ...


class NullRenderer:
    """Renderer that stores the latest primitive per id and draws nothing."""

    def __init__(self) -> None:
        self.primitives: Dict[str, Primitive] = {}
        self.upsert_count = 0

    def upsert(self, primitive: Primitive) -> None:
        self.primitives[primitive.id] = primitive
        self.upsert_count += 1

    def delete(self, primitive_id: str) -> None:
        self.primitives.pop(primitive_id, None)


Builder = Callable[[CoordinateSystem], Tuple[Primitive, ...]]


@dataclass
class PrimitiveEntry:
    """Registry record for one board-level drawing.

    ``build`` recomputes the drawing's primitives from its math-space inputs
    for a given coordinate system; ``state`` keeps those inputs for
    inspection.
    """

    kind: str
    build: Builder
    primitives: Tuple[Primitive, ...] = ()
    state: Mapping[str, Any] = field(default_factory=dict)

    @property
    def primitive_ids(self) -> Tuple[str, ...]:
        return tuple(p.id for p in self.primitives)


class PrimitiveRegistry(Mapping[str, PrimitiveEntry]):
    """Mapping of drawing id → :class:`PrimitiveEntry`, synchronised with a renderer.

    An upsert on an existing id sends the new primitives to the renderer and
    deletes any primitive the previous build emitted but the new one does not,
    so re-drawing never accumulates output.
    """

    def __init__(self, renderer: Renderer) -> None:
        self._renderer = renderer
        self._entries: Dict[str, PrimitiveEntry] = {}

    @property
    def renderer(self) -> Renderer:
        return self._renderer

    def __getitem__(self, key: str) -> PrimitiveEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def upsert(
        self,
        id: str,
        kind: str,
        build: Builder,
        coords: CoordinateSystem,
        state: Optional[Mapping[str, Any]] = None,
    ) -> PrimitiveEntry:
        """Build the drawing for ``coords`` and replace whatever ``id`` held."""
        primitives = tuple(build(coords))
        previous = self._entries.get(id)
        if previous is not None:
            keep = {p.id for p in primitives}
            for stale in previous.primitive_ids:
                if stale not in keep:
                    self._renderer.delete(stale)
        for primitive in primitives:
            self._renderer.upsert(primitive)
        entry = PrimitiveEntry(kind=kind, build=build, primitives=primitives, state=dict(state or {}))
        self._entries[id] = entry
        return entry

    def delete(self, id: str) -> None:
        """Remove ``id`` and all of its primitives; unknown ids raise ``KeyError``."""
        entry = self._entries.pop(id)
        for primitive_id in entry.primitive_ids:
            self._renderer.delete(primitive_id)

    def redraw_all(self, coords: CoordinateSystem) -> None:
        """Rebuild every entry against ``coords`` in insertion order."""
        for id, entry in list(self._entries.items()):
            self.upsert(id, entry.kind, entry.build, coords, entry.state)
        logger.debug("redrew %d drawing(s)", len(self._entries))

    def clear(self) -> None:
        for id in list(self._entries):
            self.delete(id)
