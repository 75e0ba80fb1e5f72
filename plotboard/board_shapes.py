"""Builders that turn math-space drawing calls into device-space primitives.

Each ``build_*`` function takes the current :class:`CoordinateSystem` plus the
math-space inputs of one drawing and returns the tuple of
:class:`~plotboard.board_primitives.Primitive` records for it. Builders are
pure, so a board can re-run them after a resize.

Device geometry constants follow the classic board look: 7×12 px arrowheads,
4 px dots and markers, 4 px ticks, 14.4 px text.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from .board_primitives import Primitive, round_point
from .coordinates import CoordinateSystem
from .errors import ConfigurationError

Point = Tuple[float, float]

ARROW_WIDTH = 7.0
ARROW_HEIGHT = 12.0
DOT_RADIUS = 4.0
MARKER_SIZE = 4.0
MARKER_GAP = 4.0
TICK_LENGTH = 4.0
FONT_SIZE = 14.4

SEGMENT_MARKERS = frozenset({"none", "arrow", "dot", "dotdot", "dotarrow", "arrowdot"})
DOT_TYPES = frozenset({"closed", "open", "+", "-", "|"})
TEXT_POSITIONS = frozenset(
    {"above", "below", "left", "right", "aboveleft", "aboveright", "belowleft", "belowright"}
)


def _pt(point: Sequence[float], what: str = "point") -> Point:
    try:
        x, y = float(point[0]), float(point[1])
    except (TypeError, ValueError, IndexError) as exc:
        raise ConfigurationError(f"{what} must be an (x, y) pair, got {point!r}") from exc
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ConfigurationError(f"{what} must be finite, got {point!r}")
    return (x, y)


def _dev(coords: CoordinateSystem, point: Point) -> Point:
    return round_point(coords.to_device(point))


def _polyline(coords: CoordinateSystem, points: Sequence[Point]) -> Tuple[Point, ...]:
    return tuple(_dev(coords, p) for p in points)


# --- arrowheads ---


def arrowhead_triangle(tail: Point, tip: Point) -> Tuple[Point, Point, Point]:
    """Device triangle with its apex at ``tip``, pointing away from ``tail``."""
    dx, dy = tip[0] - tail[0], tip[1] - tail[1]
    length = math.hypot(dx, dy)
    if length == 0:
        raise ConfigurationError("arrowhead needs two distinct points")
    ux, uy = dx / length, dy / length
    bx, by = tip[0] - ux * ARROW_HEIGHT, tip[1] - uy * ARROW_HEIGHT
    nx, ny = -uy * ARROW_WIDTH / 2, ux * ARROW_WIDTH / 2
    return (
        round_point(tip),
        round_point((bx + nx, by + ny)),
        round_point((bx - nx, by - ny)),
    )


def build_arrowhead(coords: CoordinateSystem, id: str, p: Sequence[float], q: Sequence[float]) -> Tuple[Primitive, ...]:
    tail, tip = coords.to_device(_pt(p)), coords.to_device(_pt(q))
    return (Primitive(id=id, kind="arrowhead", paths=(arrowhead_triangle(tail, tip),), filled=True),)


# --- lines and segments ---


def _frame_crossings(
    p: Point, q: Point, x_lo: float, x_hi: float, y_lo: float, y_hi: float
) -> Tuple[Point, Point]:
    if p[0] == q[0]:
        return (p[0], y_lo), (p[0], y_hi)
    if p[1] == q[1]:
        return (x_lo, p[1]), (x_hi, p[1])
    slope = (q[1] - p[1]) / (q[0] - p[0])
    y_at_lo = slope * (x_lo - p[0]) + p[1]
    if y_lo < y_at_lo < y_hi:
        start = (x_lo, y_at_lo)
    else:
        edge = y_lo if slope > 0 else y_hi
        start = ((edge - p[1]) / slope + p[0], edge)
    y_at_hi = slope * (x_hi - q[0]) + q[1]
    if y_lo < y_at_hi < y_hi:
        end = (x_hi, y_at_hi)
    else:
        edge = y_hi if slope > 0 else y_lo
        end = ((edge - q[1]) / slope + q[0], edge)
    return start, end


def build_line(
    coords: CoordinateSystem, id: str, p: Sequence[float], q: Sequence[float], to_extremities: bool = False
) -> Tuple[Primitive, ...]:
    """Infinite line through ``p`` and ``q`` clipped to the math window.

    With ``to_extremities`` the line runs to the padded frame edge instead.
    """
    p, q = _pt(p, "p"), _pt(q, "q")
    if p == q:
        raise ConfigurationError("line needs two distinct points")
    b = coords.extended_bounds if to_extremities else coords.math_bounds
    start, end = _frame_crossings(p, q, b.x_min, b.x_max, b.y_min, b.y_max)
    return (Primitive(id=id, kind="segment-path", paths=(_polyline(coords, (start, end)),)),)


def _marker_dot(coords: CoordinateSystem, id: str, at: Point, filled: bool) -> Primitive:
    return Primitive(
        id=id, kind="circle", center=_dev(coords, at), radii=(MARKER_SIZE, MARKER_SIZE), filled=filled
    )


def build_segment(
    coords: CoordinateSystem, id: str, p: Sequence[float], q: Sequence[float], marker: str = "none"
) -> Tuple[Primitive, ...]:
    """Segment ``p``–``q`` with optional end markers.

    ``dot`` puts an open dot at ``p``; ``dotdot`` adds a filled dot at ``q``;
    ``arrow`` puts an arrowhead at ``q``; ``dotarrow`` is an open dot at ``p``
    and an arrowhead at ``q``; ``arrowdot`` is an arrowhead pointing at a
    filled dot at ``q``. The stroke stops short of any dot.
    """
    marker = marker or "none"
    if marker not in SEGMENT_MARKERS:
        raise ConfigurationError(f"Unknown segment marker {marker!r}; expected one of {sorted(SEGMENT_MARKERS)}")
    p, q = _pt(p, "p"), _pt(q, "q")
    dp, dq = coords.to_device(p), coords.to_device(q)
    length = math.hypot(dq[0] - dp[0], dq[1] - dp[1])
    ux, uy = ((dq[0] - dp[0]) / length, (dq[1] - dp[1]) / length) if length else (0.0, 0.0)

    start_dot = marker in ("dot", "dotdot", "dotarrow")
    end_dot = marker in ("dotdot", "arrowdot")
    start_gap = MARKER_SIZE if start_dot else 0.0
    end_gap = MARKER_SIZE if end_dot else 0.0
    stroke = (
        round_point((dp[0] + ux * start_gap, dp[1] + uy * start_gap)),
        round_point((dq[0] - ux * end_gap, dq[1] - uy * end_gap)),
    )
    out = [Primitive(id=id, kind="segment-path", paths=(stroke,))]
    if start_dot:
        out.append(_marker_dot(coords, f"{id}-start", p, filled=False))
    if end_dot:
        out.append(_marker_dot(coords, f"{id}-end", q, filled=True))
    if marker in ("arrow", "dotarrow"):
        out.append(Primitive(id=f"{id}-ah", kind="arrowhead", paths=(arrowhead_triangle(dp, dq),), filled=True))
    elif marker == "arrowdot":
        gap = MARKER_SIZE + MARKER_GAP
        tip = (dq[0] - ux * gap, dq[1] - uy * gap)
        out.append(Primitive(id=f"{id}-ah", kind="arrowhead", paths=(arrowhead_triangle(dp, tip),), filled=True))
    return tuple(out)


def build_path(
    coords: CoordinateSystem, id: str, points: Sequence[Sequence[float]], closed: bool = False
) -> Tuple[Primitive, ...]:
    pts = [_pt(p) for p in points]
    if len(pts) < 2:
        raise ConfigurationError("path needs at least 2 points")
    if closed and pts[0] != pts[-1]:
        pts.append(pts[0])
    return (Primitive(id=id, kind="segment-path", paths=(_polyline(coords, pts),)),)


# --- closed shapes ---


def build_ellipse(
    coords: CoordinateSystem, id: str, center: Sequence[float], rx: float, ry: float
) -> Tuple[Primitive, ...]:
    rx, ry = float(rx), float(ry)
    if not (rx > 0 and ry > 0):
        raise ConfigurationError(f"radii must be positive, got ({rx}, {ry})")
    dx, dy = coords.to_device_length(rx, ry)
    kind = "circle" if math.isclose(dx, dy) else "ellipse"
    return (Primitive(id=id, kind=kind, center=_dev(coords, _pt(center, "center")), radii=(round(dx, 2), round(dy, 2))),)


def build_polygon(coords: CoordinateSystem, id: str, points: Sequence[Sequence[float]]) -> Tuple[Primitive, ...]:
    pts = [_pt(p) for p in points]
    if len(pts) < 3:
        raise ConfigurationError("polygon needs at least 3 points")
    return (Primitive(id=id, kind="polygon", paths=(_polyline(coords, pts),)),)


def build_rect(
    coords: CoordinateSystem,
    id: str,
    p: Sequence[float],
    q: Sequence[float],
    rx: Optional[float] = None,
    ry: Optional[float] = None,
) -> Tuple[Primitive, ...]:
    """Axis-aligned rectangle with opposite corners ``p`` and ``q``."""
    p, q = _pt(p, "p"), _pt(q, "q")
    x_lo, x_hi = sorted((p[0], q[0]))
    y_lo, y_hi = sorted((p[1], q[1]))
    width, height = coords.to_device_length(x_hi - x_lo, y_hi - y_lo)
    if ry is None:
        ry = rx
    radii = coords.to_device_length(rx or 0.0, ry or 0.0)
    return (
        Primitive(
            id=id,
            kind="rect",
            center=_dev(coords, (x_lo, y_hi)),
            size=(round(width, 2), round(height, 2)),
            radii=(round(radii[0], 2), round(radii[1], 2)),
        ),
    )


# --- text and dots ---


def text_offset(position: Optional[str]) -> Tuple[float, float, str]:
    """Return ``(dx, dy, anchor)`` in pixels for a text position keyword."""
    dx, dy, anchor = 0.0, FONT_SIZE / 3, "middle"
    if position is None:
        return dx, dy, anchor
    if position not in TEXT_POSITIONS:
        raise ConfigurationError(f"Unknown text position {position!r}; expected one of {sorted(TEXT_POSITIONS)}")
    if position.startswith("above"):
        dy = -FONT_SIZE / 2
    elif position.startswith("below"):
        dy = FONT_SIZE + 4
    if position.endswith("right"):
        dx, anchor = FONT_SIZE / 2, "start"
    elif position.endswith("left"):
        dx, anchor = -FONT_SIZE / 2, "end"
    return dx, dy, anchor


def build_text(
    coords: CoordinateSystem, id: str, p: Sequence[float], text: str, position: Optional[str] = None
) -> Tuple[Primitive, ...]:
    dx, dy, anchor = text_offset(position)
    x, y = coords.to_device(_pt(p))
    return (Primitive(id=id, kind="text", center=round_point((x + dx, y + dy)), text=str(text), anchor=anchor),)


def build_dot(
    coords: CoordinateSystem,
    id: str,
    center: Sequence[float],
    type: str = "closed",
    label: Optional[str] = None,
    position: Optional[str] = "below",
) -> Tuple[Primitive, ...]:
    """Point marker: a closed or open dot, or a ``+``/``-``/``|`` tick."""
    if type not in DOT_TYPES:
        raise ConfigurationError(f"Unknown dot type {type!r}; expected one of {sorted(DOT_TYPES)}")
    c = _pt(center, "center")
    cx, cy = coords.to_device(c)
    if type in ("closed", "open"):
        out = [
            Primitive(
                id=id, kind="circle", center=round_point((cx, cy)), radii=(DOT_RADIUS, DOT_RADIUS), filled=type == "closed"
            )
        ]
    else:
        horizontal = (round_point((cx - TICK_LENGTH, cy)), round_point((cx + TICK_LENGTH, cy)))
        vertical = (round_point((cx, cy - TICK_LENGTH)), round_point((cx, cy + TICK_LENGTH)))
        paths = {"+": (horizontal, vertical), "-": (horizontal,), "|": (vertical,)}[type]
        out = [Primitive(id=id, kind="segment-path", paths=paths)]
    if label:
        out.extend(build_text(coords, f"{id}-label", c, label, position))
    return tuple(out)


# --- arcs ---


def _arc_steps(sweep: float) -> int:
    return max(8, int(math.ceil(abs(math.degrees(sweep)) / 5.0)))


def build_arc(
    coords: CoordinateSystem,
    id: str,
    start: Sequence[float],
    end: Sequence[float],
    radius: Optional[float] = None,
    marker: str = "none",
) -> Tuple[Primitive, ...]:
    """Minor circular arc from ``start`` to ``end``, counter-clockwise in math space.

    ``radius`` defaults to the distance between the endpoints and is raised
    to half the chord when too small.
    """
    if marker not in SEGMENT_MARKERS:
        raise ConfigurationError(f"Unknown arc marker {marker!r}; expected one of {sorted(SEGMENT_MARKERS)}")
    s, e = _pt(start, "start"), _pt(end, "end")
    if s == e:
        raise ConfigurationError("arc needs two distinct endpoints")
    chord_x, chord_y = e[0] - s[0], e[1] - s[1]
    chord = math.hypot(chord_x, chord_y)
    r = chord if radius is None else abs(float(radius))
    half = chord / 2
    r = max(r, half)
    offset = math.sqrt(max(r * r - half * half, 0.0))
    mid = (s[0] + chord_x / 2, s[1] + chord_y / 2)
    center = (mid[0] - chord_y / chord * offset, mid[1] + chord_x / chord * offset)
    a0 = math.atan2(s[1] - center[1], s[0] - center[0])
    a1 = math.atan2(e[1] - center[1], e[0] - center[0])
    if a1 <= a0:
        a1 += 2 * math.pi
    angles = np.linspace(a0, a1, _arc_steps(a1 - a0) + 1)
    pts = [(center[0] + r * math.cos(a), center[1] + r * math.sin(a)) for a in angles]
    pts[0], pts[-1] = s, e
    out = [Primitive(id=id, kind="segment-path", paths=(_polyline(coords, pts),))]
    if marker in ("dot", "dotdot", "dotarrow", "arrowdot"):
        out.append(_marker_dot(coords, f"{id}-start", s, filled=False))
        out.append(_marker_dot(coords, f"{id}-end", e, filled=True))
    if marker in ("arrow", "arrowdot", "dotarrow"):
        tail, tip = coords.to_device(pts[-2]), coords.to_device(pts[-1])
        out.append(Primitive(id=f"{id}-ah", kind="arrowhead", paths=(arrowhead_triangle(tail, tip),), filled=True))
    return tuple(out)


def build_angle_arc(
    coords: CoordinateSystem,
    id: str,
    vertex: Sequence[float],
    radius: float,
    start_angle: float,
    end_angle: float,
) -> Tuple[Primitive, ...]:
    """Angle marker: a sector of ``radius`` device pixels at ``vertex``.

    Angles are in degrees, measured counter-clockwise from the positive
    x-axis; the sector is closed back to the vertex.
    """
    radius = float(radius)
    if not radius > 0:
        raise ConfigurationError(f"radius must be positive, got {radius}")
    cx, cy = coords.to_device(_pt(vertex, "vertex"))
    a0, a1 = math.radians(float(start_angle)), math.radians(float(end_angle))
    angles = np.linspace(a0, a1, _arc_steps(a1 - a0) + 1)
    ring = [round_point((cx + radius * math.cos(a), cy - radius * math.sin(a))) for a in angles]
    ring.append(round_point((cx, cy)))
    return (Primitive(id=id, kind="polygon", paths=(tuple(ring),)),)


# --- axes ---


def tick_decimals(step: float) -> int:
    """Decimals needed to print multiples of ``step`` (never negative)."""
    return max(0, int(math.floor(1.1 - math.log10(step))) + 2)


def format_tick(value: float, decimals: int) -> str:
    """Fixed-point text with trailing zeros (and a bare point) removed."""
    text = f"{value:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _multiples(step: float, lo: float, hi: float) -> list[float]:
    # nonzero multiples of step inside [lo, hi]: positives ascending, then negatives descending
    up = [k * step for k in range(1, int(hi / step + 1e-9) + 1)] if hi > 0 else []
    down = [-k * step for k in range(1, int(-lo / step + 1e-9) + 1)] if lo < 0 else []
    return up + down


def build_axes(
    coords: CoordinateSystem,
    id: str,
    dx: Optional[float] = None,
    dy: Optional[float] = None,
    labels: bool = True,
    grid_dx: Optional[float] = None,
    grid_dy: Optional[float] = None,
    show_y_axis: bool = True,
    x_name: str = "x",
    y_name: str = "y",
) -> Tuple[Primitive, ...]:
    """Axis lines with ticks, optional grid, tick labels and arrowheads.

    ``dx``/``dy`` are tick spacings in math units (default 1 and ``dx``);
    ``grid_dx``/``grid_dy`` enable a grid at that spacing.
    """
    dx = 1.0 if dx is None else float(dx)
    dy = dx if dy is None else float(dy)
    if not (dx > 0 and dy > 0):
        raise ConfigurationError(f"tick spacing must be positive, got dx={dx}, dy={dy}")
    W, H, pad = coords.width, coords.height, coords.padding
    ox = coords.origin[0]
    axis_y = H - coords.origin[1]
    step_x, step_y = coords.to_device_length(dx, dy)
    tick = max(12.0, min(step_x / 2, step_y / 2, FONT_SIZE)) / 4

    out: list[Primitive] = []

    def _xs(step: float) -> list[float]:
        right = [ox + k * step for k in range(1, int((W - ox) / step) + 2) if ox + k * step < W]
        left = [ox - k * step for k in range(1, int(ox / step) + 2) if ox - k * step > 0]
        return right + left

    def _ys(step: float) -> list[float]:
        down = [axis_y + k * step for k in range(1, int((H - axis_y) / step) + 2) if axis_y + k * step < H - 0.99 * pad]
        up = [axis_y - k * step for k in range(1, int(axis_y / step) + 2) if axis_y - k * step > 0.99 * pad]
        return down + up

    if grid_dx is not None or grid_dy is not None:
        gx, gy = coords.to_device_length(float(grid_dx or dx), float(grid_dy or grid_dx or dy))
        if not (gx > 0 and gy > 0):
            raise ConfigurationError("grid spacing must be positive")
        lines = [((round(x, 2), 0.0), (round(x, 2), round(H, 2))) for x in [ox] + _xs(gx) if 0 <= x <= W]
        if show_y_axis:
            lines += [((0.0, round(y, 2)), (round(W, 2), round(y, 2))) for y in [axis_y] + _ys(gy) if 0 <= y <= H]
        out.append(Primitive(id=f"{id}-grid", kind="segment-path", paths=tuple(lines)))

    axis_paths = [(round_point((0, axis_y)), round_point((W, axis_y)))]
    if show_y_axis:
        axis_paths.append((round_point((ox, 0)), round_point((ox, H))))
    else:
        axis_paths.append((round_point((ox, axis_y + tick)), round_point((ox, axis_y - tick))))
    axis_paths += [(round_point((x, axis_y + tick)), round_point((x, axis_y - tick))) for x in _xs(step_x)]
    if show_y_axis:
        axis_paths += [(round_point((ox + tick, y)), round_point((ox - tick, y))) for y in _ys(step_y)]
    out.append(Primitive(id=id, kind="segment-path", paths=tuple(axis_paths)))

    b = coords.math_bounds
    if labels:
        lx = b.x_min if (b.x_min > 0 or b.x_max < 0) else 0.0
        ly = b.y_min if (b.y_min > 0 or b.y_max < 0) else 0.0
        x_pos = "below" if ly == 0 else "above"
        y_pos = "left" if lx == 0 else "right"
        ddx, ddy = tick_decimals(dx), tick_decimals(dy)
        ticks_x = _multiples(dx, b.x_min, b.x_max)
        for i, x in enumerate(ticks_x):
            out.extend(build_text(coords, f"{id}-xtick-{i}", (x, ly), format_tick(x, ddx), x_pos))
        if show_y_axis:
            ticks_y = _multiples(dy, b.y_min, b.y_max)
            for i, y in enumerate(ticks_y):
                out.extend(build_text(coords, f"{id}-ytick-{i}", (lx, y), format_tick(y, ddy), y_pos))
        else:
            out.extend(build_text(coords, f"{id}-xtick-origin", (0.0, ly), "0", x_pos))

    x_tip = (b.x_max + pad / coords.x_scale, 0.0)
    out.extend(build_text(coords, f"{id}-xname", (b.x_max + (pad - 10) / coords.x_scale, 0.0), x_name, "above"))
    out.extend(build_arrowhead(coords, f"{id}-xarrow", (0.0, 0.0), x_tip))
    if show_y_axis:
        y_tip = (0.0, b.y_max + pad / coords.y_scale)
        out.extend(build_text(coords, f"{id}-yname", (0.0, b.y_max + (pad - 10) / coords.y_scale), y_name, "right"))
        out.extend(build_arrowhead(coords, f"{id}-yarrow", (0.0, 0.0), y_tip))
    return tuple(out)


__all__ = [
    "ARROW_HEIGHT",
    "ARROW_WIDTH",
    "DOT_TYPES",
    "SEGMENT_MARKERS",
    "TEXT_POSITIONS",
    "arrowhead_triangle",
    "build_angle_arc",
    "build_arc",
    "build_arrowhead",
    "build_axes",
    "build_dot",
    "build_ellipse",
    "build_line",
    "build_path",
    "build_polygon",
    "build_rect",
    "build_segment",
    "build_text",
    "format_tick",
    "text_offset",
    "tick_decimals",
]
