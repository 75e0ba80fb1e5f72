from __future__ import annotations

import math

import pytest

from plotboard.board_shapes import (
    ARROW_HEIGHT,
    ARROW_WIDTH,
    FONT_SIZE,
    arrowhead_triangle,
    build_angle_arc,
    build_arc,
    build_axes,
    build_dot,
    build_line,
    build_polygon,
    build_rect,
    build_segment,
    format_tick,
    text_offset,
    tick_decimals,
)
from plotboard.coordinates import CoordinateSystem
from plotboard.errors import ConfigurationError


@pytest.fixture
def coords() -> CoordinateSystem:
    return CoordinateSystem.create(500, 500, -5, 5, -5, 5, padding=20)


def test_arrowhead_triangle_geometry() -> None:
    tip, left, right = arrowhead_triangle((0.0, 0.0), (100.0, 0.0))
    assert tip == (100.0, 0.0)
    assert left[0] == right[0] == pytest.approx(100.0 - ARROW_HEIGHT)
    assert abs(left[1] - right[1]) == pytest.approx(ARROW_WIDTH)


def test_arrowhead_needs_distinct_points() -> None:
    with pytest.raises(ConfigurationError):
        arrowhead_triangle((1.0, 1.0), (1.0, 1.0))


def test_line_runs_edge_to_edge_of_window(coords) -> None:
    (prim,) = build_line(coords, "l", (0, 0), (1, 1))
    start, end = prim.paths[0]
    assert start == (20.0, 480.0)
    assert end == (480.0, 20.0)


def test_vertical_line_and_extremities(coords) -> None:
    (prim,) = build_line(coords, "l", (1, 0), (1, 2), to_extremities=True)
    (x0, y0), (x1, y1) = prim.paths[0]
    assert x0 == x1 == 296.0
    assert {y0, y1} == {0.0, 500.0}


def test_line_needs_distinct_points(coords) -> None:
    with pytest.raises(ConfigurationError):
        build_line(coords, "l", (1, 1), (1, 1))


def test_segment_markers(coords) -> None:
    ids = [p.id for p in build_segment(coords, "s", (0, 0), (1, 0), "dotdot")]
    assert ids == ["s", "s-start", "s-end"]
    ids = [p.id for p in build_segment(coords, "s", (0, 0), (1, 0), "arrowdot")]
    assert ids == ["s", "s-end", "s-ah"]
    with pytest.raises(ConfigurationError):
        build_segment(coords, "s", (0, 0), (1, 0), "zigzag")


def test_segment_stroke_stops_short_of_dots(coords) -> None:
    stroke = build_segment(coords, "s", (0, 0), (1, 0), "dotdot")[0].paths[0]
    assert stroke[0] == (254.0, 250.0)
    assert stroke[1] == (292.0, 250.0)


def test_non_finite_point_raises(coords) -> None:
    with pytest.raises(ConfigurationError):
        build_segment(coords, "s", (0, float("nan")), (1, 0))


@pytest.mark.parametrize(
    "position, expected",
    [
        (None, (0.0, FONT_SIZE / 3, "middle")),
        ("above", (0.0, -FONT_SIZE / 2, "middle")),
        ("below", (0.0, FONT_SIZE + 4, "middle")),
        ("right", (FONT_SIZE / 2, FONT_SIZE / 3, "start")),
        ("aboveleft", (-FONT_SIZE / 2, -FONT_SIZE / 2, "end")),
    ],
)
def test_text_offsets(position, expected) -> None:
    dx, dy, anchor = text_offset(position)
    assert (dx, dy) == (pytest.approx(expected[0]), pytest.approx(expected[1]))
    assert anchor == expected[2]


def test_unknown_text_position(coords) -> None:
    with pytest.raises(ConfigurationError):
        text_offset("middle")


def test_dot_kinds(coords) -> None:
    (closed,) = build_dot(coords, "d", (0, 0))
    assert closed.kind == "circle" and closed.filled
    (plus,) = build_dot(coords, "d", (0, 0), type="+")
    assert plus.kind == "segment-path" and len(plus.paths) == 2
    labelled = build_dot(coords, "d", (0, 0), type="open", label="O")
    assert [p.id for p in labelled] == ["d", "d-label"]
    assert not labelled[0].filled


def test_polygon_needs_three_points(coords) -> None:
    with pytest.raises(ConfigurationError):
        build_polygon(coords, "p", [(0, 0), (1, 1)])


def test_rect_uses_top_left_corner(coords) -> None:
    (prim,) = build_rect(coords, "r", (1, 1), (0, 0))
    assert prim.center == (250.0, 204.0)
    assert prim.size == (46.0, 46.0)


def test_arc_ends_on_its_endpoints(coords) -> None:
    (prim,) = build_arc(coords, "a", (1, 0), (0, 1), radius=1)
    path = prim.paths[0]
    assert path[0] == coords.to_device((1, 0))
    assert path[-1] == coords.to_device((0, 1))
    # quarter circle of radius 1 around the origin
    for x, y in path:
        mx, my = coords.to_math((x, y))
        assert math.hypot(mx, my) == pytest.approx(1.0, abs=0.01)


def test_angle_arc_is_closed_at_vertex(coords) -> None:
    (prim,) = build_angle_arc(coords, "g", (0, 0), 20, 0, 90)
    ring = prim.paths[0]
    assert prim.kind == "polygon"
    assert ring[0] == (270.0, 250.0)
    assert ring[-2] == (250.0, 230.0)
    assert ring[-1] == (250.0, 250.0)


@pytest.mark.parametrize("step, decimals", [(1, 3), (0.5, 3), (0.1, 4), (10, 2), (1000, 0)])
def test_tick_decimals(step: float, decimals: int) -> None:
    assert tick_decimals(step) == decimals


@pytest.mark.parametrize("value, text", [(1.0, "1"), (0.5, "0.5"), (-2.25, "-2.25"), (-0.0, "0")])
def test_format_tick(value: float, text: str) -> None:
    assert format_tick(value, 3) == text


def test_axes_ticks_labels_and_arrows(coords) -> None:
    prims = {p.id: p for p in build_axes(coords, "ax")}
    assert "ax" in prims
    xticks = [p for pid, p in prims.items() if pid.startswith("ax-xtick-")]
    yticks = [p for pid, p in prims.items() if pid.startswith("ax-ytick-")]
    assert len(xticks) == 10 and len(yticks) == 10
    assert {p.text for p in xticks} == {"1", "2", "3", "4", "5", "-1", "-2", "-3", "-4", "-5"}
    assert prims["ax-xarrow"].kind == "arrowhead"
    assert prims["ax-xarrow"].paths[0][0] == (500.0, 250.0)
    assert prims["ax-yname"].text == "y"


def test_axes_grid_and_hidden_y_axis(coords) -> None:
    prims = {p.id: p for p in build_axes(coords, "ax", grid_dx=1, show_y_axis=False)}
    assert "ax-grid" in prims
    assert "ax-yarrow" not in prims
    assert "ax-xtick-origin" in prims
