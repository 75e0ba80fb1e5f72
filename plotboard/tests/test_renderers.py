from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from plotboard import Board, BoardOptions, PlotlyRenderer, Primitive, Renderer, SvgRenderer
from plotboard.renderer_plotly import primitive_xy
from plotboard.renderer_svg import path_data


def test_renderers_satisfy_protocol() -> None:
    assert isinstance(SvgRenderer(), Renderer)
    assert isinstance(PlotlyRenderer(), Renderer)


def test_path_data_starts_each_polyline_with_move() -> None:
    d = path_data([((0.0, 0.0), (1.5, 2.0)), ((3.0, 3.0), (4.0, 4.0))])
    assert d == "M 0,0 1.5,2 M 3,3 4,4"
    assert path_data([((0.0, 0.0), (1.0, 0.0), (0.0, 1.0))], closed=True).endswith("Z")


def test_svg_upsert_replaces_in_place() -> None:
    svg = SvgRenderer(200, 100)
    svg.upsert(Primitive(id="a", kind="circle", center=(10.0, 10.0), radii=(4.0, 4.0)))
    svg.upsert(Primitive(id="b", kind="text", center=(5.0, 5.0), text="hi", anchor="start"))
    svg.upsert(Primitive(id="a", kind="circle", center=(20.0, 20.0), radii=(4.0, 4.0), filled=True))
    assert svg.element_ids() == ("a", "b")
    assert svg.element("a")["cx"] == 20.0
    assert svg.element("a")["fill"] == "black"
    assert svg.element("b").text == "hi"
    assert svg.element("b")["text-anchor"] == "start"


def test_svg_delete() -> None:
    svg = SvgRenderer()
    svg.upsert(Primitive(id="a", kind="polygon", paths=(((0.0, 0.0), (1.0, 0.0), (0.0, 1.0)),)))
    svg.delete("a")
    svg.delete("missing")
    assert "a" not in svg
    assert len(svg) == 0


def test_board_to_svg_document() -> None:
    svg = SvgRenderer(400, 400)
    board = Board("svg", BoardOptions(width=400, plot_window=(-3, 3, -3, 3)), svg)
    board.axes(id="ax")
    board.plot("1/x", id="hyp")
    board.rect((0, 0), (1, 1), id="r")
    doc = ET.fromstring(svg.to_svg())
    assert doc.tag.endswith("svg")
    by_id = {el.get("id"): el for el in doc.iter() if el.get("id")}
    assert by_id["hyp"].tag.endswith("path")
    assert by_id["hyp"].get("d").count("M") == len(board.plots["hyp"].segments)
    assert by_id["r"].tag.endswith("rect")
    assert by_id["ax-xtick-0"].text == "1"


def test_primitive_xy_separates_segments_with_none() -> None:
    prim = Primitive(id="p", kind="segment-path", paths=(((0.0, 0.0), (1.0, 1.0)), ((2.0, 2.0), (3.0, 3.0))))
    xs, ys = primitive_xy(prim)
    assert xs == [0.0, 1.0, None, 2.0, 3.0]
    assert ys == [0.0, 1.0, None, 2.0, 3.0]


def test_primitive_xy_closes_polygons_and_outlines_circles() -> None:
    tri = Primitive(id="t", kind="arrowhead", paths=(((0.0, 0.0), (1.0, 0.0), (0.0, 1.0)),), filled=True)
    xs, ys = primitive_xy(tri)
    assert (xs[0], ys[0]) == (xs[-1], ys[-1])
    circle = Primitive(id="c", kind="circle", center=(10.0, 10.0), radii=(2.0, 2.0))
    xs, ys = primitive_xy(circle)
    assert (xs[0], ys[0]) == (pytest.approx(12.0), pytest.approx(10.0))


def test_plotly_one_trace_per_primitive_updated_by_uid() -> None:
    renderer = PlotlyRenderer(300, 300)
    board = Board("plotly", BoardOptions(width=300), renderer)
    board.plot("x^2", id="p")
    board.dot((1, 1), label="A", id="a")
    assert renderer.trace_ids() == ("p", "a", "a-label")

    board.plot("x", id="p")
    assert renderer.trace_ids() == ("p", "a", "a-label")

    board.delete("a")
    assert renderer.trace_ids() == ("p",)


def test_plotly_axes_use_device_pixels_with_y_down() -> None:
    renderer = PlotlyRenderer(300, 200)
    layout = renderer.figure.layout
    assert tuple(layout.xaxis.range) == (0, 300)
    assert tuple(layout.yaxis.range) == (200, 0)
