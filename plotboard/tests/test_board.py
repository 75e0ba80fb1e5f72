from __future__ import annotations

import logging

import numpy as np
import pytest

from plotboard import (
    Board,
    BoardOptions,
    BoardRegistry,
    ConfigurationError,
    DegeneratePlotWarning,
    ExpressionSyntaxError,
    NullRenderer,
    SamplerConfig,
)
from plotboard.expression_compiler import compile_expression


def _board(**kwargs) -> Board:
    renderer = NullRenderer()
    return Board("b", BoardOptions(width=500, plot_window=(-5, 5, -5, 5)), renderer, **kwargs)


def test_plot_emits_one_segment_path_primitive() -> None:
    board = _board()
    plot = board.plot("x^2", id="p")
    prim = board.renderer.primitives["p"]
    assert prim.kind == "segment-path"
    assert len(prim.paths) == len(plot.segments) == 1
    # device points are rounded to 2 decimals
    x, y = prim.paths[0][0]
    assert round(x, 2) == x and round(y, 2) == y


def test_replotting_same_id_replaces_previous_segments() -> None:
    board = _board()
    board.plot("tan(x)", id="p")
    assert len(board.renderer.primitives["p"].paths) > 1
    board.plot("x", id="p")
    assert len(board.renderer.primitives["p"].paths) == 1
    assert list(board.plots) == ["p"]


def test_plot_upsert_is_idempotent() -> None:
    board = _board()
    board.plot("sin(x)", id="p")
    first = board.renderer.primitives["p"]
    board.plot("sin(x)", id="p")
    assert board.renderer.primitives["p"] == first
    assert len(board.renderer.primitives) == 1


def test_update_keeps_domain_when_none_and_resets_with_board() -> None:
    board = _board()
    plot = board.plot("x", domain=(0, 1), id="p")
    assert plot.domain == (0.0, 1.0)
    board.plot("2x", id="p")
    assert plot.domain == (0.0, 1.0)
    plot.update(domain="board")
    assert plot.domain is None


def test_domain_accepts_expression_strings() -> None:
    board = _board()
    plot = board.plot("sin(x)", domain=("-pi", "pi/2"), id="p")
    assert plot.domain == (pytest.approx(-np.pi), pytest.approx(np.pi / 2))


def test_plot_variable_selects_sampling_mode() -> None:
    board = _board()
    assert board.plot("x^2").mode == "explicit"
    assert board.plot("y^2").mode == "inverse"
    assert board.plot(("cos(t)", "sin(t)"), domain=(0, "2pi")).mode == "parametric"


def test_plot_accepts_compiled_expression() -> None:
    board = _board()
    plot = board.plot(compile_expression("x+1"), id="line")
    assert plot.snapshot().source == "x+1"


def test_plot_rejects_unsupported_source() -> None:
    with pytest.raises(TypeError):
        _board().plot({"x": 1})  # type: ignore[arg-type]


def test_plot_accepts_a_number_as_constant_line() -> None:
    board = _board()
    plot = board.plot(3, id="level")
    assert len(plot.segments) == 1
    np.testing.assert_allclose(plot.segments[0].ys, 3.0)
    assert board.plot(-2.5, id="low").snapshot().source == "-2.5"
    assert board.plot(1e-20, id="tiny").segments[0].ys[0] == pytest.approx(1e-20)
    with pytest.raises(ValueError):
        board.plot(float("inf"))


def test_non_positive_point_count_is_a_configuration_error() -> None:
    board = _board()
    with pytest.raises(ConfigurationError):
        board.plot("x", points=0)
    assert not board.plots


def test_bad_expression_raises_and_leaves_board_unchanged() -> None:
    board = _board()
    with pytest.raises(ExpressionSyntaxError):
        board.plot("x^", id="p")
    assert "p" not in board.plots
    assert not board.renderer.primitives


def test_offscreen_plot_warns() -> None:
    board = _board()
    with pytest.warns(DegeneratePlotWarning):
        plot = board.plot("x+100", id="far")
    assert plot.segments == ()
    assert board.renderer.primitives["far"].paths == ()


def test_generated_ids_are_unique_per_kind() -> None:
    board = _board()
    assert board.line((0, 0), (1, 1)) == "line-1"
    assert board.line((0, 0), (1, 2)) == "line-2"
    assert board.dot((0, 0)) == "dot-1"
    assert board.plot("x").id == "plot-1"


def test_drawing_upsert_replaces_and_drops_stale_primitives() -> None:
    board = _board()
    board.segment((0, 0), (1, 1), id="s", marker="dotarrow")
    assert {"s", "s-start", "s-ah"} <= set(board.renderer.primitives)
    board.segment((0, 0), (2, 2), id="s")
    assert set(board.renderer.primitives) == {"s"}


def test_delete_removes_all_primitives_and_unknown_id_raises() -> None:
    board = _board()
    board.dot((1, 1), label="A", id="a")
    board.plot("x", id="p")
    board.delete("a")
    board.delete("p")
    assert not board.renderer.primitives
    assert not board.plots
    with pytest.raises(KeyError):
        board.delete("a")


def test_id_cannot_switch_between_plot_and_drawing() -> None:
    board = _board()
    board.plot("x", id="shared")
    with pytest.raises(ConfigurationError):
        board.line((0, 0), (1, 1), id="shared")
    board.line((0, 0), (1, 1), id="l")
    with pytest.raises(ConfigurationError):
        board.plot("x", id="l")


def test_resize_redraws_against_new_coordinates() -> None:
    board = _board()
    board.circle((0, 0), 1, id="c")
    board.plot("x", id="p")
    assert board.renderer.primitives["c"].radii == (46.0, 46.0)
    board.resize(1000, 1000)
    after = board.renderer.primitives["c"]
    assert board.coords.width == 1000
    assert after.radii == (96.0, 96.0)
    assert after.center == (500.0, 500.0)


def test_resize_rejects_too_small_frame_without_changing_state() -> None:
    board = _board()
    coords = board.coords
    with pytest.raises(ConfigurationError):
        board.resize(10, 10)
    assert board.coords is coords


def test_circle_becomes_ellipse_when_scales_differ() -> None:
    board = Board("b", BoardOptions(width=500, height=300, plot_window=(-5, 5, -5, 5)), NullRenderer())
    board.circle((0, 0), 1, id="c")
    assert board.renderer.primitives["c"].kind == "ellipse"


def test_all_drawing_calls_produce_primitives() -> None:
    board = _board()
    ids = [
        board.line((0, 0), (1, 1)),
        board.segment((0, 0), (1, 1), marker="arrow"),
        board.path([(0, 0), (1, 1), (2, 0)], closed=True),
        board.ellipse((0, 0), 2, 1),
        board.polygon([(0, 0), (1, 0), (0, 1)]),
        board.rect((0, 0), (2, 1), rx=0.2),
        board.text((1, 1), "P", position="aboveright"),
        board.arrowhead((0, 0), (1, 0)),
        board.arc((1, 0), (0, 1)),
        board.angle_arc((0, 0), 20, 0, 90),
        board.axes(),
    ]
    for drawing_id in ids:
        assert drawing_id in board.renderer.primitives
    assert len(board.registry) == len(ids)


def test_snapshot_lists_plots_and_drawings() -> None:
    board = _board()
    board.axes(id="ax")
    board.plot("x^2", id="p", points=50)
    snap = board.snapshot()
    assert snap.width == 500 and snap.height == 500
    assert snap.x_range == (-5.0, 5.0)
    assert list(snap.plots) == ["p"]
    assert snap.plots["p"].sampling_points == 50
    assert snap.plots["p"].segment_count == 1
    assert [d.id for d in snap.drawings] == ["ax"]
    assert "ax" in snap.drawings[0].primitive_ids


def test_board_sampling_points_default_is_used() -> None:
    board = Board("b", BoardOptions(sampling_points=10), NullRenderer())
    dense = Board("d", BoardOptions(sampling_points=400), NullRenderer())
    assert board.plot("sin(x)").result.point_count < dense.plot("sin(x)").result.point_count


def test_debug_render_logging_is_rate_limited(caplog) -> None:
    board = _board(debug=True)
    with caplog.at_level(logging.INFO, logger="plotboard.board"):
        for _ in range(5):
            board.plot("x", id="p")
    renders = [r for r in caplog.records if "render plot=p" in r.getMessage()]
    assert len(renders) == 1


def test_per_plot_sampler_config() -> None:
    board = _board()
    plot = board.plot("x/100", domain=(-50, 50), id="p", config=SamplerConfig(draw_beyond_x=True))
    assert plot.segments[0].xs.min() < -40


def test_per_plot_overscan_reaches_the_sampler() -> None:
    board = _board()
    plot = board.plot("x^3", id="p", config=SamplerConfig(overscan=0.0))
    y_max = board.coords.extended_bounds.y_max
    assert max(float(s.ys.max()) for s in plot.segments) <= y_max
    assert board.coords.plot_bounds.y_max > y_max


def test_registry_create_get_delete(caplog) -> None:
    registry = BoardRegistry()
    with caplog.at_level(logging.INFO, logger="plotboard.board"):
        board = registry.create_board("main")
        again = registry.create_board("main")
    assert again is board
    assert "already exists" in caplog.text
    assert registry.get_board("main") is board
    assert list(registry) == ["main"]

    registry.delete_board(board)
    assert len(registry) == 0
    with pytest.raises(KeyError):
        registry.get_board("main")
    with pytest.raises(TypeError):
        registry.delete_board(3)  # type: ignore[arg-type]
