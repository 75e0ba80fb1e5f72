"""Boards: a coordinate plane that turns drawing calls into renderer primitives.

Purpose
-------
This module provides the public ``Board`` class and the ``BoardRegistry`` that
owns boards by id. A board connects typed-in expressions and math-space
drawing calls (lines, dots, text, axes, ...) to a renderer through device
coordinates.

Concepts and structure
----------------------
The implementation is composition-based:

- ``CoordinateSystem`` (from ``coordinates``) maps math space to pixels.
- ``PrimitiveRegistry`` (from ``board_primitives``) remembers every drawing by
  id and keeps the renderer in sync.
- ``Plot`` (from ``board_plot``) encapsulates per-curve sampling state.
- ``board_shapes`` holds the pure geometry builders for every other drawing.

Architecture notes
------------------
All state is owned explicitly: a ``BoardRegistry`` owns boards, a board owns
its coordinate system and primitive registry. Nothing is read from module
globals while drawing.

Important gotchas
-----------------
- Every drawing call is an upsert: reusing an id replaces the earlier output.
- ``resize`` swaps in a freshly computed coordinate system in one assignment,
  then replays every drawing in the order it was first drawn.
- Drawing inputs are math coordinates, except ``angle_arc``'s radius which
  is in pixels.

Examples
--------
>>> from plotboard import Board, BoardOptions
>>> board = Board("demo", BoardOptions(width=400, plot_window=(-3, 3, -2, 2)))
>>> board.axes()
'axes-1'
>>> board.plot("x^2-1", id="parabola").segments[0].points.shape[1]
2
"""

from __future__ import annotations

import logging
import math
import numbers
import time
import warnings
from collections.abc import Mapping
from functools import partial
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from .BoardSnapshot import BoardSnapshot, DrawingSnapshot
from .InputConvert import InputConvert
from .board_config import BoardOptions, SamplerConfig
from .board_plot import Plot, RangeLike
from .board_primitives import NullRenderer, PrimitiveRegistry, Renderer
from .board_shapes import (
    build_angle_arc,
    build_arc,
    build_arrowhead,
    build_axes,
    build_dot,
    build_ellipse,
    build_line,
    build_path,
    build_polygon,
    build_rect,
    build_segment,
    build_text,
)
from .coordinates import CoordinateSystem
from .errors import ConfigurationError, DegeneratePlotWarning
from .expression_compiler import (
    CompiledExpression,
    ParametricExpression,
    compile_expression,
    compile_parametric,
    infer_variable,
)

__all__ = ["Board", "BoardRegistry"]

# Module logger
# - Uses a NullHandler so importing this module never configures global logging.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

Point = Sequence[float]
ExpressionLike = Union[float, str, CompiledExpression, ParametricExpression, Tuple[str, str]]


def _resolve_expression(source: ExpressionLike, variable: Optional[str]) -> Union[CompiledExpression, ParametricExpression]:
    if isinstance(source, (CompiledExpression, ParametricExpression)):
        return source
    if isinstance(source, numbers.Real) and not isinstance(source, bool):
        value = float(source)
        if not math.isfinite(value):
            raise ValueError(f"plot() needs a finite constant, got {source!r}")
        # positional digits only; "1e-20" would read as 1*e-20
        return compile_expression(np.format_float_positional(value, trim="-"), variable or "x")
    if isinstance(source, str):
        var = variable or infer_variable(source)
        return compile_expression(source, var)
    if isinstance(source, (tuple, list)) and len(source) == 2:
        return compile_parametric(source[0], source[1], variable or "t")
    raise TypeError(
        "plot() expects a number, an expression string, a compiled expression or an (x, y) pair of strings, "
        f"got {type(source).__name__}"
    )


class Board:
    """A math window drawn into a device frame.

    Parameters
    ----------
    board_id : str
        Identifier used as a prefix in logs and snapshots.
    options : BoardOptions, optional
        Frame size, padding, window and default point count.
    renderer : Renderer, optional
        Drawing backend; defaults to a :class:`NullRenderer`.
    sampler_config : SamplerConfig, optional
        Sampling policy shared by every plot on the board.
    debug : bool
        Log each plot render at INFO (rate limited).
    """

    def __init__(
        self,
        board_id: str = "board",
        options: Optional[BoardOptions] = None,
        renderer: Optional[Renderer] = None,
        *,
        sampler_config: Optional[SamplerConfig] = None,
        debug: bool = False,
    ) -> None:
        self._id = board_id
        self._options = options or BoardOptions()
        self._sampler_config = sampler_config or SamplerConfig()
        self._coords = self._coords_from_options(self._options, self._sampler_config)
        self._renderer: Renderer = renderer if renderer is not None else NullRenderer()
        self._registry = PrimitiveRegistry(self._renderer)
        self.plots: Dict[str, Plot] = {}
        self._counters: Dict[str, int] = {}
        self._debug = debug
        self._render_info_last_log_t = float("-inf")
        self._render_debug_last_log_t = float("-inf")

    @staticmethod
    def _coords_from_options(options: BoardOptions, config: SamplerConfig) -> CoordinateSystem:
        x_min, x_max, y_min, y_max = options.plot_window
        return CoordinateSystem.create(
            options.width,
            options.resolved_height,
            InputConvert(x_min, float),
            InputConvert(x_max, float),
            InputConvert(y_min, float),
            None if y_max is None else InputConvert(y_max, float),
            options.padding,
            overscan=config.overscan,
        )

    # --- read-only state ---

    @property
    def id(self) -> str:
        return self._id

    @property
    def options(self) -> BoardOptions:
        return self._options

    @property
    def coords(self) -> CoordinateSystem:
        """Current coordinate system (replaced, never mutated, on resize)."""
        return self._coords

    @property
    def renderer(self) -> Renderer:
        return self._renderer

    @property
    def registry(self) -> PrimitiveRegistry:
        return self._registry

    @property
    def sampler_config(self) -> SamplerConfig:
        return self._sampler_config

    @property
    def x_range(self) -> Tuple[float, float]:
        return self._coords.math_bounds.x_range

    @property
    def y_range(self) -> Tuple[float, float]:
        return self._coords.math_bounds.y_range

    # --- ids ---

    def _next_id(self, kind: str) -> str:
        n = self._counters.get(kind, 0)
        while True:
            n += 1
            candidate = f"{kind}-{n}"
            if candidate not in self._registry:
                self._counters[kind] = n
                return candidate

    def _draw(self, kind: str, id: Optional[str], build: Callable[..., Any], **state: Any) -> str:
        drawing_id = id if id is not None else self._next_id(kind)
        if drawing_id in self.plots and kind != "plot":
            raise ConfigurationError(f"id {drawing_id!r} is already used by a plot")
        self._registry.upsert(
            drawing_id, kind, partial(build, id=drawing_id, **state), self._coords, state=state
        )
        return drawing_id

    # --- plots ---

    def plot(
        self,
        source: ExpressionLike,
        domain: Optional[RangeLike] = None,
        points: Optional[Union[int, str]] = None,
        id: Optional[str] = None,
        variable: Optional[str] = None,
        config: Optional[SamplerConfig] = None,
    ) -> Plot:
        """
        Plot an expression on the board.

        Parameters
        ----------
        source : float, str, CompiledExpression, ParametricExpression or (str, str)
            ``"x^2"`` plots ``y = x^2``; an expression in ``y`` plots
            ``x = f(y)``; a pair of expressions in ``t`` is a parametric
            curve.
        domain : RangeLike or None, optional
            Range of the free variable (e.g. ``(-1, "pi")``). ``None`` keeps the
            current domain of an existing plot and uses the board window for a
            new one.
        points : int or None, optional
            Coarse point count (default from the board, then the sampler).
        id : str, optional
            Unique identifier. If it exists, the existing plot is updated
            in place and its previous segments are replaced.
        variable : str, optional
            Free variable; inferred from the expression when omitted.
        config : SamplerConfig, optional
            Per-plot sampling policy.

        Returns
        -------
        Plot
            The created or updated plot instance.

        Warns
        -----
        DegeneratePlotWarning
            If the curve has no point inside the plot bounds.

        Raises
        ------
        ExpressionSyntaxError
            If the expression does not compile.
        """
        expression = _resolve_expression(source, variable)

        if id is None:
            id = self._next_id("plot")
        elif id in self._registry and id not in self.plots:
            raise ConfigurationError(f"id {id!r} is already used by a {self._registry[id].kind}")

        if id in self.plots:
            plot = self.plots[id]
            result = plot.update(expression=expression, domain=domain, sampling_points=points, config=config)
        else:
            plot = Plot(self, id, expression, domain=domain, sampling_points=points, config=config)
            self.plots[id] = plot
            result = plot.render()

        if result.is_degenerate:
            warnings.warn(
                f"plot {id!r} ({plot.snapshot().source!r}) has no points inside the plot bounds; "
                "check the domain and the board window",
                DegeneratePlotWarning,
                stacklevel=2,
            )
        return plot

    def _draw_plot(self, plot: Plot) -> None:
        self._registry.upsert(plot.id, "plot", plot.build, self._coords, state={"plot": plot})
        if self._debug:
            self._log_render(plot)

    # --- drawing primitives ---

    def line(self, p: Point, q: Point, id: Optional[str] = None, to_extremities: bool = False) -> str:
        """Line through ``p`` and ``q`` across the whole window."""
        return self._draw("line", id, build_line, p=tuple(p), q=tuple(q), to_extremities=to_extremities)

    def segment(self, p: Point, q: Point, id: Optional[str] = None, marker: str = "none") -> str:
        """Segment ``p``–``q``; ``marker`` is one of ``none``, ``arrow``, ``dot``,
        ``dotdot``, ``dotarrow``, ``arrowdot``."""
        return self._draw("segment", id, build_segment, p=tuple(p), q=tuple(q), marker=marker)

    def path(self, points: Sequence[Point], id: Optional[str] = None, closed: bool = False) -> str:
        return self._draw("path", id, build_path, points=tuple(tuple(p) for p in points), closed=closed)

    def circle(self, center: Point, radius: float, id: Optional[str] = None) -> str:
        """Circle in math units (drawn as an ellipse when the axes scale differently)."""
        return self._draw("circle", id, build_ellipse, center=tuple(center), rx=radius, ry=radius)

    def ellipse(self, center: Point, rx: float, ry: float, id: Optional[str] = None) -> str:
        return self._draw("ellipse", id, build_ellipse, center=tuple(center), rx=rx, ry=ry)

    def dot(
        self,
        center: Point,
        type: str = "closed",
        label: Optional[str] = None,
        position: Optional[str] = "below",
        id: Optional[str] = None,
    ) -> str:
        """Dot (``closed``/``open``) or tick mark (``+``, ``-``, ``|``) with an optional label."""
        return self._draw("dot", id, build_dot, center=tuple(center), type=type, label=label, position=position)

    def polygon(self, points: Sequence[Point], id: Optional[str] = None) -> str:
        return self._draw("polygon", id, build_polygon, points=tuple(tuple(p) for p in points))

    def rect(
        self, p: Point, q: Point, id: Optional[str] = None, rx: Optional[float] = None, ry: Optional[float] = None
    ) -> str:
        """Rectangle with opposite corners ``p`` and ``q``, optionally rounded."""
        return self._draw("rect", id, build_rect, p=tuple(p), q=tuple(q), rx=rx, ry=ry)

    def text(self, p: Point, text: str, position: Optional[str] = None, id: Optional[str] = None) -> str:
        """Text at ``p``; ``position`` is ``above``/``below``/``left``/``right`` or a
        combination like ``aboveright``."""
        return self._draw("text", id, build_text, p=tuple(p), text=text, position=position)

    def arrowhead(self, p: Point, q: Point, id: Optional[str] = None) -> str:
        """Arrowhead at ``q`` pointing away from ``p``."""
        return self._draw("arrowhead", id, build_arrowhead, p=tuple(p), q=tuple(q))

    def arc(
        self,
        start: Point,
        end: Point,
        radius: Optional[float] = None,
        id: Optional[str] = None,
        marker: str = "none",
    ) -> str:
        return self._draw(
            "arc", id, build_arc, start=tuple(start), end=tuple(end), radius=radius, marker=marker
        )

    def angle_arc(
        self, vertex: Point, radius: float, start_angle: float, end_angle: float, id: Optional[str] = None
    ) -> str:
        return self._draw(
            "angle-arc",
            id,
            build_angle_arc,
            vertex=tuple(vertex),
            radius=radius,
            start_angle=start_angle,
            end_angle=end_angle,
        )

    def axes(
        self,
        dx: Optional[float] = None,
        dy: Optional[float] = None,
        labels: bool = True,
        grid_dx: Optional[float] = None,
        grid_dy: Optional[float] = None,
        show_y_axis: bool = True,
        id: Optional[str] = None,
        x_name: str = "x",
        y_name: str = "y",
    ) -> str:
        """Axis lines, ticks every ``dx``/``dy`` math units, optional grid and labels."""
        return self._draw(
            "axes",
            id,
            build_axes,
            dx=dx,
            dy=dy,
            labels=labels,
            grid_dx=grid_dx,
            grid_dy=grid_dy,
            show_y_axis=show_y_axis,
            x_name=x_name,
            y_name=y_name,
        )

    # --- lifecycle ---

    def delete(self, id: str) -> None:
        """Remove a plot or drawing and its primitives; unknown ids raise ``KeyError``."""
        if id not in self._registry:
            raise KeyError(f"Unknown drawing id: {id!r}")
        self._registry.delete(id)
        self.plots.pop(id, None)

    def clear(self) -> None:
        self._registry.clear()
        self.plots.clear()

    def resize(self, width: float, height: Optional[float] = None) -> None:
        """Change the frame size and redraw everything.

        ``height=None`` keeps the board's width-to-height ratio. Invalid sizes
        raise before any state changes.
        """
        width = float(InputConvert(width, float))
        if height is None:
            height = width * self._coords.height / self._coords.width
        new_coords = self._coords.resized(width, float(InputConvert(height, float)))
        self._coords = new_coords
        if hasattr(self._renderer, "resize"):
            self._renderer.resize(new_coords.width, new_coords.height)
        self._registry.redraw_all(new_coords)
        logger.debug("board %s resized to %gx%g", self._id, width, new_coords.height)

    def snapshot(self) -> BoardSnapshot:
        """Return an immutable snapshot of the board's state."""
        coords = self._coords
        drawings = tuple(
            DrawingSnapshot(id=drawing_id, kind=entry.kind, primitive_ids=entry.primitive_ids)
            for drawing_id, entry in self._registry.items()
            if entry.kind != "plot"
        )
        return BoardSnapshot(
            id=self._id,
            width=coords.width,
            height=coords.height,
            padding=coords.padding,
            x_range=coords.math_bounds.x_range,
            y_range=coords.math_bounds.y_range,
            equal_scale=coords.equal_scale,
            plots={plot_id: plot.snapshot() for plot_id, plot in self.plots.items()},
            drawings=drawings,
        )

    def _log_render(self, plot: Plot) -> None:
        """Log plot renders with rate-limiting."""
        now = time.monotonic()
        if logger.isEnabledFor(logging.INFO) and (now - self._render_info_last_log_t) > 1.0:
            self._render_info_last_log_t = now
            result = plot.result
            logger.info(
                "board %s: render plot=%s mode=%s segments=%d",
                self._id,
                plot.id,
                result.mode if result else "-",
                len(plot.segments),
            )
        if logger.isEnabledFor(logging.DEBUG) and (now - self._render_debug_last_log_t) > 0.5:
            self._render_debug_last_log_t = now
            logger.debug("board %s: ranges x=%s y=%s", self._id, self.x_range, self.y_range)

    def __repr__(self) -> str:
        return f"Board(id={self._id!r}, size={self._coords.width:g}x{self._coords.height:g}, plots={len(self.plots)})"


class BoardRegistry(Mapping):
    """Owner of boards keyed by id."""

    def __init__(self) -> None:
        self._boards: Dict[str, Board] = {}

    def __getitem__(self, key: str) -> Board:
        return self._boards[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._boards)

    def __len__(self) -> int:
        return len(self._boards)

    def create_board(
        self,
        board_id: str,
        options: Optional[BoardOptions] = None,
        renderer: Optional[Renderer] = None,
        **kwargs: Any,
    ) -> Board:
        """Create and register a board; an existing id returns the existing board."""
        if board_id in self._boards:
            logger.warning("Board ID already exists: %r; returning the existing board", board_id)
            return self._boards[board_id]
        board = Board(board_id, options, renderer, **kwargs)
        self._boards[board_id] = board
        logger.info("Created board %r (%gx%g)", board_id, board.coords.width, board.coords.height)
        return board

    def get_board(self, board_id: str) -> Board:
        try:
            return self._boards[board_id]
        except KeyError:
            raise KeyError(f"Board ID does not exist: {board_id!r}") from None

    def delete_board(self, board: Union[str, Board]) -> None:
        """Remove a board by id or instance and clear its drawings."""
        if isinstance(board, Board):
            board_id = board.id
            if self._boards.get(board_id) is not board:
                raise KeyError(f"Board {board_id!r} is not registered here")
        elif isinstance(board, str):
            board_id = board
        else:
            raise TypeError(f"Invalid Board or Board ID: {board!r}")
        instance = self.get_board(board_id)
        logger.info("Deleting board %r", board_id)
        instance.clear()
        del self._boards[board_id]
