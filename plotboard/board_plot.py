"""Per-curve plotting model used by :mod:`plotboard.board`.

Purpose
-------
Defines ``Plot``, the unit that turns one compiled expression into one
``segment-path`` primitive. The class handles domain/sampling overrides,
sampling through :mod:`plotboard.sampler` and the device-space conversion of
the resulting segments.

Concepts and structure
----------------------
Each ``Plot`` instance owns:

- expression state (a :class:`CompiledExpression` or
  :class:`ParametricExpression`),
- sampling overrides (domain, point count, sampler config),
- the last :class:`~plotboard.sampler.SampleResult`.

Architecture notes
------------------
``Plot`` is scoped to curve-level concerns and is orchestrated by ``Board``.
Rendering goes through the board's primitive registry, so re-rendering the
same plot replaces its previous segments instead of adding to them.

Important gotchas
-----------------
- ``update()`` treats ``None`` as "no change"; pass ``domain="board"`` or
  ``sampling_points="board"`` to drop an override.
- Sampling reads the board's coordinate system once per render; a resize
  re-renders every plot against the new one.

Examples
--------
>>> from plotboard import Board
>>> board = Board()
>>> p = board.plot("sin(x)", id="wave")
>>> len(p.segments) >= 1
True
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Tuple, Union

from .InputConvert import InputConvert
from .PlotSnapshot import PlotSnapshot
from .board_config import SamplerConfig
from .board_primitives import Primitive, round_point
from .coordinates import CoordinateSystem
from .errors import ConfigurationError
from .expression_compiler import CompiledExpression, ParametricExpression
from .sampler import SampleResult, Segment, sample

if TYPE_CHECKING:  # pragma: no cover
    from .board import Board

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

NumberLikeOrStr = Union[int, float, str]
RangeLike = Tuple[NumberLikeOrStr, NumberLikeOrStr]
Expression = Union[CompiledExpression, ParametricExpression]

BOARD_DEFAULT = "board"


def _is_board_default(value: Any) -> bool:
    return isinstance(value, str) and value.lower() == BOARD_DEFAULT


def normalize_domain(value: Optional[RangeLike]) -> Optional[Tuple[float, float]]:
    """Convert a ``(min, max)`` pair of numbers or strings like ``"-pi"`` to floats."""
    if value is None:
        return None
    try:
        raw_min, raw_max = value
    except (TypeError, ValueError) as exc:
        raise ValueError(f"domain must be a (min, max) pair, got {value!r}") from exc
    return (float(InputConvert(raw_min, float)), float(InputConvert(raw_max, float)))


class Plot:
    """
    A single plotted curve managed by a :class:`Board`.

    Conceptually, a ``Plot`` is "one expression on one board". It owns one
    ``segment-path`` primitive (id = plot id) and knows how to:

    - sample the expression over its domain (explicit, inverse or parametric),
    - convert the segments to rounded device coordinates,
    - push them to the board's renderer through the primitive registry.
    """

    def __init__(
        self,
        board: "Board",
        plot_id: str,
        expression: Expression,
        domain: Optional[RangeLike] = None,
        sampling_points: Optional[Union[int, str]] = None,
        config: Optional[SamplerConfig] = None,
    ) -> None:
        self._board = board
        self._id = plot_id
        self._expression = expression
        self._domain = normalize_domain(domain)
        self._sampling_points = self._coerce_points(sampling_points)
        self._config = config
        self._result: Optional[SampleResult] = None

    @staticmethod
    def _coerce_points(value: Optional[Union[int, str]]) -> Optional[int]:
        if value is None or _is_board_default(value):
            return None
        points = int(InputConvert(value, int))
        if points <= 0:
            raise ConfigurationError(f"sampling_points must be positive, got {value!r}")
        return points

    # --- read-only state ---

    @property
    def id(self) -> str:
        return self._id

    @property
    def board(self) -> "Board":
        return self._board

    @property
    def expression(self) -> Expression:
        return self._expression

    @property
    def domain(self) -> Optional[Tuple[float, float]]:
        """Explicit domain override, or ``None`` to use the board window."""
        return self._domain

    @property
    def sampling_points(self) -> Optional[int]:
        """Per-plot point count, or ``None`` to inherit from the board."""
        return self._sampling_points

    @property
    def config(self) -> SamplerConfig:
        return self._config or self._board.sampler_config

    @property
    def result(self) -> Optional[SampleResult]:
        """Result of the last render, ``None`` before the first one."""
        return self._result

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._result.segments if self._result is not None else ()

    @property
    def mode(self) -> str:
        if isinstance(self._expression, ParametricExpression):
            return "parametric"
        return "inverse" if self._expression.variable == "y" else "explicit"

    # --- rendering ---

    def _effective_points(self) -> Optional[int]:
        return self._sampling_points or self._board.options.sampling_points

    def build(self, coords: CoordinateSystem) -> Tuple[Primitive, ...]:
        """Sample against ``coords`` and return the plot's primitive."""
        result = sample(self._expression, self._domain, self._effective_points(), coords, self.config)
        self._result = result
        logger.debug("plot %s: %s sampling, %d segment(s)", self._id, result.mode, len(result.segments))
        paths = tuple(
            tuple(round_point(p) for p in coords.to_device_array(segment.points))
            for segment in result.segments
        )
        return (Primitive(id=self._id, kind="segment-path", paths=paths),)

    def render(self) -> SampleResult:
        """
        Sample the expression and replace the plot's primitive on the board.

        Returns
        -------
        SampleResult
            The segments that were drawn.
        """
        self._board._draw_plot(self)
        assert self._result is not None
        return self._result

    def update(
        self,
        expression: Optional[Expression] = None,
        domain: Optional[Union[RangeLike, str]] = None,
        sampling_points: Optional[Union[int, str]] = None,
        config: Optional[SamplerConfig] = None,
    ) -> SampleResult:
        """Update several attributes at once and re-render.

        ``None`` leaves an attribute unchanged; ``"board"`` resets ``domain``
        or ``sampling_points`` to the board default.
        """
        if expression is not None:
            self._expression = expression
        if domain is not None:
            self._domain = None if _is_board_default(domain) else normalize_domain(domain)  # type: ignore[arg-type]
        if sampling_points is not None:
            self._sampling_points = self._coerce_points(sampling_points)
        if config is not None:
            self._config = config
        return self.render()

    def snapshot(self) -> PlotSnapshot:
        """Return an immutable snapshot of this plot's state."""
        expr = self._expression
        if isinstance(expr, ParametricExpression):
            source: Any = (expr.x_expr.source, expr.y_expr.source)
            rewritten: Any = (expr.x_expr.rewritten, expr.y_expr.rewritten)
        else:
            source, rewritten = expr.source, expr.rewritten
        result = self._result
        return PlotSnapshot(
            id=self._id,
            source=source,
            rewritten=rewritten,
            variable=expr.variable,
            mode=result.mode if result is not None else self.mode,
            domain=self._domain,
            sampling_points=self._sampling_points,
            segment_count=len(result.segments) if result is not None else 0,
            point_count=result.point_count if result is not None else 0,
        )

    def __repr__(self) -> str:
        return f"Plot(id={self._id!r}, expression={self._expression!r})"
