"""Adaptive curve sampler.

Purpose
-------
Walk a compiled expression across a domain and return the curve as a tuple
of :class:`Segment` polylines in math space, broken wherever the curve leaves
the plot bounds, hits NaN or jumps across a vertical asymptote.

Modes
-----
- *explicit* ``y = f(x)``: coarse steps of ``span / points``, each split into
  ``micro_steps`` fine samples. A fine sample is kept on every coarse
  boundary, and on every fine step while the curve is steep (so exits from
  the frame are located precisely).
- *inverse* ``x = f(y)``: coarse steps only, points ``(f(y), y)``.
- *parametric* ``(x(t), y(t))``: like explicit mode, slopes measured on the
  ``y`` component, both coordinates range-checked.

Policy constants live in :class:`~plotboard.board_config.SamplerConfig`.

Gotchas
-------
- Grid points that straddle ``t = 0`` are nudged to ``-1e-12`` / ``1e-10`` so a
  removable singularity at the origin is never evaluated exactly.
- Infinite values are not dropped: they are clamped just inside the plot
  bounds and then end the current segment, so ``1/x`` runs to the frame edge.
- Plot bounds are taken from ``config.overscan``, not from the overscan the
  coordinate system was built with, so a per-plot config can tighten them.
- A walk that produces no segment is reported in
  :attr:`SampleResult.diagnostics` and logged; it is not an error.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from .board_config import SamplerConfig
from .coordinates import CoordinateSystem
from .errors import ConfigurationError
from .expression_compiler import CompiledExpression, ParametricExpression

__all__ = [
    "SampleResult",
    "Segment",
    "sample",
    "sample_explicit",
    "sample_inverse",
    "sample_parametric",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Domain = Tuple[float, float]
Point = Tuple[float, float]

_NEG_NUDGE = -1e-12
_POS_NUDGE = 1e-10


class Segment:
    """One continuous polyline of a sampled curve (at least two points).

    The backing ``(n, 2)`` array is read-only; :attr:`xs` and :attr:`ys` are
    views of it.
    """

    __slots__ = ("_points",)

    def __init__(self, points: Union[Sequence[Point], np.ndarray]) -> None:
        arr = np.array(points, dtype=float).reshape(-1, 2)
        if arr.shape[0] < 2:
            raise ValueError(f"A segment needs at least 2 points, got {arr.shape[0]}")
        arr.setflags(write=False)
        self._points = arr

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def xs(self) -> np.ndarray:
        return self._points[:, 0]

    @property
    def ys(self) -> np.ndarray:
        return self._points[:, 1]

    def __len__(self) -> int:
        return int(self._points.shape[0])

    def __iter__(self) -> Iterator[Point]:
        for x, y in self._points:
            yield (float(x), float(y))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return bool(np.array_equal(self._points, other._points))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        first, last = self._points[0], self._points[-1]
        return f"Segment(n={len(self)}, start=({first[0]:.4g}, {first[1]:.4g}), end=({last[0]:.4g}, {last[1]:.4g}))"


@dataclass(frozen=True)
class SampleResult:
    """Segments produced by one sampling walk, in traversal order."""

    segments: Tuple[Segment, ...]
    mode: str
    diagnostics: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_degenerate(self) -> bool:
        return not self.segments

    @property
    def point_count(self) -> int:
        return sum(len(s) for s in self.segments)


class _SegmentBuilder:
    """Point buffer that turns breaks into completed segments."""

    def __init__(self) -> None:
        self.segments: list[Segment] = []
        self._buffer: list[Point] = []
        self._pending: Optional[Point] = None

    def push(self, point: Point) -> None:
        self._buffer.append(point)
        self._pending = None

    def defer(self, point: Point) -> None:
        # last in-range sample that was skipped by the thinning rule
        self._pending = point

    def flush(self) -> None:
        if len(self._buffer) >= 2:
            self.segments.append(Segment(self._buffer))
        self._buffer = []
        self._pending = None

    def finish(self) -> Tuple[Segment, ...]:
        if self._pending is not None and self._buffer:
            self._buffer.append(self._pending)
        self.flush()
        return tuple(self.segments)


def _check_points(target_points: int) -> int:
    n = int(target_points)
    if n <= 0:
        raise ConfigurationError(f"target_points must be positive, got {target_points!r}")
    return n


def _fine_grid(lo: float, hi: float, step: float) -> np.ndarray:
    count = int(math.ceil((hi - lo) / step))
    ts = lo + step * np.arange(count, dtype=float)
    ts = ts[ts < hi]
    crossing_up = (ts < 0) & (ts + step > 0)
    crossing_down = (ts - step < 0) & (ts > 0)
    ts = np.where(crossing_up, _NEG_NUDGE, ts)
    ts = np.where(crossing_down | (ts == 0), _POS_NUDGE, ts)
    return ts


def _dependent_range(coords: CoordinateSystem, config: SamplerConfig) -> Tuple[float, float]:
    bounds = coords.plot_bounds_for(config.overscan) if config.draw_beyond_y else coords.extended_bounds
    return bounds.y_min, bounds.y_max


def _degenerate(mode: str, reason: str) -> SampleResult:
    logger.warning("sampling (%s) produced no segments: %s", mode, reason)
    return SampleResult(segments=(), mode=mode, diagnostics=(reason,))


def _finish(builder: _SegmentBuilder, mode: str, samples: int) -> SampleResult:
    segments = builder.finish()
    if not segments:
        return _degenerate(mode, "no points inside the plot bounds; check the domain and the board window")
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("sampling (%s): %d samples -> %d segment(s)", mode, samples, len(segments))
    return SampleResult(segments=segments, mode=mode)


def _walk(
    ts: np.ndarray,
    xs: np.ndarray,
    ys: np.ndarray,
    slope_prev: np.ndarray,
    slope_next: np.ndarray,
    x_range: Tuple[float, float],
    y_range: Tuple[float, float],
    config: SamplerConfig,
) -> _SegmentBuilder:
    """Apply the clamp / break / thinning policy to precomputed fine samples."""
    builder = _SegmentBuilder()
    y_lo, y_hi = y_range
    x_lo, x_hi = x_range
    eps = config.infinity_epsilon
    a_slope, e_slope = config.asymptote_slope, config.edge_slope
    sub = 0
    for i in range(ts.shape[0]):
        x, y = float(xs[i]), float(ys[i])
        sp_, sn_ = float(slope_prev[i]), float(slope_next[i])

        if x_lo <= x <= x_hi:
            if y == -math.inf:
                builder.push((x, y_lo + eps))
            elif y == math.inf:
                builder.push((x, y_hi - eps))

        if abs(sp_) > a_slope and abs(sn_) > a_slope and np.sign(sp_) != np.sign(sn_):
            builder.flush()
            sub = 0
            continue

        if y_lo < y < y_hi and x_lo <= x <= x_hi:
            if (
                sub % config.micro_steps == 0
                or (sp_ < -e_slope and y > y_lo)
                or (sp_ > e_slope and y < y_hi)
            ):
                builder.push((x, y))
            else:
                builder.defer((x, y))
            sub += 1
        else:
            builder.flush()
            sub = 0
    return builder


def _device_slopes(
    coords: CoordinateSystem, prev: np.ndarray, cur: np.ndarray, nxt: np.ndarray, step: float
) -> Tuple[np.ndarray, np.ndarray]:
    with np.errstate(all="ignore"):
        prev_pix, pix, next_pix = coords.device_y(prev), coords.device_y(cur), coords.device_y(nxt)
        return (prev_pix - pix) / step, (pix - next_pix) / step


def sample_explicit(
    fn: CompiledExpression,
    domain: Optional[Domain],
    target_points: Optional[int],
    coords: CoordinateSystem,
    config: Optional[SamplerConfig] = None,
) -> SampleResult:
    """Sample ``y = fn(x)``.

    Parameters
    ----------
    fn : callable
        Vectorised function of ``x``.
    domain : tuple[float, float] or None
        Requested x-domain; ``None`` uses the board's math x-range. Unless
        ``config.draw_beyond_x`` is set the domain is clipped to the visible
        (extended) x-range.
    target_points : int or None
        Number of coarse steps; ``None`` uses ``config.explicit_points``.
    coords : CoordinateSystem
        Read once at the start; the whole walk uses the same instance.
    config : SamplerConfig, optional
        Policy constants.

    Returns
    -------
    SampleResult
    """
    config = config or SamplerConfig()
    n = _check_points(target_points if target_points is not None else config.explicit_points)
    if domain is None:
        lo, hi = coords.math_bounds.x_range
    else:
        lo, hi = float(domain[0]), float(domain[1])
        if not config.draw_beyond_x:
            ext = coords.extended_bounds
            lo, hi = max(ext.x_min, lo), min(ext.x_max, hi)
    if not (math.isfinite(lo) and math.isfinite(hi)) or lo >= hi:
        return _degenerate("explicit", f"empty domain ({lo}, {hi})")

    step = 0.999999 * (hi - lo) / n / config.micro_steps
    ts = _fine_grid(lo, hi, step)
    with np.errstate(all="ignore"):
        cur = np.asarray(fn(ts), dtype=float)
        prev = np.asarray(fn(ts - step), dtype=float)
        nxt = np.asarray(fn(ts + step), dtype=float)
    slope_prev, slope_next = _device_slopes(coords, prev, cur, nxt, step)
    builder = _walk(
        ts, ts, cur, slope_prev, slope_next, (-math.inf, math.inf), _dependent_range(coords, config), config
    )
    return _finish(builder, "explicit", ts.shape[0])


def sample_inverse(
    fn: CompiledExpression,
    domain: Optional[Domain],
    target_points: Optional[int],
    coords: CoordinateSystem,
    config: Optional[SamplerConfig] = None,
) -> SampleResult:
    """Sample ``x = fn(y)`` and return points ``(fn(y), y)``.

    The walk is coarse only (no micro-steps, no asymptote test) and includes
    the end of the domain. The y-domain is clipped to the plot bounds; x values
    outside the plot x-range end the current segment and infinite x values are
    clamped just inside it.
    """
    config = config or SamplerConfig()
    n = _check_points(target_points if target_points is not None else config.inverse_points)
    plot = coords.plot_bounds_for(config.overscan)
    if domain is None:
        lo, hi = coords.math_bounds.y_range
    else:
        lo, hi = max(plot.y_min, float(domain[0])), min(plot.y_max, float(domain[1]))
    if not (math.isfinite(lo) and math.isfinite(hi)) or lo >= hi:
        return _degenerate("inverse", f"empty domain ({lo}, {hi})")

    inc = (hi - lo) * (1 - 1e-6) / n
    ys = lo + inc * np.arange(n + 1, dtype=float)
    ys = ys[ys <= hi]
    with np.errstate(all="ignore"):
        xs = np.asarray(fn(ys), dtype=float)

    x_lo, x_hi = plot.x_min, plot.x_max
    eps = config.infinity_epsilon
    builder = _SegmentBuilder()
    for x, y in zip(xs.tolist(), ys.tolist()):
        if x == -math.inf:
            builder.push((x_lo + eps, y))
        elif x == math.inf:
            builder.push((x_hi - eps, y))
        if x_lo < x < x_hi:
            builder.push((x, y))
        else:
            builder.flush()
    return _finish(builder, "inverse", ys.shape[0])


def sample_parametric(
    fn: ParametricExpression,
    domain: Optional[Domain],
    target_points: Optional[int],
    coords: CoordinateSystem,
    config: Optional[SamplerConfig] = None,
) -> SampleResult:
    """Sample ``t -> (x(t), y(t))``.

    ``domain`` is the t-range; ``None`` uses the board's math x-range. The
    domain is never clipped since ``t`` is not a screen coordinate.
    """
    config = config or SamplerConfig()
    n = _check_points(target_points if target_points is not None else config.explicit_points)
    if domain is None:
        lo, hi = coords.math_bounds.x_range
    else:
        lo, hi = float(domain[0]), float(domain[1])
    if not (math.isfinite(lo) and math.isfinite(hi)) or lo >= hi:
        return _degenerate("parametric", f"empty domain ({lo}, {hi})")

    step = 0.999999 * (hi - lo) / n / config.micro_steps
    ts = _fine_grid(lo, hi, step)
    with np.errstate(all="ignore"):
        xs, cur = (np.asarray(v, dtype=float) for v in fn(ts))
        _, prev = fn(ts - step)
        _, nxt = fn(ts + step)
    slope_prev, slope_next = _device_slopes(
        coords, np.asarray(prev, dtype=float), cur, np.asarray(nxt, dtype=float), step
    )
    plot = coords.plot_bounds_for(config.overscan)
    builder = _walk(
        ts, xs, cur, slope_prev, slope_next, plot.x_range, _dependent_range(coords, config), config
    )
    return _finish(builder, "parametric", ts.shape[0])


def sample(
    fn: Any,
    domain: Optional[Domain],
    target_points: Optional[int],
    coords: CoordinateSystem,
    config: Optional[SamplerConfig] = None,
) -> SampleResult:
    """Sample ``fn`` in the mode implied by its variable.

    ``ParametricExpression`` → parametric; a function of ``y`` → inverse;
    anything else (including plain callables) → explicit.
    """
    if isinstance(fn, ParametricExpression):
        return sample_parametric(fn, domain, target_points, coords, config)
    if getattr(fn, "variable", "x") == "y":
        return sample_inverse(fn, domain, target_points, coords, config)
    return sample_explicit(fn, domain, target_points, coords, config)
