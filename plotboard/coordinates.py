"""Math ↔ device coordinate mapping for a board.

Purpose
-------
A board shows the math window ``[x_min, x_max] × [y_min, y_max]`` inside a
``width × height`` pixel frame with ``padding`` pixels of margin. This module
owns the affine map between the two spaces and the three nested bounds the
sampler works with.

Concepts
--------
- *math bounds*: the declared window.
- *extended bounds*: the math bounds grown by the padding, i.e. everything
  visible inside the frame.
- *plot bounds*: extended bounds grown by ``overscan`` × the math range on
  every side; curves are sampled a little past the visible edge so they leave
  the frame cleanly.

Device space has its origin at the top-left corner with y pointing down.

Gotchas
-------
- Equal-scale mode (``y_max=None``) derives ``y_max`` from the x-scale, so the
  y-range depends on the frame size and changes on resize.
- Inverted or equal bounds are corrected to a unit range; non-finite bounds
  raise :class:`~plotboard.errors.ConfigurationError`.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from .errors import ConfigurationError

__all__ = ["Bounds", "CoordinateSystem"]


Point = Tuple[float, float]
ArrayOrFloat = Union[float, np.ndarray]


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle in math space."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def contains(self, point: Point) -> bool:
        x, y = point
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max

    def contains_bounds(self, other: "Bounds") -> bool:
        return (
            self.x_min <= other.x_min
            and other.x_max <= self.x_max
            and self.y_min <= other.y_min
            and other.y_max <= self.y_max
        )

    @property
    def x_range(self) -> Tuple[float, float]:
        return (self.x_min, self.x_max)

    @property
    def y_range(self) -> Tuple[float, float]:
        return (self.y_min, self.y_max)

    def grown(self, dx: float, dy: float) -> "Bounds":
        return Bounds(self.x_min - dx, self.x_max + dx, self.y_min - dy, self.y_max + dy)


def _checked_range(lo: float, hi: float, axis: str) -> Tuple[float, float]:
    lo, hi = float(lo), float(hi)
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ConfigurationError(f"{axis}-bounds must be finite, got ({lo!r}, {hi!r})")
    if lo >= hi:
        warnings.warn(
            f"{axis}_min >= {axis}_max; {axis}_max corrected to {axis}_min + 1",
            stacklevel=3,
        )
        hi = lo + 1.0
    return lo, hi


@dataclass(frozen=True)
class CoordinateSystem:
    """Immutable affine map between math space and device space.

    Build instances with :meth:`create`; every derived field is computed
    there, so a ``CoordinateSystem`` is always internally consistent.

    Attributes
    ----------
    width, height, padding : float
        Frame geometry in pixels.
    math_bounds : Bounds
        Declared window (with derived ``y_max`` in equal-scale mode).
    x_scale, y_scale : float
        Pixels per math unit.
    origin : tuple[float, float]
        Device position of math ``(0, 0)``, measured from the bottom-left.
    equal_scale : bool
        Whether ``y_max`` was derived from the x-scale.
    overscan : float
        Fraction used for :attr:`plot_bounds`.
    """

    width: float
    height: float
    padding: float
    math_bounds: Bounds
    x_scale: float
    y_scale: float
    origin: Point
    equal_scale: bool = False
    overscan: float = 0.25

    @classmethod
    def create(
        cls,
        width: float,
        height: float,
        x_min: float,
        x_max: float,
        y_min: float,
        y_max: Optional[float] = None,
        padding: float = 20,
        *,
        overscan: float = 0.25,
    ) -> "CoordinateSystem":
        """Compute bounds, then scale, then origin for the given frame.

        Raises
        ------
        ConfigurationError
            If the frame is too small for the padding, the padding is negative
            or a bound is not finite.
        """
        width, height, padding = float(width), float(height), float(padding)
        if padding < 0:
            raise ConfigurationError(f"padding must be >= 0, got {padding}")
        if not (math.isfinite(width) and math.isfinite(height)) or width <= 2 * padding or height <= 2 * padding:
            raise ConfigurationError(
                f"device size {width}x{height} leaves no drawing area with padding {padding}"
            )

        x_min, x_max = _checked_range(x_min, x_max, "x")
        x_scale = (width - 2 * padding) / (x_max - x_min)

        equal_scale = y_max is None
        if equal_scale:
            y_min = float(y_min)
            if not math.isfinite(y_min):
                raise ConfigurationError(f"y-bounds must be finite, got y_min={y_min!r}")
            y_scale = x_scale
            y_max = y_min + (height - 2 * padding) / y_scale
        else:
            y_min, y_max = _checked_range(y_min, y_max, "y")
            y_scale = (height - 2 * padding) / (y_max - y_min)

        origin = (padding - x_min * x_scale, padding - y_min * y_scale)
        return cls(
            width=width,
            height=height,
            padding=padding,
            math_bounds=Bounds(x_min, x_max, y_min, y_max),
            x_scale=x_scale,
            y_scale=y_scale,
            origin=origin,
            equal_scale=equal_scale,
            overscan=float(overscan),
        )

    def resized(self, width: float, height: float) -> "CoordinateSystem":
        """Return a new system for a new frame size and the same window."""
        b = self.math_bounds
        return CoordinateSystem.create(
            width,
            height,
            b.x_min,
            b.x_max,
            b.y_min,
            None if self.equal_scale else b.y_max,
            self.padding,
            overscan=self.overscan,
        )

    # --- derived bounds ---

    @property
    def extended_bounds(self) -> Bounds:
        return self.math_bounds.grown(self.padding / self.x_scale, self.padding / self.y_scale)

    @property
    def plot_bounds(self) -> Bounds:
        return self.plot_bounds_for(self.overscan)

    def plot_bounds_for(self, overscan: float) -> Bounds:
        """Extended bounds grown by ``overscan`` × the math range on each side."""
        b = self.math_bounds
        return self.extended_bounds.grown(overscan * (b.x_max - b.x_min), overscan * (b.y_max - b.y_min))

    # --- transforms ---

    def to_device(self, point: Point) -> Point:
        """Map a math point to device pixels (y down)."""
        x, y = point
        ox, oy = self.origin
        return (x * self.x_scale + ox, self.height - (y * self.y_scale + oy))

    def to_math(self, point: Point) -> Point:
        """Inverse of :meth:`to_device`."""
        dx, dy = point
        ox, oy = self.origin
        return ((dx - ox) / self.x_scale, (self.height - dy - oy) / self.y_scale)

    def to_device_length(self, dx: float, dy: float) -> Point:
        """Scale a math-space displacement to pixels (no origin shift, no flip)."""
        return (dx * self.x_scale, dy * self.y_scale)

    def to_device_array(self, points: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`to_device` for an ``(n, 2)`` array."""
        pts = np.asarray(points, dtype=float).reshape(-1, 2)
        ox, oy = self.origin
        out = np.empty_like(pts)
        out[:, 0] = pts[:, 0] * self.x_scale + ox
        out[:, 1] = self.height - (pts[:, 1] * self.y_scale + oy)
        return out

    def device_y(self, y: ArrayOrFloat) -> ArrayOrFloat:
        """Device row of math ordinate(s) ``y``; accepts arrays."""
        return self.height - (y * self.y_scale + self.origin[1])
