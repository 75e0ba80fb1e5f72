"""Configuration records for boards and the curve sampler.

Both records are frozen dataclasses passed explicitly from board to plot to
sampler; nothing reads module-level flags while an algorithm runs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import ConfigurationError

PlotWindow = Tuple[float, float, float, Optional[float]]


@dataclass(frozen=True)
class SamplerConfig:
    """Tunables of :mod:`plotboard.sampler`.

    Parameters
    ----------
    micro_steps : int
        Number of fine steps per coarse increment in explicit and parametric
        sampling. Every ``micro_steps``-th accepted sample is kept unless the
        curve is steep.
    asymptote_slope : float
        Device-space slope (pixels per unit of the independent variable)
        above which a sign flip between neighbours counts as an asymptote.
    edge_slope : float
        Slope above which every fine sample is kept (steep curve near the
        plot edge).
    infinity_epsilon : float
        Offset from the plot bounds at which infinite values are clamped.
    overscan : float
        Fraction of the math range added on each side of the extended bounds
        to form the plot bounds.
    draw_beyond_x : bool
        Sample the whole requested domain instead of clipping it to the
        visible x-range.
    draw_beyond_y : bool
        Accept dependent values up to the overscanned plot bounds; when False
        only the extended (visible) bounds are accepted.
    explicit_points, inverse_points : int
        Default coarse point counts for functions of ``x`` and of ``y``.
    """

    micro_steps: int = 20
    asymptote_slope: float = 500.0
    edge_slope: float = 400.0
    infinity_epsilon: float = 1e-5
    overscan: float = 0.25
    draw_beyond_x: bool = False
    draw_beyond_y: bool = True
    explicit_points: int = 250
    inverse_points: int = 200

    def __post_init__(self) -> None:
        if self.micro_steps < 1:
            raise ConfigurationError(f"micro_steps must be >= 1, got {self.micro_steps}")
        if self.explicit_points < 1 or self.inverse_points < 1:
            raise ConfigurationError("default point counts must be positive")
        if self.overscan < 0:
            raise ConfigurationError(f"overscan must be >= 0, got {self.overscan}")


@dataclass(frozen=True)
class BoardOptions:
    """Construction options for :class:`plotboard.board.Board`.

    Parameters
    ----------
    width : float
        Device width in pixels.
    height : float or None
        Device height; ``None`` derives it as ``width / width_to_height``.
    width_to_height : float
        Aspect ratio used when ``height`` is omitted.
    padding : float
        Device-space margin between the frame and the math window.
    plot_window : tuple
        ``(x_min, x_max, y_min, y_max)``; ``y_max=None`` selects equal-scale
        mode where the y-range is derived from the x-scale.
    sampling_points : int or None
        Board-wide default coarse point count; ``None`` uses the sampler
        defaults.
    """

    width: float = 500
    height: Optional[float] = None
    width_to_height: float = 1.0
    padding: float = 20
    plot_window: PlotWindow = (-5, 5, -5, 5)
    sampling_points: Optional[int] = None

    def __post_init__(self) -> None:
        if not (math.isfinite(self.width) and self.width > 0):
            raise ConfigurationError(f"width must be a positive number, got {self.width!r}")
        if self.height is None and not (self.width_to_height > 0):
            raise ConfigurationError(f"width_to_height must be positive, got {self.width_to_height!r}")
        if len(self.plot_window) != 4:
            raise ConfigurationError("plot_window must be (x_min, x_max, y_min, y_max)")
        if self.sampling_points is not None and self.sampling_points <= 0:
            raise ConfigurationError(f"sampling_points must be positive, got {self.sampling_points}")

    @property
    def resolved_height(self) -> float:
        if self.height is not None:
            return float(self.height)
        return float(self.width) / float(self.width_to_height)


__all__ = ["BoardOptions", "PlotWindow", "SamplerConfig"]
