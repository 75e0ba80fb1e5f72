"""Top-level public API for the ``plotboard`` package.

This module re-exports the drawing surface so users can import from a single
namespace, for example:

>>> from plotboard import Board, BoardOptions, SvgRenderer  # doctest: +SKIP

It exposes the high-level board and registry, the expression compiler used
for typed-in formulas, and the lower-level building blocks (coordinate
system, sampler, primitives) for custom renderers.
"""

from .BoardSnapshot import BoardSnapshot, DrawingSnapshot
from .InputConvert import InputConvert
from .PlotSnapshot import PlotSnapshot
from .board import Board, BoardRegistry
from .board_config import BoardOptions, SamplerConfig
from .board_plot import Plot
from .board_primitives import NullRenderer, Primitive, PrimitiveRegistry, Renderer
from .coordinates import Bounds, CoordinateSystem
from .errors import ConfigurationError, DegeneratePlotWarning, ExpressionSyntaxError
from .expression_compiler import (
    CompiledExpression,
    CompileResult,
    ParametricExpression,
    compile_expression,
    compile_parametric,
    infer_variable,
    try_compile,
)
from .math_functions import seed_random
from .renderer_plotly import PlotlyRenderer
from .renderer_svg import SvgRenderer
from .sampler import SampleResult, Segment, sample

__all__ = [
    "Board",
    "BoardOptions",
    "BoardRegistry",
    "BoardSnapshot",
    "Bounds",
    "CompileResult",
    "CompiledExpression",
    "ConfigurationError",
    "CoordinateSystem",
    "DegeneratePlotWarning",
    "DrawingSnapshot",
    "ExpressionSyntaxError",
    "InputConvert",
    "NullRenderer",
    "ParametricExpression",
    "Plot",
    "PlotSnapshot",
    "PlotlyRenderer",
    "Primitive",
    "PrimitiveRegistry",
    "Renderer",
    "SampleResult",
    "SamplerConfig",
    "Segment",
    "SvgRenderer",
    "compile_expression",
    "compile_parametric",
    "infer_variable",
    "sample",
    "seed_random",
    "try_compile",
]
