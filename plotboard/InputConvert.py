from __future__ import annotations

import math
from typing import Any, Type, TypeVar

from .errors import ExpressionSyntaxError
from .expression_compiler import compile_expression

T = TypeVar("T", int, float)


def InputConvert(obj: Any, dest_type: Type[T] = float, truncate: bool = True) -> T:
    """
    Turn a board input (domain end, window bound, point count) into a number.

    Accepts ints, floats, complex values, NumPy scalars and strings. A string
    is read with ``float()`` first; anything else is compiled as a constant
    expression, so ``"pi/2"``, ``"-2pi"`` and ``"3!"`` all work.

    Parameters
    ----------
    obj : Any
        Value to convert.
    dest_type : {float, int}
        Target type.
    truncate : bool, default True
        With ``True`` an imaginary part is dropped and ``int`` targets round
        toward zero (``3.9 -> 3``). With ``False`` both cases raise instead
        (``3.0 -> 3`` is still fine).

    Raises
    ------
    NotImplementedError
        For any ``dest_type`` other than ``float`` and ``int``.
    ValueError
        If the value cannot be read, is not a constant expression, evaluates
        to NaN, or breaks the ``truncate=False`` rules.
    """
    if dest_type not in (float, int):
        raise NotImplementedError(
            f"Unsupported destination type: {dest_type!r}. Only float and int are supported."
        )

    def _coerce_numeric_value(x: complex) -> T:
        if x.imag != 0 and not truncate:
            raise ValueError(
                f"Could not convert non-real {x!r} to {dest_type.__name__}: imaginary part is non-zero."
            )
        r_val = float(x.real)

        if dest_type is float:
            return r_val  # type: ignore[return-value]

        if not math.isfinite(r_val):
            raise ValueError(f"Could not convert {x!r} to int: value is not finite.")
        if not r_val.is_integer() and not truncate:
            raise ValueError(f"Could not convert {x!r} to int: value is not an exact integer.")
        return int(r_val)  # type: ignore[return-value]

    # Fast path: numeric types (exclude bool)
    if isinstance(obj, (int, float, complex)) and not isinstance(obj, bool):
        return _coerce_numeric_value(complex(obj))

    if isinstance(obj, str):
        s = obj.strip()
        if s == "":
            raise ValueError(f"Cannot convert empty string to {dest_type.__name__}.")

        try:
            return _coerce_numeric_value(complex(float(s)))
        except ValueError:
            pass

        try:
            expr = compile_expression(s)
        except ExpressionSyntaxError as e:
            raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}: {e.message}.") from e
        if not expr.is_constant:
            raise ValueError(
                f"Could not convert {obj!r} to {dest_type.__name__}: expression is not a constant."
            )
        val = expr(0.0)
        if math.isnan(val):
            raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}: value is undefined.")
        return _coerce_numeric_value(complex(val))

    # numpy scalars and other objects implementing __complex__/__float__
    try:
        return _coerce_numeric_value(complex(obj))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}.") from e
