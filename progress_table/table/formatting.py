from __future__ import annotations

import math
from typing import Callable, Dict, Sequence

from ..utils.errors import LogicalError
from .events import ValueType

_QUANTITY_UNITS = ("", " thousand", " million", " billion", " trillion", " quadrillion")
_DECIMAL_SIZE_UNITS = (" B", " KB", " MB", " GB", " TB", " PB", " EB", " ZB", " YB")
_TIME_UNITS = (" ns", " us", " ms", " s")


def _format_readable(value: float, precision: int, units: Sequence[str], delimiter: float) -> str:
    i = 0
    while i + 1 < len(units) and abs(value) >= delimiter:
        value /= delimiter
        i += 1
    return f"{value:.{precision}f}{units[i]}"


def format_readable_quantity(value: float, precision: int = 2) -> str:
    return _format_readable(value, precision, _QUANTITY_UNITS, 1000.0)


def format_readable_size_with_decimal_suffix(value: float, precision: int = 2) -> str:
    return _format_readable(value, precision, _DECIMAL_SIZE_UNITS, 1000.0)


def format_readable_time(ns: float, precision: int = 2) -> str:
    return _format_readable(ns, precision, _TIME_UNITS, 1000.0)


def _format_number(value: float) -> str:
    # Small whole numbers read better without a fractional part.
    precision = 0 if math.floor(value) == value and abs(value) < 1000 else 2
    return format_readable_quantity(value, precision)


_FORMATTERS: Dict[ValueType, Callable[[float], str]] = {
    ValueType.NUMBER: _format_number,
    ValueType.BYTES: format_readable_size_with_decimal_suffix,
    ValueType.NANOSECONDS: format_readable_time,
    ValueType.MICROSECONDS: lambda v: format_readable_time(v * 1e3),
    ValueType.MILLISECONDS: lambda v: format_readable_time(v * 1e6),
}


def format_readable_value(value_type: ValueType, value: float) -> str:
    """Render ``value`` in the unit its value type implies."""
    formatter = _FORMATTERS.get(value_type)
    if formatter is None:
        raise LogicalError(f"No formatter for value type {value_type!r}")
    return formatter(value)
