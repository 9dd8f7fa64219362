import pytest

from progress_table.table.events import ValueType
from progress_table.table.formatting import (
    format_readable_quantity,
    format_readable_size_with_decimal_suffix,
    format_readable_time,
    format_readable_value,
)
from progress_table.utils.errors import LogicalError


def test_quantity_units():
    assert format_readable_quantity(999) == "999.00"
    assert format_readable_quantity(1234567) == "1.23 million"
    assert format_readable_quantity(-2500, precision=1) == "-2.5 thousand"


def test_size_and_time_units():
    assert format_readable_size_with_decimal_suffix(999) == "999.00 B"
    assert format_readable_size_with_decimal_suffix(1500) == "1.50 KB"
    assert format_readable_time(1500) == "1.50 us"
    # Seconds is the largest time unit.
    assert format_readable_time(5e12) == "5000.00 s"


def test_number_precision_depends_on_value():
    assert format_readable_value(ValueType.NUMBER, 5.0) == "5"
    assert format_readable_value(ValueType.NUMBER, 5.5) == "5.50"
    assert format_readable_value(ValueType.NUMBER, 1500) == "1.50 thousand"


def test_time_values_are_converted_to_nanoseconds():
    assert format_readable_value(ValueType.NANOSECONDS, 1500) == "1.50 us"
    assert format_readable_value(ValueType.MICROSECONDS, 1500) == "1.50 ms"
    assert format_readable_value(ValueType.MILLISECONDS, 2500) == "2.50 s"


def test_unknown_value_type():
    with pytest.raises(LogicalError):
        format_readable_value("furlongs", 1.0)
