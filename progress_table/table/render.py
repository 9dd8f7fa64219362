"""Text rendering for the live progress table and the final summary.

Everything here is a pure function of the registry contents handed in plus the
terminal width. The only state is the layout constants below.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Callable, Dict, Iterable, List, Mapping, Sequence, Tuple

from ..utils.errors import LogicalError
from .events import EventInfo, ValueType
from .formatting import format_readable_value
from .series import MetricAggregate

CLEAR_TO_END_OF_LINE = "\033[K"
CLEAR_TO_END_OF_SCREEN = "\033[0J"
RESET_COLOR = "\033[0m"
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"

DARK_GREY = "\033[38;5;236m"
LIGHT_GREY = "\033[38;5;250m"
GREEN = "\033[38;5;34m"
YELLOW = "\033[38;5;226m"
ORANGE = "\033[38;5;208m"
BOLD = "\033[1;33m"
RED = "\033[38;5;160m"

COLUMN_EVENT_NAME = "Event name"
COLUMN_VALUE = "Value"
COLUMN_PROGRESS = "Progress"
COLUMN_DOCUMENTATION_NAME = "Documentation"
COLUMN_EVENT_NAME_MIN_WIDTH = 20
COLUMN_VALUE_WIDTH = 20
COLUMN_PROGRESS_WIDTH = 20
COLUMN_DOCUMENTATION_MIN_WIDTH = len(COLUMN_DOCUMENTATION_NAME)

ELLIPSIS = "…"
TOGGLE_HINT = "Press the space key to toggle the display of the progress table."

FIVE_TIER_COLORS = (DARK_GREY, LIGHT_GREY, GREEN, YELLOW, BOLD)
# The last tier is >= 1 TiB/s which is not expected in practice.
SEVEN_TIER_COLORS = (DARK_GREY, LIGHT_GREY, GREEN, YELLOW, ORANGE, BOLD, RED)

PEAK_FRACTIONS = (0.05, 0.20, 0.80, 0.95)
BYTES_PER_SECOND_THRESHOLDS = (
    1 << 20,
    100 << 20,
    1_000 << 20,
    10_000 << 20,
    100_000 << 20,
    1_000_000 << 20,
)
TIME_FRACTIONS = (0.001, 0.01, 0.1, 1.0)

_TIME_UNITS_PER_SECOND: Dict[ValueType, float] = {
    ValueType.MILLISECONDS: 1e3,
    ValueType.MICROSECONDS: 1e6,
    ValueType.NANOSECONDS: 1e9,
}

Entry = Tuple[str, MetricAggregate]


def move_up_n_lines(n: int) -> str:
    return f"\033[{n}A"


def number_tier(rate: float, max_rate: float) -> int:
    if max_rate == 0:
        return 0
    return bisect_right(PEAK_FRACTIONS, rate / max_rate)


def bytes_tier(rate: float) -> int:
    return bisect_right(BYTES_PER_SECOND_THRESHOLDS, rate)


def time_tier(value_type: ValueType, rate: float) -> int:
    units = _TIME_UNITS_PER_SECOND.get(value_type)
    if units is None:
        raise LogicalError(f"Wrong value type {value_type!r}, expecting time units")
    return bisect_right([fraction * units for fraction in TIME_FRACTIONS], rate)


def _number_color(value_type: ValueType, rate: float, max_rate: float) -> str:
    return FIVE_TIER_COLORS[number_tier(rate, max_rate)]


def _bytes_color(value_type: ValueType, rate: float, max_rate: float) -> str:
    return SEVEN_TIER_COLORS[bytes_tier(rate)]


def _time_color(value_type: ValueType, rate: float, max_rate: float) -> str:
    return FIVE_TIER_COLORS[time_tier(value_type, rate)]


# Every ladder takes (value_type, rate, max_rate) so dispatch is uniform; each
# uses only the arguments its thresholds depend on.
_COLOR_LADDERS: Dict[ValueType, Callable[[ValueType, float, float], str]] = {
    ValueType.NUMBER: _number_color,
    ValueType.BYTES: _bytes_color,
    ValueType.NANOSECONDS: _time_color,
    ValueType.MICROSECONDS: _time_color,
    ValueType.MILLISECONDS: _time_color,
}


def color_for_rate(value_type: ValueType, rate: float, max_rate: float) -> str:
    """Pick the SGR color for a rate.

    ``max_rate`` must be the peak observed *before* ``rate`` was computed.
    """
    ladder = _COLOR_LADDERS.get(value_type)
    if ladder is None:
        raise LogicalError(f"No color ladder for value type {value_type!r}")
    return ladder(value_type, rate, max_rate)


def write_with_width(s: str, width: int) -> str:
    if len(s) >= width:
        return s + " "
    return s.ljust(width)


def write_with_width_strict(s: str, width: int) -> str:
    if len(s) <= width:
        return s
    if width <= len(ELLIPSIS):
        return s[:width]
    return s[: width - len(ELLIPSIS)] + ELLIPSIS


def documentation_width(terminal_width: int, name_width: int) -> int:
    fixed_columns_width = name_width + COLUMN_VALUE_WIDTH + COLUMN_PROGRESS_WIDTH
    if terminal_width < fixed_columns_width + COLUMN_DOCUMENTATION_MIN_WIDTH:
        return 0
    return terminal_width - fixed_columns_width


def render_live(
    entries: Sequence[Entry],
    *,
    name_width: int,
    terminal_width: int,
    now: float,
    catalog: Mapping[str, EventInfo],
) -> str:
    """Render one tick of the live table.

    Returns an empty string when nothing should be drawn this tick. Otherwise
    the output ends with a cursor-up sequence so the next tick overwrites it.
    """
    if terminal_width < name_width + COLUMN_VALUE_WIDTH + COLUMN_PROGRESS_WIDTH:
        return ""
    if not entries:
        return ""

    out: List[str] = [HIDE_CURSOR, "\n"]
    out.append(write_with_width(COLUMN_EVENT_NAME, name_width))
    out.append(write_with_width(COLUMN_VALUE, COLUMN_VALUE_WIDTH))
    out.append(write_with_width(COLUMN_PROGRESS, COLUMN_PROGRESS_WIDTH))
    doc_width = documentation_width(terminal_width, name_width)
    if doc_width:
        out.append(write_with_width(COLUMN_DOCUMENTATION_NAME, doc_width))
    out.append(CLEAR_TO_END_OF_LINE)
    lines = 1

    for name, aggregate in entries:
        if not aggregate.is_fresh(now):
            continue
        info = catalog[name]

        out.append("\n")
        out.append(write_with_width(name, name_width))
        out.append(
            write_with_width(
                format_readable_value(info.value_type, aggregate.total_value()),
                COLUMN_VALUE_WIDTH,
            )
        )

        max_rate = aggregate.max_rate
        rate = aggregate.record_and_get_rate(now)
        out.append(color_for_rate(info.value_type, rate, max_rate))
        out.append(
            write_with_width(
                format_readable_value(info.value_type, rate) + "/s",
                COLUMN_PROGRESS_WIDTH,
            )
        )

        if doc_width:
            out.append(DARK_GREY)
            out.append(write_with_width_strict(info.documentation, doc_width))

        out.append(RESET_COLOR)
        out.append(CLEAR_TO_END_OF_LINE)
        lines += 1

    out.append(move_up_n_lines(lines))
    return "".join(out)


def render_hidden() -> str:
    return "".join(
        [CLEAR_TO_END_OF_SCREEN, HIDE_CURSOR, "\n", TOGGLE_HINT, move_up_n_lines(1)]
    )


def render_clear() -> str:
    return "\r" + CLEAR_TO_END_OF_SCREEN + SHOW_CURSOR


def render_final(
    entries: Iterable[Entry],
    *,
    name_width: int,
    terminal_width: int,
    catalog: Mapping[str, EventInfo],
) -> str:
    """Render the plain summary: every metric with its latest value."""
    entries = list(entries)
    if terminal_width < name_width + COLUMN_VALUE_WIDTH:
        return ""
    if not entries:
        return ""

    out: List[str] = ["\n"]
    out.append(write_with_width(COLUMN_EVENT_NAME, name_width))
    out.append(write_with_width(COLUMN_VALUE, COLUMN_VALUE_WIDTH))
    for name, aggregate in entries:
        out.append("\n")
        out.append(write_with_width(name, name_width))
        out.append(
            write_with_width(
                format_readable_value(catalog[name].value_type, aggregate.total_value()),
                COLUMN_VALUE_WIDTH,
            )
        )
    out.append("\n")
    return "".join(out)
