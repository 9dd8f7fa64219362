import os
import sys
from typing import Sequence, TextIO


def get_terminal_width(streams: Sequence[TextIO] = ()) -> int:
    """Return the width in columns of the first stream attached to a terminal.

    Queries the terminal directly rather than trusting ``COLUMNS`` so resizes
    are picked up. Returns 0 when no stream is a terminal; callers treat that
    as "skip this render".
    """
    for stream in streams or (sys.stdin, sys.stderr):
        try:
            if stream.isatty():
                return os.get_terminal_size(stream.fileno()).columns
        except (AttributeError, ValueError, OSError):
            continue
    return 0
