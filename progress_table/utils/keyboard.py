import os
import select
import sys
import termios
import tty
from typing import Optional, TextIO

TOGGLE_KEY = b" "


def is_interactive(stream: Optional[TextIO] = None) -> bool:
    stream = stream if stream is not None else sys.stdin
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


class KeyToggle:
    """Watch a terminal for presses of the toggle key.

    While entered the terminal is in cbreak mode, so single key presses arrive
    without waiting for Enter; the previous mode is restored on exit.
    """

    def __init__(self, stream: Optional[TextIO] = None, key: bytes = TOGGLE_KEY) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._key = key
        self._saved: Optional[list] = None

    def __enter__(self) -> "KeyToggle":
        fd = self._stream.fileno()
        self._saved = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        return self

    def __exit__(self, *exc_info) -> None:
        if self._saved is not None:
            termios.tcsetattr(self._stream.fileno(), termios.TCSADRAIN, self._saved)
            self._saved = None

    def toggled(self) -> bool:
        """Drain pending input; True when the key was pressed an odd number of times."""
        fd = self._stream.fileno()
        presses = 0
        while select.select([fd], [], [], 0)[0]:
            chunk = os.read(fd, 64)
            if not chunk:
                break
            presses += chunk.count(self._key)
        return presses % 2 == 1
