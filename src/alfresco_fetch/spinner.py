"""Terminal spinner for blocking network and extraction steps."""

import sys
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

# ANSI escape sequences for cursor control
_HIDE_CURSOR = "\033[?25l"
_SHOW_CURSOR = "\033[?25h"

_FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]


@contextmanager
def spinner(message: str, *, enabled: bool | None = None) -> Iterator[None]:
    """Display a spinner with a message while code executes.

    The animation only runs on an interactive stdout unless ``enabled`` is
    given explicitly; pipelines and CI logs get no escape sequences at all.
    The cursor is restored and the spinner line cleared on exit, including
    exit by exception or CTRL+C.

    Usage:
        with spinner("Extracting archive"):
            archive.extractall(target)
    """
    if enabled is None:
        enabled = sys.stdout.isatty()
    if not enabled:
        yield
        return

    stop_event = threading.Event()

    def animate() -> None:
        frame = 0
        while not stop_event.is_set():
            sys.stdout.write(f"\r  {_FRAMES[frame % len(_FRAMES)]} {message}")
            sys.stdout.flush()
            frame += 1
            time.sleep(0.08)

    sys.stdout.write(_HIDE_CURSOR)
    sys.stdout.flush()

    thread = threading.Thread(target=animate, daemon=True)
    thread.start()

    try:
        yield
    finally:
        stop_event.set()
        thread.join(timeout=0.2)
        sys.stdout.write("\r" + " " * (len(message) + 6) + "\r")
        sys.stdout.write(_SHOW_CURSOR)
        sys.stdout.flush()
