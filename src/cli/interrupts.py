"""SIGINT wiring for long-running migrations."""

from __future__ import annotations

from contextlib import contextmanager
import signal
import threading
from typing import Any, Iterator

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@contextmanager
def stop_on_interrupt(stop_event: threading.Event) -> Iterator[threading.Event]:
    """Turn the first SIGINT into a stop request checked at flush boundaries.

    A second SIGINT falls back to the previous handler. Outside the main
    thread signals cannot be installed and the event is yielded unchanged.
    """
    if threading.current_thread() is not threading.main_thread():
        yield stop_event
        return
    previous = signal.getsignal(signal.SIGINT)

    def _request_stop(signum: int, frame: Any) -> None:
        _LOGGER.warning("migration_stop_requested", signal=signum)
        stop_event.set()
        signal.signal(signal.SIGINT, previous)

    signal.signal(signal.SIGINT, _request_stop)
    try:
        yield stop_event
    finally:
        signal.signal(signal.SIGINT, previous)
