"""
Drag action interface and a platform independent implementation.
"""

import logging
import threading
import time
from typing import List, Protocol, Tuple

logger = logging.getLogger(__name__)


class DragAction(Protocol):
    """
    Something that can hold the mouse button down on a window.

    perform_drag() blocks for the whole drag and is always called from a
    worker thread. Failures are raised as ActionError subclasses.
    """

    def perform_drag(self, window_name: str, duration_ms: int) -> None:
        ...


class LoggingDragAction:
    """
    Drag action that only logs and waits.

    Used on platforms without window automation support and in tests.
    """

    def __init__(self):
        self.calls: List[Tuple[str, int]] = []
        self._lock = threading.Lock()

    def perform_drag(self, window_name: str, duration_ms: int) -> None:
        with self._lock:
            self.calls.append((window_name, duration_ms))
        logger.info(f"[dry run] Holding mouse on '{window_name}' for {duration_ms} ms")
        time.sleep(duration_ms / 1000.0)
        logger.info(f"[dry run] Released mouse on '{window_name}'")
