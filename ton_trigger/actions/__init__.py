"""
Drag actions: the window automation the trigger drives.
"""

import sys

from .base import DragAction, LoggingDragAction
from .win32 import Win32DragAction


def create_default_action() -> DragAction:
    """Return the Win32 action on Windows and the logging action elsewhere."""
    if sys.platform == "win32":
        return Win32DragAction()
    return LoggingDragAction()


__all__ = [
    "DragAction",
    "LoggingDragAction",
    "Win32DragAction",
    "create_default_action",
]
