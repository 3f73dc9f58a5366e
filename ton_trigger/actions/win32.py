"""
Windows implementation of the drag action.

Finds the target window by its exact title, presses the left mouse button
just below the top edge of the window at its horizontal center, holds it for
the configured time and releases it. Calls user32 through ctypes.
"""

import ctypes
import logging
import time
from ctypes import wintypes
from typing import Any, Optional

from ..errors import PositionQueryFailedError, TargetNotFoundError

logger = logging.getLogger(__name__)

MOUSEEVENTF_LEFTDOWN = 0x0002
MOUSEEVENTF_LEFTUP = 0x0004

# Distance below the window's top edge where the button is pressed
TITLE_BAR_OFFSET = 10


class RECT(ctypes.Structure):
    _fields_ = [
        ("left", ctypes.c_long),
        ("top", ctypes.c_long),
        ("right", ctypes.c_long),
        ("bottom", ctypes.c_long),
    ]


def declare_prototypes(user32: Any) -> None:
    """Set argtypes/restype so handles keep their full width on 64-bit Windows."""
    user32.FindWindowW.argtypes = [wintypes.LPCWSTR, wintypes.LPCWSTR]
    user32.FindWindowW.restype = wintypes.HWND
    user32.GetWindowRect.argtypes = [wintypes.HWND, ctypes.POINTER(RECT)]
    user32.GetWindowRect.restype = wintypes.BOOL
    user32.SetCursorPos.argtypes = [ctypes.c_int, ctypes.c_int]
    user32.SetCursorPos.restype = wintypes.BOOL
    user32.mouse_event.argtypes = [
        wintypes.DWORD, wintypes.LONG, wintypes.LONG, wintypes.DWORD, ctypes.c_size_t,
    ]
    user32.mouse_event.restype = None


class Win32DragAction:
    """Drag action backed by the Win32 user32 API."""

    def __init__(self, user32: Optional[Any] = None):
        """
        Args:
            user32: user32 library handle; loaded on first use when omitted
        """
        self._user32 = user32
        if user32 is not None:
            declare_prototypes(user32)

    @property
    def user32(self) -> Any:
        if self._user32 is None:
            self._user32 = ctypes.WinDLL("user32", use_last_error=True)
            declare_prototypes(self._user32)
        return self._user32

    def perform_drag(self, window_name: str, duration_ms: int) -> None:
        """
        Hold the left mouse button on the window titled window_name.

        Raises:
            TargetNotFoundError: If no window has that title
            PositionQueryFailedError: If the window rectangle cannot be read
        """
        user32 = self.user32

        hwnd = user32.FindWindowW(None, window_name)
        if not hwnd:
            raise TargetNotFoundError(window_name)

        rect = RECT()
        if not user32.GetWindowRect(hwnd, ctypes.byref(rect)):
            raise PositionQueryFailedError(window_name)

        x = (rect.left + rect.right) // 2
        y = rect.top + TITLE_BAR_OFFSET
        logger.debug(f"Pressing mouse at ({x}, {y}) on '{window_name}' for {duration_ms} ms")

        user32.SetCursorPos(x, y)
        user32.mouse_event(MOUSEEVENTF_LEFTDOWN, x, y, 0, 0)
        try:
            time.sleep(duration_ms / 1000.0)
        finally:
            user32.mouse_event(MOUSEEVENTF_LEFTUP, x, y, 0, 0)
