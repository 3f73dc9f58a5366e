import ctypes
import sys
from ctypes import wintypes
from unittest.mock import MagicMock

import pytest

from ton_trigger.actions import (
    LoggingDragAction,
    Win32DragAction,
    create_default_action,
)
from ton_trigger.actions.win32 import MOUSEEVENTF_LEFTDOWN, MOUSEEVENTF_LEFTUP, RECT
from ton_trigger.errors import PositionQueryFailedError, TargetNotFoundError


def fake_user32(hwnd=0x1234, rect=(100, 50, 500, 450), rect_ok=True):
    """Build a user32 stand-in whose GetWindowRect fills the RECT."""
    user32 = MagicMock()
    user32.FindWindowW.return_value = hwnd

    def get_window_rect(handle, rect_ref):
        if not rect_ok:
            return 0
        target = rect_ref._obj
        target.left, target.top, target.right, target.bottom = rect
        return 1

    user32.GetWindowRect.side_effect = get_window_rect
    return user32


class TestWin32DragAction:
    """Test the Win32 drag sequence against a fake user32."""

    def test_drag_presses_at_top_center(self):
        user32 = fake_user32()
        action = Win32DragAction(user32=user32)

        action.perform_drag("VRChat", 0)

        user32.FindWindowW.assert_called_once_with(None, "VRChat")
        user32.SetCursorPos.assert_called_once_with(300, 60)
        assert [c.args[0] for c in user32.mouse_event.call_args_list] == [
            MOUSEEVENTF_LEFTDOWN,
            MOUSEEVENTF_LEFTUP,
        ]
        assert user32.mouse_event.call_args_list[0].args[1:3] == (300, 60)

    def test_missing_window_raises_target_not_found(self):
        user32 = fake_user32(hwnd=0)
        action = Win32DragAction(user32=user32)

        with pytest.raises(TargetNotFoundError) as exc_info:
            action.perform_drag("Missing", 0)

        assert str(exc_info.value) == "Error: Window Not Found"
        assert exc_info.value.window_name == "Missing"
        user32.mouse_event.assert_not_called()

    def test_rect_failure_raises_position_query_failed(self):
        user32 = fake_user32(rect_ok=False)
        action = Win32DragAction(user32=user32)

        with pytest.raises(PositionQueryFailedError) as exc_info:
            action.perform_drag("VRChat", 0)

        assert str(exc_info.value) == "Error: Unable to Get Window Position"
        user32.SetCursorPos.assert_not_called()
        user32.mouse_event.assert_not_called()

    def test_button_released_when_sleep_is_interrupted(self, monkeypatch):
        user32 = fake_user32()
        action = Win32DragAction(user32=user32)

        def interrupted(seconds):
            raise KeyboardInterrupt

        monkeypatch.setattr("ton_trigger.actions.win32.time.sleep", interrupted)

        with pytest.raises(KeyboardInterrupt):
            action.perform_drag("VRChat", 5000)

        assert user32.mouse_event.call_args_list[-1].args[0] == MOUSEEVENTF_LEFTUP

    def test_prototypes_keep_handles_pointer_sized(self):
        user32 = fake_user32()
        Win32DragAction(user32=user32)

        assert user32.FindWindowW.restype is wintypes.HWND
        assert ctypes.sizeof(user32.FindWindowW.restype) == ctypes.sizeof(ctypes.c_void_p)
        assert user32.GetWindowRect.argtypes == [wintypes.HWND, ctypes.POINTER(RECT)]
        assert user32.SetCursorPos.argtypes == [ctypes.c_int, ctypes.c_int]
        assert len(user32.mouse_event.argtypes) == 5
        assert user32.mouse_event.restype is None

    def test_sleeps_for_drag_duration(self, monkeypatch):
        slept = []
        monkeypatch.setattr("ton_trigger.actions.win32.time.sleep", slept.append)

        Win32DragAction(user32=fake_user32()).perform_drag("VRChat", 1500)

        assert slept == [1.5]


class TestLoggingDragAction:

    def test_records_calls(self):
        action = LoggingDragAction()
        action.perform_drag("VRChat", 0)
        action.perform_drag("Other", 0)

        assert action.calls == [("VRChat", 0), ("Other", 0)]


def test_default_action_matches_platform():
    action = create_default_action()
    if sys.platform == "win32":
        assert isinstance(action, Win32DragAction)
    else:
        assert isinstance(action, LoggingDragAction)
