"""
Constants for the ton-trigger service.

This module centralizes the trigger contract, default configuration values
and socket tuning used throughout the listener and dispatcher.
"""


class OSCConstants:
    """Constants for the OSC trigger contract."""

    # VRChat avatar parameter that requests the drag
    TRIGGER_ADDRESS = "/avatar/parameters/ton_suicide"
    TRIGGER_TYPE_TAGS = ",T"

    # Bundles are not supported and are ignored
    BUNDLE_PREFIX = b"#bundle\x00"


class ConfigDefaults:
    """Defaults used when the config file is missing or a value is invalid."""

    CONFIG_FILE = "config.conf"

    PORT = 9001
    DRAG_TIME_MS = 5000
    WINDOW_NAME = "VRChat"
    AUTO_START = False


class ConfigKeys:
    """Keys of the key=value config file, in the order they are written."""

    PORT = "Port"
    DRAG_TIME = "DragTime"
    WINDOW_NAME = "WindowName"
    AUTO_START = "AutoStart"

    ALL = (PORT, DRAG_TIME, WINDOW_NAME, AUTO_START)


class ListenerConstants:
    """Constants for the UDP listener."""

    DEFAULT_HOST = "0.0.0.0"

    # Largest possible UDP payload, so no datagram is ever truncated
    RECEIVE_BUFFER_SIZE = 65535

    # Upper bound for stop() waiting on the receive loop
    STOP_TIMEOUT_SECONDS = 2.0

    MIN_PORT = 0
    MAX_PORT = 65535
