"""
Exception hierarchy for the ton-trigger service.

Errors fall into four groups that are handled differently:
- StartError: raised synchronously to whoever called UDPListener.start()
- DecodeError: recovered per packet, logged and dropped
- ActionError: reported through the status callback
- TransportError: fatal receive loop failures, reported through the status callback
"""

from typing import Optional


class TonTriggerError(Exception):
    """Base class for all ton-trigger errors."""
    pass


class StartError(TonTriggerError):
    """Raised when the UDP listener cannot be started."""
    pass


class AlreadyRunningError(StartError):
    """Raised when start() is called on a listener that is already running."""

    def __init__(self, port: Optional[int] = None):
        self.port = port
        if port is None:
            super().__init__("Listener is already running")
        else:
            super().__init__(f"Listener is already running on port {port}")


class BindError(StartError):
    """Raised when the UDP socket cannot be bound to the requested port."""

    def __init__(self, port, reason: str):
        self.port = port
        self.reason = reason
        super().__init__(f"Cannot bind UDP port {port}: {reason}")


class DecodeError(TonTriggerError, ValueError):
    """Raised when a datagram cannot be decoded as an OSC message."""
    pass


class TruncatedPacketError(DecodeError):
    """Raised when a read runs past the end of the datagram."""
    pass


class MalformedPacketError(DecodeError):
    """Raised when the datagram is long enough but structurally invalid."""
    pass


class ActionError(TonTriggerError):
    """Raised by a drag action when the target window cannot be driven."""
    pass


class TargetNotFoundError(ActionError):
    """Raised when no window with the configured title exists."""

    def __init__(self, window_name: str):
        self.window_name = window_name
        super().__init__("Error: Window Not Found")


class PositionQueryFailedError(ActionError):
    """Raised when the bounding rectangle of the target window cannot be read."""

    def __init__(self, window_name: str):
        self.window_name = window_name
        super().__init__("Error: Unable to Get Window Position")


class TransportError(TonTriggerError):
    """A socket error that stopped the receive loop."""
    pass


class ConfigError(TonTriggerError, ValueError):
    """Raised when a configuration value cannot be parsed."""
    pass
