"""
UDP Listener service for receiving OSC messages from VRChat.
"""

from .osc_parser import (
    OSCArgument,
    OSCMessage,
    is_bundle,
    is_trigger,
    parse_osc_message,
)
from .listener import ListenerState, UDPListener

__all__ = [
    "OSCArgument",
    "OSCMessage",
    "is_bundle",
    "is_trigger",
    "parse_osc_message",
    "ListenerState",
    "UDPListener",
]
