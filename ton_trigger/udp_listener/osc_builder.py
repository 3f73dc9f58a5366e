"""
OSC (Open Sound Control) message builder.

Encodes messages in the OSC binary format. The service itself only receives
OSC; the builder exists for the trigger sender tool and for tests that need
well-formed (or deliberately broken) datagrams.

Reference: http://opensoundcontrol.org/spec-1_0
"""

import struct
from typing import Any

from ..constants import OSCConstants


def encode_string(s: str) -> bytes:
    """Encode a string as OSC string (null-terminated, padded to 4 bytes)."""
    encoded = s.encode('utf-8') + b'\x00'
    padding = (4 - len(encoded) % 4) % 4
    return encoded + b'\x00' * padding


def encode_int(i: int) -> bytes:
    """Encode an integer as OSC int32 (big-endian)."""
    return struct.pack('>i', i)


def encode_float(f: float) -> bytes:
    """Encode a float as OSC float32 (big-endian)."""
    return struct.pack('>f', f)


def build_osc_message(address: str, *args: Any) -> bytes:
    """
    Build an OSC message with the given address pattern and arguments.

    Args:
        address: OSC address pattern (e.g., "/avatar/parameters/ton_suicide")
        *args: Variable arguments (int, float, str, bool)

    Returns:
        bytes: Complete OSC message ready to send via UDP

    Example:
        >>> build_osc_message("/avatar/parameters/ton_suicide", True)[-4:]
        b',T\\x00\\x00'
    """
    if not address.startswith('/'):
        raise ValueError(f"OSC address must start with '/': {address}")

    type_tags = ','
    payload = b''

    for arg in args:
        # bool first, since bool is a subclass of int
        if isinstance(arg, bool):
            type_tags += 'T' if arg else 'F'
        elif isinstance(arg, int):
            type_tags += 'i'
            payload += encode_int(arg)
        elif isinstance(arg, float):
            type_tags += 'f'
            payload += encode_float(arg)
        elif isinstance(arg, str):
            type_tags += 's'
            payload += encode_string(arg)
        else:
            raise TypeError(f"Unsupported OSC argument type: {type(arg)}")

    return encode_string(address) + encode_string(type_tags) + payload


def build_trigger_message(value: bool = True) -> bytes:
    """Build the avatar parameter message; only value=True fires the drag."""
    return build_osc_message(OSCConstants.TRIGGER_ADDRESS, value)
