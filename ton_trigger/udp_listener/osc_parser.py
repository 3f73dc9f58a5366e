"""
OSC (Open Sound Control) message parser.

Parses binary OSC messages received via UDP into structured Python data and
decides whether a message is the drag trigger.

Reference: http://opensoundcontrol.org/spec-1_0
"""

import struct
from typing import List, Tuple, Union
from dataclasses import dataclass, field

from ..constants import OSCConstants
from ..errors import MalformedPacketError, TruncatedPacketError


OSCValue = Union[int, float, str, bool]

# Type tags this parser materializes as arguments
SUPPORTED_TAGS = frozenset("ifsTF")


@dataclass
class OSCArgument:
    """One decoded OSC argument and the type tag it was decoded from."""
    tag: str
    value: OSCValue


@dataclass
class OSCMessage:
    """Parsed OSC message."""
    address: str
    type_tags: str
    arguments: List[OSCArgument] = field(default_factory=list)

    @property
    def values(self) -> List[OSCValue]:
        """Argument values without their tags."""
        return [arg.value for arg in self.arguments]


def read_string(data: bytes, offset: int) -> Tuple[str, int]:
    """
    Read OSC string from bytes (null-terminated, padded to 4 bytes).

    Returns:
        Tuple of (string, new_offset)

    Raises:
        TruncatedPacketError: If no null terminator exists before the end of data
        MalformedPacketError: If the string is not valid UTF-8
    """
    null_idx = data.find(b'\x00', offset)
    if null_idx == -1:
        raise TruncatedPacketError(
            f"No null terminator found for OSC string at offset {offset} "
            f"({len(data)} bytes)"
        )

    try:
        string = data[offset:null_idx].decode('utf-8')
    except UnicodeDecodeError as e:
        raise MalformedPacketError(f"OSC string at offset {offset} is not UTF-8: {e}") from e

    # Next 4-byte boundary after the terminator
    new_offset = (null_idx + 4) & ~3

    return string, new_offset


def read_int(data: bytes, offset: int) -> Tuple[int, int]:
    """
    Read OSC int32 (big-endian).

    Returns:
        Tuple of (int, new_offset)
    """
    _require(data, offset, 4, "int32")
    value = struct.unpack_from('>i', data, offset)[0]
    return value, offset + 4


def read_float(data: bytes, offset: int) -> Tuple[float, int]:
    """
    Read OSC float32 (big-endian).

    Returns:
        Tuple of (float, new_offset)
    """
    _require(data, offset, 4, "float32")
    value = struct.unpack_from('>f', data, offset)[0]
    return value, offset + 4


def _require(data: bytes, offset: int, size: int, what: str) -> None:
    if offset + size > len(data):
        raise TruncatedPacketError(
            f"Need {size} bytes for {what} at offset {offset}, "
            f"only {max(len(data) - offset, 0)} left"
        )


def is_bundle(data: bytes) -> bool:
    """Check whether a datagram is an OSC bundle rather than a message."""
    return data.startswith(OSCConstants.BUNDLE_PREFIX)


def parse_osc_message(data: bytes) -> OSCMessage:
    """
    Parse binary OSC message into structured data.

    Arguments are decoded for the i, f, s, T and F type tags. Decoding stops
    at the first unsupported tag since its size is unknown; the address and
    type tags are still returned.

    Args:
        data: Raw bytes from UDP packet

    Returns:
        OSCMessage: Parsed message with address, type tags, and arguments

    Raises:
        TruncatedPacketError: If the packet ends in the middle of a field
        MalformedPacketError: If the address or type tags are invalid

    Example:
        >>> data = b'/avatar/parameters/ton_suicide\\x00\\x00,T\\x00\\x00'
        >>> msg = parse_osc_message(data)
        >>> print(msg.address, msg.type_tags, msg.values)
        /avatar/parameters/ton_suicide ,T [True]
    """
    offset = 0

    # Read address pattern
    address, offset = read_string(data, offset)
    if not address.startswith('/'):
        raise MalformedPacketError(f"OSC address must start with '/': {address!r}")

    # Read type tag string
    type_tags, offset = read_string(data, offset)
    if not type_tags.startswith(','):
        raise MalformedPacketError(f"OSC type tags must start with ',': {type_tags!r}")

    arguments = []
    for tag in type_tags[1:]:
        if tag not in SUPPORTED_TAGS:
            break
        if tag == 'i':
            value, offset = read_int(data, offset)
        elif tag == 'f':
            value, offset = read_float(data, offset)
        elif tag == 's':
            value, offset = read_string(data, offset)
        else:
            # No data for booleans
            value = tag == 'T'
        arguments.append(OSCArgument(tag=tag, value=value))

    return OSCMessage(address=address, type_tags=type_tags, arguments=arguments)


def is_trigger(message: OSCMessage) -> bool:
    """
    Decide whether a message requests the drag action.

    Matching is exact: the address must equal the trigger address and the
    type tags must be exactly ",T".
    """
    return (
        message.address == OSCConstants.TRIGGER_ADDRESS
        and message.type_tags == OSCConstants.TRIGGER_TYPE_TAGS
    )
