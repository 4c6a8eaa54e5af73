"""
MessagePack encoder/decoder for wire format communication.

Every websocket frame carries one MessagePack map. Decoding enforces size
limits so a single client cannot make the server allocate unbounded memory.
"""

from enum import Enum
from typing import Any

import msgpack


def _to_wire(obj: object) -> object:
    """
    Recursively normalise a payload for strict MessagePack packing.

    Enum members become their values and integer map keys become strings.
    """
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k) if isinstance(k, int) else _to_wire(k): _to_wire(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_wire(item) for item in obj]
    return obj


def encode(data: dict[str, Any]) -> bytes:
    """
    Encode a dict to MessagePack bytes.
    """
    return msgpack.packb(_to_wire(data))


class DecodeError(Exception):
    """Error raised when MessagePack decoding fails."""


# A board update carries at most 300 tiles of seven fields each.
MAX_BUFFER_LEN = 64 * 1024
MAX_STR_LEN = 4 * 1024
MAX_BIN_LEN = 4 * 1024
MAX_ARRAY_LEN = 512
MAX_MAP_LEN = 64
MAX_EXT_LEN = 1024


def decode(data: bytes) -> dict[str, Any]:
    """
    Decode MessagePack bytes to a dict.

    Raises DecodeError if data is invalid, not a dict, or exceeds size limits.
    """
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_BUFFER_LEN})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected dict, got {type(result).__name__}")

    return result
