"""
Display frame encoder.

Frame layout::

    [A5 5A 18 04] [len:u32le] [48 00 00 00]   12-byte header
    JPEG payload                               len bytes
    zero padding                               up to the next 16 KiB boundary

The total transfer length is the smallest multiple of 16384 that is
>= 12 + len.  An already aligned frame gets no padding at all.
"""

import struct

from .constants import (
    FRAME_BLOCK_SIZE,
    FRAME_HEADER_SIZE,
    FRAME_HEADER_TEMPLATE,
    FRAME_LENGTH_OFFSET,
)

_MAX_PAYLOAD = 0xFFFFFFFF


def build_header(length: int) -> bytes:
    """Return the 12-byte frame header for a payload of *length* bytes."""
    if not 0 <= length <= _MAX_PAYLOAD:
        raise ValueError(f"Payload length out of range: {length}")
    header = bytearray(FRAME_HEADER_TEMPLATE)
    struct.pack_into('<I', header, FRAME_LENGTH_OFFSET, length)
    return bytes(header)


def padding_for(length: int) -> int:
    """Zero bytes appended after a payload of *length* bytes."""
    return (FRAME_BLOCK_SIZE - (FRAME_HEADER_SIZE + length) % FRAME_BLOCK_SIZE) % FRAME_BLOCK_SIZE


def encode_frame(payload: bytes) -> bytes:
    """Wrap a JPEG payload into a wire-ready frame."""
    length = len(payload)
    return build_header(length) + bytes(payload) + b'\x00' * padding_for(length)


def hex_dump(data: bytes) -> str:
    """Space-separated hex, for debug logging of headers."""
    return " ".join(f"{b:02x}" for b in data)
