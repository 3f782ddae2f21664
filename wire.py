"""Fixed-width integer codec shared by every serializable entity.

The artifact format is schema-fixed: a composite is the concatenation of its
fields' encodings in a fixed order and no type tags are stored. The only
primitive is an 8-byte little-endian unsigned integer used for every
length/count prefix.
"""

import struct
from typing import Protocol, Tuple, Type, TypeVar

from errors import UnsupportedSizeError, WzError

U64 = struct.Struct("<Q")
U64_SIZE = U64.size  #: 8
U64_MAX = (1 << 64) - 1

T = TypeVar("T", bound="Serializable")


class Serializable(Protocol):
    """Anything that can be written to and read back from a byte buffer."""

    def to_bytes(self) -> bytes:
        ...

    @classmethod
    def from_bytes(cls: Type[T], data: bytes) -> Tuple[T, int]:
        ...


def pack_u64(value: int) -> bytes:
    """Encode ``value`` as an 8-byte little-endian unsigned integer.

    :param int value: Value to encode, ``0 <= value < 2**64``.
    :returns: Encoded bytes.
    :rtype: bytes
    :raises UnsupportedSizeError: If ``value`` does not fit in 64 bits.
    """
    if value < 0 or value > U64_MAX:
        raise UnsupportedSizeError(f"Value does not fit in 64 bits: {value}")
    return U64.pack(value)


def unpack_u64(
    data: bytes, offset: int = 0, error: Type[WzError] = WzError
) -> int:
    """Decode an 8-byte little-endian unsigned integer at ``offset``.

    :param data: Source buffer.
    :type data: bytes
    :param int offset: Byte offset to read from.
    :param error: Error class raised when fewer than 8 bytes remain.
    :type error: Type[WzError]
    :returns: Decoded value.
    :rtype: int
    """
    if offset + U64_SIZE > len(data):
        raise error(
            f"Need {U64_SIZE} bytes at offset {offset}, "
            f"have {max(0, len(data) - offset)}"
        )
    return U64.unpack_from(data, offset)[0]


def pack_uint(value: int, width: int) -> bytes:
    """Encode ``value`` in exactly ``width`` little-endian bytes."""
    try:
        return value.to_bytes(width, "little")
    except OverflowError:
        raise UnsupportedSizeError(
            f"Value {value} does not fit in {width} bytes"
        ) from None


def min_byte_width(value: int) -> int:
    """Minimum number of bytes needed to store ``value`` (at least 1)."""
    return max(1, (value.bit_length() + 7) // 8)


def parse_exact(kind: Type[T], data: bytes, error: Type[WzError]) -> T:
    """Deserialize ``kind`` from ``data`` and require every byte be used.

    :param kind: Serializable class to read.
    :param data: Buffer holding exactly one serialized ``kind``.
    :type data: bytes
    :param error: Error class raised when bytes are left over.
    :returns: The deserialized object.
    """
    obj, consumed = kind.from_bytes(data)
    if consumed != len(data):
        raise error(
            f"{len(data) - consumed} unexpected bytes after {kind.__name__}"
        )
    return obj
