from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Tuple

from errors import CorruptTableError, UnsupportedSizeError
from wire import (
    U64_MAX,
    U64_SIZE,
    min_byte_width,
    pack_u64,
    pack_uint,
    parse_exact,
    unpack_u64,
)


@dataclass(frozen=True)
class ByteFrequency:
    """Occurrence count of a single byte value.

    :ivar value: Byte value, 0-255.
    :type value: int
    :ivar count: Exact number of occurrences (fits in 64 bits).
    :type count: int
    """

    value: int
    count: int


class FrequencyTable:
    """Byte value -> occurrence count, ordered by ascending byte value.

    Only values that occur are stored, so a table holds between 0 and 256
    entries. Tables are immutable once built. The encoder builds one from
    the raw input; the decoder rebuilds the same table from its serialized
    form, which is why the entry order on the wire is fixed.

    Two wire forms exist. The baseline form is::

        entry count   u64
        entries       count x (value: u8, count: u64)

    The compact form (opt-in, see :meth:`to_bytes`) replaces the entry
    count with a tagged header and stores each count in the minimum number
    of bytes needed for the largest one. Readers accept both.

    :ivar MAX_ENTRIES: Number of distinct byte values.
    :type MAX_ENTRIES: int
    :ivar COMPACT_FLAG: Header bit marking the compact form.
    :type COMPACT_FLAG: int
    :ivar COMPACT_VERSION: Version of the compact form written and accepted.
    :type COMPACT_VERSION: int
    """

    MAX_ENTRIES = 256
    COMPACT_FLAG = 1 << 63
    COMPACT_VERSION = 1

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[ByteFrequency] = ()):
        """Create a table from entries.

        :param entries: Entries with unique byte values, in any order.
        :type entries: Iterable[ByteFrequency]
        :raises ValueError: If a byte value is outside 0-255 or repeats.
        :raises UnsupportedSizeError: If a count does not fit in 64 bits.
        """
        ordered = sorted(entries, key=lambda e: e.value)
        seen = set()
        for entry in ordered:
            if not 0 <= entry.value <= 255:
                raise ValueError(f"Not a byte value: {entry.value}")
            if entry.value in seen:
                raise ValueError(f"Duplicate byte value: {entry.value}")
            if entry.count < 0 or entry.count > U64_MAX:
                raise UnsupportedSizeError(
                    f"Count for byte {entry.value} does not fit in 64 bits"
                )
            seen.add(entry.value)
        self._entries: Tuple[ByteFrequency, ...] = tuple(ordered)

    @classmethod
    def build(cls, data: bytes) -> "FrequencyTable":
        """Count the occurrences of every byte value present in ``data``.

        :param data: Input buffer.
        :type data: bytes
        :returns: Table with one entry per distinct byte; empty for empty
            input.
        :rtype: FrequencyTable
        """
        counts = Counter(data)
        return cls(ByteFrequency(value, count) for value, count in counts.items())

    @classmethod
    def from_dict(cls, counts: Dict[int, int]) -> "FrequencyTable":
        return cls(ByteFrequency(value, count) for value, count in counts.items())

    def count(self, value: int) -> int:
        """Occurrences of ``value``; ``0`` if the value has no entry."""
        for entry in self._entries:
            if entry.value == value:
                return entry.count
        return 0

    def total(self) -> int:
        """Sum of all counts, i.e. the length of the counted input."""
        return sum(entry.count for entry in self._entries)

    def as_dict(self) -> Dict[int, int]:
        return {entry.value: entry.count for entry in self._entries}

    def to_bytes(self, compact: bool = False) -> bytes:
        """Serialize the table, entries in ascending byte order.

        :param bool compact: Write the compact form, where counts take the
            minimum width needed for the largest count instead of 8 bytes.
        :returns: Serialized table.
        :rtype: bytes
        """
        if not compact:
            out = bytearray(pack_u64(len(self._entries)))
            for entry in self._entries:
                out.append(entry.value)
                out += pack_u64(entry.count)
            return bytes(out)

        width = min_byte_width(max((e.count for e in self._entries), default=0))
        head = (
            self.COMPACT_FLAG
            | (self.COMPACT_VERSION << 24)
            | (width << 16)
            | len(self._entries)
        )
        out = bytearray(pack_u64(head))
        for entry in self._entries:
            out.append(entry.value)
            out += pack_uint(entry.count, width)
        return bytes(out)

    @classmethod
    def is_compact(cls, data: bytes) -> bool:
        """Whether ``data`` starts with a table in the compact form."""
        return len(data) >= U64_SIZE and bool(
            unpack_u64(data, 0) & cls.COMPACT_FLAG
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Tuple["FrequencyTable", int]:
        """Deserialize a table written by :meth:`to_bytes` (either form).

        :param data: Buffer starting with a serialized table; trailing bytes
            are left for the caller.
        :type data: bytes
        :returns: Tuple ``(table, bytes_consumed)``.
        :rtype: Tuple[FrequencyTable, int]
        :raises CorruptTableError: If the header is truncated or invalid, the
            entry count exceeds 256, the entries would read past the buffer,
            or byte values repeat or are out of order.
        """
        head = unpack_u64(data, 0, CorruptTableError)
        if head & cls.COMPACT_FLAG:
            version = (head >> 24) & 0xFF
            width = (head >> 16) & 0xFF
            size = head & 0xFFFF
            if head & ~(cls.COMPACT_FLAG | 0xFFFFFFFF):
                raise CorruptTableError(f"Reserved header bits set: {head:#x}")
            if version != cls.COMPACT_VERSION:
                raise CorruptTableError(
                    f"Unsupported compact table version: {version}"
                )
            if not 1 <= width <= U64_SIZE:
                raise CorruptTableError(f"Invalid count width: {width}")
        else:
            width = U64_SIZE
            size = head

        if size > cls.MAX_ENTRIES:
            raise CorruptTableError(
                f"Table declares {size} entries, at most "
                f"{cls.MAX_ENTRIES} allowed"
            )
        end = U64_SIZE + size * (1 + width)
        if end > len(data):
            raise CorruptTableError(
                f"Table declares {size} entries ({end} bytes) "
                f"but only {len(data)} bytes are available"
            )

        entries = []
        pos = U64_SIZE
        previous = -1
        for _ in range(size):
            value = data[pos]
            if value == previous:
                raise CorruptTableError(f"Duplicate byte value: {value}")
            if value < previous:
                raise CorruptTableError(
                    f"Byte value {value} out of order after {previous}"
                )
            count = int.from_bytes(data[pos + 1:pos + 1 + width], "little")
            entries.append(ByteFrequency(value, count))
            previous = value
            pos += 1 + width
        return cls(entries), pos

    serialize = to_bytes

    @classmethod
    def deserialize(cls, data: bytes) -> "FrequencyTable":
        """Deserialize a table that fills ``data`` exactly."""
        return parse_exact(cls, data, CorruptTableError)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ByteFrequency]:
        return iter(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, FrequencyTable):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"FrequencyTable({self.as_dict()!r})"
