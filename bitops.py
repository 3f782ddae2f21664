from typing import Iterable, Iterator, Union

from errors import TruncatedInputError


class BitSequence:
    """Appendable, indexable sequence of individual bits.

    Bits are packed MSB-first into ``buffer``: bit ``i`` lives in byte
    ``i // 8`` at position ``7 - i % 8``. The length is tracked explicitly,
    so the zero padding of the last byte is never part of the sequence.

    :ivar buffer: Packed bits, ``ceil(len(self) / 8)`` bytes long.
    :type buffer: bytearray
    :ivar bit_count: Number of meaningful bits in ``buffer``.
    :type bit_count: int
    """

    __slots__ = ("buffer", "bit_count")

    def __init__(self):
        """Create an empty bit sequence.

        :returns: None
        :rtype: None
        """
        self.buffer = bytearray()
        self.bit_count = 0

    @classmethod
    def from_bits(cls, bits: Iterable[int]) -> "BitSequence":
        """Build a sequence from an iterable of ``0``/``1`` values.

        :param bits: Bits in order.
        :type bits: Iterable[int]
        :returns: New sequence holding ``bits``.
        :rtype: BitSequence
        """
        seq = cls()
        for bit in bits:
            seq.append(bit)
        return seq

    @classmethod
    def from_string(cls, text: str) -> "BitSequence":
        """Build a sequence from a string such as ``"0110"``."""
        return cls.from_bits(int(ch) for ch in text)

    @classmethod
    def from_packed(cls, data: bytes, bit_length: int) -> "BitSequence":
        """Unpack ``bit_length`` bits from a buffer produced by :meth:`to_bytes`.

        Only the first ``ceil(bit_length / 8)`` bytes of ``data`` are used and
        any pad bits of the last byte are cleared.

        :param data: Packed bits.
        :type data: bytes
        :param int bit_length: Exact number of meaningful bits.
        :returns: The unpacked sequence.
        :rtype: BitSequence
        :raises TruncatedInputError: If ``data`` holds fewer bits than
            ``bit_length``.
        """
        nbytes = (bit_length + 7) // 8
        if len(data) < nbytes:
            raise TruncatedInputError(
                f"Payload declares {bit_length} bits ({nbytes} bytes) "
                f"but only {len(data)} bytes are present"
            )
        seq = cls()
        seq.buffer = bytearray(data[:nbytes])
        seq.bit_count = bit_length
        tail = bit_length % 8
        if tail:
            seq.buffer[-1] &= (0xFF << (8 - tail)) & 0xFF
        return seq

    def append(self, bit: int) -> None:
        """Append a single bit.

        :param int bit: ``0`` or ``1``.
        :returns: None
        :rtype: None
        :raises ValueError: If ``bit`` is not ``0`` or ``1``.
        """
        if bit not in (0, 1):
            raise ValueError(f"Not a bit: {bit!r}")
        offset = self.bit_count % 8
        if offset == 0:
            self.buffer.append(0)
        if bit:
            self.buffer[-1] |= 0x80 >> offset
        self.bit_count += 1

    def extend(self, bits: Union["BitSequence", Iterable[int]]) -> None:
        """Append every bit of ``bits`` in order."""
        for bit in bits:
            self.append(bit)

    def bit(self, index: int) -> int:
        """Return the bit at ``index``.

        :param int index: Position, ``0 <= index < len(self)``.
        :returns: ``0`` or ``1``.
        :rtype: int
        :raises IndexError: If ``index`` is out of range.
        """
        if index < 0 or index >= self.bit_count:
            raise IndexError(
                f"Bit index {index} out of range for length {self.bit_count}"
            )
        return (self.buffer[index >> 3] >> (7 - (index & 7))) & 1

    def to_bytes(self) -> bytes:
        """Return the packed bits, the final byte zero-padded.

        :returns: ``ceil(len(self) / 8)`` bytes.
        :rtype: bytes
        """
        return bytes(self.buffer)

    def copy(self) -> "BitSequence":
        seq = BitSequence()
        seq.buffer = bytearray(self.buffer)
        seq.bit_count = self.bit_count
        return seq

    def __len__(self) -> int:
        return self.bit_count

    def __getitem__(self, index: int) -> int:
        if index < 0:
            index += self.bit_count
        return self.bit(index)

    def __iter__(self) -> Iterator[int]:
        buffer = self.buffer
        for index in range(self.bit_count):
            yield (buffer[index >> 3] >> (7 - (index & 7))) & 1

    def __eq__(self, other) -> bool:
        if not isinstance(other, BitSequence):
            return NotImplemented
        return (
            self.bit_count == other.bit_count and self.buffer == other.buffer
        )

    def __hash__(self) -> int:
        return hash((self.bit_count, bytes(self.buffer)))

    def __str__(self) -> str:
        return "".join(str(bit) for bit in self)

    def __repr__(self) -> str:
        return f"BitSequence('{self}')"
