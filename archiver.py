from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from bitops import BitSequence
from errors import (
    CorruptArtifactError,
    CorruptTableError,
    TruncatedInputError,
)
from frequency import FrequencyTable
from huffman import HuffmanTree, Leaf
from wire import pack_u64, parse_exact, unpack_u64

ProgressCallback = Callable[[int, int], None]


@dataclass
class CompressedArtifact:
    """Encoded form of one input buffer.

    Wire layout (integers are 8-byte little-endian)::

        frequency table   see FrequencyTable.to_bytes
        bit length        u64, meaningful bits in the payload
        payload           ceil(bit length / 8) bytes, MSB-first, zero padded

    :ivar table: Frequencies the Huffman tree is rebuilt from.
    :type table: FrequencyTable
    :ivar payload: Concatenated codes of the input bytes.
    :type payload: BitSequence
    :ivar compact: Whether the table is written in its compact form.
    :type compact: bool
    """

    table: FrequencyTable
    payload: BitSequence
    compact: bool = False

    @property
    def bit_length(self) -> int:
        return len(self.payload)

    def to_bytes(self) -> bytes:
        return (
            self.table.to_bytes(compact=self.compact)
            + pack_u64(len(self.payload))
            + self.payload.to_bytes()
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Tuple["CompressedArtifact", int]:
        """Parse an artifact from the start of ``data``.

        :param data: Serialized artifact.
        :type data: bytes
        :returns: Tuple ``(artifact, bytes_consumed)``.
        :rtype: Tuple[CompressedArtifact, int]
        :raises CorruptTableError: If the frequency table is malformed.
        :raises TruncatedInputError: If the bit length field is missing or
            the payload is shorter than the bit length requires.
        """
        table, pos = FrequencyTable.from_bytes(data)
        compact = FrequencyTable.is_compact(data)
        bit_length = unpack_u64(data, pos, TruncatedInputError)
        pos += 8
        payload = BitSequence.from_packed(data[pos:], bit_length)
        pos += len(payload.buffer)
        return cls(table, payload, compact), pos

    @classmethod
    def parse(cls, data: bytes) -> "CompressedArtifact":
        """Parse an artifact that fills ``data`` exactly.

        :raises CorruptArtifactError: If bytes follow the payload.
        """
        return parse_exact(cls, data, CorruptArtifactError)


class Encoder:
    """Huffman encoder for whole buffers.

    :ivar compact: Write the frequency table in its compact form.
    :type compact: bool
    """

    def __init__(self, compact: bool = False):
        self.compact = compact

    def encode(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CompressedArtifact:
        """Encode ``data`` into an artifact.

        :param data: Input bytes.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(done, total)``
                            called with the number of input bytes encoded.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Artifact holding the table and the encoded bits.
        :rtype: CompressedArtifact
        """
        table = FrequencyTable.build(data)
        codes = HuffmanTree.build(table).code_map()

        payload = BitSequence()
        total = len(data)
        step = max(1, total // 100)
        for index, value in enumerate(data):
            payload.extend(codes[value])
            if on_progress is not None and index % step == 0:
                on_progress(index, total)

        if on_progress is not None:
            on_progress(total, total)

        return CompressedArtifact(table, payload, self.compact)

    def compress(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Compress ``data`` into a serialized artifact."""
        return self.encode(data, on_progress=on_progress).to_bytes()


class Decoder:
    """Huffman decoder for artifacts produced by :class:`Encoder`.

    Two strategies are available. ``"walk"`` follows the tree live, one bit
    at a time, returning to the root after every leaf. ``"lookup"`` collects
    bits until they form a complete code of the tree's decoding map. Both
    give the same output and raise the same errors.

    :ivar STRATEGIES: Accepted strategy names.
    :type STRATEGIES: Tuple[str, ...]
    """

    STRATEGIES = ("walk", "lookup")

    def __init__(self, strategy: str = "walk"):
        if strategy not in self.STRATEGIES:
            raise ValueError(f"Unknown decoding strategy: {strategy}")
        self.strategy = strategy

    def decode(
        self,
        artifact: CompressedArtifact,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Rebuild the original bytes from ``artifact``.

        :param artifact: Parsed artifact.
        :type artifact: CompressedArtifact
        :param on_progress: Optional callback ``on_progress(done, total)``
                            called with the number of bytes recovered.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Original bytes.
        :rtype: bytes
        :raises CorruptTableError: If the table is empty but bits follow.
        :raises TruncatedInputError: If the bits end in the middle of a code.
        :raises CorruptArtifactError: If the bits form no code of the tree or
            the number of decoded bytes differs from the total of the
            frequency table.
        """
        tree = HuffmanTree.build(artifact.table)
        expected = artifact.table.total()

        if tree.root is None:
            if artifact.bit_length:
                raise CorruptTableError(
                    f"Empty frequency table with {artifact.bit_length} "
                    "payload bits"
                )
            return b""

        if self.strategy == "walk":
            output = self._walk(tree, artifact.payload, expected, on_progress)
        else:
            output = self._lookup(
                tree.decoding_map(), artifact.payload, expected, on_progress
            )

        if len(output) != expected:
            raise CorruptArtifactError(
                f"Decoded {len(output)} bytes, frequency table "
                f"accounts for {expected}"
            )
        if on_progress is not None:
            on_progress(expected, expected)
        return bytes(output)

    def decompress(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Parse a serialized artifact and decode it."""
        return self.decode(CompressedArtifact.parse(data), on_progress)

    @staticmethod
    def _walk(
        tree: HuffmanTree,
        payload: BitSequence,
        expected: int,
        on_progress: Optional[ProgressCallback],
    ) -> bytearray:
        root = tree.root
        output = bytearray()
        step = max(1, expected // 100)

        if isinstance(root, Leaf):
            # A lone leaf is coded with a single 0 bit per byte.
            if any(payload):
                raise CorruptArtifactError(
                    "Set bit in the payload of a single-symbol tree"
                )
            output.extend(bytes([root.value]) * len(payload))
            return output

        node = root
        for bit in payload:
            node = node.right if bit else node.left
            if isinstance(node, Leaf):
                output.append(node.value)
                node = root
                if on_progress is not None and len(output) % step == 0:
                    on_progress(len(output), expected)

        if node is not root:
            raise TruncatedInputError(
                f"Bit stream of {len(payload)} bits ends inside a code"
            )
        return output

    @staticmethod
    def _lookup(
        codes: Dict[BitSequence, int],
        payload: BitSequence,
        expected: int,
        on_progress: Optional[ProgressCallback],
    ) -> bytearray:
        output = bytearray()
        step = max(1, expected // 100)
        prefixes = set()
        for code in codes:
            prefix = BitSequence()
            for bit in code:
                prefixes.add(prefix.copy())
                prefix.append(bit)

        current = BitSequence()
        for bit in payload:
            current.append(bit)
            value = codes.get(current)
            if value is None:
                if current not in prefixes:
                    raise CorruptArtifactError(
                        f"Bits {current} match no code of the tree"
                    )
            else:
                output.append(value)
                current = BitSequence()
                if on_progress is not None and len(output) % step == 0:
                    on_progress(len(output), expected)

        if len(current):
            raise TruncatedInputError(
                f"Bit stream of {len(payload)} bits ends inside a code"
            )
        return output


def compress(data: bytes, compact: bool = False) -> bytes:
    """Compress ``data`` into a serialized artifact.

    Total for every input: there is no failure mode short of counts that do
    not fit in 64 bits.

    :param data: Input bytes.
    :type data: bytes
    :param bool compact: Store the frequency table in its compact form.
    :returns: Serialized artifact.
    :rtype: bytes
    """
    return Encoder(compact=compact).compress(data)


def decompress(data: bytes, strategy: str = "walk") -> bytes:
    """Reconstruct the original bytes from a serialized artifact.

    :param data: Serialized artifact.
    :type data: bytes
    :param str strategy: ``"walk"`` or ``"lookup"``.
    :returns: Original bytes.
    :rtype: bytes
    :raises CorruptArtifactError: Or one of its subclasses when the artifact
        is malformed; nothing is returned in that case.
    """
    return Decoder(strategy=strategy).decompress(data)


__all__ = [
    "CompressedArtifact",
    "Decoder",
    "Encoder",
    "compress",
    "decompress",
]
