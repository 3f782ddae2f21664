import heapq
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from bitops import BitSequence
from frequency import FrequencyTable


@dataclass(frozen=True)
class Leaf:
    """Leaf of a Huffman tree: a byte value and its weight.

    :ivar value: Byte value, 0-255.
    :type value: int
    :ivar weight: Occurrence count of ``value``.
    :type weight: int
    """

    value: int
    weight: int

    @property
    def min_value(self) -> int:
        return self.value


@dataclass(frozen=True)
class Internal:
    """Internal node owning exactly two subtrees.

    ``weight`` is always the sum of the children's weights and
    ``min_value`` the smallest byte value found under this node; both are
    derived at construction time.

    :ivar left: Subtree reached with bit ``0``.
    :type left: Node
    :ivar right: Subtree reached with bit ``1``.
    :type right: Node
    """

    left: "Node"
    right: "Node"
    weight: int = field(init=False)
    min_value: int = field(init=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "weight", self.left.weight + self.right.weight)
        object.__setattr__(
            self, "min_value", min(self.left.min_value, self.right.min_value)
        )


Node = Union[Internal, Leaf]
Visitor = Callable[[Leaf, BitSequence], None]


def visit(node: Node, path: BitSequence, visitor: Visitor) -> None:
    """Depth-first walk calling ``visitor(leaf, path)`` once per leaf.

    Descending left appends ``0`` to the path, descending right appends
    ``1``. Each visitor call receives its own copy of the path.

    :param node: Subtree to walk.
    :type node: Node
    :param path: Bits leading from the root to ``node``.
    :type path: BitSequence
    :param visitor: Callback invoked for every leaf under ``node``.
    :type visitor: Callable[[Leaf, BitSequence], None]
    :returns: None
    :rtype: None
    """
    if isinstance(node, Leaf):
        visitor(node, path)
    elif isinstance(node, Internal):
        for bit, child in ((0, node.left), (1, node.right)):
            child_path = path.copy()
            child_path.append(bit)
            visit(child, child_path, visitor)
    else:
        raise TypeError(f"Not a Huffman node: {node!r}")


class HuffmanTree:
    """Huffman tree built deterministically from a :class:`FrequencyTable`.

    No tree structure is ever stored in an artifact; the encoder and the
    decoder both rebuild the tree from the frequency table, so building
    twice from equal tables must give identical trees. Ties between equal
    weights are broken by the smallest byte value each candidate contains.

    :ivar root: Root node, ``None`` for an empty table.
    :type root: Optional[Node]
    """

    def __init__(self, root: Optional[Node] = None):
        self.root = root

    @classmethod
    def build(cls, table: FrequencyTable) -> "HuffmanTree":
        """Build the tree with a min-heap merge.

        The two lightest nodes are popped, the first popped becomes the left
        child of a new internal node, the second the right child, and the
        result is pushed back until a single node remains.

        :param table: Frequencies to build from.
        :type table: FrequencyTable
        :returns: The tree; empty for an empty table, a lone leaf for a
            table with one entry.
        :rtype: HuffmanTree
        """
        # Keys are unique: subtrees in the heap never share a byte value.
        heap: List[Tuple[int, int, Node]] = [
            (entry.count, entry.value, Leaf(entry.value, entry.count))
            for entry in table
        ]
        if not heap:
            return cls()
        heapq.heapify(heap)

        while len(heap) > 1:
            _, _, left = heapq.heappop(heap)
            _, _, right = heapq.heappop(heap)
            merged = Internal(left, right)
            heapq.heappush(heap, (merged.weight, merged.min_value, merged))

        return cls(heap[0][2])

    @property
    def is_empty(self) -> bool:
        return self.root is None

    def walk(self, visitor: Visitor) -> None:
        """Call ``visitor(leaf, path)`` for every leaf of the tree.

        A tree made of a single leaf has no root-to-leaf path, so that leaf
        is presented with the one-bit path ``0``.
        """
        if self.root is None:
            return
        path = BitSequence()
        if isinstance(self.root, Leaf):
            path.append(0)
        visit(self.root, path, visitor)

    def code_map(self) -> Dict[int, BitSequence]:
        """Map every byte value in the tree to its code.

        :returns: Byte value -> root-to-leaf path.
        :rtype: Dict[int, BitSequence]
        """
        codes: Dict[int, BitSequence] = {}

        def collect(leaf: Leaf, path: BitSequence) -> None:
            codes[leaf.value] = path

        self.walk(collect)
        return codes

    def decoding_map(self) -> Dict[BitSequence, int]:
        """Inverse of :meth:`code_map`: code -> byte value."""
        table: Dict[BitSequence, int] = {}

        def collect(leaf: Leaf, path: BitSequence) -> None:
            table[path] = leaf.value

        self.walk(collect)
        return table

    def code_lengths(self) -> Dict[int, int]:
        """Map every byte value to the length of its code in bits."""
        return {value: len(code) for value, code in self.code_map().items()}

    def leaves(self) -> List[Leaf]:
        """Leaves in left-to-right order."""
        found: List[Leaf] = []
        self.walk(lambda leaf, _path: found.append(leaf))
        return found

    def __eq__(self, other) -> bool:
        if not isinstance(other, HuffmanTree):
            return NotImplemented
        return self.root == other.root

    def __repr__(self) -> str:
        return f"HuffmanTree({self.root!r})"
