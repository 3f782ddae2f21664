import random

import pytest

from bitops import BitSequence
from frequency import FrequencyTable
from huffman import HuffmanTree, Internal, Leaf, visit


def test_build_empty_table():
    tree = HuffmanTree.build(FrequencyTable())
    assert tree.is_empty
    assert tree.code_map() == {}
    assert tree.leaves() == []


def test_build_single_symbol_gets_one_bit_code():
    tree = HuffmanTree.build(FrequencyTable.from_dict({65: 10}))
    assert tree.root == Leaf(65, 10)
    assert tree.code_map() == {65: BitSequence.from_string("0")}


def test_weighted_example_code_lengths():
    table = FrequencyTable.build(b"a" * 20 + b"b" * 5 + b"c" * 5)
    tree = HuffmanTree.build(table)
    assert tree.code_lengths() == {ord("a"): 1, ord("b"): 2, ord("c"): 2}

    codes = {chr(k): str(v) for k, v in tree.code_map().items()}
    assert codes == {"a": "1", "b": "00", "c": "01"}


def test_internal_weight_is_sum_of_children():
    table = FrequencyTable.build(b"abracadabra")
    tree = HuffmanTree.build(table)

    def check(node):
        if isinstance(node, Internal):
            assert node.weight == node.left.weight + node.right.weight
            check(node.left)
            check(node.right)

    check(tree.root)
    assert tree.root.weight == table.total()


def test_ties_prefer_smaller_byte_value():
    tree = HuffmanTree.build(FrequencyTable.from_dict({9: 1, 3: 1, 5: 1}))
    # 3 and 5 merge first; 9 is then lighter than the pair.
    assert tree.root.left == Leaf(9, 1)
    assert tree.root.right == Internal(Leaf(3, 1), Leaf(5, 1))


@pytest.mark.parametrize(
    "counts, left_is_leaf",
    [
        ({0: 2, 1: 1, 2: 1}, True),
        ({9: 2, 5: 1, 6: 1}, False),
    ],
)
def test_ties_between_leaf_and_internal_use_min_value(counts, left_is_leaf):
    tree = HuffmanTree.build(FrequencyTable.from_dict(counts))
    assert isinstance(tree.root.left, Leaf) is left_is_leaf
    assert tree.root.left.weight == tree.root.right.weight == 2


def test_build_is_deterministic_regardless_of_entry_order():
    counts = {value: 1 + (value % 4) for value in range(40)}
    items = list(counts.items())
    rng = random.Random(1234)
    reference = HuffmanTree.build(FrequencyTable.from_dict(counts))
    for _ in range(5):
        rng.shuffle(items)
        tree = HuffmanTree.build(FrequencyTable.from_dict(dict(items)))
        assert tree == reference
        assert tree.code_map() == reference.code_map()


def test_rebuild_from_serialized_table_is_identical():
    table = FrequencyTable.build(b"mississippi river banks")
    restored = FrequencyTable.deserialize(table.to_bytes())
    assert HuffmanTree.build(restored) == HuffmanTree.build(table)


def test_visit_calls_visitor_once_per_leaf():
    table = FrequencyTable.build(bytes(range(256)))
    tree = HuffmanTree.build(table)
    seen = []
    visit(tree.root, BitSequence(), lambda leaf, path: seen.append(leaf.value))
    assert sorted(seen) == list(range(256))


def test_visit_paths_follow_left_zero_right_one():
    root = Internal(Leaf(1, 1), Internal(Leaf(2, 1), Leaf(3, 1)))
    paths = {}
    visit(root, BitSequence(), lambda leaf, p: paths.update({leaf.value: str(p)}))
    assert paths == {1: "0", 2: "10", 3: "11"}


def test_codes_are_prefix_free():
    tree = HuffmanTree.build(FrequencyTable.build(b"prefix free codes only"))
    codes = [str(code) for code in tree.code_map().values()]
    for a in codes:
        for b in codes:
            if a != b:
                assert not b.startswith(a)


def test_decoding_map_inverts_code_map():
    tree = HuffmanTree.build(FrequencyTable.build(b"hello world"))
    codes = tree.code_map()
    decoding = tree.decoding_map()
    assert {v: k for k, v in decoding.items()} == codes


def test_visit_rejects_foreign_nodes():
    with pytest.raises(TypeError):
        visit("not a node", BitSequence(), lambda leaf, path: None)
