import io
import random

import pytest

import huffman as huff
from bitio import BitInputStream


def bits(s):
    return [int(ch) for ch in s if not ch.isspace()]


@pytest.fixture
def abc_tree():
    return huff.build_tree_from_table([(0, "0"), (1, "10"), (2, "11")])


# Building from frequencies

@pytest.mark.parametrize("counts", [{}, {65: 0}, {1: 0, 2: -4}, [0, 0, 0], [-1]])
def test_no_positive_counts_gives_empty_tree(counts):
    root = huff.build_huffman_tree(counts)
    assert root is None
    assert huff.serialize_tree(root) == []


def test_single_symbol_gets_empty_code():
    root = huff.build_huffman_tree({65: 3, 66: 0})
    assert root.is_leaf()
    assert huff.serialize_tree(root) == [(65, "")]
    assert huff.huffman_decode(bits("1 0 1 1"), root) == b"AAAA"


def test_greedy_merges_lowest_weights_first():
    # A:5 B:2 C:1 D:1
    freqs = {0: 5, 1: 2, 2: 1, 3: 1}
    root = huff.build_huffman_tree(freqs)
    assert huff.serialize_tree(root) == [(1, "00"), (2, "010"), (3, "011"), (0, "1")]
    # C and D are siblings under the weight-2 node
    cd = root.left.right
    assert (cd.left.symbol, cd.right.symbol, cd.weight) == (2, 3, 2)
    assert huff.weighted_code_length(root, freqs) == 15


def test_ties_dequeue_in_arrival_order():
    root = huff.build_huffman_tree({7: 1, 3: 1})
    assert (root.left.symbol, root.right.symbol) == (7, 3)
    assert huff.build_huffman_tree({3: 1, 7: 1}).left.symbol == 3


def test_list_frequencies_are_indexed_by_symbol():
    root = huff.build_huffman_tree([0, 4, 0, 1])
    assert huff.generate_huffman_codes(root) == {3: "0", 1: "1"}


def test_codes_are_prefix_free():
    rng = random.Random(7)
    freqs = {s: rng.randint(0, 50) for s in range(256)}
    codes = list(huff.generate_huffman_codes(huff.build_huffman_tree(freqs)).values())
    assert len(codes) == sum(1 for c in freqs.values() if c > 0)
    for a in codes:
        for b in codes:
            if a is not b:
                assert not b.startswith(a)


def test_internal_nodes_have_two_children():
    root = huff.build_huffman_tree({s: s + 1 for s in range(20)})
    stack = [root]
    while stack:
        node = stack.pop()
        if not node.is_leaf():
            assert node.left is not None and node.right is not None
            assert node.symbol is None
            stack += [node.left, node.right]


# Building from a saved table

def test_table_restores_decoding_behavior():
    for seed in range(5):
        rng = random.Random(seed)
        freqs = {s: rng.randint(1, 100) for s in rng.sample(range(256), rng.randint(2, 60))}
        original = huff.build_huffman_tree(freqs)
        table = huff.serialize_tree(original)
        restored = huff.build_tree_from_table(table)
        assert sorted(huff.serialize_tree(restored)) == sorted(table)
        for symbol, code in table:
            assert list(huff.decode_symbols(code, restored)) == [symbol]
            assert list(huff.decode_symbols(code, original)) == [symbol]


def test_table_order_does_not_matter():
    table = [(2, "11"), (0, "0"), (1, "10")]
    root = huff.build_tree_from_table(table)
    assert huff.serialize_tree(root) == [(0, "0"), (1, "10"), (2, "11")]


def test_one_child_nodes_allowed_until_table_is_complete():
    root = huff.build_tree_from_table([(0, "00"), (2, "1"), (1, "01")])
    assert huff.generate_huffman_codes(root) == {0: "00", 1: "01", 2: "1"}


def test_empty_code_is_root_leaf():
    root = huff.build_tree_from_table([(9, "")])
    assert root.is_leaf() and root.symbol == 9


def test_empty_table_gives_empty_tree():
    assert huff.build_tree_from_table([]) is None


@pytest.mark.parametrize("table, message", [
    ([(0, "0"), (1, "01"), (2, "1")], "extends"),
    ([(1, "01"), (0, "0"), (2, "1")], "prefix"),
    ([(0, "0"), (1, "0"), (2, "1")], "reuses"),
    ([(0, "0"), (0, "1")], "more than once"),
    ([(0, "0"), (1, "12")], "invalid character"),
    ([(-1, "0"), (1, "1")], "negative"),
    ([(0, ""), (1, "1")], "extends"),
    ([(0, "0")], "incomplete"),
    ([(0, "00"), (1, "01")], "'1'"),
])
def test_malformed_tables_are_rejected(table, message):
    with pytest.raises(huff.CodeTableError, match=message):
        huff.build_tree_from_table(table)


# Text format

def test_write_code_table_format():
    root = huff.build_huffman_tree({0: 5, 1: 2, 2: 1, 3: 1})
    out = io.StringIO()
    huff.write_code_table(root, out)
    assert out.getvalue() == "1\n00\n2\n010\n3\n011\n0\n1\n"


def test_write_empty_tree_writes_nothing():
    out = io.StringIO()
    huff.write_code_table(None, out)
    assert out.getvalue() == ""


def test_text_table_round_trip():
    root = huff.build_huffman_tree({ord(c): n for c, n in zip("etaoin ", [12, 9, 8, 7, 7, 6, 15])})
    out = io.StringIO()
    huff.write_code_table(root, out)
    restored = huff.load_code_table(io.StringIO(out.getvalue()))
    assert huff.serialize_tree(restored) == huff.serialize_tree(root)


def test_read_single_symbol_table():
    assert huff.read_code_table(io.StringIO("65\n\n")) == [(65, "")]
    assert huff.read_code_table(["65\r\n", "\r\n"]) == [(65, "")]


@pytest.mark.parametrize("text, message", [
    ("x\n0\n", "line 1: expected a symbol"),
    ("65\n0\n\n1\n", "line 3: expected a symbol"),
    ("65\n0a\n", "line 2: invalid code"),
    ("-3\n0\n", "line 1: negative"),
    ("65\n0\n66\n", "line 3: symbol 66 has no code line"),
])
def test_read_malformed_text(text, message):
    with pytest.raises(huff.CodeTableError, match=message):
        huff.read_code_table(io.StringIO(text))


def test_code_table_error_is_value_error():
    with pytest.raises(ValueError):
        huff.load_code_table(["a", "0"])


# Decoding

def test_decode_example(abc_tree):
    assert list(huff.decode_symbols(bits("0 10 11 0"), abc_tree)) == [0, 1, 2, 0]


def test_decode_from_bit_stream_source(abc_tree):
    source = BitInputStream.from_bitstring("0 10 11 0")
    assert huff.huffman_decode(source, abc_tree) == bytes([0, 1, 2, 0])


def test_decode_accepts_characters(abc_tree):
    assert huff.huffman_decode("01011", abc_tree) == bytes([0, 1, 2])


def test_truncated_stream_is_an_error(abc_tree):
    with pytest.raises(huff.TruncatedStreamError):
        list(huff.decode_symbols([1], abc_tree))


def test_truncation_after_symbols_still_raises(abc_tree):
    emitted = []
    with pytest.raises(huff.TruncatedStreamError):
        for symbol in huff.decode_symbols(bits("0 10 1"), abc_tree):
            emitted.append(symbol)
    assert emitted == [0, 1]


def test_invalid_bit_value(abc_tree):
    with pytest.raises(huff.BitstreamError):
        huff.huffman_decode([0, 2], abc_tree)


def test_empty_tree_rejects_bits():
    assert huff.huffman_decode([], None) == b""
    with pytest.raises(huff.BitstreamError):
        huff.huffman_decode([0], None)


def test_decode_with_no_bits(abc_tree):
    assert huff.huffman_decode(BitInputStream(b""), abc_tree) == b""


def test_translate_writes_one_byte_per_symbol():
    root = huff.build_tree_from_table([(ord("a"), "0"), (ord("b"), "10"), (ord("c"), "11")])
    out = io.BytesIO()
    assert huff.translate(BitInputStream.from_bitstring("0 10 11 0 0"), root, out) == 5
    assert out.getvalue() == b"abcaa"


def test_long_stream_decodes_without_recursion():
    root = huff.build_huffman_tree({0: 1, 1: 1})
    stream = [0, 1] * 50_000
    assert huff.huffman_decode(stream, root) == bytes([0, 1]) * 50_000
