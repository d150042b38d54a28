import heapq
from typing import Dict, Iterable, Iterator, List, Optional, Tuple


class HuffmanError(ValueError):
    """Base class for malformed code tables and compressed streams."""


class CodeTableError(HuffmanError):
    pass


class BitstreamError(HuffmanError):
    pass


class TruncatedStreamError(BitstreamError): # bit source ran out in the middle of a code
    pass


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol=None, weight=0, left=None, right=None):
        self.symbol = symbol    # int, or None on internal nodes
        self.weight = weight    # only used while building from frequencies
        self.left = left
        self.right = right

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode(symbol={self.symbol!r}, weight={self.weight})"
        return f"HuffmanNode(weight={self.weight}, left={self.left!r}, right={self.right!r})"


def _frequency_items(frequency_table):
    if hasattr(frequency_table, "items"):
        return frequency_table.items()
    return enumerate(frequency_table) # counts[i] is the count of symbol i


def build_huffman_tree(frequency_table) -> Optional[HuffmanNode]: # frequency_table: dict of symbol -> frequency, or a list indexed by symbol
    # (weight, arrival) keys make ties dequeue first-in-first-out
    priority_queue = []
    sequence = 0
    for symbol, frequency in _frequency_items(frequency_table):
        if frequency <= 0:
            continue
        priority_queue.append((frequency, sequence, HuffmanNode(symbol, frequency)))
        sequence += 1
    heapq.heapify(priority_queue)

    if not priority_queue:
        return None

    while len(priority_queue) > 1:
        _, _, left = heapq.heappop(priority_queue)
        _, _, right = heapq.heappop(priority_queue)
        merged_node = HuffmanNode(None, left.weight + right.weight, left, right)
        heapq.heappush(priority_queue, (merged_node.weight, sequence, merged_node))
        sequence += 1

    return priority_queue[0][2] # root of the tree


def build_tree_from_table(pairs: Iterable[Tuple[int, str]]) -> Optional[HuffmanNode]:
    """
    Rebuild a tree from (symbol, bit-string) pairs, in any order.

    Nodes with a single child are allowed while inserting; the finished tree
    must have a leaf or two children at every node.
    """
    root = HuffmanNode()
    seen = set()
    inserted = 0

    for symbol, code in pairs:
        if symbol < 0:
            raise CodeTableError(f"negative symbol {symbol}")
        if symbol in seen:
            raise CodeTableError(f"symbol {symbol} appears more than once")
        seen.add(symbol)

        node = root
        for position, bit in enumerate(code):
            if node.symbol is not None:
                raise CodeTableError(
                    f"code {code!r} for symbol {symbol} extends the code of symbol {node.symbol}")
            if bit == "0":
                if node.left is None:
                    node.left = HuffmanNode()
                node = node.left
            elif bit == "1":
                if node.right is None:
                    node.right = HuffmanNode()
                node = node.right
            else:
                raise CodeTableError(
                    f"invalid character {bit!r} at position {position} in code for symbol {symbol}")

        if node.symbol is not None:
            raise CodeTableError(f"symbol {symbol} reuses the code of symbol {node.symbol}")
        if not node.is_leaf():
            raise CodeTableError(f"code {code!r} for symbol {symbol} is a prefix of another code")
        node.symbol = symbol
        inserted += 1

    if inserted == 0:
        return None
    _check_complete(root)
    return root


def _check_complete(root: HuffmanNode) -> None:
    stack = [(root, "")]
    while stack:
        node, code = stack.pop()
        if node.is_leaf():
            continue # every leaf got a symbol during insertion
        if node.left is None or node.right is None:
            missing = "0" if node.left is None else "1"
            raise CodeTableError(f"incomplete code table: no code starts with {code + missing!r}")
        stack.append((node.right, code + "1"))
        stack.append((node.left, code + "0"))


def serialize_tree(root: Optional[HuffmanNode]) -> List[Tuple[int, str]]:
    # Depth-first, left before right; a lone root leaf gets the empty code
    table = []
    if root is None:
        return table
    stack = [(root, "")]
    while stack:
        node, code = stack.pop()
        if node.is_leaf():
            table.append((node.symbol, code))
        else:
            stack.append((node.right, code + "1"))
            stack.append((node.left, code + "0"))
    return table


def generate_huffman_codes(root) -> Dict[int, str]: # root: root of the Huffman tree
    return dict(serialize_tree(root)) # mapping of symbols to their Huffman codes


def weighted_code_length(root, frequency_table) -> int:
    codes = generate_huffman_codes(root)
    return sum(frequency * len(codes[symbol])
               for symbol, frequency in _frequency_items(frequency_table) if frequency > 0)


def write_code_table(root, output) -> None: # output: text stream
    for symbol, code in serialize_tree(root):
        output.write(f"{symbol}\n{code}\n")


def read_code_table(lines: Iterable[str]) -> List[Tuple[int, str]]:
    """
    Parse the saved table format: a decimal symbol line followed by a line
    of '0'/'1' characters, repeated until the end of input.
    """
    pairs = []
    symbol = None
    symbol_line = 0
    for line_number, line in enumerate(lines, 1):
        line = line.rstrip("\r\n")
        if symbol is None:
            try:
                symbol = int(line)
            except ValueError:
                raise CodeTableError(f"line {line_number}: expected a symbol, got {line!r}") from None
            if symbol < 0:
                raise CodeTableError(f"line {line_number}: negative symbol {symbol}")
            symbol_line = line_number
        else:
            bad = set(line) - {"0", "1"}
            if bad:
                raise CodeTableError(
                    f"line {line_number}: invalid code {line!r} for symbol {symbol}")
            pairs.append((symbol, line))
            symbol = None

    if symbol is not None:
        raise CodeTableError(f"line {symbol_line}: symbol {symbol} has no code line")
    return pairs


def load_code_table(lines: Iterable[str]) -> Optional[HuffmanNode]:
    return build_tree_from_table(read_code_table(lines))


_BIT_VALUES = {0: 0, 1: 1, "0": 0, "1": 1}


def _iter_bits(bit_source) -> Iterator[int]:
    if hasattr(bit_source, "has_next_bit"):
        while bit_source.has_next_bit():
            yield bit_source.next_bit()
    else:
        yield from bit_source


def decode_symbols(bit_source, root) -> Iterator[int]:
    """
    Walk the tree one bit at a time, yielding a symbol at each leaf and
    restarting from the root.

    bit_source is either an object with has_next_bit()/next_bit() or any
    iterable of 0/1 (ints, bools or '0'/'1' characters).
    """
    current_node = root
    mid_code = False
    for bit in _iter_bits(bit_source):
        value = _BIT_VALUES.get(bit)
        if value is None:
            raise BitstreamError(f"invalid bit {bit!r}")
        if root is None:
            raise BitstreamError("bits given but the code tree is empty")

        if root.is_leaf(): # one-symbol alphabet: every bit stands for the symbol
            yield root.symbol
            continue

        current_node = current_node.left if value == 0 else current_node.right
        if current_node is None:
            raise BitstreamError("bit sequence leaves the code tree")
        mid_code = True

        if current_node.is_leaf():
            yield current_node.symbol
            current_node = root # reset to the root for the next symbol
            mid_code = False

    if mid_code:
        raise TruncatedStreamError("bit stream ended in the middle of a code")


def huffman_decode(bit_source, root) -> bytes: # root: the Huffman tree
    return bytes(decode_symbols(bit_source, root))


def translate(bit_source, root, output) -> int: # output: binary stream, written one byte per symbol
    count = 0
    for symbol in decode_symbols(bit_source, root):
        output.write(bytes((symbol,)))
        count += 1
    return count
