class BitInputStream:
    """
    MSB-first bit source over packed bytes.

    The last pad_bits bits of the final byte are filler and are never
    returned.
    """

    def __init__(self, data: bytes, pad_bits: int = 0):
        if not 0 <= pad_bits <= 7:
            raise ValueError(f"pad_bits must be in 0..7, got {pad_bits}")
        if pad_bits and not data:
            raise ValueError("pad_bits given for empty data")
        self.data = bytes(data)
        self.total_bits = len(self.data) * 8 - pad_bits
        self.pos = 0  # index of the next bit

    @classmethod
    def from_bitstring(cls, bits: str) -> "BitInputStream":
        """Build a source from text such as "0 10 11 0"; whitespace is ignored."""
        out = BitOutputStream()
        for ch in bits:
            if ch.isspace():
                continue
            out.write_bit(ch)
        packed, pad_bits = out.finish()
        return cls(packed, pad_bits)

    def has_next_bit(self) -> bool:
        return self.pos < self.total_bits

    def next_bit(self) -> int:
        if self.pos >= self.total_bits:
            raise EOFError("Unexpected end of bitstream")
        byte = self.data[self.pos >> 3]
        bit = (byte >> (7 - (self.pos & 7))) & 1
        self.pos += 1
        return bit

    def __iter__(self):
        while self.has_next_bit():
            yield self.next_bit()

    def __len__(self):
        return self.total_bits - self.pos  # bits still to be read


class BitOutputStream:
    def __init__(self):
        self._buf = bytearray()
        self._cur = 0
        self._nbits = 0  # bits currently in _cur (0..7)

    def write_bit(self, bit) -> None:
        if bit in (0, "0"):
            bit = 0
        elif bit in (1, "1"):
            bit = 1
        else:
            raise ValueError(f"invalid bit {bit!r}")
        self._cur = (self._cur << 1) | bit
        self._nbits += 1
        if self._nbits == 8:
            self._buf.append(self._cur)
            self._cur = 0
            self._nbits = 0

    def write_code(self, code: str) -> None:
        """Write a code given as a string of '0'/'1' characters."""
        for ch in code:
            self.write_bit(ch)

    def finish(self):
        """Pad remaining bits with zeros. Returns (packed_bytes, pad_bits)."""
        pad_bits = 0
        if self._nbits > 0:
            pad_bits = 8 - self._nbits
            self._buf.append((self._cur << pad_bits) & 0xFF)
            self._cur = 0
            self._nbits = 0
        return bytes(self._buf), pad_bits
