"""Decompressors for PalmDOC (LZ77) and HUFF/CDIC compressed text records."""

from __future__ import annotations

from dataclasses import dataclass, field

from .buffer import Buffer, BufferEndError, DataCorruptError

HUFFMAN_MAXDEPTH = 20
"""Maximal recursion level for huffman decompression."""

HUFF_CODETABLE_SIZE = 33
"""Size of the mincode and maxcode tables."""

_UINT32 = 0xFFFFFFFF


@dataclass
class HuffCdic:
    """Data parsed from HUFF and CDIC records, needed to unpack huffman text."""

    index_count: int = 0
    code_length: int = 0
    table1: list[int] = field(default_factory=lambda: [0] * 256)
    mincode_table: list[int] = field(default_factory=lambda: [0] * HUFF_CODETABLE_SIZE)
    maxcode_table: list[int] = field(default_factory=lambda: [0] * HUFF_CODETABLE_SIZE)
    symbol_offsets: list[int] = field(default_factory=list)
    symbols: list[bytes] = field(default_factory=list)


def decompress_lz77(data: bytes, max_length: int) -> bytes:
    """Unpack PalmDOC LZ77 data into at most ``max_length`` bytes.

    Raises :class:`BufferEndError` when the input is truncated, a back
    reference points outside the output, or the output would overflow.
    """
    source = Buffer(bytes(data))
    out = Buffer(max_length)
    while source.offset < source.maxlen:
        byte = source.get8()
        if byte >= 0xC0:
            # byte pair: space + character
            out.add8(ord(" "))
            out.add8(byte ^ 0x80)
        elif byte >= 0x80:
            # 0x8000 + (distance << 3) + ((length - 3) & 0x07)
            following = source.get8()
            distance = (((byte << 8) | following) >> 3) & 0x7FF
            length = (following & 0x7) + 3
            for _ in range(length):
                out.move(-distance, 1)
        elif byte >= 0x09:
            out.add8(byte)
        elif byte >= 0x01:
            out.copy_from(source, byte)
        else:
            out.add8(byte)
    return out.getvalue()


def _fill64(data: bytes, pos: int) -> int:
    """Read at most 8 bytes at ``pos`` big-endian, padding with zeros."""
    chunk = data[pos : pos + 8] if pos < len(data) else b""
    return int.from_bytes(chunk.ljust(8, b"\0"), "big")


def _symbol_entry(huffcdic: HuffCdic, cdic_index: int, offset: int) -> tuple[bytes, int]:
    try:
        symbols = huffcdic.symbols[cdic_index]
    except IndexError:
        raise DataCorruptError(f"missing CDIC record: {cdic_index}") from None
    if offset + 2 > len(symbols):
        raise DataCorruptError(f"symbol offset beyond CDIC data: {offset}")
    header = (symbols[offset] << 8) | symbols[offset + 1]
    return symbols, header


def _decompress_huffman(out: Buffer, data: bytes, huffcdic: HuffCdic, depth: int) -> None:
    if depth > HUFFMAN_MAXDEPTH:
        raise DataCorruptError(f"too many levels of recursion: {depth}")
    bitcount = 32
    bitsleft = len(data) * 8
    pos = 0
    buffer = _fill64(data, pos)
    pos += 4  # consecutive reads overlap by 4 bytes
    while True:
        if bitcount <= 0:
            bitcount += 32
            buffer = _fill64(data, pos)
            pos += 4
        code = (buffer >> bitcount) & _UINT32
        t1 = huffcdic.table1[code >> 24]
        code_length = t1 & 0x1F
        maxcode = ((((t1 >> 8) + 1) << (32 - code_length)) - 1) & _UINT32
        if not t1 & 0x80:
            while code < huffcdic.mincode_table[code_length]:
                code_length += 1
                if code_length >= HUFF_CODETABLE_SIZE:
                    raise DataCorruptError(f"wrong offset to mincode table: {code_length}")
            maxcode = huffcdic.maxcode_table[code_length]
        if code_length == 0:
            raise DataCorruptError("zero code length in huffman table")
        bitcount -= code_length
        bitsleft -= code_length
        if bitsleft < 0:
            break
        index = ((maxcode - code) & _UINT32) >> (32 - code_length)
        cdic_index = (index >> huffcdic.code_length) & 0xFFFF
        if index >= huffcdic.index_count or index >= len(huffcdic.symbol_offsets):
            raise DataCorruptError(f"wrong symbol offsets index: {index}")
        offset = huffcdic.symbol_offsets[index]
        symbols, header = _symbol_entry(huffcdic, cdic_index, offset)
        is_decompressed = header >> 15
        symbol_length = header & 0x7FFF
        symbol = symbols[offset + 2 : offset + 2 + symbol_length]
        if len(symbol) != symbol_length:
            raise DataCorruptError("symbol extends beyond CDIC data")
        if is_decompressed:
            out.add_raw(symbol)
        else:
            _decompress_huffman(out, symbol, huffcdic, depth + 1)


def decompress_huffman(data: bytes, huffcdic: HuffCdic, max_length: int) -> bytes:
    """Unpack HUFF/CDIC compressed ``data`` into at most ``max_length`` bytes.

    Raises :class:`DataCorruptError` on malformed tables or symbols and
    :class:`BufferEndError` when the output would overflow.
    """
    out = Buffer(max_length)
    _decompress_huffman(out, bytes(data), huffcdic, 0)
    return out.getvalue()


__all__ = [
    "HUFFMAN_MAXDEPTH",
    "HUFF_CODETABLE_SIZE",
    "BufferEndError",
    "DataCorruptError",
    "HuffCdic",
    "decompress_huffman",
    "decompress_lz77",
]