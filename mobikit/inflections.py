"""CNCX strings and decoding of compiled inflection rules."""

from __future__ import annotations

from .buffer import Buffer, DataCorruptError
from .indx import INDX_TAGARR_INFL_PARTS_V1, Index

INDX_INFLBUF_SIZEMAX = 500
"""Maximal size of a buffer holding an inflected form."""

INDX_INFLSTRINGS_MAX = 500
"""Maximal number of inflected strings."""

_INSERT = "i"
_DELETE = "d"
_LEFT = "<"
_RIGHT = ">"


def cncx_string(cncx: bytes, offset: int) -> bytes:
    """Read a length-prefixed string at ``offset`` of a CNCX record."""
    buf = Buffer(bytes(cncx))
    buf.set_pos(offset)
    length, _ = buf.get_varlen()
    return buf.get_string(length)


def cncx_string_flat(cncx: bytes, offset: int, length: int) -> bytes:
    """Read a string of ``length`` bytes at ``offset`` of a CNCX record."""
    buf = Buffer(bytes(cncx))
    buf.set_pos(offset)
    return buf.get_string(length)


def cncx_string_utf8(cncx: bytes, offset: int, cp1252: bool) -> bytes:
    """Read a CNCX string and return it UTF-8 encoded.

    When ``cp1252`` is true the stored string is converted from CP-1252.
    """
    string = cncx_string(cncx, offset)
    if cp1252:
        return string.decode("cp1252", errors="replace").encode("utf-8")
    return string


def decode_infl(decoded: bytes, rule: bytes) -> bytes:
    """Apply a compiled inflection ``rule`` to a base form and return the result.

    Rule bytes 1-4 switch between inserting and deleting on the left or right
    end, bytes 11-19 move the position back, and other bytes are characters to
    insert or delete. A zero byte ends the rule.
    """
    out = bytearray(decoded)
    pos = len(out)
    mod = _INSERT
    direction: str | None = _LEFT
    for c in bytes(rule):
        if c == 0:
            break
        if c <= 4:
            mod = _INSERT if c <= 2 else _DELETE
            old_direction = direction
            direction = _LEFT if c & 2 else _RIGHT
            if old_direction is not None and old_direction != direction:
                pos = len(out) if c & 2 else 0
        elif 10 < c < 20:
            if direction == _RIGHT:
                pos = len(out)
            pos -= c - 10
            direction = None
        elif mod == _INSERT:
            tail = len(out) - pos
            if pos < 0 or tail < 0 or pos + 1 + tail > INDX_INFLBUF_SIZEMAX:
                raise DataCorruptError(f"out of buffer in {bytes(out)!r} at pos: {pos}")
            out.insert(pos, c)
            if direction == _RIGHT:
                pos += 1
        else:
            if direction == _LEFT:
                pos -= 1
            tail = len(out) - pos
            if pos < 0 or tail < 0 or pos + 1 + tail > INDX_INFLBUF_SIZEMAX:
                raise DataCorruptError(f"out of buffer in {bytes(out)!r} at pos: {pos}")
            if pos >= len(out) or out[pos] != c:
                raise DataCorruptError(f"character mismatch in {bytes(out)!r} at pos: {pos}")
            del out[pos]
    return bytes(out)


def infl_parts(
    index: Index, cncx: bytes | None, position: int
) -> list[tuple[bytes, bytes]]:
    """Return ``(base, inflected)`` pairs for entry ``position`` of an old-type infl index.

    Base forms are read from ``cncx``, or from the index's own CNCX record
    when ``cncx`` is None.
    """
    if cncx is None:
        cncx = index.cncx_record
    if cncx is None:
        raise DataCorruptError("missing CNCX record")
    entry = index.entries[position]
    pairs = []
    for tag in entry.tags:
        if tag.tagid != INDX_TAGARR_INFL_PARTS_V1:
            continue
        values = tag.values
        for length, offset in zip(values[0::2], values[1::2]):
            pairs.append((cncx_string_flat(cncx, offset, length), entry.label))
    return pairs


__all__ = [
    "INDX_INFLBUF_SIZEMAX",
    "INDX_INFLSTRINGS_MAX",
    "cncx_string",
    "cncx_string_flat",
    "cncx_string_utf8",
    "decode_infl",
    "infl_parts",
]