"""Reading of index entry labels, plain and ORDT encoded."""

from __future__ import annotations

from dataclasses import dataclass

from .buffer import Buffer, BufferEndError, DataCorruptError, ParamError

INDX_LABEL_SIZEMAX = 1000
"""Maximal size of an index label in bytes."""

ORDT_MAGIC = b"ORDT"

_REPLACEMENT = 0x3F
_UNI_REPLACEMENT = 0xFFFD
_SURROGATE_OFFSET = 0x35FDC00


@dataclass
class Ordt:
    """ORDT sections: a mapping of encoded label characters to UTF-16."""

    type: int = 0
    offsets_count: int = 0
    ordt1: list[int] | None = None
    ordt2: list[int] | None = None

    def lookup(self, offset: int) -> int:
        """Return the UTF-16 value for ``offset``, or ``offset`` itself if unmapped."""
        if self.ordt2 is not None and offset < min(self.offsets_count, len(self.ordt2)):
            return self.ordt2[offset]
        return offset

    def _read(self, buf: Buffer) -> tuple[int, int]:
        if self.type == 1:
            return buf.get8(), 1
        return buf.get16(), 2


def read_label(buf: Buffer, length: int) -> bytes:
    """Read a plain label of ``length`` bytes; zero bytes become ``?``.

    The result is limited to :data:`INDX_LABEL_SIZEMAX` bytes.
    """
    if length < 0:
        raise ParamError(f"negative length: {length}")
    if buf.offset + length > buf.maxlen:
        raise BufferEndError("end of buffer while reading label")
    out = bytearray()
    while len(out) < min(length, INDX_LABEL_SIZEMAX):
        c = buf.get8()
        out.append(c or _REPLACEMENT)
    return bytes(out)


def parse_ordt(
    buf: Buffer, ordt_type: int, count: int, ordt1_pos: int, ordt2_pos: int
) -> Ordt:
    """Parse the ORDT1 and ORDT2 sections found at the given positions."""
    ordt = Ordt(type=ordt_type, offsets_count=count)
    if buf.match_magic_at(ORDT_MAGIC, ordt1_pos):
        buf.set_pos(ordt1_pos + len(ORDT_MAGIC))
        if count + buf.offset > buf.maxlen:
            raise DataCorruptError(f"ORDT1 section too long ({count})")
        ordt.ordt1 = [buf.get8() for _ in range(count)]
    if buf.match_magic_at(ORDT_MAGIC, ordt2_pos):
        buf.set_pos(ordt2_pos + len(ORDT_MAGIC))
        if 2 * count + buf.offset > buf.maxlen:
            raise DataCorruptError(f"ORDT2 section too long ({count})")
        ordt.ordt2 = [buf.get16() for _ in range(count)]
    return ordt


def _is_invalid(codepoint: int) -> bool:
    return (
        0xDC00 <= codepoint <= 0xDFFF
        or 0xFDD0 <= codepoint <= 0xFDEF
        or (codepoint & 0xFFFE) == 0xFFFE
        or codepoint == 0
    )


def read_ordt_string(ordt: Ordt, buf: Buffer, length: int) -> bytes:
    """Read ``length`` bytes of ORDT encoded label and return it as UTF-8.

    Invalid code points and unpaired surrogates become U+FFFD; the result
    is kept below :data:`INDX_LABEL_SIZEMAX` bytes.
    """
    out = bytearray()
    consumed = 0
    while consumed < length:
        offset, size = ordt._read(buf)
        consumed += size
        codepoint = ordt.lookup(offset)
        if 0xD800 <= codepoint <= 0xDBFF:
            try:
                offset2, size2 = ordt._read(buf)
            except BufferEndError:
                codepoint = _UNI_REPLACEMENT
            else:
                low = ordt.lookup(offset2)
                if 0xDC00 <= low <= 0xDFFF:
                    consumed += size2
                    codepoint = (codepoint << 10) + low - _SURROGATE_OFFSET
                else:
                    buf.seek(-size2)
                    codepoint = _UNI_REPLACEMENT
        if _is_invalid(codepoint) or codepoint >= 0x110000:
            codepoint = _UNI_REPLACEMENT
        encoded = chr(codepoint).encode("utf-8")
        if len(out) + len(encoded) >= INDX_LABEL_SIZEMAX:
            break
        out.extend(encoded)
    return bytes(out)


__all__ = [
    "INDX_LABEL_SIZEMAX",
    "ORDT_MAGIC",
    "Ordt",
    "parse_ordt",
    "read_label",
    "read_ordt_string",
]