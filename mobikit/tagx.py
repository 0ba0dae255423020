"""Parsing of the TAGX and IDXT sections of INDX records."""

from __future__ import annotations

from dataclasses import dataclass, field

from .buffer import Buffer, DataCorruptError

TAGX_MAGIC = b"TAGX"
IDXT_MAGIC = b"IDXT"

_TAGX_HEADER_LEN = 12


@dataclass
class TagxTag:
    """One TAGX entry describing how a tag is stored in index entries."""

    tag: int
    values_count: int
    bitmask: int
    control_byte: int


@dataclass
class Tagx:
    """Parsed TAGX section."""

    tags: list[TagxTag] = field(default_factory=list)
    control_byte_count: int = 0


def parse_tagx(buf: Buffer) -> Tagx:
    """Parse the TAGX section starting at the buffer cursor."""
    buf.seek(4)
    record_length = buf.get32()
    if record_length < _TAGX_HEADER_LEN:
        raise DataCorruptError(f"INDX record too short: {record_length}")
    control_byte_count = buf.get32()
    record_length -= _TAGX_HEADER_LEN
    if record_length + buf.offset > buf.maxlen:
        raise DataCorruptError(f"INDX record too long: {record_length}")
    tags = []
    for _ in range(record_length // 4):
        tag, values_count, bitmask, control_byte = buf.get_raw(4)
        tags.append(TagxTag(tag, values_count, bitmask, control_byte))
    found = sum(1 for tag in tags if tag.control_byte)
    if found != control_byte_count:
        raise DataCorruptError(
            f"wrong count of control bytes: {control_byte_count} != {found}"
        )
    return Tagx(tags=tags, control_byte_count=control_byte_count)


def parse_idxt(buf: Buffer, entries_count: int) -> list[int]:
    """Parse the IDXT section at the cursor.

    Returns ``entries_count`` entry offsets followed by the IDXT offset,
    which marks the end of the last entry.
    """
    idxt_offset = buf.offset
    if not buf.match_magic(IDXT_MAGIC):
        raise DataCorruptError("IDXT wrong magic")
    buf.seek(len(IDXT_MAGIC))
    offsets = [buf.get16() for _ in range(entries_count)]
    offsets.append(idxt_offset)
    return offsets


__all__ = ["IDXT_MAGIC", "TAGX_MAGIC", "Tagx", "TagxTag", "parse_idxt", "parse_tagx"]