"""Parsing of INDX index records into index entries with tags."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .buffer import Buffer, BufferEndError, DataCorruptError
from .labels import Ordt, parse_ordt, read_label, read_ordt_string
from .tagx import TAGX_MAGIC, Tagx, parse_idxt, parse_tagx

INDX_MAGIC = b"INDX"
LIGT_MAGIC = b"LIGT"

MOBI_CP1252 = 1252
_NOTSET = 0xFFFFFFFF

ORDT_RECORD_MAXCNT = 256
CNCX_RECORD_MAXCNT = 0xF
INDX_RECORD_MAXCNT = 10000
INDX_TOTAL_MAXCNT = INDX_RECORD_MAXCNT * 0xFFFF
INDX_NAME_SIZEMAX = 0xFF
INDX_TAGVALUES_MAX = 100

INDX_TAG_GUIDE_TITLE_CNCX = (1, 0)
INDX_TAG_NCX_FILEPOS = (1, 0)
INDX_TAG_NCX_TEXT_CNCX = (3, 0)
INDX_TAG_NCX_LEVEL = (4, 0)
INDX_TAG_NCX_KIND_CNCX = (5, 0)
INDX_TAG_NCX_POSFID = (6, 0)
INDX_TAG_NCX_POSOFF = (6, 1)
INDX_TAG_NCX_PARENT = (21, 0)
INDX_TAG_NCX_CHILD_START = (22, 0)
INDX_TAG_NCX_CHILD_END = (23, 0)
INDX_TAG_SKEL_COUNT = (1, 0)
INDX_TAG_SKEL_POSITION = (6, 0)
INDX_TAG_SKEL_LENGTH = (6, 1)
INDX_TAG_FRAG_AID_CNCX = (2, 0)
INDX_TAG_FRAG_FILE_NR = (3, 0)
INDX_TAG_FRAG_SEQUENCE_NR = (4, 0)
INDX_TAG_FRAG_POSITION = (6, 0)
INDX_TAG_FRAG_LENGTH = (6, 1)
INDX_TAG_ORTH_POSITION = (1, 0)
INDX_TAG_ORTH_LENGTH = (2, 0)

INDX_TAGARR_ORTH_INFL = 42
INDX_TAGARR_INFL_GROUPS = 5
INDX_TAGARR_INFL_PARTS_V2 = 26
INDX_TAGARR_INFL_PARTS_V1 = 7


@dataclass
class IndexTag:
    """A tag of an index entry with its values."""

    tagid: int
    values: list[int] = field(default_factory=list)


@dataclass
class IndexEntry:
    """One index entry: a label and its tags."""

    label: bytes
    tags: list[IndexTag] = field(default_factory=list)

    def tag_value(self, tagid: int, tagindex: int) -> int:
        """Return value ``tagindex`` of the first tag ``tagid``.

        Raises :class:`DataCorruptError` if there is no such value.
        """
        for tag in self.tags:
            if tag.tagid == tagid:
                if tagindex < len(tag.values):
                    return tag.values[tagindex]
                break
        raise DataCorruptError(f"tag[{tagid}][{tagindex}] not found in entry {self.label!r}")

    def tag_values(self, tagid: int) -> list[int]:
        """Return all values of the first tag ``tagid``, or an empty list."""
        for tag in self.tags:
            if tag.tagid == tagid:
                return list(tag.values)
        return []

    def _optional(self, tag: tuple[int, int]) -> int | None:
        try:
            return self.tag_value(*tag)
        except DataCorruptError:
            return None

    def orth_offset(self) -> int | None:
        """Start position of an orth entry, or None if not present."""
        return self._optional(INDX_TAG_ORTH_POSITION)

    def orth_length(self) -> int | None:
        """Text length of an orth entry, or None if not present."""
        return self._optional(INDX_TAG_ORTH_LENGTH)


@dataclass
class Index:
    """A parsed index: metadata from the first record and all entries."""

    entries: list[IndexEntry] = field(default_factory=list)
    type: int = 0
    encoding: int = 0
    records_count: int = 0
    total_entries_count: int = 0
    ordt_offset: int = 0
    ligt_offset: int = 0
    ligt_entries_count: int = 0
    cncx_records_count: int = 0
    orth_index_name: bytes | None = None
    cncx_record: bytes | None = None

    def has_tag(self, tagid: int) -> bool:
        """Tell whether any entry carries tag ``tagid``."""
        return any(tag.tagid == tagid for entry in self.entries for tag in entry.tags)


def _read_entry(buf: Buffer, entry_length: int, tagx: Tagx, ordt: Ordt) -> IndexEntry:
    label_length = buf.get8()
    if label_length > entry_length:
        raise DataCorruptError(f"label length too long: {label_length}")
    if ordt.ordt2 is not None:
        label = read_ordt_string(ordt, buf, label_length)
    else:
        label = read_label(buf, label_length)
    control_pos = buf.offset
    buf.seek(tagx.control_byte_count)
    pending = []
    for tag in tagx.tags:
        if tag.control_byte == 1:
            control_pos += 1
            continue
        value = buf.data[control_pos] & tag.bitmask
        if not value:
            continue
        value_count: int | None
        value_bytes = 0
        if value == tag.bitmask:
            if bin(tag.bitmask).count("1") > 1:
                value_count = None
                value_bytes, _ = buf.get_varlen()
            else:
                value_count = 1
        else:
            mask = tag.bitmask
            while not mask & 1:
                mask >>= 1
                value >>= 1
            value_count = value
        pending.append((tag.tag, tag.values_count, value_count, value_bytes))
    tags = []
    for tagid, per_value, value_count, value_bytes in pending:
        values: list[int] = []
        if value_count is not None:
            for _ in range(min(value_count * per_value, INDX_TAGVALUES_MAX)):
                values.append(buf.get_varlen()[0])
        else:
            consumed = 0
            while consumed < value_bytes and len(values) < INDX_TAGVALUES_MAX:
                value, size = buf.get_varlen()
                consumed += size
                values.append(value)
        tags.append(IndexTag(tagid, values))
    return IndexEntry(label, tags)


def _parse_entry(
    index: Index, offsets: list[int], tagx: Tagx, ordt: Ordt, buf: Buffer, number: int
) -> None:
    entry_number = len(index.entries)
    if entry_number >= index.total_entries_count:
        raise DataCorruptError(f"entry number beyond array: {entry_number}")
    start = offsets[number]
    entry_length = offsets[number + 1] - start
    if entry_length < 0 or start + entry_length >= buf.maxlen:
        raise DataCorruptError(f"entry length too long: {entry_length}")
    buf.set_pos(start)
    saved_maxlen = buf.maxlen
    buf.maxlen = start + entry_length
    try:
        entry = _read_entry(buf, entry_length, tagx, ordt)
    except BufferEndError as exc:
        raise DataCorruptError(f"index entry {entry_number} truncated") from exc
    finally:
        buf.maxlen = saved_maxlen
    index.entries.append(entry)


def _parse_meta(
    buf: Buffer, record_size: int, header_length: int, index_type: int,
    entries_count: int, index: Index,
) -> tuple[Tagx, Ordt | None]:
    buf.maxlen = header_length
    encoding = buf.get32()
    if encoding == _NOTSET:
        encoding = MOBI_CP1252
    buf.seek(4)
    total_entries_count = buf.get32()
    if total_entries_count > INDX_TOTAL_MAXCNT:
        raise DataCorruptError(f"too many total index entries ({total_entries_count})")
    ordt_offset = buf.get32()
    if ordt_offset + ORDT_RECORD_MAXCNT + 4 > record_size:
        ordt_offset = 0
    ligt_offset = buf.get32()
    ligt_entries_count = buf.get32()
    if ligt_offset + 4 * ligt_entries_count + 4 > record_size:
        ligt_offset = 0
        ligt_entries_count = 0
    cncx_records_count = buf.get32()
    if cncx_records_count > CNCX_RECORD_MAXCNT:
        raise DataCorruptError(f"too many CNCX records ({cncx_records_count})")
    ordt_type = ordt_entries_count = ordt1_offset = ordt2_offset = 0
    name_offset = name_length = 0
    if header_length >= 180:
        buf.set_pos(164)
        ordt_type = buf.get32()
        ordt_entries_count = buf.get32()
        ordt1_offset = buf.get32()
        ordt2_offset = buf.get32()
        entry_size = 1 if ordt_type == 0 else 2
        if (
            ordt1_offset + entry_size * ordt_entries_count > record_size
            or ordt2_offset + 2 * ordt_entries_count > record_size
        ):
            ordt1_offset = ordt2_offset = ordt_entries_count = 0
        if header_length >= 188:
            name_offset = buf.get32()
            name_length = buf.get32()
    buf.maxlen = record_size
    buf.set_pos(header_length)
    tagx = parse_tagx(buf)
    ordt = None
    if ordt_entries_count > 0:
        ordt = parse_ordt(buf, ordt_type, ordt_entries_count, ordt1_offset, ordt2_offset)
    if (
        name_offset > 0
        and 0 < name_length <= header_length - name_offset
        and name_length < INDX_NAME_SIZEMAX
    ):
        buf.set_pos(name_offset)
        index.orth_index_name = buf.get_string(name_length)
    index.encoding = encoding
    index.type = index_type
    index.records_count = entries_count
    index.total_entries_count = total_entries_count
    if ligt_entries_count != 0 and not buf.match_magic_at(LIGT_MAGIC, ligt_offset):
        ligt_offset = 0
        ligt_entries_count = 0
    index.ligt_offset = ligt_offset
    index.ligt_entries_count = ligt_entries_count
    index.ordt_offset = ordt_offset
    index.cncx_records_count = cncx_records_count
    return tagx, ordt


def parse_indx(
    record: bytes, index: Index, tagx: Tagx | None, ordt: Ordt | None
) -> tuple[Tagx | None, Ordt | None]:
    """Parse one INDX record into ``index``.

    The first record of an index holds the TAGX section (and optional ORDT
    sections); its metadata is stored in ``index`` and the parsed TAGX and
    ORDT are returned. Other records hold entries, which are appended to
    ``index.entries`` using the given ``tagx`` and ``ordt``; these are then
    returned unchanged.
    """
    data = bytes(record)
    buf = Buffer(data)
    try:
        magic = buf.get_raw(4)
        header_length = buf.get32()
    except BufferEndError as exc:
        raise DataCorruptError("INDX record too short") from exc
    if magic != INDX_MAGIC or header_length == 0 or header_length > len(data):
        raise DataCorruptError(f"INDX wrong magic: {magic!r} or header length: {header_length}")
    try:
        buf.seek(4)
        index_type = buf.get32()
        buf.seek(4)
        idxt_offset = buf.get32()
        entries_count = buf.get32()
    except BufferEndError as exc:
        raise DataCorruptError("INDX header truncated") from exc
    if entries_count > INDX_RECORD_MAXCNT:
        raise DataCorruptError(f"too many index entries ({entries_count})")
    if buf.match_magic_at(TAGX_MAGIC, header_length) and index.total_entries_count == 0:
        try:
            return _parse_meta(buf, len(data), header_length, index_type, entries_count, index)
        except BufferEndError as exc:
            raise DataCorruptError("INDX meta record truncated") from exc
    if idxt_offset == 0:
        raise DataCorruptError("missing IDXT offset")
    if idxt_offset + 2 * entries_count + 4 > len(data):
        raise DataCorruptError("IDXT entries beyond record end")
    buf.set_pos(idxt_offset)
    offsets = parse_idxt(buf, entries_count)
    entry_tagx = tagx if tagx is not None else Tagx()
    entry_ordt = ordt if ordt is not None else Ordt()
    for number in range(entries_count):
        _parse_entry(index, offsets, entry_tagx, entry_ordt, buf, number)
    return tagx, ordt


def parse_index(records: Sequence[bytes]) -> Index:
    """Parse a set of INDX records, starting with the meta record.

    The records following the entry records may hold CNCX data; the first
    of them is attached to the index when the meta record announces any.
    """
    if not records:
        raise DataCorruptError("missing INDX record")
    index = Index()
    tagx, ordt = parse_indx(records[0], index, None, None)
    for number in range(1, index.records_count + 1):
        if number >= len(records):
            raise DataCorruptError(f"missing INDX record {number}")
        tagx, ordt = parse_indx(records[number], index, tagx, ordt)
    if len(index.entries) != index.total_entries_count:
        raise DataCorruptError(
            f"entries count {len(index.entries)} != total entries count "
            f"{index.total_entries_count}"
        )
    if index.cncx_records_count:
        cncx_pos = index.records_count + 1
        index.cncx_record = bytes(records[cncx_pos]) if cncx_pos < len(records) else None
    return index


__all__ = [
    "INDX_MAGIC",
    "INDX_TAGARR_INFL_GROUPS",
    "INDX_TAGARR_INFL_PARTS_V1",
    "INDX_TAGARR_INFL_PARTS_V2",
    "INDX_TAGARR_ORTH_INFL",
    "INDX_TAGVALUES_MAX",
    "INDX_TAG_ORTH_LENGTH",
    "INDX_TAG_ORTH_POSITION",
    "Index",
    "IndexEntry",
    "IndexTag",
    "parse_index",
    "parse_indx",
]