import struct

import pytest

from mobikit.buffer import DataCorruptError
from mobikit.indx import Index, IndexEntry, IndexTag, parse_index, parse_indx

TAGS = [(1, 1, 0x01, 0), (2, 1, 0x02, 0), (0, 0, 0, 1)]
ENTRY_ABC = bytes([3]) + b"abc" + bytes([0x03, 0x85, 0x8A])
ENTRY_XY = bytes([2]) + b"xy" + bytes([0x01, 0x81])


def meta_record(records=1, total=2, encoding=65001, cncx=0, tags=TAGS,
                control_count=1, name=b"", ordt2=None):
    header_length = 192
    header = bytearray(header_length)
    header[0:4] = b"INDX"
    struct.pack_into(">I", header, 4, header_length)
    struct.pack_into(">I", header, 24, records)
    struct.pack_into(">I", header, 28, encoding)
    struct.pack_into(">I", header, 36, total)
    struct.pack_into(">I", header, 52, cncx)
    tagx = b"TAGX" + struct.pack(">II", 12 + 4 * len(tags), control_count)
    tagx += b"".join(bytes(tag) for tag in tags)
    if name:
        header[188:188 + len(name)] = name
        struct.pack_into(">II", header, 180, 188, len(name))
    tail = b""
    if ordt2 is not None:
        ordt_pos = header_length + len(tagx)
        struct.pack_into(">IIII", header, 164, 1, len(ordt2), 0, ordt_pos)
        tail = b"ORDT" + struct.pack(f">{len(ordt2)}H", *ordt2)
    return bytes(header) + tagx + tail


def data_record(entries):
    body = bytearray(28)
    body[0:4] = b"INDX"
    struct.pack_into(">I", body, 4, 28)
    offsets = []
    for entry in entries:
        offsets.append(len(body))
        body += entry
    idxt_offset = len(body)
    body += b"IDXT" + struct.pack(f">{len(offsets)}H", *offsets)
    struct.pack_into(">II", body, 20, idxt_offset, len(entries))
    return bytes(body)


def test_parse_index_entries_and_tags():
    index = parse_index([meta_record(), data_record([ENTRY_ABC, ENTRY_XY])])
    assert [entry.label for entry in index.entries] == [b"abc", b"xy"]
    assert index.entries[0].tags == [IndexTag(1, [5]), IndexTag(2, [10])]
    assert index.entries[1].tags == [IndexTag(1, [1])]


def test_orth_offsets_and_lengths():
    index = parse_index([meta_record(), data_record([ENTRY_ABC, ENTRY_XY])])
    assert index.entries[0].orth_offset() == 5
    assert index.entries[0].orth_length() == 10
    assert index.entries[1].orth_length() is None


def test_has_tag():
    index = parse_index([meta_record(), data_record([ENTRY_ABC, ENTRY_XY])])
    assert index.has_tag(2)
    assert not index.has_tag(9)


def test_tag_value_missing_raises():
    entry = IndexEntry(b"a", [IndexTag(1, [4])])
    assert entry.tag_value(1, 0) == 4
    with pytest.raises(DataCorruptError):
        entry.tag_value(1, 1)
    with pytest.raises(DataCorruptError):
        entry.tag_value(3, 0)


def test_tag_values():
    entry = IndexEntry(b"a", [IndexTag(7, [1, 2, 3])])
    assert entry.tag_values(7) == [1, 2, 3]
    assert entry.tag_values(8) == []


def test_meta_record_metadata():
    index = Index()
    tagx, ordt = parse_indx(meta_record(name=b"orth"), index, None, None)
    assert tagx.control_byte_count == 1
    assert len(tagx.tags) == 3
    assert ordt is None
    assert index.records_count == 1
    assert index.total_entries_count == 2
    assert index.encoding == 65001
    assert index.orth_index_name == b"orth"


def test_unset_encoding_defaults_to_cp1252():
    index = Index()
    parse_indx(meta_record(encoding=0xFFFFFFFF), index, None, None)
    assert index.encoding == 1252


def test_cncx_record_attached():
    cncx = b"\x83abc"
    index = parse_index([meta_record(cncx=1), data_record([ENTRY_ABC, ENTRY_XY]), cncx])
    assert index.cncx_record == cncx


def test_total_mismatch_raises():
    with pytest.raises(DataCorruptError):
        parse_index([meta_record(total=3), data_record([ENTRY_ABC, ENTRY_XY])])


def test_missing_data_record_raises():
    with pytest.raises(DataCorruptError):
        parse_index([meta_record(records=2), data_record([ENTRY_ABC, ENTRY_XY])])


def test_wrong_magic_raises():
    record = b"XXXX" + meta_record()[4:]
    with pytest.raises(DataCorruptError):
        parse_index([record])


def test_control_byte_mismatch_raises():
    with pytest.raises(DataCorruptError):
        parse_index([meta_record(control_count=2)])


def test_too_many_entries_raises():
    record = bytearray(data_record([ENTRY_ABC]))
    struct.pack_into(">I", record, 24, 10001)
    index = Index(total_entries_count=1)
    with pytest.raises(DataCorruptError):
        parse_indx(bytes(record), index, None, None)


def test_missing_idxt_offset_raises():
    record = bytearray(data_record([ENTRY_ABC]))
    struct.pack_into(">I", record, 20, 0)
    with pytest.raises(DataCorruptError):
        parse_indx(bytes(record), Index(total_entries_count=1), None, None)


def test_multibit_mask_reads_value_bytes():
    tags = [(3, 1, 0x0C, 0), (0, 0, 0, 1)]
    entry = bytes([1]) + b"m" + bytes([0x0C, 0x82, 0x81, 0x82])
    index = parse_index([meta_record(total=1, tags=tags), data_record([entry])])
    assert index.entries[0].tag_values(3) == [1, 2]


def test_partial_mask_gives_value_count():
    tags = [(3, 2, 0x0C, 0), (0, 0, 0, 1)]
    entry = bytes([1]) + b"n" + bytes([0x04, 0x87, 0x88])
    index = parse_index([meta_record(total=1, tags=tags), data_record([entry])])
    assert index.entries[0].tag_values(3) == [7, 8]


def test_ordt_encoded_label():
    entry = bytes([2, 0, 1, 0x00])
    records = [meta_record(total=1, ordt2=[0x41, 0x3B1]), data_record([entry])]
    index = parse_index(records)
    assert index.entries[0].label == "A\u03b1".encode("utf-8")
    assert index.entries[0].tags == []


def test_zero_label_byte_replaced():
    entry = bytes([2]) + b"a\x00" + bytes([0x00])
    index = parse_index([meta_record(total=1), data_record([entry])])
    assert index.entries[0].label == b"a?"


def test_entries_without_meta_raise():
    with pytest.raises(DataCorruptError):
        parse_indx(data_record([ENTRY_ABC]), Index(), None, None)


def test_truncated_tag_values_raise():
    entry = bytes([1]) + b"a" + bytes([0x01, 0x01])
    with pytest.raises(DataCorruptError):
        parse_index([meta_record(total=1), data_record([entry])])