"""Tamperproof keys EXTH record: building, parsing and DRM token assembly."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .buffer import Buffer, ParamError

_UINT32_MAX = 0xFFFFFFFF
_ENTRY_SIZE = 5
_TYPE_STRING = 1
_TYPE_BINARY = 0


def build_tamperkeys(tags: Iterable[tuple[int, bool]]) -> bytes:
    """Build tamperproof keys record data.

    ``tags`` holds ``(exth_tag, is_string)`` pairs; each becomes five bytes:
    a type byte (1 for string records, 0 for binary ones) and the tag as a
    32-bit big-endian value.
    """
    entries = list(tags)
    if not entries:
        raise ParamError("no tamperproof keys given")
    record_size = len(entries) * _ENTRY_SIZE
    if record_size >= _UINT32_MAX:
        raise ParamError(f"too many tamperkeys: {record_size}")
    buf = Buffer(record_size)
    for tag, is_string in entries:
        buf.add8(_TYPE_STRING if is_string else _TYPE_BINARY)
        buf.add32(tag)
    return buf.getvalue()


def parse_tamperkeys(data: bytes) -> list[tuple[int, int]]:
    """Return the ``(exth_type, exth_tag)`` pairs held in tamperproof keys data.

    A trailing fragment shorter than one entry is ignored.
    """
    buf = Buffer(bytes(data))
    entries = []
    while buf.remaining() >= _ENTRY_SIZE:
        exth_type = buf.get8()
        exth_tag = buf.get32()
        entries.append((exth_type, exth_tag))
    return entries


def exth_drm_token(
    tamper_data: bytes | None, records: Mapping[int, bytes], cp1252: bool
) -> bytes:
    """Concatenate the EXTH records named by tamperproof keys into a DRM token.

    ``records`` maps an EXTH tag to the data of its first record. Missing or
    empty records are skipped. String records of a CP-1252 document are
    converted to UTF-8 when the conversion succeeds.
    """
    if not tamper_data:
        return b""
    token = bytearray()
    for exth_type, exth_tag in parse_tamperkeys(tamper_data):
        data = records.get(exth_tag)
        if not data:
            continue
        data = bytes(data)
        if exth_type == _TYPE_STRING and cp1252:
            try:
                data = data.decode("cp1252").encode("utf-8")
            except UnicodeDecodeError:
                pass
        token += data
    return bytes(token)


__all__ = ["build_tamperkeys", "exth_drm_token", "parse_tamperkeys"]