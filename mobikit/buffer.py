"""Big-endian read/write buffer with a movable cursor."""

from __future__ import annotations


class MobiError(Exception):
    """Base class for errors raised while handling MOBI data."""


class BufferEndError(MobiError):
    """Raised when an operation would go past the start or end of a buffer."""


class DataCorruptError(MobiError):
    """Raised when data does not have the expected structure."""


class ParamError(MobiError, ValueError):
    """Raised when an argument has an invalid value."""


_STOP_FLAG = 0x80
_VARLEN_MASK = 0x7F
_VARLEN_MAX_BYTES = 4


def _as_bytes(value: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class Buffer:
    """A fixed-size byte area with a cursor for reading and writing.

    ``data`` may be an int (a zero-filled area of that size is allocated),
    a ``bytearray`` (used in place, so writes are visible to its owner) or
    any other bytes-like object (copied).
    """

    def __init__(self, data: int | bytes | bytearray | memoryview) -> None:
        if isinstance(data, bool):
            raise TypeError("buffer size must be an int or bytes-like object")
        if isinstance(data, int):
            if data < 0:
                raise ParamError(f"negative buffer size: {data}")
            self.data = bytearray(data)
        elif isinstance(data, bytearray):
            self.data = data
        elif isinstance(data, (bytes, memoryview)):
            self.data = bytearray(data)
        else:
            raise TypeError("buffer size must be an int or bytes-like object")
        self.offset = 0
        self._maxlen = len(self.data)

    def __repr__(self) -> str:
        return f"Buffer(offset={self.offset}, maxlen={self._maxlen})"

    @property
    def maxlen(self) -> int:
        """Usable length of the buffer; may be narrowed below the data size."""
        return self._maxlen

    @maxlen.setter
    def maxlen(self, value: int) -> None:
        if not 0 <= value <= len(self.data):
            raise ParamError(f"maxlen {value} outside 0..{len(self.data)}")
        self._maxlen = value

    def __len__(self) -> int:
        return self._maxlen

    def getvalue(self) -> bytes:
        """Return the bytes from the start of the buffer up to the cursor."""
        return bytes(self.data[: self.offset])

    def remaining(self) -> int:
        """Number of bytes between the cursor and the end of the buffer."""
        return self._maxlen - self.offset

    def _require(self, length: int) -> None:
        if length < 0:
            raise ParamError(f"negative length: {length}")
        if self.offset + length > self._maxlen:
            raise BufferEndError(
                f"end of buffer: need {length} bytes at offset {self.offset}, "
                f"length {self._maxlen}"
            )

    def resize(self, newlen: int) -> None:
        """Grow or truncate the buffer; the cursor is clamped inside it."""
        if newlen < 0:
            raise ParamError(f"negative buffer size: {newlen}")
        current = len(self.data)
        if newlen < current:
            del self.data[newlen:]
        else:
            self.data.extend(bytes(newlen - current))
        self._maxlen = newlen
        if self.offset >= newlen:
            self.offset = max(newlen - 1, 0)

    def _put(self, chunk: bytes) -> None:
        self._require(len(chunk))
        self.data[self.offset : self.offset + len(chunk)] = chunk
        self.offset += len(chunk)

    def add8(self, value: int) -> None:
        """Write one byte."""
        self._put(bytes((value & 0xFF,)))

    def add16(self, value: int) -> None:
        """Write a 16-bit big-endian value."""
        self._put((value & 0xFFFF).to_bytes(2, "big"))

    def add32(self, value: int) -> None:
        """Write a 32-bit big-endian value."""
        self._put((value & 0xFFFFFFFF).to_bytes(4, "big"))

    def add_raw(self, data: bytes | bytearray | memoryview) -> None:
        """Write raw bytes."""
        self._put(bytes(data))

    def add_string(self, text: str | bytes) -> None:
        """Write a string (UTF-8 for ``str``) without a terminator."""
        self._put(_as_bytes(text))

    def add_zeros(self, count: int) -> None:
        """Write ``count`` zero bytes."""
        self._require(count)
        self._put(bytes(count))

    def _take(self, length: int) -> bytes:
        self._require(length)
        chunk = bytes(self.data[self.offset : self.offset + length])
        self.offset += length
        return chunk

    def get8(self) -> int:
        """Read one byte."""
        return self._take(1)[0]

    def get16(self) -> int:
        """Read a 16-bit big-endian value."""
        return int.from_bytes(self._take(2), "big")

    def get32(self) -> int:
        """Read a 32-bit big-endian value."""
        return int.from_bytes(self._take(4), "big")

    def _get_varlen(self, forward: bool) -> tuple[int, int]:
        available = self._maxlen - self.offset if forward else self.offset
        value = 0
        count = 0
        stopped = False
        if self.offset < self._maxlen and available:
            limit = min(available, _VARLEN_MAX_BYTES)
            shift = 0
            while not stopped and count < limit:
                pos = self.offset + count if forward else self.offset - count
                byte = self.data[pos]
                if forward:
                    value = (value << 7) | (byte & _VARLEN_MASK)
                else:
                    value |= (byte & _VARLEN_MASK) << shift
                    shift += 7
                count += 1
                stopped = bool(byte & _STOP_FLAG)
        if not stopped:
            raise BufferEndError("end of buffer while reading variable length value")
        self.offset = self.offset + count if forward else self.offset - count
        return value, count

    def get_varlen(self) -> tuple[int, int]:
        """Read a forward variable-length value; return ``(value, bytes_read)``.

        At most 4 bytes are read; the last one has bit 7 set.
        """
        return self._get_varlen(True)

    def get_varlen_dec(self) -> tuple[int, int]:
        """Read a variable-length value going backwards from the cursor.

        Return ``(value, bytes_read)``. A value starting at the very first
        byte of the buffer cannot be read this way.
        """
        return self._get_varlen(False)

    def get_raw(self, length: int) -> bytes:
        """Read ``length`` raw bytes."""
        return self._take(length)

    def get_string(self, length: int) -> bytes:
        """Read ``length`` bytes and return them cut at the first NUL byte."""
        return self._take(length).split(b"\0", 1)[0]

    def copy8(self, source: Buffer) -> None:
        """Copy one byte from ``source`` into this buffer."""
        self.add8(source.get8())

    def copy_from(self, source: Buffer, length: int) -> None:
        """Copy ``length`` bytes from ``source``, advancing both cursors."""
        source._require(length)
        self._require(length)
        self.data[self.offset : self.offset + length] = source.data[
            source.offset : source.offset + length
        ]
        self.offset += length
        source.offset += length

    def move(self, offset: int, length: int) -> None:
        """Copy ``length`` bytes from ``offset`` (relative to the cursor) to the cursor.

        The regions may overlap; the cursor advances by ``length``.
        """
        if length < 0:
            raise ParamError(f"negative length: {length}")
        if offset >= 0:
            if self.offset + offset + length > self._maxlen:
                raise BufferEndError("end of buffer")
        elif self.offset < -offset or self.offset + length > self._maxlen:
            raise BufferEndError("beyond start/end of buffer")
        start = self.offset + offset
        self.data[self.offset : self.offset + length] = self.data[start : start + length]
        self.offset += length

    def match_magic(self, magic: str | bytes) -> bool:
        """Tell whether the data at the cursor starts with ``magic``."""
        signature = _as_bytes(magic)
        if self.offset + len(signature) > self._maxlen:
            return False
        return self.data[self.offset : self.offset + len(signature)] == signature

    def match_magic_at(self, magic: str | bytes, offset: int) -> bool:
        """Tell whether ``magic`` occurs at ``offset``; the cursor is kept."""
        if not 0 <= offset <= self._maxlen:
            return False
        saved = self.offset
        self.offset = offset
        try:
            return self.match_magic(magic)
        finally:
            self.offset = saved

    def seek(self, diff: int) -> None:
        """Move the cursor by ``diff`` bytes."""
        target = self.offset + diff
        if not 0 <= target <= self._maxlen:
            raise BufferEndError(f"cannot seek by {diff} from offset {self.offset}")
        self.offset = target

    def set_pos(self, pos: int) -> None:
        """Place the cursor at ``pos``."""
        if not 0 <= pos <= self._maxlen:
            raise BufferEndError(f"position {pos} outside buffer of length {self._maxlen}")
        self.offset = pos