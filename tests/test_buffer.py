import pytest

from mobikit.buffer import (
    Buffer,
    BufferEndError,
    MobiError,
    ParamError,
)


def test_init_with_size_is_zero_filled():
    buf = Buffer(5)
    assert len(buf) == 5
    assert bytes(buf.data) == bytes(5)
    assert buf.offset == 0
    assert buf.remaining() == 5


def test_init_with_bytearray_is_shared():
    backing = bytearray(4)
    buf = Buffer(backing)
    buf.add16(0xABCD)
    assert backing[:2] == b"\xab\xcd"


def test_init_negative_size():
    with pytest.raises(ParamError):
        Buffer(-1)


def test_big_endian_writes():
    buf = Buffer(7)
    buf.add8(0x7F)
    buf.add16(0x1234)
    buf.add32(0x01020304)
    assert buf.getvalue() == b"\x7f\x12\x34\x01\x02\x03\x04"
    assert buf.remaining() == 0


def test_write_read_round_trip():
    buf = Buffer(16)
    buf.add8(200)
    buf.add16(54321)
    buf.add32(0xDEADBEEF)
    buf.add_raw(b"xyz")
    buf.add_string("ab")
    buf.add_zeros(4)
    buf.set_pos(0)
    assert buf.get8() == 200
    assert buf.get16() == 54321
    assert buf.get32() == 0xDEADBEEF
    assert buf.get_raw(3) == b"xyz"
    assert buf.get_raw(2) == b"ab"
    assert buf.get_raw(4) == bytes(4)
    assert buf.offset == 16


@pytest.mark.parametrize(
    "write",
    [
        lambda b: b.add8(1),
        lambda b: b.add16(1),
        lambda b: b.add32(1),
        lambda b: b.add_raw(b"abcd"),
        lambda b: b.add_zeros(4),
    ],
)
def test_write_past_end_raises_and_keeps_offset(write):
    buf = Buffer(3)
    buf.seek(3)
    with pytest.raises(BufferEndError):
        write(buf)
    assert buf.offset == 3


@pytest.mark.parametrize("read", [Buffer.get8, Buffer.get16, Buffer.get32])
def test_read_past_end(read):
    buf = Buffer(b"")
    with pytest.raises(BufferEndError):
        read(buf)


def test_read_error_is_mobi_error():
    buf = Buffer(b"\x01")
    with pytest.raises(MobiError):
        buf.get16()
    assert buf.offset == 0


def test_get_varlen_single_byte():
    buf = Buffer(b"\x85")
    assert buf.get_varlen() == (5, 1)
    assert buf.offset == 1


def test_get_varlen_two_bytes():
    buf = Buffer(b"\x01\x82\xff")
    assert buf.get_varlen() == (130, 2)
    assert buf.offset == 2


def test_get_varlen_without_stop_bit():
    buf = Buffer(b"\x01\x01")
    with pytest.raises(BufferEndError):
        buf.get_varlen()
    assert buf.offset == 0


def test_get_varlen_reads_at_most_four_bytes():
    buf = Buffer(b"\x01\x01\x01\x01\x81")
    with pytest.raises(BufferEndError):
        buf.get_varlen()


def test_get_varlen_dec():
    buf = Buffer(b"\x00\x82\x01")
    buf.set_pos(2)
    assert buf.get_varlen_dec() == (257, 2)
    assert buf.offset == 0


def test_get_varlen_dec_at_start_fails():
    buf = Buffer(b"\x81")
    with pytest.raises(BufferEndError):
        buf.get_varlen_dec()


def test_get_string_stops_at_nul():
    buf = Buffer(b"ab\x00cdef")
    assert buf.get_string(5) == b"ab"
    assert buf.offset == 5
    with pytest.raises(BufferEndError):
        buf.get_string(5)


def test_copy8_and_copy_from():
    source = Buffer(b"hello")
    dest = Buffer(5)
    dest.copy8(source)
    dest.copy_from(source, 4)
    assert dest.getvalue() == b"hello"
    assert source.offset == 5


def test_copy_from_checks_both_buffers():
    source = Buffer(b"abc")
    dest = Buffer(2)
    with pytest.raises(BufferEndError):
        dest.copy_from(source, 3)
    assert source.offset == 0
    assert dest.offset == 0


def test_move_backwards_repeats_data():
    buf = Buffer(bytearray(b"ab\x00\x00"))
    buf.set_pos(2)
    buf.move(-2, 2)
    assert bytes(buf.data) == b"abab"
    assert buf.offset == 4


def test_move_forward():
    buf = Buffer(bytearray(b"\x00\x00xy"))
    buf.move(2, 2)
    assert bytes(buf.data) == b"xyxy"
    assert buf.offset == 2


def test_move_out_of_range():
    buf = Buffer(bytearray(b"abcd"))
    buf.set_pos(1)
    with pytest.raises(BufferEndError):
        buf.move(-2, 1)
    with pytest.raises(BufferEndError):
        buf.move(2, 2)
    assert buf.offset == 1


def test_match_magic():
    buf = Buffer(b"INDXdata")
    assert buf.match_magic("INDX")
    assert buf.match_magic(b"INDX")
    assert not buf.match_magic("TAGX")
    buf.seek(6)
    assert not buf.match_magic("data")


def test_match_magic_at_keeps_cursor():
    buf = Buffer(b"....TAGX")
    buf.seek(2)
    assert buf.match_magic_at("TAGX", 4)
    assert not buf.match_magic_at("TAGX", 3)
    assert not buf.match_magic_at("TAGX", 100)
    assert buf.offset == 2


def test_seek_and_set_pos_bounds():
    buf = Buffer(4)
    buf.seek(4)
    assert buf.offset == 4
    buf.seek(-4)
    assert buf.offset == 0
    with pytest.raises(BufferEndError):
        buf.seek(-1)
    with pytest.raises(BufferEndError):
        buf.set_pos(5)
    buf.set_pos(3)
    assert buf.offset == 3


def test_resize_grow_and_truncate():
    buf = Buffer(bytearray(b"abcd"))
    buf.set_pos(4)
    buf.resize(6)
    buf.add16(0x4142)
    assert bytes(buf.data) == b"abcdAB"
    buf.resize(2)
    assert len(buf) == 2
    assert buf.offset == 1
    assert bytes(buf.data) == b"ab"


def test_maxlen_narrowing_limits_reads():
    buf = Buffer(b"abcdef")
    buf.maxlen = 3
    assert buf.get_raw(3) == b"abc"
    with pytest.raises(BufferEndError):
        buf.get8()
    with pytest.raises(ParamError):
        buf.maxlen = 10