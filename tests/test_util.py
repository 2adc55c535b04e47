import errno
import io
import os

import pytest

from sponge.util import (
    InternetChecksum,
    TaggedError,
    UnixError,
    format_hexdump,
    get_random_generator,
    hexdump,
    system_call,
    timestamp_ms,
)

SAMPLE_HEADER = bytes.fromhex("450000730000400040110000c0a80001c0a800c7")


def _checksum(*chunks):
    cs = InternetChecksum()
    for chunk in chunks:
        cs.add(chunk)
    return cs.value()


def test_checksum_of_sample_ipv4_header():
    assert _checksum(SAMPLE_HEADER) == 0xB861


def test_checksum_of_header_with_correct_checksum_is_zero():
    header = bytearray(SAMPLE_HEADER)
    header[10:12] = _checksum(SAMPLE_HEADER).to_bytes(2, "big")
    assert _checksum(header) == 0


def test_empty_checksum():
    assert InternetChecksum().value() == 0xFFFF


@pytest.mark.parametrize("split", [0, 1, 3, 7, 19, len(SAMPLE_HEADER)])
def test_incremental_add_matches_single_add(split):
    assert _checksum(SAMPLE_HEADER[:split], SAMPLE_HEADER[split:]) == _checksum(SAMPLE_HEADER)


def test_odd_trailing_byte_is_high_byte():
    assert _checksum(b"\x01") == _checksum(b"\x01\x00")


def test_initial_sum_acts_like_leading_word():
    seeded = InternetChecksum(0x1234)
    seeded.add(b"abc")
    assert seeded.value() == _checksum(b"\x12\x34abc")


def _fail(code):
    raise OSError(code, os.strerror(code))


def test_system_call_returns_result():
    assert system_call("add", lambda a, b: a + b, 2, 3) == 5


def test_system_call_wraps_os_error():
    with pytest.raises(UnixError) as info:
        system_call("open", _fail, errno.ENOENT)
    assert info.value.errno == errno.ENOENT
    assert info.value.attempt == "open"
    assert str(info.value) == "open: " + os.strerror(errno.ENOENT)


def test_system_call_real_failure():
    with pytest.raises(UnixError) as info:
        system_call("close", os.close, -1)
    assert info.value.errno == errno.EBADF


def test_system_call_mask_swallows_matching_error():
    assert system_call("read", _fail, errno.EAGAIN, errno_mask=errno.EAGAIN) is None
    with pytest.raises(UnixError):
        system_call("read", _fail, errno.EINTR, errno_mask=errno.EAGAIN)


def test_tagged_error_message():
    err = TaggedError("getaddrinfo(host, svc)", 2, "boom")
    assert str(err) == "getaddrinfo(host, svc): boom"
    assert err.errno == 2
    assert isinstance(err, OSError)


def test_timestamp_is_monotonic():
    first = timestamp_ms()
    second = timestamp_ms()
    assert 0 <= first <= second


def test_random_generators_are_independently_seeded():
    gen_a = get_random_generator()
    gen_b = get_random_generator()
    seq_a = [gen_a.getrandbits(32) for _ in range(8)]
    seq_b = [gen_b.getrandbits(32) for _ in range(8)]
    assert all(0 <= value < 2**32 for value in seq_a + seq_b)
    assert seq_a != seq_b


def test_hexdump_rows_and_alignment():
    data = bytes(range(ord("A"), ord("A") + 17))
    lines = format_hexdump(data, indent=2).split("\n")
    assert lines[-2:] == ["", ""]
    rows = lines[:-2]
    assert len(rows) == 2
    assert rows[0].startswith("  00000000:    " + data[:2].hex() + " " + data[2:4].hex())
    assert rows[1].startswith("  00000010:")
    assert rows[0].endswith(data[:16].decode())
    assert rows[1].endswith(data[16:].decode())
    assert len(rows[1]) - 1 == len(rows[0]) - 16


def test_hexdump_replaces_unprintable():
    rows = format_hexdump(b"\x00a\x7f").split("\n")
    assert rows[0].endswith(".a.")


def test_hexdump_empty():
    text = format_hexdump(b"")
    assert text.endswith("\n\n")
    assert text.strip() == ""


def test_hexdump_writes_to_file():
    out = io.StringIO()
    hexdump(b"xyz", 4, out)
    assert out.getvalue() == format_hexdump(b"xyz", 4)