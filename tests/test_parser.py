import pytest

from sponge.buffer import Buffer
from sponge.parser import NetParser, NetUnparser, ParseResult, as_string


@pytest.mark.parametrize(
    "result, name",
    [
        (ParseResult.NO_ERROR, "NoError"),
        (ParseResult.BAD_CHECKSUM, "BadChecksum"),
        (ParseResult.PACKET_TOO_SHORT, "PacketTooShort"),
        (ParseResult.WRONG_IP_VERSION, "WrongIPVersion"),
        (ParseResult.HEADER_TOO_SHORT, "HeaderTooShort"),
        (ParseResult.TRUNCATED_PACKET, "TruncatedPacket"),
    ],
)
def test_as_string(result, name):
    assert as_string(result) == name
    assert str(result) == name


def test_round_trip():
    out = bytearray()
    NetUnparser.u32(out, 0x12345678)
    NetUnparser.u16(out, 0xABCD)
    NetUnparser.u8(out, 0x7F)
    parser = NetParser(Buffer(bytes(out)))
    assert parser.u32() == 0x12345678
    assert parser.u16() == 0xABCD
    assert parser.u8() == 0x7F
    assert not parser.error()
    assert len(parser.buffer) == 0


def test_network_byte_order():
    out = bytearray()
    NetUnparser.u16(out, 0x0102)
    assert bytes(out) == b"\x01\x02"


def test_unparse_truncates():
    out = bytearray()
    NetUnparser.u8(out, 0x1FF)
    assert bytes(out) == b"\xff"


def test_too_short_sets_error():
    data = b"\x01\x02"
    parser = NetParser(Buffer(data))
    assert parser.u32() == 0
    assert parser.result is ParseResult.PACKET_TOO_SHORT
    assert parser.error()
    assert parser.u8() == 0
    assert bytes(parser.buffer) == data


def test_remove_prefix():
    data = b"\x10\x20\x30\x40"
    parser = NetParser(Buffer(data))
    parser.remove_prefix(2)
    assert parser.u8() == data[2]
    assert bytes(parser.buffer) == data[3:]


def test_remove_prefix_too_many():
    data = b"\x10\x20"
    parser = NetParser(Buffer(data))
    parser.remove_prefix(len(data) + 1)
    assert parser.result is ParseResult.PACKET_TOO_SHORT
    assert bytes(parser.buffer) == data


def test_parser_does_not_consume_callers_buffer():
    data = b"\x01\x02\x03"
    buf = Buffer(data)
    parser = NetParser(buf)
    parser.u16()
    assert bytes(buf) == data
    assert bytes(parser.buffer) == data[2:]


def test_recorded_error_stops_parsing():
    data = b"\x01\x02\x03\x04"
    parser = NetParser(data)
    parser.result = ParseResult.BAD_CHECKSUM
    assert parser.error()
    assert parser.u8() == 0
    assert bytes(parser.buffer) == data