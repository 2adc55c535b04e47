"""Big-endian integer parsing and serialisation for packet headers."""

from __future__ import annotations

import enum

from sponge.buffer import Buffer, BytesLike


class ParseResult(enum.Enum):
    """Outcome of parsing a datagram, segment, frame or ARP message."""

    NO_ERROR = 0
    BAD_CHECKSUM = 1
    PACKET_TOO_SHORT = 2
    WRONG_IP_VERSION = 3
    HEADER_TOO_SHORT = 4
    TRUNCATED_PACKET = 5
    UNSUPPORTED = 6

    def __str__(self) -> str:
        return as_string(self)


_NAMES = {
    ParseResult.NO_ERROR: "NoError",
    ParseResult.BAD_CHECKSUM: "BadChecksum",
    ParseResult.PACKET_TOO_SHORT: "PacketTooShort",
    ParseResult.WRONG_IP_VERSION: "WrongIPVersion",
    ParseResult.HEADER_TOO_SHORT: "HeaderTooShort",
    ParseResult.TRUNCATED_PACKET: "TruncatedPacket",
    ParseResult.UNSUPPORTED: "Unsupported",
}


def as_string(result: ParseResult) -> str:
    """The display name of a ParseResult."""
    return _NAMES[result]


class NetParser:
    """Reads network-byte-order integers off the front of a Buffer.

    A read past the end sets ``result`` to PACKET_TOO_SHORT; once an error is
    recorded every further read returns 0 and consumes nothing.
    """

    def __init__(self, buffer: Buffer | BytesLike) -> None:
        self._buffer = Buffer(buffer)
        self.result = ParseResult.NO_ERROR

    @property
    def buffer(self) -> Buffer:
        """The bytes not yet consumed."""
        return Buffer(self._buffer)

    def error(self) -> bool:
        """Whether an error has been recorded."""
        return self.result is not ParseResult.NO_ERROR

    def _check_size(self, size: int) -> None:
        if size > len(self._buffer):
            self.result = ParseResult.PACKET_TOO_SHORT

    def _parse_int(self, size: int) -> int:
        self._check_size(size)
        if self.error():
            return 0
        value = int.from_bytes(bytes(self._buffer.at(i) for i in range(size)), "big")
        self._buffer.remove_prefix(size)
        return value

    def u32(self) -> int:
        """Parse a 32-bit big-endian integer."""
        return self._parse_int(4)

    def u16(self) -> int:
        """Parse a 16-bit big-endian integer."""
        return self._parse_int(2)

    def u8(self) -> int:
        """Parse one byte."""
        return self._parse_int(1)

    def remove_prefix(self, n: int) -> None:
        """Skip ``n`` bytes, recording an error if there are not enough."""
        self._check_size(n)
        if self.error():
            return
        self._buffer.remove_prefix(n)


class NetUnparser:
    """Appends network-byte-order integers to a bytearray."""

    @staticmethod
    def _unparse_int(out: bytearray, value: int, size: int) -> None:
        out.extend((value & ((1 << (8 * size)) - 1)).to_bytes(size, "big"))

    @staticmethod
    def u32(out: bytearray, value: int) -> None:
        """Append a 32-bit integer, truncated to 32 bits."""
        NetUnparser._unparse_int(out, value, 4)

    @staticmethod
    def u16(out: bytearray, value: int) -> None:
        """Append a 16-bit integer, truncated to 16 bits."""
        NetUnparser._unparse_int(out, value, 2)

    @staticmethod
    def u8(out: bytearray, value: int) -> None:
        """Append one byte, truncated to 8 bits."""
        NetUnparser._unparse_int(out, value, 1)