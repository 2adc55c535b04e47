"""Error types, the Internet checksum, timing, randomness and hex dumps."""

from __future__ import annotations

import os
import random
import sys
import time
from collections.abc import Callable
from typing import Any, TextIO

_PROGRAM_START_NS = time.monotonic_ns()


class TaggedError(OSError):
    """An OS-level error that also names what was being attempted."""

    def __init__(self, attempt: str, code: int, message: str) -> None:
        super().__init__(code, message)
        self.attempt = attempt

    def __str__(self) -> str:
        return f"{self.attempt}: {self.strerror}"


class UnixError(TaggedError):
    """A failed system call, described by its name and errno value."""

    def __init__(self, attempt: str, error: int) -> None:
        super().__init__(attempt, error, os.strerror(error))


def system_call(attempt: str, call: Callable[..., Any], *args: Any, errno_mask: int = 0) -> Any:
    """Run ``call(*args)``, turning an OSError into a UnixError tagged with ``attempt``.

    If the failure's errno equals ``errno_mask`` (and the mask is non-zero),
    the error is swallowed and None is returned instead.
    """
    try:
        return call(*args)
    except OSError as exc:
        if errno_mask and exc.errno == errno_mask:
            return None
        if exc.errno is None:
            raise
        raise UnixError(attempt, exc.errno) from exc


def get_random_generator() -> random.Random:
    """Return a Mersenne Twister generator seeded from the system's entropy source."""
    seed = int.from_bytes(os.urandom(624 * 4), "big")
    return random.Random(seed)


def timestamp_ms() -> int:
    """Milliseconds elapsed since this module was loaded."""
    return (time.monotonic_ns() - _PROGRAM_START_NS) // 1_000_000


class InternetChecksum:
    """The ones'-complement Internet checksum, computed incrementally.

    Summing a packet that already carries a correct checksum yields zero.
    """

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & 0xFFFFFFFF
        self._odd = False

    def add(self, data: bytes | bytearray | memoryview) -> None:
        """Add bytes to the running sum; an odd byte count carries over between calls."""
        total = self._sum
        odd = self._odd
        for byte in bytes(data):
            total += byte if odd else byte << 8
            odd = not odd
        self._sum = total & 0xFFFFFFFF
        self._odd = odd

    def value(self) -> int:
        """The checksum of everything added so far."""
        folded = self._sum
        while folded > 0xFFFF:
            folded = (folded >> 16) + (folded & 0xFFFF)
        return ~folded & 0xFFFF


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte < 0x7F else "."


def format_hexdump(data: bytes | bytearray | memoryview, indent: int = 0) -> str:
    """Render bytes as an offset / hex / character dump, sixteen bytes per row."""
    data = bytes(data)
    if not data:
        return "    " + " " + "\n\n"
    pad = " " * indent
    lines = []
    for offset in range(0, len(data), 16):
        row = data[offset:offset + 16]
        hex_part = " ".join(row[pair:pair + 2].hex() for pair in range(0, len(row), 2))
        chars = "".join(_printable(byte) for byte in row)
        remainder = (16 - len(row)) % 16
        spacing = " " * (2 * remainder + remainder // 2 + 4)
        lines.append(f"{pad}{offset:08x}:    {hex_part}{spacing}{chars}")
    return "\n".join(lines) + "\n\n"


def hexdump(data: bytes | bytearray | memoryview, indent: int = 0, file: TextIO | None = None) -> None:
    """Write a hex dump of ``data`` to ``file`` (standard output by default)."""
    out = sys.stdout if file is None else file
    out.write(format_hexdump(data, indent))
    out.flush()