"""A reference-counted handle on a kernel file descriptor."""

from __future__ import annotations

import os
import sys
from typing import Union

from sponge.buffer import Buffer, BufferList, BufferViewList, BytesLike
from sponge.util import system_call

_MAX_READ = 1024 * 1024

Writable = Union[BufferViewList, BufferList, Buffer, BytesLike, str]


class _FDWrapper:
    """The kernel descriptor plus the state shared by all its handles."""

    __slots__ = ("fd", "eof", "closed", "read_count", "write_count")

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise ValueError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0

    def close(self) -> None:
        system_call("close", os.close, self.fd)
        self.eof = True
        self.closed = True

    def __del__(self) -> None:
        if self.closed:
            return
        try:
            self.close()
        except OSError as exc:
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor that tracks EOF and counts reads and writes.

    Handles made with ``duplicate`` share one descriptor; it is closed when
    ``close`` is called or when the last handle is garbage-collected.
    """

    def __init__(self, fd: int | FileDescriptor) -> None:
        if isinstance(fd, FileDescriptor):
            self._internal = fd._internal
        else:
            self._internal = _FDWrapper(fd)

    def register_read(self) -> None:
        """Count one read."""
        self._internal.read_count += 1

    def register_write(self) -> None:
        """Count one write."""
        self._internal.write_count += 1

    def read(self, limit: int | None = None) -> bytes:
        """Read up to ``limit`` bytes (at most 1 MiB per call); fewer may come back."""
        size = _MAX_READ if limit is None else min(_MAX_READ, limit)
        if size < 0:
            raise ValueError("read limit must not be negative")
        data = system_call("read", os.read, self.fd_num, size)
        if size > 0 and not data:
            self._internal.eof = True
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        self.register_read()
        return data

    def write(self, data: Writable, write_all: bool = True) -> int:
        """Write ``data``; with ``write_all`` keep going until every byte is written.

        Returns the number of bytes written.
        """
        buffer = data if isinstance(data, BufferViewList) else BufferViewList(data)
        total = 0
        while True:
            iovecs = buffer.as_iovecs()
            pending = len(buffer)
            written = system_call("writev", os.writev, self.fd_num, iovecs)
            if written == 0 and pending != 0:
                raise RuntimeError("write returned 0 given non-empty input buffer")
            if written > pending:
                raise RuntimeError("write wrote more than length of input buffer")
            self.register_write()
            buffer.remove_prefix(written)
            total += written
            if not (write_all and len(buffer)):
                return total

    def close(self) -> None:
        """Close the underlying descriptor."""
        self._internal.close()

    def duplicate(self) -> FileDescriptor:
        """Another handle on the same descriptor, sharing its state."""
        return FileDescriptor(self)

    def set_blocking(self, blocking_state: bool) -> None:
        """Make the descriptor blocking (True) or non-blocking (False)."""
        system_call("fcntl", os.set_blocking, self.fd_num, blocking_state)

    @property
    def fd_num(self) -> int:
        """The descriptor number."""
        return self._internal.fd

    @property
    def eof(self) -> bool:
        """Whether a read has hit end of file."""
        return self._internal.eof

    @property
    def closed(self) -> bool:
        """Whether the descriptor has been closed."""
        return self._internal.closed

    @property
    def read_count(self) -> int:
        """How many times the descriptor has been read."""
        return self._internal.read_count

    @property
    def write_count(self) -> int:
        """How many times the descriptor has been written."""
        return self._internal.write_count

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *args: object) -> None:
        if not self.closed:
            self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else ("eof" if self.eof else "open")
        return f"FileDescriptor(fd={self.fd_num}, {state})"