"""Shared read-only byte strings that can drop bytes from the front."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


class Buffer:
    """A read-only byte string whose leading bytes can be discarded without copying.

    Copies made with ``Buffer(other)`` share storage but advance independently.
    """

    __slots__ = ("_storage", "_offset")

    def __init__(self, data: Buffer | BytesLike = b"") -> None:
        if isinstance(data, Buffer):
            self._storage = data._storage
            self._offset = data._offset
            return
        if isinstance(data, (str, int)):
            raise TypeError("Buffer needs a bytes-like object")
        self._storage = bytes(data)
        self._offset = 0

    def _view(self) -> memoryview:
        return memoryview(self._storage)[self._offset:]

    def __bytes__(self) -> bytes:
        return self._storage[self._offset:]

    def __len__(self) -> int:
        return len(self._storage) - self._offset

    def at(self, n: int) -> int:
        """The byte at position ``n``."""
        if not 0 <= n < len(self):
            raise IndexError("Buffer.at")
        return self._storage[self._offset + n]

    def copy(self) -> bytes:
        """A fresh bytes object holding the contents."""
        return bytes(self)

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes."""
        if not 0 <= n <= len(self):
            raise IndexError("Buffer.remove_prefix")
        self._offset += n
        if self._offset == len(self._storage):
            self._storage = b""
            self._offset = 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Buffer):
            return bytes(self) == bytes(other)
        if isinstance(other, (bytes, bytearray, memoryview)):
            return bytes(self) == bytes(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Buffer({bytes(self)!r})"


class BufferList:
    """A discontiguous byte string made of Buffers, e.g. headers plus a payload."""

    def __init__(self, data: Buffer | BytesLike | None = None) -> None:
        self._buffers: deque[Buffer] = deque()
        if data is not None:
            self._buffers.append(Buffer(data))

    def __iter__(self) -> Iterator[Buffer]:
        return (Buffer(buf) for buf in self._buffers)

    def append(self, other: BufferList | Buffer | BytesLike) -> None:
        """Append the buffers of ``other`` after the current contents."""
        if not isinstance(other, BufferList):
            other = BufferList(other)
        self._buffers.extend(Buffer(buf) for buf in other._buffers)

    def to_buffer(self) -> Buffer:
        """Return the contents as one Buffer; only allowed when contiguous."""
        if not self._buffers:
            return Buffer()
        if len(self._buffers) == 1:
            return Buffer(self._buffers[0])
        raise ValueError(
            "BufferList: use concatenate() to combine a multi-Buffer BufferList into one Buffer"
        )

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes, dropping buffers that empty out."""
        if n < 0:
            raise ValueError("BufferList.remove_prefix: negative length")
        while n > 0:
            if not self._buffers:
                raise IndexError("BufferList.remove_prefix")
            front = self._buffers[0]
            if n < len(front):
                front.remove_prefix(n)
                n = 0
            else:
                n -= len(front)
                self._buffers.popleft()

    def __len__(self) -> int:
        return sum(len(buf) for buf in self._buffers)

    def concatenate(self) -> bytes:
        """Copy the whole contents into a single bytes object."""
        return b"".join(bytes(buf) for buf in self._buffers)

    def __repr__(self) -> str:
        return f"BufferList({list(self._buffers)!r})"


class BufferViewList:
    """A non-owning view of a discontiguous byte string."""

    def __init__(self, data: BufferList | Buffer | BytesLike | str) -> None:
        if isinstance(data, BufferList):
            views = [buf._view() for buf in data._buffers]
        elif isinstance(data, Buffer):
            views = [data._view()]
        elif isinstance(data, str):
            views = [memoryview(data.encode())]
        else:
            views = [memoryview(data).cast("B")]
        self._views: deque[memoryview] = deque(views)

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes of the view."""
        if n < 0:
            raise ValueError("BufferViewList.remove_prefix: negative length")
        while n > 0:
            if not self._views:
                raise IndexError("BufferViewList.remove_prefix")
            front = self._views[0]
            if n < len(front):
                self._views[0] = front[n:]
                n = 0
            else:
                n -= len(front)
                self._views.popleft()

    def __len__(self) -> int:
        return sum(len(view) for view in self._views)

    def as_iovecs(self) -> list[memoryview]:
        """The pieces as a list of memoryviews, ready for writev or sendmsg."""
        return list(self._views)