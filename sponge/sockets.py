"""UDP, TCP and Unix-domain sockets built on FileDescriptor."""

from __future__ import annotations

import socket
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Union

from sponge.address import Address
from sponge.buffer import Buffer, BufferList, BufferViewList, BytesLike
from sponge.file_descriptor import FileDescriptor
from sponge.util import system_call

Payload = Union[BufferViewList, BufferList, Buffer, BytesLike, str]


def _as_views(payload: Payload) -> BufferViewList:
    return payload if isinstance(payload, BufferViewList) else BufferViewList(payload)


class Socket(FileDescriptor):
    """A network socket; normally used through one of its subclasses."""

    def __init__(self, domain: int, kind: int, fd: FileDescriptor | None = None) -> None:
        if fd is None:
            sock = system_call("socket", socket.socket, domain, kind)
            super().__init__(sock.detach())
            return
        super().__init__(fd)
        with self._borrowed("getsockopt") as sock:
            so_domain = getattr(socket, "SO_DOMAIN", None)
            if so_domain is None:
                actual_domain = int(sock.family)
            else:
                actual_domain = system_call(
                    "getsockopt", sock.getsockopt, socket.SOL_SOCKET, so_domain
                )
            if actual_domain != domain:
                raise RuntimeError("socket domain mismatch")
            actual_type = system_call(
                "getsockopt", sock.getsockopt, socket.SOL_SOCKET, socket.SO_TYPE
            )
            if actual_type != kind:
                raise RuntimeError("socket type mismatch")

    @contextmanager
    def _borrowed(self, attempt: str) -> Iterator[socket.socket]:
        """A socket object on this descriptor that never closes it."""
        sock = system_call(attempt, socket.socket, -1, -1, -1, self.fd_num)
        try:
            yield sock
        finally:
            sock.detach()

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listen/accept."""
        with self._borrowed("bind") as sock:
            system_call("bind", sock.bind, address.sockaddr())

    def connect(self, address: Address) -> None:
        """Connect to a peer address."""
        with self._borrowed("connect") as sock:
            system_call("connect", sock.connect, address.sockaddr())

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        with self._borrowed("shutdown") as sock:
            system_call("shutdown", sock.shutdown, how)
        if how == socket.SHUT_RD:
            self.register_read()
        elif how == socket.SHUT_WR:
            self.register_write()
        elif how == socket.SHUT_RDWR:
            self.register_read()
            self.register_write()
        else:
            raise ValueError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        """The address this socket is bound to."""
        with self._borrowed("getsockname") as sock:
            return Address.from_sockaddr(system_call("getsockname", sock.getsockname))

    def peer_address(self) -> Address:
        """The address of the connected peer."""
        with self._borrowed("getpeername") as sock:
            return Address.from_sockaddr(system_call("getpeername", sock.getpeername))

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner (SO_REUSEADDR)."""
        with self._borrowed("setsockopt") as sock:
            system_call("setsockopt", sock.setsockopt, socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)


@dataclass
class ReceivedDatagram:
    """A received UDP payload and the address it came from."""

    source_address: Address
    payload: bytes


class UDPSocket(Socket):
    """An IPv4 UDP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)

    def recv(self, mtu: int = 65536) -> ReceivedDatagram:
        """Receive one datagram; raise RuntimeError if it is larger than ``mtu``."""
        with self._borrowed("recvfrom") as sock:
            payload, _, flags, source = system_call("recvfrom", sock.recvmsg, mtu)
        if flags & socket.MSG_TRUNC:
            raise RuntimeError("recvfrom (oversized datagram)")
        self.register_read()
        return ReceivedDatagram(Address.from_sockaddr(source), payload)

    def _sendmsg(self, payload: Payload, destination: Address | None) -> None:
        views = _as_views(payload)
        args: tuple = (views.as_iovecs(),)
        if destination is not None:
            args += ([], 0, destination.sockaddr())
        with self._borrowed("sendmsg") as sock:
            sent = system_call("sendmsg", sock.sendmsg, *args)
        if sent != len(views):
            raise RuntimeError("datagram payload too big for sendmsg()")
        self.register_write()

    def sendto(self, destination: Address, payload: Payload) -> None:
        """Send a datagram to ``destination``."""
        self._sendmsg(payload, destination)

    def send(self, payload: Payload) -> None:
        """Send a datagram to the connected peer."""
        self._sendmsg(payload, None)


class TCPSocket(Socket):
    """An IPv4 TCP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    @classmethod
    def _adopt(cls, fd: FileDescriptor) -> TCPSocket:
        sock = cls.__new__(cls)
        Socket.__init__(sock, socket.AF_INET, socket.SOCK_STREAM, fd)
        return sock

    def listen(self, backlog: int = 16) -> None:
        """Start listening for incoming connections."""
        with self._borrowed("listen") as sock:
            system_call("listen", sock.listen, backlog)

    def accept(self) -> TCPSocket:
        """Wait for a connection and return a socket connected to the peer."""
        self.register_read()
        with self._borrowed("accept") as sock:
            conn, _ = system_call("accept", sock.accept)
        return TCPSocket._adopt(FileDescriptor(conn.detach()))


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket."""

    def __init__(self, fd: FileDescriptor) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd)