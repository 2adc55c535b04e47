"""IPv4 socket addresses and name resolution."""

from __future__ import annotations

import ipaddress
import socket
from typing import Any, Union

from sponge.util import TaggedError

SockAddr = Union[tuple, str, bytes]


def _lookup(node: str, service: str, flags: int) -> tuple[int, Any]:
    """Resolve ``node``/``service`` to the first IPv4 (family, sockaddr) found."""
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as exc:
        raise TaggedError(f"getaddrinfo({node}, {service})", exc.errno, exc.strerror) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    family, _, _, _, sockaddr = results[0]
    return int(family), (str(sockaddr[0]), int(sockaddr[1]))


class Address:
    """An IPv4 address and port (or another socket address taken from the kernel)."""

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, ip: str, port: int = 0) -> None:
        """Build from a dotted-quad string and a numeric port; nothing is looked up."""
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")
        self._family, self._sockaddr = _lookup(
            ip, str(port), socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        )

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Look up a host name and a service name (e.g. "http") via DNS and /etc/services."""
        address = cls.__new__(cls)
        address._family, address._sockaddr = _lookup(hostname, service, socket.AI_ALL)
        return address

    @classmethod
    def from_sockaddr(cls, sockaddr: SockAddr) -> Address:
        """Wrap an address as returned by the socket module.

        A ``(host, port)`` pair is an IPv4 address; a string or bytes is a
        Unix-domain path.
        """
        address = cls.__new__(cls)
        if isinstance(sockaddr, (str, bytes)):
            address._family = int(socket.AF_UNIX)
            address._sockaddr = sockaddr
        elif isinstance(sockaddr, tuple) and len(sockaddr) == 2:
            host, port = sockaddr
            try:
                ipaddress.IPv4Address(host)
            except ValueError as exc:
                raise ValueError(f"invalid IPv4 sockaddr: {sockaddr!r}") from exc
            if not 0 <= int(port) <= 0xFFFF:
                raise ValueError(f"invalid IPv4 sockaddr: {sockaddr!r}")
            address._family = int(socket.AF_INET)
            address._sockaddr = (str(host), int(port))
        else:
            raise ValueError(f"invalid sockaddr: {sockaddr!r}")
        return address

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """An address (port 0) from a 32-bit IPv4 address in host byte order."""
        return cls.from_sockaddr((str(ipaddress.IPv4Address(ip_address & 0xFFFFFFFF)), 0))

    def ip_port(self) -> tuple[str, int]:
        """The dotted-quad IP and the numeric port."""
        if self._family != socket.AF_INET:
            raise TaggedError("getnameinfo", socket.EAI_FAMILY, "ai_family not supported")
        try:
            host, port = socket.getnameinfo(
                self._sockaddr, socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
            )
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno, exc.strerror) from exc
        return host, int(port)

    def ip(self) -> str:
        """The dotted-quad IP address."""
        return self.ip_port()[0]

    def port(self) -> int:
        """The numeric port."""
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host byte order."""
        if self._family != socket.AF_INET:
            raise ValueError("ipv4_numeric called on non-IPV4 address")
        return int(ipaddress.IPv4Address(self._sockaddr[0]))

    def sockaddr(self) -> SockAddr:
        """The address in the form the socket module takes."""
        return self._sockaddr

    @property
    def family(self) -> int:
        """The address family (AF_INET or AF_UNIX)."""
        return self._family

    def __str__(self) -> str:
        ip, port = self.ip_port()
        return f"{ip}:{port}"

    def __repr__(self) -> str:
        return f"Address({self._sockaddr!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))