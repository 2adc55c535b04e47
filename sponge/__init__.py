"""Networking building blocks: buffers, big-endian parsing, checksums, file descriptors, an event loop, IPv4 addresses, sockets and TUN/TAP devices."""

__version__ = "0.1.0"