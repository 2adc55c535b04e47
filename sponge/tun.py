"""Handles on existing persistent TUN and TAP devices."""

from __future__ import annotations

import fcntl
import os
import struct

from sponge.file_descriptor import FileDescriptor
from sponge.util import system_call

CLONEDEV = "/dev/net/tun"
TUNSETIFF = 0x400454CA
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
IFNAMSIZ = 16


def _ifreq(devname: str, is_tun: bool) -> bytes:
    """A ``struct ifreq`` naming the device, with no packet-info header."""
    flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
    name = devname.encode()[: IFNAMSIZ - 1]
    return struct.pack("=16sH22x", name, flags)


class TunTapFD(FileDescriptor):
    """A descriptor on a TUN (IP datagrams) or TAP (Ethernet frames) device.

    The device must already exist, e.g. created with ``ip tuntap add``.
    """

    def __init__(self, devname: str, is_tun: bool) -> None:
        super().__init__(system_call("open", os.open, CLONEDEV, os.O_RDWR))
        try:
            system_call("ioctl", fcntl.ioctl, self.fd_num, TUNSETIFF, _ifreq(devname, is_tun))
        except BaseException:
            self.close()
            raise


class TunFD(TunTapFD):
    """A descriptor on a TUN device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """A descriptor on a TAP device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)