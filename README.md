# sponge

Small building blocks for network programs and user-space protocol stacks
on Linux. The package has no dependencies outside the standard library.

## Modules

- `sponge.util`
  - `InternetChecksum`: the ones'-complement Internet checksum, built up
    with `add()`, read with `value()`. It can be checked or computed.
  - `system_call(attempt, call, *args, errno_mask=0)`: runs `call(*args)`
    and turns an `OSError` into a `UnixError` tagged with `attempt`. If the
    errno equals a non-zero `errno_mask`, it returns `None` instead.
    `UnixError` is a `TaggedError`, which is an `OSError`.
  - `timestamp_ms()`: milliseconds since the module was loaded.
  - `get_random_generator()`: a `random.Random` seeded from `os.urandom`.
  - `format_hexdump(data, indent=0)` and `hexdump(data, indent=0, file=None)`:
    an offset / hex / character dump with sixteen bytes per row.
    `hexdump` writes to standard output by default.
- `sponge.buffer`
  - `Buffer`: a read-only byte string. `remove_prefix(n)` drops leading
    bytes without copying. Copies made with `Buffer(other)` share the
    storage and advance independently.
  - `BufferList`: a sequence of buffers, e.g. headers followed by a payload.
    It offers `append`, `remove_prefix`, `concatenate` and `to_buffer`.
    `to_buffer` raises `ValueError` if the list holds more than one buffer.
  - `BufferViewList`: a non-owning view. `as_iovecs()` returns memoryviews
    that are ready for `os.writev` or `socket.sendmsg`.
- `sponge.parser`
  - `NetParser`: reads `u8`, `u16` and `u32` big-endian values from the front
    of a buffer. If it runs out of data, its `result` attribute becomes
    `ParseResult.PACKET_TOO_SHORT` and `error()` returns true. From then on,
    every read returns 0.
  - `NetUnparser.u8/u16/u32(out, value)`: append big-endian values to a
    `bytearray`.
  - `as_string(result)`: the display name of a `ParseResult`, e.g.
    `"PacketTooShort"`.
- `sponge.file_descriptor`
  - `FileDescriptor`: a shared handle on an OS descriptor.
    - It tracks `eof` and `closed` and counts `read_count` and `write_count`.
    - `read(limit)` returns at most 1 MiB per call.
    - `write(data, write_all=True)` accepts bytes, `str`, `Buffer`,
      `BufferList` or `BufferViewList`.
    - `duplicate()` returns another handle on the same descriptor.
    - `set_blocking(state)` switches blocking mode.
    - It works as a context manager.
- `sponge.eventloop`
  - `EventLoop`:
    - `add_rule(fd, direction, callback, interest=None, cancel=None)`
      registers a rule.
    - `wait_next_event(timeout_ms)` polls once, runs the ready callbacks and
      returns an `EventResult`: `SUCCESS`, `TIMEOUT` or `EXIT`.
    - Rules are cancelled on close, on EOF for `Direction.IN`, and on hangup.
    - A callback that neither reads nor writes its descriptor, while its
      rule stays interested, raises `RuntimeError`.
- `sponge.address`
  - `Address(ip, port=0)`: a numeric IPv4 address.
  - `Address.resolve(hostname, service)`: an address found by name lookup.
  - `Address.from_sockaddr(...)` and `Address.from_ipv4_numeric(n)`: other
    ways to build an address.
  - Methods `ip_port()`, `ip()`, `port()`, `ipv4_numeric()` and
    `sockaddr()`. `str(addr)` gives `"ip:port"`.
- `sponge.sockets`
  - `UDPSocket`: `sendto`, `send`, and `recv(mtu=65536)`, which returns a
    `ReceivedDatagram`.
  - `TCPSocket`: `listen` and `accept`.
  - `LocalStreamSocket`: wraps an existing Unix-domain stream descriptor.
  - All of them can `bind`, `connect`, `shutdown`, `set_reuseaddr` and report
    `local_address()` and `peer_address()`.
- `sponge.tun`
  - `TunFD(devname)` and `TapFD(devname)`: open an existing persistent Linux
    TUN or TAP device through `/dev/net/tun`.

## Install

```
pip install .
```

For the test suite:

```
pip install .[test]
pytest
```

## Examples

Compute and verify an Internet checksum:

```python
from sponge.util import InternetChecksum

checksum = InternetChecksum()
checksum.add(b"\x45\x00\x00\x1c")
print(hex(checksum.value()))
```

Parse fields from the front of a packet:

```python
from sponge.buffer import Buffer
from sponge.parser import NetParser, as_string

parser = NetParser(Buffer(b"\x00\x50\x01\xbb"))
src_port = parser.u16()
dst_port = parser.u16()
if parser.error():
    print(as_string(parser.result))
```

Send a UDP datagram:

```python
from sponge.address import Address
from sponge.sockets import UDPSocket

sock = UDPSocket()
sock.sendto(Address("127.0.0.1", 9000), b"hello")
```

## What it does not do

- The package provides no commands. It is a library only.
- It has no TCP state machine, byte stream, stream reassembler, and no
  IPv4, TCP, Ethernet or ARP packet classes. `NetParser` and `NetUnparser`
  are the pieces for writing such formats; the formats themselves are not
  included.
- The TUN/TAP handles and the event loop, which uses `select.poll`, need
  Linux or another POSIX system.