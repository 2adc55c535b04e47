import os
import socket

import pytest

from sponge.address import Address
from sponge.buffer import BufferList, BufferViewList
from sponge.file_descriptor import FileDescriptor
from sponge.sockets import LocalStreamSocket, ReceivedDatagram, TCPSocket, UDPSocket
from sponge.util import UnixError

LOOPBACK = "127.0.0.1"


def _bound_udp():
    sock = UDPSocket()
    sock.bind(Address(LOOPBACK, 0))
    return sock


def test_udp_sendto_and_recv():
    with _bound_udp() as receiver, _bound_udp() as sender:
        sender.sendto(receiver.local_address(), b"hello")
        datagram = receiver.recv()
        assert isinstance(datagram, ReceivedDatagram)
        assert datagram.payload == b"hello"
        assert datagram.source_address == sender.local_address()
        assert receiver.read_count == 1
        assert sender.write_count == 1


def test_udp_bound_address_is_loopback():
    with _bound_udp() as sock:
        address = sock.local_address()
        assert address.ip() == LOOPBACK
        assert address.port() > 0


def test_udp_connected_send():
    with _bound_udp() as receiver, _bound_udp() as sender:
        sender.connect(receiver.local_address())
        assert sender.peer_address() == receiver.local_address()
        sender.send("abc")
        assert receiver.recv().payload == b"abc"


def test_udp_discontiguous_payload():
    pieces = BufferList(b"head")
    pieces.append(b"-body")
    with _bound_udp() as receiver, _bound_udp() as sender:
        sender.sendto(receiver.local_address(), BufferViewList(pieces))
        assert receiver.recv().payload == b"head-body"


def test_udp_oversized_datagram():
    with _bound_udp() as receiver, _bound_udp() as sender:
        sender.sendto(receiver.local_address(), b"x" * 100)
        with pytest.raises(RuntimeError):
            receiver.recv(mtu=10)


def test_tcp_connect_accept_exchange():
    with TCPSocket() as listener:
        listener.set_reuseaddr()
        listener.bind(Address(LOOPBACK, 0))
        listener.listen()
        with TCPSocket() as client:
            client.connect(listener.local_address())
            with listener.accept() as server:
                assert listener.read_count == 1
                assert server.peer_address() == client.local_address()
                assert client.peer_address() == server.local_address()
                client.write(b"ping")
                assert server.read(4) == b"ping"
                server.write("pong")
                assert client.read(4) == b"pong"


def test_tcp_shutdown_write_gives_peer_eof():
    with TCPSocket() as listener:
        listener.bind(Address(LOOPBACK, 0))
        listener.listen(1)
        with TCPSocket() as client:
            client.connect(listener.local_address())
            with listener.accept() as server:
                client.shutdown(socket.SHUT_WR)
                assert client.write_count == 1
                assert client.read_count == 0
                assert server.read(10) == b""
                assert server.eof


def test_shutdown_rdwr_counts_both():
    with TCPSocket() as listener:
        listener.bind(Address(LOOPBACK, 0))
        listener.listen(1)
        with TCPSocket() as client:
            client.connect(listener.local_address())
            with listener.accept():
                client.shutdown(socket.SHUT_RDWR)
                assert (client.read_count, client.write_count) == (1, 1)


def test_peer_address_unconnected():
    with TCPSocket() as sock:
        with pytest.raises(UnixError) as info:
            sock.peer_address()
        assert info.value.attempt == "getpeername"


def test_set_reuseaddr_sets_option():
    with TCPSocket() as sock:
        sock.set_reuseaddr()
        sock.bind(Address(LOOPBACK, 0))
        bound = sock.local_address()
        assert bound.ip() == LOOPBACK
        assert bound.port() > 0
        probe = socket.socket(fileno=os.dup(sock.fd_num))
        try:
            assert probe.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) != 0
            assert probe.getsockname() == (bound.ip(), bound.port())
        finally:
            probe.close()


def test_local_stream_socket_pair():
    a, b = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    with LocalStreamSocket(FileDescriptor(a.detach())) as left:
        with LocalStreamSocket(FileDescriptor(b.detach())) as right:
            left.write(b"over unix")
            assert right.read(9) == b"over unix"


def test_local_stream_socket_rejects_tcp():
    with TCPSocket() as tcp:
        with pytest.raises(RuntimeError, match="domain mismatch"):
            LocalStreamSocket(tcp.duplicate())


def test_local_stream_socket_rejects_datagram():
    a, b = socket.socketpair(socket.AF_UNIX, socket.SOCK_DGRAM)
    b.close()
    with FileDescriptor(a.detach()) as fd:
        with pytest.raises(RuntimeError, match="type mismatch"):
            LocalStreamSocket(fd.duplicate())