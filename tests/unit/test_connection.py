"""
Unit tests for the accepted-connection wrapper, over a socketpair.
"""

import socket

import pytest

from tinyhttpd.core.connection import Connection, ConnectionState
from tinyhttpd.errors import TransportError


@pytest.fixture
def pair():
    server_side, client_side = socket.socketpair()
    client_side.settimeout(5.0)
    yield server_side, client_side
    server_side.close()
    client_side.close()


class TestConnection:
    """Tests for Connection."""

    def test_metadata(self, pair):
        server_side, _ = pair
        conn = Connection(socket=server_side, address=("10.1.2.3", 51000))

        assert conn.remote_address == "10.1.2.3"
        assert conn.remote_host == "10.1.2.3"
        assert conn.state == ConnectionState.OPEN
        assert len(conn.id) == 8

    def test_readline_and_read(self, pair):
        server_side, client_side = pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        client_side.sendall(b"GET / HTTP/1.1\r\nbody")
        client_side.shutdown(socket.SHUT_WR)

        assert conn.readline(100) == b"GET / HTTP/1.1\r\n"
        assert conn.read(10) == b"body"
        assert conn.readline(100) == b""

    def test_readline_stops_at_limit(self, pair):
        server_side, client_side = pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        client_side.sendall(b"abcdefgh\r\n")

        assert conn.readline(4) == b"abcd"

    def test_send(self, pair):
        server_side, client_side = pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        conn.send(b"hello")

        assert client_side.recv(16) == b"hello"

    def test_close_sends_fin_and_is_idempotent(self, pair):
        server_side, client_side = pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))
        client_side.shutdown(socket.SHUT_WR)

        with conn:
            conn.send(b"bye")

        assert conn.state == ConnectionState.CLOSED
        assert conn.closed
        assert client_side.recv(16) == b"bye"
        assert client_side.recv(16) == b""

        conn.close()
        assert conn.state == ConnectionState.CLOSED

    def test_send_after_close_is_transport_error(self, pair):
        server_side, client_side = pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))
        client_side.shutdown(socket.SHUT_WR)
        conn.close()

        with pytest.raises(TransportError):
            conn.send(b"late")
