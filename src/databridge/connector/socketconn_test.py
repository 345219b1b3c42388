import socket
import unittest
from unittest.mock import Mock, patch

from hamcrest import assert_that, calling, instance_of, is_, raises

from databridge.conduit.network_discovery import NetworkPath
from databridge.conduit.socket_conduit import SocketTransport
from databridge.connector.base import ConnectorError
from databridge.connector.socketconn import DEFAULT_ENDPOINT, EndpointConfig, SocketConnector

cellular = NetworkPath('wwan0', '100.64.1.7', frozenset(('cellular',)), frozenset(('internet', 'not_restricted')))


class EndpointConfigTest(unittest.TestCase):

    def test_default_endpoint(self):
        assert_that(DEFAULT_ENDPOINT, is_(EndpointConfig("203.219.232.14", 14550)))
        assert_that(str(DEFAULT_ENDPOINT), is_("203.219.232.14:14550"))


class SocketConnectorTest(unittest.TestCase):

    def setUp(self):
        patcher = patch('databridge.connector.socketconn.socket')
        self.socket = patcher.start()
        self.addCleanup(patcher.stop)
        self.socket.AF_INET, self.socket.AF_INET6, self.socket.SOCK_STREAM = \
            socket.AF_INET, socket.AF_INET6, socket.SOCK_STREAM
        self.sock = Mock()
        self.socket.socket.return_value = self.sock
        self.endpoint = EndpointConfig("example.com", 1234)

    def test_endpoint(self):
        sut = SocketConnector(self.endpoint, cellular)
        assert_that(sut.endpoint, is_(self.endpoint))
        assert_that(sut.path, is_(cellular))

    def test_successful_connect_binds_to_path(self):
        sut = SocketConnector(self.endpoint, cellular, timeout=3)
        conduit = sut.connect()
        assert_that(conduit, is_(instance_of(SocketTransport)))
        assert_that(conduit.target, is_(self.sock))
        self.socket.socket.assert_called_once_with(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.bind.assert_called_once_with(('100.64.1.7', 0))
        self.sock.connect.assert_called_once_with(("example.com", 1234))
        assert_that(self.sock.settimeout.call_args_list[0][0], is_((3,)))
        assert_that(self.sock.settimeout.call_args_list[-1][0], is_((None,)))

    def test_connect_without_path_does_not_bind(self):
        SocketConnector(self.endpoint).connect()
        self.sock.bind.assert_not_called()

    def test_ipv6_path_uses_ipv6_socket(self):
        path = cellular._replace(address='2001:db8::5')
        SocketConnector(self.endpoint, path).connect()
        self.socket.socket.assert_called_once_with(socket.AF_INET6, socket.SOCK_STREAM)

    def test_unsuccessful_connect_closes_socket(self):
        self.sock.connect.side_effect = OSError("cannot connect to imagination land")
        sut = SocketConnector(self.endpoint, cellular)
        assert_that(calling(sut.connect), raises(ConnectorError, "imagination land"))
        self.sock.close.assert_called_once_with()

    def test_timeout_is_a_connector_error(self):
        self.sock.connect.side_effect = socket.timeout("timed out")
        assert_that(calling(SocketConnector(self.endpoint).connect), raises(ConnectorError))

    def test_socket_creation_failure_is_a_connector_error(self):
        self.socket.socket.side_effect = OSError("too many open files")
        assert_that(calling(SocketConnector(self.endpoint).connect), raises(ConnectorError, "too many open files"))


class SocketConnectorLoopbackTest(unittest.TestCase):

    def test_connects_to_listening_server(self):
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(('127.0.0.1', 0))
        server.listen(1)
        try:
            endpoint = EndpointConfig(*server.getsockname())
            transport = SocketConnector(endpoint, timeout=2).connect()
            peer, _ = server.accept()
            try:
                transport.write(b"hi")
                assert_that(peer.recv(2), is_(b"hi"))
            finally:
                peer.close()
                transport.close()
        finally:
            server.close()

    def test_refused_connection(self):
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(('127.0.0.1', 0))
        endpoint = EndpointConfig(*server.getsockname())
        server.close()
        assert_that(calling(SocketConnector(endpoint, timeout=2).connect), raises(ConnectorError))
