import logging
import socket
from collections import namedtuple

from databridge.conduit.base import Conduit
from databridge.conduit.socket_conduit import SocketTransport
from databridge.connector.base import AbstractConnector, ConnectorError

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0    # seconds


class EndpointConfig(namedtuple('EndpointConfig', 'host port')):
    """
    Describes the TCP server the bridge relays to.
    """

    def __str__(self):
        return "%s:%d" % (self.host, self.port)


DEFAULT_ENDPOINT = EndpointConfig("203.219.232.14", 14550)


class SocketConnector(AbstractConnector):
    """
    A connector that communicates data via a TCP socket, optionally bound to
    the local address of a particular network path.
    """
    def __init__(self, endpoint: EndpointConfig, path=None, timeout=DEFAULT_CONNECT_TIMEOUT):
        """
        Creates a new socket connector.
        :param endpoint the server to connect to
        :param path the NetworkPath the connection must go through, or None for the default route
        :param timeout how long to wait for the connection to be established. Once connected
            the socket blocks without timeout.
        """
        super().__init__()
        self._endpoint = endpoint
        self._path = path
        self._timeout = timeout

    @property
    def endpoint(self):
        return self._endpoint

    @property
    def path(self):
        return self._path

    def _family(self):
        address = self._path.address if self._path is not None else None
        return socket.AF_INET6 if address and ':' in address else socket.AF_INET

    def _connect(self) -> Conduit:
        sock = socket.socket(self._family(), socket.SOCK_STREAM)
        try:
            if self._path is not None:
                sock.bind((self._path.address, 0))
            sock.settimeout(self._timeout)
            sock.connect((self._endpoint.host, self._endpoint.port))
            sock.settimeout(None)
        except OSError as e:
            sock.close()
            logger.debug("error opening socket to %s: %s", self._endpoint, e)
            raise ConnectorError("unable to connect to %s via %s: %s" % (self._endpoint, self._path, e)) from e
        logger.info("opened socket to %s", self._endpoint)
        return SocketTransport(sock)
