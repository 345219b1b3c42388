"""
Finds the two ends of the bridge: a TCP connection over an eligible network path, and the serial device.
"""
import logging

from databridge.conduit.network_discovery import NetworkDiscovery
from databridge.conduit.serial_conduit import DEFAULT_SERIAL_CONFIG, SerialDiscovery, describe_port
from databridge.connector.base import ConnectorError
from databridge.connector.serialconn import DEFAULT_READ_TIMEOUT, DEFAULT_WRITE_TIMEOUT, SerialConnector
from databridge.connector.socketconn import DEFAULT_CONNECT_TIMEOUT, DEFAULT_ENDPOINT, SocketConnector
from databridge.console import ConsoleLogSink

logger = logging.getLogger(__name__)


class TransportLocator:
    """
    Discovers one eligible network path and one serial device, and opens transports to them.

    Every lookup either returns a freshly opened transport that the caller owns, or None
    when nothing suitable was found or it could not be opened. Misses and failures are
    reported to the log sink and never raised.

    :param network_discovery: offers the eligible network paths
    :param serial_discovery: offers the attached serial devices
    :param endpoint: the EndpointConfig of the TCP server
    :param serial_config: line settings for the serial device
    :param write_timeout: how long a serial write may block
    :param connect_timeout: how long establishing the TCP connection may take
    :param log_sink: receives the operator diagnostics
    """

    def __init__(self, network_discovery=None, serial_discovery=None, endpoint=DEFAULT_ENDPOINT,
                 serial_config=DEFAULT_SERIAL_CONFIG, write_timeout=DEFAULT_WRITE_TIMEOUT,
                 connect_timeout=DEFAULT_CONNECT_TIMEOUT, log_sink=None,
                 socket_connector=SocketConnector, serial_connector=SerialConnector):
        self.network_discovery = network_discovery or NetworkDiscovery()
        self.serial_discovery = serial_discovery or SerialDiscovery()
        self.endpoint = endpoint
        self.serial_config = serial_config
        self.write_timeout = write_timeout
        self.connect_timeout = connect_timeout
        self.log_sink = log_sink or ConsoleLogSink()
        self._socket_connector = socket_connector
        self._serial_connector = serial_connector

    def find_network_path(self):
        """
        :return: the first NetworkPath that is cellular, reaches the internet and is not restricted,
            or None.
        """
        try:
            path = self.network_discovery.first()
        except OSError as e:
            self.log_sink.log("Failed to enumerate network paths", e)
            return None
        if path is None:
            self.log_sink.log("Failed to locate cellular network path.")
        else:
            logger.info("selected network path %s", path)
        return path

    def connect_socket(self):
        """
        Connects to the endpoint over the first eligible network path.
        :return: an open SocketTransport, or None
        """
        self.log_sink.log("Opening socket connection...")
        path = self.find_network_path()
        if path is None:
            return None
        connector = self._socket_connector(self.endpoint, path, self.connect_timeout)
        try:
            return connector.connect()
        except ConnectorError as e:
            self.log_sink.log("Failed to create socket", e)
            return None

    def find_serial_device(self):
        """
        Opens and configures the first serial device enumerated.
        :return: an open SerialPort, or None
        """
        try:
            info = self.serial_discovery.first()
        except OSError as e:
            self.log_sink.log("Failed to enumerate serial devices", e)
            return None
        if info is None:
            self.log_sink.log("Failed to locate serial devices.")
            return None
        self.log_sink.log("Located serial device %s." % describe_port(info))
        connector = self._serial_connector(info, self.serial_config, DEFAULT_READ_TIMEOUT, self.write_timeout)
        try:
            return connector.connect()
        except ConnectorError as e:
            self.log_sink.log("Failed to create serial connection", e)
            return None
