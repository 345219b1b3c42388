import logging

import serial

from databridge.conduit.base import Conduit
from databridge.conduit.serial_conduit import DEFAULT_SERIAL_CONFIG, SerialConfig, SerialPort, describe_port
from databridge.connector.base import AbstractConnector, ConnectorError

logger = logging.getLogger(__name__)

DEFAULT_READ_TIMEOUT = 0.1      # seconds; bounds how long the listener takes to notice it was stopped
DEFAULT_WRITE_TIMEOUT = 1.0     # seconds


class SerialConnector(AbstractConnector):
    """
    Implements a connector that opens and configures a serial device.
    """
    def __init__(self, port_info, config: SerialConfig=DEFAULT_SERIAL_CONFIG,
                 read_timeout=DEFAULT_READ_TIMEOUT, write_timeout=DEFAULT_WRITE_TIMEOUT):
        """
        Creates a new serial connector.
        :param port_info - the ListPortInfo of the device. Its device attribute may also be
                a pyserial URL such as loop://
        :param config - the line settings applied when the device is opened
        """
        super().__init__()
        self.port_info = port_info
        self.config = config
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout

    @property
    def endpoint(self):
        return self.port_info.device

    def _connect(self) -> Conduit:
        try:
            ser = serial.serial_for_url(self.port_info.device, do_not_open=True,
                                        timeout=self.read_timeout, write_timeout=self.write_timeout,
                                        **self.config.settings())
        except (serial.SerialException, ValueError) as e:
            raise ConnectorError("unable to configure serial port %s: %s" % (self.endpoint, e)) from e
        try:
            ser.open()
        except (serial.SerialException, OSError, ValueError) as e:
            logger.warning("error opening serial port %s: %s", self.endpoint, e)
            raise ConnectorError("unable to open serial port %s: %s" % (self.endpoint, e)) from e
        logger.info("opened serial port %s at %s", self.endpoint, self.config)
        return SerialPort(ser, "%s %s" % (self.endpoint, describe_port(self.port_info)))
