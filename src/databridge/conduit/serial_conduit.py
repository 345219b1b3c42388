"""
Implements a conduit over a serial port, and the discovery of attached serial devices.
"""

import logging
import threading
from collections import namedtuple

import serial
from serial.tools import list_ports

from databridge.conduit.base import Conduit
from databridge.conduit.discovery import ResourceDiscovery
from databridge.support.async_loop import AsyncLoop

logger = logging.getLogger(__name__)


class SerialConfig(namedtuple('SerialConfig', 'baudrate bytesize stopbits parity')):
    """ The line settings applied to a serial device when it is opened. """

    def settings(self):
        """ the settings as keyword arguments for a pyserial instance """
        return dict(self._asdict())


# the telemetry link is fixed at 57600 8N1
DEFAULT_SERIAL_CONFIG = SerialConfig(57600, serial.EIGHTBITS, serial.STOPBITS_ONE, serial.PARITY_NONE)


class SerialPort(Conduit):
    """
    A conduit that provides comms via an open, configured serial port.
    """

    def __init__(self, ser: serial.Serial, description=None):
        """
        :param ser: the open serial instance. Writes use its write_timeout.
        :param description: human readable description of the device, for logging.
        """
        self.ser = ser
        self.description = description or ser.port
        self._lock = threading.Lock()
        self._closed = False

    @property
    def target(self):
        return self.ser

    @property
    def open(self) -> bool:
        return not self._closed and self.ser.is_open

    def read(self, size=1) -> bytes:
        return self.ser.read(size)

    def read_available(self) -> bytes:
        """
        Reads whatever the device has buffered, waiting up to the read timeout for at least one byte.
        """
        return self.ser.read(self.ser.in_waiting or 1)

    def write(self, data):
        """
        Writes the data, raising serial.SerialTimeoutException if the device
        does not accept it within the write timeout.
        """
        self.ser.write(data)

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.ser.close()

    def __str__(self):
        return "serial port %s" % self.description


class SerialListener(AsyncLoop):
    """
    Reads from a serial port on a background thread and pushes each chunk of data to a listener.

    The listener provides on_new_data(data), called with each non-empty chunk, and
    on_run_error(error), called once if reading fails while the port is open.
    The listener stops after a run error. Closing the port ends the loop quietly.
    """

    def __init__(self, port: SerialPort, listener, log=logger):
        super().__init__(name='databridge-serial-listener', log=log)
        self.port = port
        self.listener = listener

    def loop(self):
        data = self.port.read_available()
        if data:
            self.listener.on_new_data(data)

    def exception_handler(self, e):
        self.stop_event.set()
        if self.port.open:
            self.logger.debug("serial listener stopped by %r", e)
            self.listener.on_run_error(e)


def serial_port_info():
    """
    :return: a tuple of ListPortInfo for each serial device attached, in enumeration order.
    """
    return tuple(list_ports.comports())




def describe_port(info):
    """
    Describes a serial device by product and manufacturer, falling back to what the platform reports.
    """
    product = getattr(info, 'product', None) or getattr(info, 'description', None) or info.device
    manufacturer = getattr(info, 'manufacturer', None) or 'unknown'
    return "'%s' manufactured by '%s'" % (product, manufacturer)


class SerialDiscovery(ResourceDiscovery):
    """ Enumerates the serial devices attached to this host. Every device is eligible. """

    def _fetch_available(self):
        return serial_port_info()
