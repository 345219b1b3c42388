import threading
import unittest
from unittest.mock import Mock, patch

import serial
import timeout_decorator
from hamcrest import assert_that, instance_of, is_
from serial.tools.list_ports_common import ListPortInfo

from databridge.conduit.serial_conduit import DEFAULT_SERIAL_CONFIG, SerialDiscovery, SerialListener, SerialPort, \
    describe_port, serial_port_info
from databridge.support.async_loop_test import debug_timeout


def port_info(device, product=None, manufacturer=None):
    info = ListPortInfo(device, skip_link_detection=True)
    info.product = product
    info.manufacturer = manufacturer
    return info


class SerialConfigTest(unittest.TestCase):

    def test_default_is_57600_8n1(self):
        assert_that(DEFAULT_SERIAL_CONFIG.baudrate, is_(57600))
        assert_that(DEFAULT_SERIAL_CONFIG.bytesize, is_(8))
        assert_that(DEFAULT_SERIAL_CONFIG.stopbits, is_(serial.STOPBITS_ONE))
        assert_that(DEFAULT_SERIAL_CONFIG.parity, is_(serial.PARITY_NONE))

    def test_settings(self):
        assert_that(DEFAULT_SERIAL_CONFIG.settings(),
                    is_({'baudrate': 57600, 'bytesize': 8, 'stopbits': 1, 'parity': 'N'}))


class SerialPortTest(unittest.TestCase):

    def test(self):
        ser = Mock()
        sut = SerialPort(ser)

        assert_that(sut.target, is_(ser))
        ser.is_open = True
        assert_that(sut.open, is_(True))

        sut.close()
        ser.close.assert_called_once_with()
        assert_that(sut.open, is_(False))

    def test_close_is_idempotent(self):
        ser = Mock()
        sut = SerialPort(ser)
        sut.close()
        sut.close()
        ser.close.assert_called_once_with()

    def test_read_available_reads_what_is_waiting(self):
        ser = Mock()
        ser.in_waiting = 5
        ser.read.return_value = b"12345"
        assert_that(SerialPort(ser).read_available(), is_(b"12345"))
        ser.read.assert_called_once_with(5)

    def test_read_available_waits_for_one_byte_when_nothing_waiting(self):
        ser = Mock()
        ser.in_waiting = 0
        ser.read.return_value = b""
        assert_that(SerialPort(ser).read_available(), is_(b""))
        ser.read.assert_called_once_with(1)

    def test_write_timeout_propagates(self):
        ser = Mock()
        ser.write.side_effect = serial.SerialTimeoutException("Write timeout")
        sut = SerialPort(ser)
        with self.assertRaises(serial.SerialTimeoutException):
            sut.write(b"a")

    def test_loopback_round_trip(self):
        ser = serial.serial_for_url('loop://', timeout=0.1)
        sut = SerialPort(ser, "loop")
        try:
            sut.write(b"hello")
            assert_that(sut.read(5), is_(b"hello"))
            assert_that(str(sut), is_("serial port loop"))
        finally:
            sut.close()


class RecordingListener:
    def __init__(self, expected):
        self.expected = expected
        self.data = bytearray()
        self.errors = []
        self.received = threading.Event()

    def on_new_data(self, data):
        self.data += data
        if len(self.data) >= self.expected:
            self.received.set()

    def on_run_error(self, error):
        self.errors.append(error)
        self.received.set()


class SerialListenerTest(unittest.TestCase):

    @timeout_decorator.timeout(debug_timeout(2))
    def test_pushes_chunks_to_listener(self):
        port = SerialPort(serial.serial_for_url('loop://', timeout=0.05))
        listener = RecordingListener(6)
        sut = SerialListener(port, listener)
        sut.start()
        try:
            port.write(b"abc")
            port.write(b"def")
            listener.received.wait()
        finally:
            sut.stop()
            port.close()
        assert_that(bytes(listener.data), is_(b"abcdef"))
        assert_that(listener.errors, is_([]))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_read_error_reported_once_and_stops(self):
        port = Mock()
        port.open = True
        error = serial.SerialException("device reports readiness to read but returned no data")
        port.read_available.side_effect = error
        listener = Mock()
        sut = SerialListener(port, listener)
        sut.start()
        sut.background_thread.join()
        listener.on_run_error.assert_called_once_with(error)
        listener.on_new_data.assert_not_called()
        assert_that(sut.running(), is_(False))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_error_after_port_closed_is_not_reported(self):
        port = Mock()
        port.open = False
        port.read_available.side_effect = serial.PortNotOpenError()
        listener = Mock()
        sut = SerialListener(port, listener)
        sut.start()
        sut.background_thread.join()
        listener.on_run_error.assert_not_called()

    def test_empty_reads_are_not_pushed(self):
        port = Mock()
        port.read_available.return_value = b""
        listener = Mock()
        SerialListener(port, listener).loop()
        listener.on_new_data.assert_not_called()


class SerialDiscoveryTest(unittest.TestCase):

    @patch('serial.tools.list_ports.comports')
    def test_first_enumerated_device_is_selected(self, comports):
        first, second = port_info("/dev/ttyUSB1"), port_info("/dev/ttyACM0")
        comports.return_value = [first, second]
        assert_that(SerialDiscovery().first(), is_(first))
        assert_that(SerialDiscovery().available(), is_([first, second]))

    @patch('serial.tools.list_ports.comports', return_value=[])
    def test_no_devices(self, comports):
        assert_that(SerialDiscovery().first(), is_(None))

    @patch('serial.tools.list_ports.comports', return_value=iter([]))
    def test_function_serial_port_info_is_tuple(self, comports):
        assert_that(serial_port_info(), is_(instance_of(tuple)))

    def test_describe_port(self):
        info = port_info("/dev/ttyACM0", "Pixhawk", "3D Robotics")
        assert_that(describe_port(info), is_("'Pixhawk' manufactured by '3D Robotics'"))

    def test_describe_port_without_usb_details(self):
        info = port_info("/dev/ttyS0")
        info.description = "n/a"
        assert_that(describe_port(info), is_("'n/a' manufactured by 'unknown'"))
