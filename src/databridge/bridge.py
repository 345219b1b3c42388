"""
Relays bytes between a serial port and a socket, in both directions, until either side fails.
"""
import logging
import threading

from databridge.conduit.serial_conduit import SerialListener
from databridge.console import ConsoleLogSink

logger = logging.getLogger(__name__)


class RelayError(IOError):
    """ Raised, or reported, when a relayed stream comes to an end. """


class BridgeRelay:
    """
    Pumps bytes between one open SerialPort and one open SocketTransport.

    Serial to socket runs on a SerialListener thread. Each chunk the serial port delivers
    is written verbatim to the socket.
    Socket to serial runs on the thread that calls run(). It reads one byte at a time
    from the socket and writes it straight to the serial port.

    The first failure in either direction is kept and wakes run(). The relay does not
    close the transports or retry; that is left to its owner.

    :param serial_port: the open SerialPort
    :param socket_transport: the open SocketTransport
    :param log_sink: receives the operator diagnostics
    :param on_run_error: called with the error when the serial listener fails while reading
    """

    def __init__(self, serial_port, socket_transport, log_sink=None, on_run_error=None,
                 listener_factory=SerialListener):
        self.serial_port = serial_port
        self.socket = socket_transport
        self.log_sink = log_sink or ConsoleLogSink()
        self._on_run_error = on_run_error
        self._listener_factory = listener_factory
        self._failure_lock = threading.Lock()
        self._failure = None
        self.failed = threading.Event()

    @property
    def failure(self):
        """ the first failure seen, or None """
        return self._failure

    def run(self):
        """
        Relays in both directions until one of them fails, or the transports are closed.
        The serial listener has stopped by the time this returns.
        :return: the first failure
        """
        listener = self._listener_factory(self.serial_port, self)
        listener.start()
        try:
            self._socket_to_serial()
        finally:
            listener.stop()
        return self.failure

    def _socket_to_serial(self):
        read, write = self.socket.read, self.serial_port.write
        try:
            while not self.failed.is_set():
                data = read(1)
                if not data:
                    raise RelayError("socket stream ended")
                write(data)
        except (OSError, ValueError) as e:
            self.fail(e)

    def on_new_data(self, data):
        """ serial to socket: called on the listener thread with each chunk read """
        if self.failed.is_set():
            return      # the episode is ending, the socket may already be shut down
        try:
            self.socket.write(data)
        except (OSError, ValueError) as e:
            self.log_sink.log("Failed to write serial data to socket", e)
            self.fail(e)

    def on_run_error(self, error):
        """ called on the listener thread when reading the serial port failed """
        self.fail(error)
        if self._on_run_error is not None:
            self._on_run_error(error)

    def fail(self, error):
        """
        Records a failure. Only the first is kept.
        The socket is shut down so a read blocked in run() returns straight away.
        :return: True if this was the first failure
        """
        with self._failure_lock:
            if self._failure is not None:
                return False
            self._failure = error
        logger.debug("relay failed: %r", error)
        self.failed.set()
        self.socket.interrupt()
        return True
