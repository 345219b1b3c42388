import logging
import socket
import threading

from databridge.conduit import base

logger = logging.getLogger(__name__)


class SocketTransport(base.Conduit):
    """
    A conduit that provides communication via a connected TCP socket.
    Reads block until data arrives, the peer closes the stream, or the
    transport is interrupted or closed from another thread.
    :param sock The open, connected socket
    """
    def __init__(self, sock: socket.socket):
        """
        :param sock: the client socket that represents the connection
        :type sock: socket
        """
        self.sock = sock
        self._input = sock.makefile('rb')
        self._lock = threading.Lock()
        self._closed = False

    @property
    def open(self) -> bool:
        return not self._closed and self.sock.fileno() >= 0

    @property
    def target(self):
        return self.sock

    @property
    def peer(self):
        try:
            return self.sock.getpeername()
        except OSError:
            return None

    def read(self, size=1) -> bytes:
        return self._input.read(size)

    def write(self, data):
        self.sock.sendall(data)

    def interrupt(self):
        """
        Shuts down both directions of the connection without releasing it.
        A read blocked on another thread returns end of stream.
        """
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass    # already shut down, or the peer has gone

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
        # shutdown first: closing the reader while another thread is blocked in it would wait on that read
        self.interrupt()
        try:
            self._input.close()
        finally:
            self.sock.close()

    def __str__(self):
        return "socket to %s" % (self.peer,)
