from abc import abstractmethod


class Conduit:
    """
    A conduit is an open, two-way byte channel to an endpoint.
    Conduits are created open and are closed exactly once by their owner;
    further calls to close() do nothing.
    """

    @property
    @abstractmethod
    def target(self):
        """ the underlying resource, such as the serial instance or socket """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. When open, read() and write() may be called. """
        raise NotImplementedError

    @abstractmethod
    def read(self, size=1) -> bytes:
        """
        Reads up to size bytes. An empty result means the stream has ended
        or, for sources with a read timeout, that nothing arrived in time.
        """
        raise NotImplementedError

    @abstractmethod
    def write(self, data):
        """ Writes all of data, raising an IOError if that is not possible. """
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Releases the underlying resource. Safe to call more than once.
        """
        raise NotImplementedError
