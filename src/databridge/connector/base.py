import logging
from abc import abstractmethod

from databridge.conduit.base import Conduit

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """ Indicates that a conduit to the endpoint could not be established. """


class Connector:
    """ A connector describes an endpoint to which a conduit can be established. """

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @abstractmethod
    def connect(self) -> Conduit:
        """
        Establishes a new conduit to the endpoint. Each call opens a fresh conduit
        that the caller owns and must close.
        Raises ConnectorError if the conduit cannot be established.
        """
        raise NotImplementedError


class AbstractConnector(Connector):
    """ Opens conduits through a template method and normalizes the errors raised doing so. """

    def connect(self) -> Conduit:
        try:
            conduit = self._connect()
        except ConnectorError:
            raise
        except (OSError, ValueError) as e:
            raise ConnectorError("unable to connect to %s: %s" % (self.endpoint, e)) from e
        logger.debug("connected to %s", self.endpoint)
        return conduit

    @abstractmethod
    def _connect(self) -> Conduit:
        """ Template method for subclasses to perform the connection.
            If connection is not possible, an exception should be thrown.
            Any partially acquired resource must be released before raising.
        """
        raise NotImplementedError
