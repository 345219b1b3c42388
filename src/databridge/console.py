"""
The operator console: where the bridge reports what it is doing.

The bridge calls a LogSink but does not own the display. ConsoleLogSink writes each
message to the python logging system and fires events so that a user interface can
mirror the messages.
"""
import logging

from databridge.support.events import EventSource

logger = logging.getLogger(__name__)


class ConsoleEvent:
    """ A message was reported to the console. """
    def __init__(self, message, error=None):
        self.message = message
        self.error = error

    @property
    def report(self):
        """ the message as shown to the operator """
        return self.message if self.error is None else "%s: %s" % (self.message, self.error)

    def __eq__(self, other):
        return isinstance(other, ConsoleEvent) and (self.message, self.error) == (other.message, other.error)

    def __repr__(self):
        return "ConsoleEvent(%r, %r)" % (self.message, self.error)


class ConsoleClearedEvent:
    """ The console should be emptied. Fired at the start of each connection attempt. """

    def __eq__(self, other):
        return isinstance(other, ConsoleClearedEvent)


class LogSink:
    """
    Receives operator-visible diagnostics. Never used for control flow.
    """

    def log(self, message, error=None):
        """
        :param message: plain-text description of what happened
        :param error: the exception that caused it, if any
        """
        raise NotImplementedError

    def clear(self):
        """ Notifies that previously reported messages are no longer relevant. """


class ConsoleLogSink(LogSink):
    """
    Logs messages to the given logger, and fires a ConsoleEvent to listeners for each one.
    Messages with an error are logged as warnings, including the traceback when debug logging is on.
    """

    def __init__(self, log=logger):
        self.logger = log
        self.listeners = EventSource()

    def log(self, message, error=None):
        event = ConsoleEvent(message, error)
        if error is None:
            self.logger.info(message)
        else:
            self.logger.warning(event.report)
            if self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug("cause of '%s'", message, exc_info=error)
        self.listeners.fire(event)

    def clear(self):
        self.listeners.fire(ConsoleClearedEvent())
