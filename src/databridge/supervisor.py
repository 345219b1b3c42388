import logging
import threading
from enum import Enum
from functools import partial

from databridge.bridge import BridgeRelay
from databridge.console import ConsoleLogSink
from databridge.support.async_loop import AsyncLoop
from databridge.support.events import EventSource
from databridge.support.retry_strategy import FixedDelayRetryStrategy

logger = logging.getLogger(__name__)


class BridgeState(Enum):
    STOPPED = 'stopped'
    DISCOVERING = 'discovering'
    BRIDGING = 'bridging'


class BridgeStateChangedEvent:
    """ The supervisor moved to a new state. """
    def __init__(self, supervisor, state):
        self.supervisor = supervisor
        self.state = state


class ConnectionSupervisor:
    """
    Keeps a bridge between the serial device and the TCP endpoint running.

    start() launches a retry loop on a background thread. Each pass waits the retry delay,
    connects the socket, opens the serial device and relays between them until the relay
    fails. Both transports are then closed and the loop goes round again, for as long as
    the supervisor runs.

    The serial and socket transports are held only while BRIDGING, and each is closed
    exactly once, by whichever of the loop or stop() detaches it.

    Fires BridgeStateChangedEvent as the state changes.

    :param locator: the TransportLocator that provides freshly opened transports
    :param retry_strategy: the delay before each attempt
    :param log_sink: receives the operator diagnostics
    """

    def __init__(self, locator, retry_strategy=None, log_sink=None, relay_factory=BridgeRelay):
        self.locator = locator
        self.retry_strategy = retry_strategy or FixedDelayRetryStrategy()
        self.log_sink = log_sink or ConsoleLogSink()
        self.events = EventSource()
        self._relay_factory = relay_factory
        self._lifecycle_lock = threading.RLock()     # serializes start/stop/restart
        self._state_lock = threading.Lock()         # guards state and transports, never held while blocking
        self._state = BridgeState.STOPPED
        self._serial = None
        self._socket = None
        self._loop = None

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def running(self) -> bool:
        return self._loop is not None

    @property
    def transports(self):
        """ the (serial, socket) transports of the current episode; both None unless BRIDGING """
        with self._state_lock:
            return self._serial, self._socket

    def start(self):
        """
        Starts maintaining the bridge on a background thread. Does nothing if already started.
        """
        with self._lifecycle_lock:
            if self._loop is not None:
                return
            self._loop = BridgeLoop(self)
            self._change_state(BridgeState.DISCOVERING)
            self._loop.start()

    def stop(self):
        """
        Stops the bridge and returns once the background thread has finished.
        Any open transports are closed. Does nothing if already stopped.

        A KeyboardInterrupt while waiting for the background thread is logged and re-raised to the
        caller. The transports are already closed and the state is STOPPED by then.
        :raises KeyboardInterrupt: when interrupted while waiting for the background thread
        """
        with self._lifecycle_lock:
            loop = self._loop
            if loop is None:
                return
            self._loop = None
            self.log_sink.log("Halting data bridge.")
            loop.stop_event.set()
            self._close(*self._detach(BridgeState.STOPPED))
            try:
                loop.stop()
            except KeyboardInterrupt as e:
                self.log_sink.log("Interrupted waiting on graceful shutdown", e)
                raise
            finally:
                self._change_state(BridgeState.STOPPED)

    def restart(self):
        """ Stops the bridge if it is running, then starts it again. """
        with self._lifecycle_lock:
            self.stop()
            self.start()

    def _restart_after_run_error(self, loop):
        """ Restarts, unless the loop that failed has already been stopped or replaced. """
        with self._lifecycle_lock:
            if self._loop is loop:
                self.restart()

    def _on_run_error(self, loop, error):
        """ called on the serial listener thread, which must not wait on the loop thread """
        self.log_sink.log("Runtime error encountered", error)
        threading.Thread(target=self._restart_after_run_error, args=(loop,),
                         name='databridge-restart', daemon=True).start()

    def _change_state(self, state):
        with self._state_lock:
            changed = self._state != state
            self._state = state
        if changed:
            logger.debug("bridge state %s", state.name)
            self.events.fire(BridgeStateChangedEvent(self, state))

    def _attach(self, loop, serial_port, socket_transport):
        """
        Takes ownership of the transports and enters BRIDGING, unless the loop was asked to stop.
        :return: True if the transports were attached
        """
        with self._state_lock:
            if not loop.running():
                return False
            self._serial, self._socket = serial_port, socket_transport
            self._state = BridgeState.BRIDGING
        self.events.fire(BridgeStateChangedEvent(self, BridgeState.BRIDGING))
        return True

    def _detach(self, state):
        """
        Gives up the transports of the current episode and leaves BRIDGING.
        :return: the (socket, serial) transports detached, which the caller must close
        """
        with self._state_lock:
            transports = self._socket, self._serial
            self._socket = self._serial = None
            changed = self._state != state
            self._state = state
        if changed:
            self.events.fire(BridgeStateChangedEvent(self, state))
        return transports

    def _close(self, *transports):
        for transport in transports:
            if transport is None:
                continue
            try:
                transport.close()
            except (OSError, ValueError) as e:
                self.log_sink.log("Failed to close %s" % transport, e)

    def _episode(self, loop):
        """
        One discovery and bridging attempt. Runs on the loop thread.
        """
        sink = self.log_sink
        sink.clear()
        sink.log("Please attach a serial device.")
        socket_transport = self.locator.connect_socket()
        if socket_transport is None:
            return
        sink.log("Established socket connection.")

        serial_port = None
        attached = False
        try:
            serial_port = self.locator.find_serial_device()
            if serial_port is not None:
                sink.log("Established serial connection.")
                attached = self._attach(loop, serial_port, socket_transport)
        finally:
            if not attached:
                self._close(socket_transport, serial_port)
        if not attached:
            return

        failure = None
        try:
            relay = self._relay_factory(serial_port, socket_transport, log_sink=sink,
                                        on_run_error=partial(self._on_run_error, loop))
            failure = relay.run()
        finally:
            if loop.running():
                self._close(*self._detach(BridgeState.DISCOVERING))
        if loop.running():
            sink.log("Failed!", failure)
            sink.log("Attempting to reconnect...")


class BridgeLoop(AsyncLoop):
    """
    Runs the supervisor's retry loop on a background thread.
    The delay comes before each attempt, including the first, and is cut short by stop().
    """

    def __init__(self, supervisor: ConnectionSupervisor):
        super().__init__(name='databridge-supervisor', log=logger)
        self.supervisor = supervisor

    def loop(self):
        if self.stop_event.wait(self.supervisor.retry_strategy()):
            return
        self.supervisor._episode(self)

    def exception_handler(self, e):
        self.logger.exception("unexpected error maintaining the bridge")
        if self.running():
            self.supervisor.log_sink.log("Failed!", e)
            self.supervisor.log_sink.log("Attempting to reconnect...")
