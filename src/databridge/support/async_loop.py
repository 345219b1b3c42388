"""
Runs a function repeatedly on a background thread until asked to stop.
"""
import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class AsyncLoop:
    """ Continually runs a given function on a background thread.
        Exceptions are logged and posted to exception_handler().
        The background thread is registered as a daemon.
    """

    def __init__(self, fn: Callable=None, args=(), name=None, log=logger):
        """
        :param fn the function to run
        :param args arguments to pass to fn
        :param name the name given to the background thread
        """
        self.fn = fn
        self.args = args
        self.name = name
        self.stop_event = threading.Event()
        self.background_thread = None
        self.logger = log

    def start(self):
        """
        Starts the background thread. A loop runs at most once; callers serialize start() and stop().
        """
        if self.background_thread is None:
            t = threading.Thread(target=self._run, name=self.name, daemon=True)
            self.background_thread = t
            t.start()

    def exception_handler(self, e):
        self.logger.exception(e)

    def _run(self):
        """ The processing loop for the background thread.
             Invokes the callable for as long as the stop signal is not received.
        """
        self._do(self.startup)
        while self.running():
            self._do(self.loop)
        self._do(self.shutdown)
        self.logger.debug("background thread %s exiting", self.name)

    def _do(self, callme):
        """ runs a function and captures any exceptions """
        try:
            time.sleep(0)
            callme()
        except Exception as e:
            time.sleep(0)
            self.exception_handler(e)

    def startup(self):
        """ template method called when the thread starts"""
        pass

    def loop(self):
        self.fn(*self.args)

    def shutdown(self):
        """ template method called when the thread exits """
        pass

    def running(self):
        return not self.stop_event.is_set()

    @property
    def alive(self):
        thread = self.background_thread
        return thread is not None and thread.is_alive()

    def stop(self):
        """
        Signals the loop to stop and waits for the background thread to finish.
        When called from the background thread itself, only the signal is set.
        """
        event = self.stop_event
        event.set()
        thread = self.background_thread
        if thread and thread is not threading.current_thread():
            thread.join()
