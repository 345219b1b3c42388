import threading


class EventSource(object):
    """
    A list of handlers that are each called with the event when it is fired.
    Handlers may be added, removed and fired from different threads.
    """

    def __init__(self):
        self._handlers = []
        self._lock = threading.Lock()

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        with self._lock:
            self._handlers.append(handler)
        return self

    def remove(self, handler):
        with self._lock:
            self._handlers.remove(handler)
        return self

    def handlers(self):
        with self._lock:
            return tuple(self._handlers)

    def fire(self, *args, **keywargs):
        # handlers are snapshotted so a handler may remove itself
        for handler in self.handlers():
            handler(*args, **keywargs)
