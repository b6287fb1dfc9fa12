import threading


class EventSource(object):
    """
    Keeps a list of handlers and calls each of them when an event is fired.
    Handlers may be added or removed from any thread. Events are delivered on the
    thread that fires them, to the handlers registered at the time of firing.
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
            if handler in self._handlers:
                self._handlers.remove(handler)
        return self

    def handlers(self):
        with self._lock:
            return tuple(self._handlers)

    def fire(self, *args, **kwargs):
        for handler in self.handlers():
            handler(*args, **kwargs)


class EventRecorder:
    """
    A handler that keeps every event it receives. Useful for callers that want to
    wait for a particular kind of event fired from another thread.
    """

    def __init__(self):
        self.events = []
        self._condition = threading.Condition()

    def __call__(self, event):
        with self._condition:
            self.events.append(event)
            self._condition.notify_all()

    def of_type(self, event_type):
        with self._condition:
            return [e for e in self.events if isinstance(e, event_type)]

    def wait_for(self, event_type, count=1, timeout=None):
        """
        Blocks until at least `count` events of the given type have been received.
        :return: True if the events arrived before the timeout expired.
        """
        with self._condition:
            return self._condition.wait_for(
                lambda: len([e for e in self.events if isinstance(e, event_type)]) >= count, timeout)

    def clear(self):
        with self._condition:
            self.events.clear()
