import threading
import time

SUCCESS = 'success'
ERROR = 'error'


class TransientMessage:
    """A (text, kind) notification that clears itself after ``ttl`` seconds.

    Setting a message cancels the running countdown and arms a new one, so an
    older message can never clear a newer one early.
    """

    def __init__(self, ttl=3.0, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._text = ''
        self._kind = ''
        self._deadline = None

    def set(self, text, kind):
        if kind not in (SUCCESS, ERROR):
            raise ValueError(f'Unknown message kind: {kind}')
        with self._lock:
            self._text = text
            self._kind = kind
            self._deadline = self._clock() + self.ttl

    def success(self, text):
        self.set(text, SUCCESS)

    def error(self, text):
        self.set(text, ERROR)

    def clear(self):
        with self._lock:
            self._clear()

    def _clear(self):
        self._text = ''
        self._kind = ''
        self._deadline = None

    def current(self):
        """Return ``(text, kind)`` while the message is visible, else ``None``."""
        with self._lock:
            if self._deadline is not None and self._clock() >= self._deadline:
                self._clear()
            if not self._text:
                return None
            return self._text, self._kind

    @property
    def text(self):
        current = self.current()
        return current[0] if current else ''

    @property
    def kind(self):
        current = self.current()
        return current[1] if current else ''

    def remaining(self):
        """Seconds left before the message clears (0 when nothing is shown)."""
        with self._lock:
            if self._deadline is None:
                return 0
            return max(0.0, self._deadline - self._clock())
