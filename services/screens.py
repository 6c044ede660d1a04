import threading
import uuid
from collections import OrderedDict

from flask import current_app, session

SESSION_KEY = 'screen_key'


class ScreenRegistry:
    """Keeps screen controllers of each browser session between requests.

    Least recently used sessions are dropped once ``max_sessions`` is reached,
    together with every screen they hold; dropped screens get their
    ``discard()`` called when they have one.
    """

    def __init__(self, max_sessions=500):
        self.max_sessions = max_sessions
        self._sessions = OrderedDict()
        self._lock = threading.Lock()

    def get(self, session_key, name, factory):
        evicted = []
        with self._lock:
            screens = self._sessions.setdefault(session_key, {})
            self._sessions.move_to_end(session_key)
            screen = screens.get(name)
            if screen is None:
                screen = screens[name] = factory()
            while len(self._sessions) > self.max_sessions:
                evicted.extend(self._sessions.popitem(last=False)[1].values())
        for old in evicted:
            _discard(old)
        return screen

    def discard(self, session_key, name):
        with self._lock:
            screens = self._sessions.get(session_key, {})
            screen = screens.pop(name, None)
            if not screens:
                self._sessions.pop(session_key, None)
        if screen is not None:
            _discard(screen)
        return screen

    def __len__(self):
        with self._lock:
            return len(self._sessions)


def _discard(screen):
    discard = getattr(screen, 'discard', None)
    if discard is not None:
        discard()


def session_key():
    if SESSION_KEY not in session:
        session[SESSION_KEY] = uuid.uuid4().hex
    return session[SESSION_KEY]


def current_screen(name, factory):
    registry = current_app.extensions['screens']
    return registry.get(session_key(), name, factory)


def drop_screen(name):
    registry = current_app.extensions['screens']
    return registry.discard(session_key(), name)
