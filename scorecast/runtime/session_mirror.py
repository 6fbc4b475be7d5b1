import threading
from typing import Callable

from scorecast.models import SessionState


MirrorSubscriber = Callable[[SessionState, int], None]


class SessionMirror:
    """
    The slave's read-only copy of the host's session state.

    Each snapshot replaces the previous state wholesale under a lock, so
    readers see either the old state or the new one, never a mix.
    Readers must treat ``current`` as immutable.
    """

    def __init__(self) -> None:
        self._state: SessionState | None = None
        self._sequence = -1
        self._lock = threading.Lock()
        self._subscribers: list[MirrorSubscriber] = []

    @property
    def current(self) -> SessionState | None:
        with self._lock:
            return self._state

    @property
    def sequence(self) -> int:
        with self._lock:
            return self._sequence

    def read(self) -> tuple[SessionState | None, int]:
        with self._lock:
            return self._state, self._sequence

    def replace(self, state: SessionState, sequence: int):
        with self._lock:
            self._state = state
            self._sequence = sequence
            subscribers = list(self._subscribers)

        for subscriber in subscribers:
            subscriber(state, sequence)

    def clear(self):
        with self._lock:
            self._state = None
            self._sequence = -1

    def subscribe(self, subscriber: MirrorSubscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(subscriber)

        def unsubscribe():
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return unsubscribe
