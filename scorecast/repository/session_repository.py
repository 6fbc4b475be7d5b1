from typing import Protocol

from scorecast.models import SessionState


class SessionRepository(Protocol):
    def save(self, state: SessionState) -> None:
        ...

    def backup(self, state: SessionState) -> None:
        ...
