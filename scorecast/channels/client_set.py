import threading
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class ClientSet(Generic[T]):
    """
    Set of connected clients shared by the accept path, which adds, and
    the broadcast path, which removes. Iteration works on a copy.
    """

    def __init__(self) -> None:
        self._items: set[T] = set()
        self._lock = threading.Lock()

    def add(self, item: T):
        with self._lock:
            self._items.add(item)

    def discard(self, item: T) -> bool:
        with self._lock:
            if item not in self._items:
                return False

            self._items.discard(item)
            return True

    def snapshot(self) -> list[T]:
        with self._lock:
            return list(self._items)

    def clear(self) -> list[T]:
        with self._lock:
            items = list(self._items)
            self._items.clear()

            return items

    def __contains__(self, item: T) -> bool:
        with self._lock:
            return item in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.snapshot())
