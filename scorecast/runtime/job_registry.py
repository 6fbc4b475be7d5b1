import threading

from scorecast.errors import InvalidConfigurationError

from .timed_job import TimedJob


class JobRegistry:
    """
    Named timed jobs. Ticks read a copy taken under the lock, so jobs
    may be registered or removed from any thread while the clock runs.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, TimedJob] = {}
        self._lock = threading.Lock()

    def register(self, job: TimedJob):
        with self._lock:
            if job.name in self._jobs:
                raise InvalidConfigurationError(
                    f"Err. - job {job.name!r} is already registered"
                )

            self._jobs[job.name] = job

    def unregister(self, name: str) -> TimedJob | None:
        with self._lock:
            return self._jobs.pop(name, None)

    def get(self, name: str) -> TimedJob | None:
        with self._lock:
            return self._jobs.get(name)

    def snapshot(self) -> list[TimedJob]:
        with self._lock:
            return list(self._jobs.values())

    def names(self) -> list[str]:
        with self._lock:
            return list(self._jobs.keys())

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
