import asyncio
import traceback
from typing import Any, Awaitable, Callable

from .job_status import JobStatus


JobCall = Callable[[], Any | Awaitable[Any]]


class TimedJob:
    __slots__ = (
        "name",
        "call",
        "period",
        "initial_delay",
        "next_due",
        "status",
        "error",
        "trace",
        "runs",
        "skipped",
        "failures",
        "task",
    )

    def __init__(
        self,
        name: str,
        call: JobCall,
        period: int,
        initial_delay: int,
        next_due: int,
    ) -> None:
        self.name = name
        self.call = call
        self.period = period
        self.initial_delay = initial_delay
        self.next_due = next_due

        self.status = JobStatus.CREATED
        self.error: str | None = None
        self.trace: str | None = None

        self.runs = 0
        self.skipped = 0
        self.failures = 0

        self.task: asyncio.Task | None = None

    @property
    def running(self):
        return self.status == JobStatus.RUNNING

    @property
    def failed(self):
        return self.status == JobStatus.FAILED

    @property
    def completed(self):
        return self.status == JobStatus.COMPLETE

    def mark_running(self):
        self.runs += 1
        self.status = JobStatus.RUNNING

    def mark_complete(self):
        self.status = JobStatus.COMPLETE
        self.error = None
        self.trace = None

    def mark_cancelled(self):
        self.status = JobStatus.CANCELLED

    def mark_failed(self, err: Exception):
        self.failures += 1
        self.status = JobStatus.FAILED
        self.error = str(err)
        self.trace = ''.join(
            traceback.format_exception(err)
        )

    def advance(self, now: int):
        # Always move at least one whole session second forward.
        self.next_due = max(now + self.period, now + 1)

    def skip(self, now: int):
        self.skipped += 1

        next_due = self.next_due
        while next_due <= now:
            next_due += self.period

        self.next_due = next_due

    def reanchor(self, now: int):
        self.next_due = now + self.period

    def __repr__(self) -> str:
        return (
            f"TimedJob(name={self.name!r}, period={self.period}, "
            f"next_due={self.next_due}, status={self.status.value})"
        )
