"""
Speed-scaled, pausable session clock.

A real-time ticker wakes once per tick interval and runs one tick on
the logic executor. A tick adds ``speed`` to the session's elapsed time
and fires every registered job whose ``next_due`` has been reached:

- Plain callables run inline on the executor, so they never overlap.
- Callables returning an awaitable run as background tasks. While one
  is still running, further firings of that job are skipped and its
  ``next_due`` advances in whole periods from the previous ``next_due``.

Tick listeners run after every real tick, paused or not.
"""

from __future__ import annotations

import asyncio
import inspect
import math
from typing import Any, Awaitable, Callable

from scorecast.errors import InvalidConfigurationError
from scorecast.logging import Logger
from scorecast.logging.scorecast_logging_models import (
    ClockDebug,
    JobDebug,
    JobError,
)
from scorecast.models import SessionTime

from .clock_state import ClockState
from .job_registry import JobRegistry
from .logic_executor import LogicExecutor
from .timed_job import JobCall, TimedJob


TickListener = Callable[[], Any | Awaitable[Any]]


class GameClock:
    def __init__(
        self,
        executor: LogicExecutor,
        session_time: Callable[[], SessionTime | None],
        tick_interval: float = 1.0,
        now: int = 0,
        logger: Logger | None = None,
    ) -> None:
        if tick_interval <= 0:
            raise InvalidConfigurationError(
                f"Err. - tick interval must be > 0, got {tick_interval}"
            )

        self._executor = executor
        self._session_time = session_time
        self.tick_interval = tick_interval

        self._jobs = JobRegistry()
        self._listeners: list[TickListener] = []

        # Last observed floor(elapsed). Written on the executor only.
        self._now = now

        self._ticker: asyncio.Task | None = None
        self._running = False
        self._paused = False
        self._pause_count = 0
        self._closed = False

        if logger is None:
            logger = Logger()

        self._logger = logger

    @property
    def now(self) -> int:
        return self._now

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def pause_count(self) -> int:
        """Number of pause() calls since construction."""
        return self._pause_count

    @property
    def running(self) -> bool:
        return self._running

    @property
    def state(self) -> ClockState:
        if self._closed:
            return ClockState.CLOSED

        if not self._running:
            return ClockState.STOPPED

        if self._paused:
            return ClockState.PAUSED

        return ClockState.RUNNING

    @property
    def jobs(self) -> JobRegistry:
        return self._jobs

    def register_job(
        self,
        name: str,
        call: JobCall,
        period: int | float,
        initial_delay: int | float | None = None,
    ) -> TimedJob:
        if period is None or not math.isfinite(period) or period <= 0:
            raise InvalidConfigurationError(
                f"Err. - job {name!r} period must be > 0, got {period}"
            )

        if initial_delay is None:
            initial_delay = period

        if not math.isfinite(initial_delay) or initial_delay < 0:
            raise InvalidConfigurationError(
                f"Err. - job {name!r} initial delay must be >= 0, got {initial_delay}"
            )

        # Session time advances in whole seconds.
        if period != int(period) or initial_delay != int(initial_delay):
            raise InvalidConfigurationError(
                f"Err. - job {name!r} period and initial delay must be whole seconds, got {period} and {initial_delay}"
            )

        period = int(period)
        initial_delay = int(initial_delay)

        job = TimedJob(
            name,
            call,
            period,
            initial_delay,
            self._now + initial_delay,
        )

        self._jobs.register(job)

        return job

    def unregister_job(self, name: str) -> bool:
        job = self._jobs.unregister(name)
        if job is None:
            return False

        if job.task and not job.task.done():
            job.task.cancel()

        return True

    def add_tick_listener(self, listener: TickListener):
        self._listeners.append(listener)

    def remove_tick_listener(self, listener: TickListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def start(self):
        if self._closed:
            return

        self._call_on_loop(self._start_on_loop)

    def pause(self):
        self._pause_count += 1
        self._paused = True

    def resume(self):
        self._paused = False

    def stop(self):
        self._call_on_loop(self._stop_on_loop)

    def close(self):
        if self._closed:
            return

        self._closed = True
        self._call_on_loop(self._close_on_loop)

    async def wait_closed(self):
        pending = [
            job.task for job in self._jobs.snapshot()
            if job.task and not job.task.done()
        ]

        if self._ticker and not self._ticker.done():
            pending.append(self._ticker)

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def tick(self) -> bool:
        """
        Run one tick on the executor, then notify tick listeners.
        Returns whether session time advanced.
        """
        advanced = await self._executor.run(self._tick_on_logic)

        for listener in list(self._listeners):
            try:
                result = listener()
                if inspect.isawaitable(result):
                    await result

            except Exception as err:
                await self._logger.log(
                    JobError(
                        message="Tick listener failed",
                        job=getattr(listener, "__qualname__", repr(listener)),
                        now=self._now,
                        next_due=self._now,
                        error=str(err),
                    )
                )

        return advanced

    def reanchor(self):
        """
        Re-read elapsed time and reschedule every job one period from
        it. Must run on the executor.
        """
        session_time = self._session_time()
        if session_time is not None:
            self._now = session_time.whole_seconds

        for job in self._jobs.snapshot():
            job.reanchor(self._now)

    def sync_now(self):
        session_time = self._session_time()
        if session_time is not None:
            self._now = session_time.whole_seconds

    def _call_on_loop(self, call: Callable[[], None]):
        loop = self._executor.loop
        if loop is None or self._executor.in_loop_thread():
            call()

        elif not loop.is_closed():
            loop.call_soon_threadsafe(call)

    def _start_on_loop(self):
        if self._closed or self._running:
            return

        self._running = True
        self._executor.post(self.sync_now)
        self._ticker = asyncio.get_running_loop().create_task(self._run_ticker())

    def _stop_on_loop(self):
        self._running = False

        if self._ticker and not self._ticker.done():
            self._ticker.cancel()

        self._ticker = None

    def _close_on_loop(self):
        self._stop_on_loop()

        for job in self._jobs.snapshot():
            if job.task and not job.task.done():
                job.task.cancel()

    async def _run_ticker(self):
        # Fixed rate: each tick is due one interval after the previous
        # one was due, however long the previous tick took.
        loop = asyncio.get_running_loop()
        next_at = loop.time()

        while self._running:
            next_at += self.tick_interval
            await asyncio.sleep(max(0.0, next_at - loop.time()))

            if not self._running:
                break

            try:
                await self.tick()

            except RuntimeError:
                # Executor closed underneath the clock.
                self._running = False

    async def _tick_on_logic(self) -> bool:
        if self._paused:
            return False

        session_time = self._session_time()
        if session_time is None:
            return False

        session_time.elapsed += session_time.speed
        now = session_time.whole_seconds
        self._now = now

        await self._logger.log(
            ClockDebug(
                message="Clock ticked",
                elapsed=session_time.elapsed,
                speed=session_time.speed,
            )
        )

        for job in self._jobs.snapshot():
            if job.next_due <= now:
                await self._fire(job, now)

        return True

    async def _fire(self, job: TimedJob, now: int):
        if job.running:
            job.skip(now)

            await self._logger.log(
                JobDebug(
                    message=f"Skipped job {job.name} - previous run still in progress",
                    job=job.name,
                    now=now,
                    next_due=job.next_due,
                )
            )

            return

        job.mark_running()

        try:
            result = job.call()

        except Exception as err:
            job.mark_failed(err)
            job.advance(now)

            await self._log_job_error(job, now, err)

            return

        job.advance(now)

        if inspect.isawaitable(result):
            job.task = asyncio.ensure_future(
                self._complete_job(job, now, result)
            )

        else:
            job.mark_complete()

    async def _complete_job(
        self,
        job: TimedJob,
        now: int,
        result: Awaitable[Any],
    ):
        try:
            await result
            job.mark_complete()

        except asyncio.CancelledError:
            job.mark_cancelled()
            raise

        except Exception as err:
            job.mark_failed(err)
            await self._log_job_error(job, now, err)

    async def _log_job_error(
        self,
        job: TimedJob,
        now: int,
        err: Exception,
    ):
        await self._logger.log(
            JobError(
                message=f"Job {job.name} failed",
                job=job.name,
                now=now,
                next_due=job.next_due,
                error=job.trace or str(err),
            )
        )
