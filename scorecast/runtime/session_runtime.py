from __future__ import annotations

import asyncio
import functools
import math
from typing import Any, Awaitable, Callable, TypeVar

from scorecast.env import Env, TimeParser
from scorecast.errors import InvalidConfigurationError
from scorecast.logging import Logger
from scorecast.logging.scorecast_logging_models import (
    SessionError,
    SessionInfo,
)
from scorecast.models import SessionState, SessionTime
from scorecast.protocol import SnapshotCodec
from scorecast.repository import FileSessionRepository, SessionRepository

from .clock_state import ClockState
from .game_clock import GameClock, TickListener
from .logic_executor import LogicExecutor
from .scoring import apply_scoring
from .timed_job import JobCall, TimedJob


T = TypeVar("T")

AUTOSAVE_JOB = "autosave"
SCORING_JOB = "scoring"
MULTIPLIER_JOB = "multiplier"


class SessionRuntime:
    """
    Owns the session state and the single executor allowed to touch it,
    and drives the game clock with the built-in timed jobs:

    - ``autosave`` pauses the clock, saves and backs up the state, then
      resumes if it was the one that paused.
    - ``scoring`` applies the scoring collaborator to the live state.
    - ``multiplier`` grows the global multiplier by a fixed factor.

    Anything outside the runtime that needs the state goes through
    ``run_on_logic()`` or ``call_on_logic()``.
    """

    def __init__(
        self,
        state: SessionState,
        env: Env | None = None,
        repository: SessionRepository | None = None,
        scoring: Callable[[SessionState], None] | None = None,
        builtin_jobs: bool = True,
        logger: Logger | None = None,
    ) -> None:
        if env is None:
            env = Env()

        self.env = env
        self._state = state

        if repository is None:
            repository = FileSessionRepository(
                env.SCORECAST_REPOSITORY_DIRECTORY,
            )

        if scoring is None:
            scoring = functools.partial(
                apply_scoring,
                rate=env.SCORECAST_SCORING_RATE,
            )

        self._repository = repository
        self._scoring = scoring
        self._multiplier_growth = env.SCORECAST_MULTIPLIER_GROWTH

        self._codec = SnapshotCodec(
            compress=env.SCORECAST_SNAPSHOT_COMPRESSION,
        )
        self._sequence = 0

        if logger is None:
            logger = Logger()

        self._logger = logger

        self._executor = LogicExecutor(
            name=f"{state.name}-logic",
            logger=logger,
        )
        self._clock = GameClock(
            self._executor,
            self._current_session_time,
            tick_interval=TimeParser(env.SCORECAST_TICK_INTERVAL).time,
            now=state.session_time.whole_seconds,
            logger=logger,
        )

        if builtin_jobs:
            self._clock.register_job(
                AUTOSAVE_JOB,
                self._autosave,
                TimeParser(env.SCORECAST_AUTOSAVE_PERIOD).time,
            )

            self._clock.register_job(
                SCORING_JOB,
                self._apply_scoring,
                TimeParser(env.SCORECAST_SCORING_PERIOD).time,
            )

            self._clock.register_job(
                MULTIPLIER_JOB,
                self._grow_multiplier,
                TimeParser(env.SCORECAST_MULTIPLIER_PERIOD).time,
            )

    @property
    def executor(self) -> LogicExecutor:
        return self._executor

    @property
    def clock(self) -> GameClock:
        return self._clock

    @property
    def codec(self) -> SnapshotCodec:
        return self._codec

    @property
    def state(self) -> SessionState:
        """The live state. Only read or write it from a logic task."""
        return self._state

    @property
    def clock_state(self) -> ClockState:
        return self._clock.state

    def start(self):
        """
        Start the executor (on first call, from inside the event loop)
        and the clock. Safe to call repeatedly.
        """
        if not self._executor.running and not self._executor.closed:
            self._executor.start()

        self._clock.start()

    def pause(self):
        self._clock.pause()

    def resume(self):
        self._clock.resume()

    def stop(self):
        self._clock.stop()

    def close(self):
        self._clock.close()
        self._executor.abort()

    async def shutdown(self):
        """Close the clock, let running jobs finish and drain the executor."""
        self._clock.close()
        await self._clock.wait_closed()
        await self._executor.close()

    def run_on_logic(self, task: Callable[[], Any]) -> bool:
        return self._executor.post(task)

    async def call_on_logic(self, task: Callable[[], T | Awaitable[T]]) -> T:
        return await self._executor.run(task)

    def call_on_logic_threadsafe(
        self,
        task: Callable[[], T | Awaitable[T]],
        timeout: float | None = None,
    ) -> T:
        return self._executor.run_threadsafe(task, timeout=timeout)

    def register_periodic_job(
        self,
        name: str,
        job: JobCall,
        period_seconds: int | float,
        initial_delay_seconds: int | float | None = None,
    ) -> TimedJob:
        return self._clock.register_job(
            name,
            job,
            period_seconds,
            initial_delay=initial_delay_seconds,
        )

    def unregister_job(self, name: str) -> bool:
        return self._clock.unregister_job(name)

    def add_tick_listener(self, listener: TickListener):
        self._clock.add_tick_listener(listener)

    def remove_tick_listener(self, listener: TickListener):
        self._clock.remove_tick_listener(listener)

    def set_speed(self, speed: float):
        if speed is None or not math.isfinite(speed) or speed <= 0:
            raise InvalidConfigurationError(
                f"Err. - speed must be > 0, got {speed}"
            )

        def set_speed_on_logic():
            self._state.session_time.speed = speed

        if not self._executor.post(set_speed_on_logic):
            # No consumer is running, so nothing else writes the state.
            set_speed_on_logic()

    async def get_speed(self) -> float:
        return await self._executor.run(
            lambda: self._state.session_time.speed
        )

    async def elapsed_seconds(self) -> int:
        return await self._executor.run(
            lambda: self._state.session_time.whole_seconds
        )

    async def elapsed_seconds_exact(self) -> float:
        return await self._executor.run(
            lambda: self._state.session_time.elapsed
        )

    async def elapsed_formatted(self) -> str:
        return format_elapsed(await self.elapsed_seconds())

    async def reset_time(self):
        def reset_on_logic():
            self._state.session_time.elapsed = 0.0
            self._clock.reanchor()

        await self._executor.run(reset_on_logic)

    async def load_state(self, state: SessionState):
        def load_on_logic():
            self._state = state
            self._clock.reanchor()

        await self._executor.run(load_on_logic)

        await self._logger.log(
            SessionInfo(
                message=f"Loaded session {state.name} at {format_elapsed(state.session_time.whole_seconds)}",
                session=state.name,
                role="HOST",
            )
        )

    async def state_snapshot(self) -> bytes:
        """Encode the live state on the executor into a snapshot payload."""
        return await self._executor.run(self._encode_on_logic)

    def _encode_on_logic(self) -> bytes:
        self._sequence += 1
        return self._codec.encode(
            self._state,
            sequence=self._sequence,
        )

    def _current_session_time(self) -> SessionTime | None:
        if self._state is None:
            return None

        return self._state.session_time

    async def _autosave(self):
        paused_here = not self._clock.paused
        if paused_here:
            self._clock.pause()

        pause_count = self._clock.pause_count

        try:
            await self._executor.run(self._save_and_backup)

        except Exception as err:
            await self._logger.log(
                SessionError(
                    message=f"Autosave failed - {err}",
                    session=self._state.name,
                    role="HOST",
                )
            )

        finally:
            # A pause issued while saving belongs to its caller.
            if paused_here and self._clock.pause_count == pause_count:
                self._clock.resume()

    async def _save_and_backup(self):
        # File writes leave the loop, but this task holds the executor
        # until both finish, so no mutation lands mid-save.
        loop = asyncio.get_running_loop()
        state = self._state

        await loop.run_in_executor(None, self._repository.save, state)
        await loop.run_in_executor(None, self._repository.backup, state)

    def _apply_scoring(self):
        self._scoring(self._state)

    def _grow_multiplier(self):
        self._state.multiplier *= self._multiplier_growth


def format_elapsed(seconds: int) -> str:
    hours, remainder = divmod(max(seconds, 0), 3600)
    minutes, seconds = divmod(remainder, 60)

    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
