"""
Single-writer execution context for session state.

Every read or write of the session state happens inside a task run by
the LogicExecutor. Tasks are zero-argument callables drained by one
consumer task in strict FIFO order. A task returning an awaitable is
awaited to completion before the next task starts, so coroutine tasks
are serialized exactly like plain ones.

Submission:

- ``post(task)`` is fire-and-forget and safe from any thread.
- ``await run(task)`` returns the task's result or re-raises its error.
- ``run_threadsafe(task)`` is the blocking form for foreign threads.

A task must never ``await executor.run(...)`` from inside the executor.
The nested task would queue behind the one waiting on it.
"""

from __future__ import annotations

import asyncio
import inspect
import threading
import traceback
from typing import Any, Awaitable, Callable, TypeVar

from scorecast.logging import Logger
from scorecast.logging.scorecast_logging_models import ExecutorError


T = TypeVar("T")

LogicTask = Callable[[], T | Awaitable[T]]


class LogicExecutor:
    def __init__(
        self,
        name: str = "logic",
        logger: Logger | None = None,
    ) -> None:
        self.name = name

        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread_id: int | None = None
        self._queue: asyncio.Queue[
            tuple[LogicTask | None, asyncio.Future | None]
        ] | None = None
        self._worker: asyncio.Task | None = None
        self._closed = False

        if logger is None:
            logger = Logger()

        self._logger = logger

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        if self._queue is None:
            return 0

        return self._queue.qsize()

    def start(self):
        if self._closed:
            raise RuntimeError(f"Err. - executor {self.name} is closed")

        if self.running:
            return

        loop = asyncio.get_running_loop()

        self._loop = loop
        self._loop_thread_id = threading.get_ident()
        self._queue = asyncio.Queue()
        self._worker = loop.create_task(self._consume())

    def in_loop_thread(self) -> bool:
        return self._loop_thread_id == threading.get_ident()

    def post(self, task: LogicTask) -> bool:
        if self._closed or self._loop is None:
            return False

        self._enqueue(task, None)

        return True

    async def run(self, task: Callable[[], T | Awaitable[T]]) -> T:
        if self._closed or self._loop is None:
            raise RuntimeError(f"Err. - executor {self.name} is not running")

        future = self._loop.create_future()
        self._enqueue(task, future)

        return await future

    def run_threadsafe(
        self,
        task: Callable[[], T | Awaitable[T]],
        timeout: float | None = None,
    ) -> T:
        if self._loop is None:
            raise RuntimeError(f"Err. - executor {self.name} is not running")

        if self.in_loop_thread():
            raise RuntimeError(
                "Err. - run_threadsafe() would block the event loop, await run() instead"
            )

        concurrent_future = asyncio.run_coroutine_threadsafe(
            self.run(task),
            self._loop,
        )

        return concurrent_future.result(timeout=timeout)

    def _enqueue(
        self,
        task: LogicTask | None,
        future: asyncio.Future | None,
    ):
        if self.in_loop_thread():
            self._queue.put_nowait((task, future))

        else:
            self._loop.call_soon_threadsafe(
                self._queue.put_nowait,
                (task, future),
            )

    async def _consume(self):
        while True:
            task, future = await self._queue.get()

            # Sentinel posted by close()
            if task is None:
                break

            try:
                result = task()
                if inspect.isawaitable(result):
                    result = await result

            except asyncio.CancelledError:
                if future and not future.done():
                    future.cancel()

                raise

            except Exception as err:
                if future and not future.done():
                    future.set_exception(err)

                else:
                    await self._logger.log(
                        ExecutorError(
                            message=f"Task failed on executor {self.name}",
                            task=_task_name(task),
                            error=''.join(
                                traceback.format_exception(err)
                            ),
                        )
                    )

                continue

            if future and not future.done():
                future.set_result(result)

    async def close(self):
        """
        Stop accepting tasks, finish everything already queued and
        wait for the consumer to exit.
        """
        if self._closed:
            return

        self._closed = True

        if self._worker is None:
            return

        self._enqueue(None, None)

        if self.in_loop_thread():
            await asyncio.shield(self._worker)

    def abort(self):
        """Stop immediately, cancelling queued tasks and their waiters."""
        self._closed = True

        if self._worker is None:
            return

        if self.in_loop_thread():
            self._abort_on_loop()

        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._abort_on_loop)

    def _abort_on_loop(self):
        if not self._worker.done():
            self._worker.cancel()

        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            if future and not future.done():
                future.cancel()


def _task_name(task: Callable[..., Any]) -> str:
    return getattr(
        task,
        "__qualname__",
        getattr(task, "__name__", repr(task)),
    )
