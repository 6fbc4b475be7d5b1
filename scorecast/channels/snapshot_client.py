from __future__ import annotations

import asyncio
import contextlib
import inspect
from typing import Any, Awaitable, Callable

from scorecast.errors import FrameTooLargeError, SnapshotDecodeError
from scorecast.logging import Logger
from scorecast.logging.scorecast_logging_models import (
    ChannelDebug,
    ChannelError,
    ChannelInfo,
    ChannelWarn,
)
from scorecast.models import SessionState
from scorecast.protocol import MAX_FRAME_LENGTH, SnapshotCodec, read_frame


SnapshotCallback = Callable[[SessionState, int], Any | Awaitable[Any]]


class SnapshotClient:
    """
    Long-lived reader of the host's snapshot stream.

    Every decoded frame is passed to ``on_snapshot`` with its sequence
    number. A frame that fails to decode is skipped. Any transport
    failure closes the socket, waits ``reconnect_backoff`` and connects
    again, until ``stop()`` is called.
    """

    def __init__(
        self,
        host: str,
        port: int,
        on_snapshot: SnapshotCallback,
        codec: SnapshotCodec | None = None,
        reconnect_backoff: float = 0.75,
        connect_timeout: float = 2.0,
        max_frame_length: int = MAX_FRAME_LENGTH,
        logger: Logger | None = None,
    ) -> None:
        if codec is None:
            codec = SnapshotCodec()

        self.host = host
        self.port = port
        self.reconnect_backoff = reconnect_backoff
        self.connect_timeout = connect_timeout

        self._on_snapshot = on_snapshot
        self._codec = codec
        self._max_frame_length = max_frame_length

        self._task: asyncio.Task | None = None
        self._running = False
        self._connected = False

        if logger is None:
            logger = Logger()

        self._logger = logger

        self.frames_received = 0
        self.frames_dropped = 0
        self.connection_attempts = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def connected(self) -> bool:
        return self._connected

    def start(self):
        if self.running:
            return

        self._running = True
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self):
        self._running = False

        if self._task is None:
            return

        task = self._task
        self._task = None

        if not task.done():
            task.cancel()

        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self):
        while self._running:
            writer: asyncio.StreamWriter | None = None
            self.connection_attempts += 1

            try:
                reader, writer = await asyncio.wait_for(
                    asyncio.open_connection(self.host, self.port),
                    timeout=self.connect_timeout,
                )

                self._connected = True

                await self._logger.log(
                    ChannelInfo(
                        message="Connected to snapshot stream",
                        channel="snapshot",
                        host=self.host,
                        port=self.port,
                    )
                )

                while self._running:
                    payload = await read_frame(
                        reader,
                        max_frame_length=self._max_frame_length,
                    )

                    await self._deliver(payload)

            except (
                OSError,
                asyncio.IncompleteReadError,
                asyncio.TimeoutError,
                FrameTooLargeError,
            ) as err:
                await self._logger.log(
                    ChannelDebug(
                        message=f"Snapshot stream unavailable - {err!r}",
                        channel="snapshot",
                        host=self.host,
                        port=self.port,
                    )
                )

            finally:
                self._connected = False

                if writer is not None:
                    writer.close()

                    with contextlib.suppress(ConnectionError, OSError):
                        await writer.wait_closed()

            if self._running:
                await asyncio.sleep(self.reconnect_backoff)

    async def _deliver(self, payload: bytes):
        try:
            envelope = self._codec.decode_envelope(payload)

        except SnapshotDecodeError as err:
            self.frames_dropped += 1

            await self._logger.log(
                ChannelWarn(
                    message=f"Skipped snapshot frame - {err}",
                    channel="snapshot",
                    host=self.host,
                    port=self.port,
                )
            )

            return

        self.frames_received += 1

        try:
            result = self._on_snapshot(envelope.state, envelope.sequence)
            if inspect.isawaitable(result):
                await result

        except Exception as err:
            await self._logger.log(
                ChannelError(
                    message=f"Snapshot callback failed - {err}",
                    channel="snapshot",
                    host=self.host,
                    port=self.port,
                )
            )
