from __future__ import annotations

import asyncio
import contextlib

from scorecast.logging import Logger
from scorecast.logging.scorecast_logging_models import (
    ChannelDebug,
    ChannelInfo,
    ChannelWarn,
)
from scorecast.protocol import frame_message

from .client_set import ClientSet


class SnapshotServer:
    """
    Pushes length-prefixed snapshot frames to every connected slave.

    New clients join the set and receive the next broadcast. A client
    whose write fails, or whose drain does not finish within the
    broadcast timeout, is closed and dropped without affecting the rest.
    """

    def __init__(
        self,
        host: str,
        port: int,
        broadcast_timeout: float = 1.0,
        logger: Logger | None = None,
    ) -> None:
        self.host = host
        self._requested_port = port
        self.broadcast_timeout = broadcast_timeout

        self._server: asyncio.Server | None = None
        self._clients: ClientSet[asyncio.StreamWriter] = ClientSet()

        if logger is None:
            logger = Logger()

        self._logger = logger

    @property
    def port(self) -> int:
        if self._server and self._server.sockets:
            return self._server.sockets[0].getsockname()[1]

        return self._requested_port

    @property
    def running(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def start(self):
        if self.running:
            return

        self._server = await asyncio.start_server(
            self._handle_connection,
            host=self.host,
            port=self._requested_port,
        )

        await self._logger.log(
            ChannelInfo(
                message="Snapshot server listening",
                channel="snapshot",
                host=self.host,
                port=self.port,
            )
        )

    async def close(self):
        if self._server is None:
            return

        server = self._server
        self._server = None

        server.close()

        for writer in self._clients.clear():
            writer.close()

        await server.wait_closed()

        await self._logger.log(
            ChannelInfo(
                message="Snapshot server closed",
                channel="snapshot",
                host=self.host,
                port=self._requested_port,
            )
        )

    async def broadcast(self, frame: bytes) -> int:
        """Send one frame to every client. Returns how many received it."""
        clients = self._clients.snapshot()
        if not clients:
            return 0

        framed = frame_message(frame)

        results = await asyncio.gather(*[
            self._send(writer, framed) for writer in clients
        ])

        return sum(1 for delivered in results if delivered)

    async def _send(
        self,
        writer: asyncio.StreamWriter,
        framed: bytes,
    ) -> bool:
        try:
            if writer.is_closing():
                raise ConnectionResetError("client socket is closed")

            writer.write(framed)
            await asyncio.wait_for(
                writer.drain(),
                timeout=self.broadcast_timeout,
            )

            return True

        except (OSError, asyncio.TimeoutError) as err:
            await self._drop(writer, err)

            return False

    async def _drop(
        self,
        writer: asyncio.StreamWriter,
        err: BaseException | None = None,
    ):
        if not self._clients.discard(writer):
            return

        writer.close()

        peer = writer.get_extra_info("peername") or ("unknown", 0)

        await self._logger.log(
            ChannelWarn(
                message=f"Dropped snapshot client - {err!r}",
                channel="snapshot",
                host=str(peer[0]),
                port=int(peer[1]),
            )
        )

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ):
        peer = writer.get_extra_info("peername") or ("unknown", 0)
        self._clients.add(writer)

        await self._logger.log(
            ChannelDebug(
                message="Snapshot client connected",
                channel="snapshot",
                host=str(peer[0]),
                port=int(peer[1]),
            )
        )

        # Slaves never send anything. Reading only detects disconnects.
        try:
            while await reader.read(1024):
                pass

        except (ConnectionError, OSError):
            pass

        finally:
            if self._clients.discard(writer):
                await self._logger.log(
                    ChannelDebug(
                        message="Snapshot client disconnected",
                        channel="snapshot",
                        host=str(peer[0]),
                        port=int(peer[1]),
                    )
                )

            writer.close()

            with contextlib.suppress(ConnectionError, OSError):
                await writer.wait_closed()
