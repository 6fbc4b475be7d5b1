from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Awaitable, Callable

from scorecast.commands import Command, decode
from scorecast.errors import DecodeError
from scorecast.logging import Logger
from scorecast.logging.scorecast_logging_models import (
    ChannelDebug,
    ChannelError,
    ChannelInfo,
)
from scorecast.models import CommandAck
from scorecast.protocol import MAX_LINE_LENGTH

from .client_set import ClientSet


ApplyCommand = Callable[[Command], Awaitable[Any]]


class CommandServer:
    """
    Accepts newline-delimited command lines from slaves.

    Each decoded command is handed to ``apply_command``, which must run
    the mutation on the logic executor. The connection handler itself
    never touches session state. Every line is answered with ``OK`` or
    ``ERR <message>`` when acknowledgements are enabled. A bad line is
    answered and skipped, it does not end the connection.
    """

    def __init__(
        self,
        host: str,
        port: int,
        apply_command: ApplyCommand,
        acknowledge: bool = True,
        max_line_length: int = MAX_LINE_LENGTH,
        logger: Logger | None = None,
    ) -> None:
        self.host = host
        self._requested_port = port
        self._apply_command = apply_command
        self.acknowledge = acknowledge
        self._max_line_length = max_line_length

        self._server: asyncio.Server | None = None
        self._connections: ClientSet[asyncio.StreamWriter] = ClientSet()
        self._closing = False

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
    def connection_count(self) -> int:
        return len(self._connections)

    async def start(self):
        if self.running:
            return

        self._closing = False
        self._server = await asyncio.start_server(
            self._handle_connection,
            host=self.host,
            port=self._requested_port,
            limit=self._max_line_length,
        )

        await self._logger.log(
            ChannelInfo(
                message="Command server listening",
                channel="command",
                host=self.host,
                port=self.port,
            )
        )

    async def close(self):
        if self._server is None:
            return

        self._closing = True
        server = self._server
        self._server = None

        server.close()

        for writer in self._connections.clear():
            writer.close()

        await server.wait_closed()

        await self._logger.log(
            ChannelInfo(
                message="Command server closed",
                channel="command",
                host=self.host,
                port=self._requested_port,
            )
        )

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ):
        peer = writer.get_extra_info("peername") or ("unknown", 0)
        self._connections.add(writer)

        try:
            while not self._closing:
                try:
                    line = await reader.readline()

                except ValueError:
                    # Line exceeded the stream limit and its bytes were
                    # discarded, so framing is lost.
                    await self._reply(
                        writer,
                        CommandAck(ok=False, message="line too long"),
                    )
                    break

                if not line:
                    break

                if not line.strip():
                    continue

                ack = await self._process(line, peer)
                if self.acknowledge:
                    await self._reply(writer, ack)

        except (ConnectionError, OSError) as err:
            await self._logger.log(
                ChannelDebug(
                    message=f"Command connection dropped - {err}",
                    channel="command",
                    host=str(peer[0]),
                    port=int(peer[1]),
                )
            )

        finally:
            self._connections.discard(writer)
            writer.close()

            with contextlib.suppress(ConnectionError, OSError):
                await writer.wait_closed()

    async def _process(
        self,
        line: bytes,
        peer: tuple[str, int],
    ) -> CommandAck:
        try:
            command = decode(line)

        except DecodeError as err:
            await self._logger.log(
                ChannelDebug(
                    message=f"Rejected command line - {err}",
                    channel="command",
                    host=str(peer[0]),
                    port=int(peer[1]),
                )
            )

            return CommandAck(ok=False, message=str(err))

        try:
            await self._apply_command(command)

        except Exception as err:
            message = err.args[0] if err.args else type(err).__name__

            await self._logger.log(
                ChannelError(
                    message=f"Command {command.type.value} failed - {message}",
                    channel="command",
                    host=str(peer[0]),
                    port=int(peer[1]),
                )
            )

            return CommandAck(ok=False, message=str(message))

        return CommandAck(ok=True)

    async def _reply(
        self,
        writer: asyncio.StreamWriter,
        ack: CommandAck,
    ):
        writer.write(ack.to_line().encode())
        await writer.drain()
