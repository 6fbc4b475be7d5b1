from __future__ import annotations

import asyncio
import contextlib

from scorecast.commands import Command, encode
from scorecast.errors import CommandRejectedError, CommandSendError
from scorecast.models import CommandAck
from scorecast.protocol import MAX_LINE_LENGTH


class CommandClient:
    """
    Sends one command per connection: connect, write the line, optionally
    wait for the acknowledgement, close. Failures are raised to the
    caller and never retried here.
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = 2.0,
        ack_timeout: float = 2.0,
        wait_for_ack: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.ack_timeout = ack_timeout
        self.wait_for_ack = wait_for_ack

    async def send(self, command: Command) -> CommandAck | None:
        """
        Raises:
            CommandSendError: Connecting, writing or reading the ack
                failed or timed out.
            CommandRejectedError: The host answered ``ERR``.
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(
                    self.host,
                    self.port,
                    limit=MAX_LINE_LENGTH,
                ),
                timeout=self.connect_timeout,
            )

        except (OSError, asyncio.TimeoutError) as err:
            raise CommandSendError(
                f"Err. - could not connect to {self.host}:{self.port} - {err!r}",
                host=self.host,
                port=self.port,
            ) from err

        try:
            writer.write(encode(command).encode())
            await asyncio.wait_for(
                writer.drain(),
                timeout=self.ack_timeout,
            )

            if not self.wait_for_ack:
                return None

            line = await asyncio.wait_for(
                reader.readline(),
                timeout=self.ack_timeout,
            )

        except (OSError, ValueError, asyncio.TimeoutError) as err:
            raise CommandSendError(
                f"Err. - failed sending {command.type.value} to {self.host}:{self.port} - {err!r}",
                host=self.host,
                port=self.port,
            ) from err

        finally:
            writer.close()

            with contextlib.suppress(ConnectionError, OSError):
                await writer.wait_closed()

        if not line:
            raise CommandSendError(
                f"Err. - {self.host}:{self.port} closed the connection before acknowledging",
                host=self.host,
                port=self.port,
            )

        ack = CommandAck.parse(line.decode(errors="replace"))
        if not ack.ok:
            raise CommandRejectedError(ack.message or "rejected")

        return ack
