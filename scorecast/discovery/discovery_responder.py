from __future__ import annotations

import asyncio
import socket
from typing import Callable

from scorecast.logging import Logger
from scorecast.logging.scorecast_logging_models import (
    DiscoveryError,
    DiscoveryInfo,
)
from scorecast.models import Role

from .discovery_protocol import DiscoveryResponderProtocol


class DiscoveryResponder:
    """
    Answers ``MODE:<role>`` to every datagram whose payload is the
    discovery query. Other datagrams are ignored. Can be started and
    closed repeatedly.
    """

    def __init__(
        self,
        role: Callable[[], Role],
        host: str = "0.0.0.0",
        port: int = 53535,
        query: str = "WHO_ARE_YOU?",
        logger: Logger | None = None,
    ) -> None:
        self.host = host
        self._requested_port = port
        self.query = query
        self._role = role

        self._transport: asyncio.DatagramTransport | None = None
        self._protocol: DiscoveryResponderProtocol | None = None

        if logger is None:
            logger = Logger()

        self._logger = logger

    @property
    def port(self) -> int:
        if self._transport:
            return self._transport.get_extra_info("sockname")[1]

        return self._requested_port

    @property
    def running(self) -> bool:
        return self._transport is not None and not self._transport.is_closing()

    @property
    def replies(self) -> int:
        if self._protocol is None:
            return 0

        return self._protocol.replies

    async def start(self):
        if self.running:
            return

        loop = asyncio.get_running_loop()

        try:
            self._transport, self._protocol = await loop.create_datagram_endpoint(
                lambda: DiscoveryResponderProtocol(
                    self.query,
                    self._role,
                ),
                local_addr=(self.host, self._requested_port),
                family=socket.AF_INET,
            )

        except OSError as err:
            await self._logger.log(
                DiscoveryError(
                    message=f"Could not bind discovery responder - {err}",
                    host=self.host,
                    port=self._requested_port,
                    role=self._role().value,
                )
            )

            raise

        await self._logger.log(
            DiscoveryInfo(
                message="Discovery responder listening",
                host=self.host,
                port=self.port,
                role=self._role().value,
            )
        )

    def close(self):
        if self._transport is None:
            return

        transport = self._transport
        self._transport = None

        transport.close()
