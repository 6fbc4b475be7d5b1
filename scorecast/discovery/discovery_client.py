from __future__ import annotations

import asyncio
import socket

from scorecast.errors import DecodeError, DiscoveryTimeoutError
from scorecast.logging import Logger
from scorecast.logging.scorecast_logging_models import DiscoveryDebug
from scorecast.models import Role

from .discovery_protocol import DiscoveryQueryProtocol, parse_reply


class DiscoveryClient:
    def __init__(
        self,
        port: int = 53535,
        query: str = "WHO_ARE_YOU?",
        timeout: float = 1.0,
        logger: Logger | None = None,
    ) -> None:
        self.port = port
        self.query_text = query
        self.timeout = timeout

        if logger is None:
            logger = Logger()

        self._logger = logger

    async def query(
        self,
        host: str,
        port: int | None = None,
    ) -> str:
        """
        Send one discovery query and return the reply text.

        Raises:
            DiscoveryTimeoutError: No reply arrived within the timeout.
        """
        if port is None:
            port = self.port

        loop = asyncio.get_running_loop()
        reply = loop.create_future()

        transport, _ = await loop.create_datagram_endpoint(
            lambda: DiscoveryQueryProtocol(reply),
            local_addr=("0.0.0.0", 0),
            family=socket.AF_INET,
        )

        try:
            transport.sendto(self.query_text.encode(), (host, port))
            data: bytes = await asyncio.wait_for(reply, timeout=self.timeout)

        except asyncio.TimeoutError as err:
            raise DiscoveryTimeoutError(
                f"Err. - no discovery reply from {host}:{port} within {self.timeout}s",
                host=host,
                port=port,
            ) from err

        finally:
            transport.close()

        text = data.decode(errors="replace").strip()

        await self._logger.log(
            DiscoveryDebug(
                message=f"Discovery reply {text}",
                host=host,
                port=port,
                role=text,
            )
        )

        return text

    async def query_role(
        self,
        host: str,
        port: int | None = None,
    ) -> Role:
        reply = await self.query(host, port=port)

        try:
            return parse_reply(reply)

        except ValueError as err:
            raise DecodeError(str(err), line=reply) from err
