from __future__ import annotations

import asyncio
from typing import Callable

from scorecast.models import Role


MODE_PREFIX = "MODE:"


def to_reply(role: Role) -> bytes:
    return f"{MODE_PREFIX}{role.value}".encode()


def parse_reply(reply: str) -> Role:
    reply = reply.strip()
    if not reply.startswith(MODE_PREFIX):
        raise ValueError(f"Err. - unexpected discovery reply {reply!r}")

    return Role.to_role(reply[len(MODE_PREFIX):])


class DiscoveryResponderProtocol(asyncio.DatagramProtocol):
    def __init__(
        self,
        query: str,
        role: Callable[[], Role],
    ) -> None:
        super().__init__()
        self.transport: asyncio.DatagramTransport | None = None
        self.query = query
        self.replies = 0
        self._role = role

    def connection_made(self, transport: asyncio.DatagramTransport):
        self.transport = transport

    def datagram_received(self, data: bytes, addr: tuple[str, int]):
        if data.decode(errors="ignore").strip() != self.query:
            return

        if self.transport and not self.transport.is_closing():
            self.transport.sendto(to_reply(self._role()), addr)
            self.replies += 1

    def error_received(self, exc: Exception):
        # ICMP errors for replies to vanished peers. The socket stays usable.
        pass


class DiscoveryQueryProtocol(asyncio.DatagramProtocol):
    def __init__(self, reply: asyncio.Future) -> None:
        super().__init__()
        self._reply = reply

    def datagram_received(self, data: bytes, addr: tuple[str, int]):
        if not self._reply.done():
            self._reply.set_result(data)

    def error_received(self, exc: Exception):
        # Unreachable responders surface as a timeout.
        pass
