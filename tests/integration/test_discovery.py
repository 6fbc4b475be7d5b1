import asyncio
import socket

import pytest

from scorecast.discovery import DiscoveryClient, DiscoveryResponder, parse_reply
from scorecast.errors import DecodeError, DiscoveryTimeoutError
from scorecast.models import Role


def free_udp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as probe:
        probe.bind(("127.0.0.1", 0))
        return probe.getsockname()[1]


class TestDiscoveryResponder:
    @pytest.mark.asyncio
    async def test_query_returns_current_role(self):
        role = Role.HOST
        responder = DiscoveryResponder(lambda: role, host="127.0.0.1", port=0)
        await responder.start()

        client = DiscoveryClient(port=responder.port, timeout=1.0)

        assert await client.query("127.0.0.1") == "MODE:HOST"

        role = Role.SLAVE
        assert await client.query_role("127.0.0.1") == Role.SLAVE
        assert responder.replies == 2

        responder.close()

    @pytest.mark.asyncio
    async def test_non_matching_datagrams_are_ignored(self):
        responder = DiscoveryResponder(lambda: Role.HOST, host="127.0.0.1", port=0)
        await responder.start()

        client = DiscoveryClient(port=responder.port, query="HELLO?", timeout=0.2)

        with pytest.raises(DiscoveryTimeoutError):
            await client.query("127.0.0.1")

        assert responder.replies == 0

        responder.close()

    @pytest.mark.asyncio
    async def test_query_payload_is_whitespace_tolerant(self):
        responder = DiscoveryResponder(lambda: Role.HOST, host="127.0.0.1", port=0)
        await responder.start()

        client = DiscoveryClient(port=responder.port, query="WHO_ARE_YOU?\n", timeout=1.0)

        assert await client.query("127.0.0.1") == "MODE:HOST"

        responder.close()

    @pytest.mark.asyncio
    async def test_responder_restarts_on_same_port(self):
        port = free_udp_port()
        responder = DiscoveryResponder(lambda: Role.HOST, host="127.0.0.1", port=port)
        client = DiscoveryClient(port=port, timeout=1.0)

        for _ in range(3):
            await responder.start()
            await responder.start()
            assert await client.query("127.0.0.1") == "MODE:HOST"

            responder.close()
            responder.close()
            assert responder.running is False

            # Let the transport release the socket.
            await asyncio.sleep(0)


class TestDiscoveryClient:
    @pytest.mark.asyncio
    async def test_no_responder_times_out(self):
        client = DiscoveryClient(port=free_udp_port(), timeout=0.2)

        with pytest.raises(DiscoveryTimeoutError) as error:
            await client.query("127.0.0.1")

        assert isinstance(error.value, TimeoutError)
        assert error.value.host == "127.0.0.1"

    def test_parse_reply(self):
        assert parse_reply("MODE:HOST\n") == Role.HOST
        assert parse_reply("MODE:slave") == Role.SLAVE

        with pytest.raises(ValueError):
            parse_reply("HOST")

        with pytest.raises(ValueError):
            parse_reply("MODE:OBSERVER")

    @pytest.mark.asyncio
    async def test_query_role_rejects_malformed_reply(self):
        transport, _ = await asyncio.get_running_loop().create_datagram_endpoint(
            lambda: _EchoProtocol(),
            local_addr=("127.0.0.1", 0),
        )
        port = transport.get_extra_info("sockname")[1]

        client = DiscoveryClient(port=port, timeout=1.0)

        with pytest.raises(DecodeError):
            await client.query_role("127.0.0.1")

        transport.close()


class _EchoProtocol(asyncio.DatagramProtocol):
    def connection_made(self, transport: asyncio.DatagramTransport):
        self.transport = transport

    def datagram_received(self, data: bytes, addr):
        self.transport.sendto(b"I am a teapot", addr)
