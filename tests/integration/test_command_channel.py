import asyncio

import pytest

from scorecast.channels import CommandClient, CommandServer
from scorecast.commands import Command, CommandRegistry, CommandType
from scorecast.errors import CommandRejectedError, CommandSendError
from scorecast.models import SessionState
from scorecast.runtime import LogicExecutor


async def start_command_server(
    state: SessionState,
) -> tuple[CommandServer, LogicExecutor]:
    executor = LogicExecutor()
    executor.start()

    registry = CommandRegistry.with_defaults()

    async def apply_command(command: Command):
        return await executor.run(lambda: registry.apply(state, command))

    server = CommandServer("127.0.0.1", 0, apply_command)
    await server.start()

    return server, executor


async def stop_command_server(server: CommandServer, executor: LogicExecutor):
    await server.close()
    await executor.close()


class TestCommandRelay:
    @pytest.mark.asyncio
    async def test_command_is_applied_and_acknowledged(self, session_state: SessionState):
        server, executor = await start_command_server(session_state)
        client = CommandClient("127.0.0.1", server.port)

        ack = await client.send(
            Command(CommandType.ADJUST_ATTRIBUTE)
            .put("entity", 1)
            .put("attribute", "score")
            .put("delta", 7)
        )

        assert ack.ok is True
        assert await executor.run(lambda: session_state.entities[1].attributes["score"]) == 7.0

        await stop_command_server(server, executor)

    @pytest.mark.asyncio
    async def test_handler_rejection_is_reported(self, session_state: SessionState):
        server, executor = await start_command_server(session_state)
        client = CommandClient("127.0.0.1", server.port)

        with pytest.raises(CommandRejectedError, match="speed"):
            await client.send(Command(CommandType.SET_SPEED).put("speed", -1))

        assert session_state.session_time.speed == 1.0

        await stop_command_server(server, executor)

    @pytest.mark.asyncio
    async def test_concurrent_clients_are_serialized(self, session_state: SessionState):
        server, executor = await start_command_server(session_state)
        client = CommandClient("127.0.0.1", server.port)

        command = (
            Command(CommandType.ADJUST_ATTRIBUTE)
            .put("entity", 2)
            .put("attribute", "score")
            .put("delta", 1)
        )

        await asyncio.gather(*[client.send(command) for _ in range(25)])

        assert await executor.run(lambda: session_state.entities[2].attributes["score"]) == 35.0

        await stop_command_server(server, executor)

    @pytest.mark.asyncio
    async def test_fire_and_forget_send(self, session_state: SessionState):
        server, executor = await start_command_server(session_state)
        client = CommandClient("127.0.0.1", server.port, wait_for_ack=False)

        assert await client.send(Command(CommandType.SET_MULTIPLIER).put("multiplier", 3)) is None

        for _ in range(50):
            if await executor.run(lambda: session_state.multiplier) == 3.0:
                break

            await asyncio.sleep(0.01)

        assert await executor.run(lambda: session_state.multiplier) == 3.0

        await stop_command_server(server, executor)


class TestCommandServerResilience:
    @pytest.mark.asyncio
    async def test_bad_line_does_not_close_connection(self, session_state: SessionState):
        server, executor = await start_command_server(session_state)

        reader, writer = await asyncio.open_connection("127.0.0.1", server.port)

        writer.write(b"type=NOPE&x=1\n")
        writer.write(b"no type here\n")
        writer.write(b"type=SET_MULTIPLIER&multiplier=2\n")
        await writer.drain()

        first = await asyncio.wait_for(reader.readline(), timeout=2)
        second = await asyncio.wait_for(reader.readline(), timeout=2)
        third = await asyncio.wait_for(reader.readline(), timeout=2)

        assert first.startswith(b"ERR unknown type NOPE")
        assert second.startswith(b"ERR missing type")
        assert third == b"OK\n"
        assert await executor.run(lambda: session_state.multiplier) == 2.0

        writer.close()
        await writer.wait_closed()

        await stop_command_server(server, executor)

    @pytest.mark.asyncio
    async def test_dropped_client_does_not_affect_server(self, session_state: SessionState):
        server, executor = await start_command_server(session_state)

        _, writer = await asyncio.open_connection("127.0.0.1", server.port)
        writer.write(b"type=SET_MULTI")
        writer.transport.abort()

        client = CommandClient("127.0.0.1", server.port)
        ack = await client.send(Command(CommandType.SET_MULTIPLIER).put("multiplier", 4))

        assert ack.ok is True

        await stop_command_server(server, executor)


class TestCommandClientFailures:
    @pytest.mark.asyncio
    async def test_connection_refused_raises_send_error(self):
        probe = await asyncio.start_server(lambda reader, writer: None, "127.0.0.1", 0)
        port = probe.sockets[0].getsockname()[1]
        probe.close()
        await probe.wait_closed()

        client = CommandClient("127.0.0.1", port, connect_timeout=0.5)

        with pytest.raises(CommandSendError) as error:
            await client.send(Command(CommandType.SET_SPEED).put("speed", 2))

        assert error.value.port == port

    @pytest.mark.asyncio
    async def test_silent_server_times_out(self):
        connections: list[asyncio.StreamWriter] = []

        async def swallow(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
            connections.append(writer)
            await reader.read()

        silent = await asyncio.start_server(swallow, "127.0.0.1", 0)
        port = silent.sockets[0].getsockname()[1]

        client = CommandClient("127.0.0.1", port, ack_timeout=0.1)

        with pytest.raises(CommandSendError):
            await client.send(Command(CommandType.SET_SPEED).put("speed", 2))

        silent.close()
        for writer in connections:
            writer.close()

        await silent.wait_closed()
