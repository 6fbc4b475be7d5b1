"""
Role controller for one scorecast process.

A SessionNode is either the HOST, which owns the session state and
serves commands and snapshots, or a SLAVE, which mirrors the host's
snapshots and forwards commands to it. Switching role tears down the
old role's endpoints before standing up the new one's. The discovery
responder runs for the node's whole lifetime and always answers with
the current role.
"""

from __future__ import annotations

import asyncio
import contextlib
import pathlib
from typing import Callable

from scorecast.channels import (
    CommandClient,
    CommandServer,
    SnapshotClient,
    SnapshotServer,
)
from scorecast.commands import Command, CommandRegistry
from scorecast.discovery import DiscoveryClient, DiscoveryResponder
from scorecast.env import Env, TimeParser
from scorecast.logging import Logger, LoggingConfig
from scorecast.logging.scorecast_logging_models import (
    SessionDebug,
    SessionInfo,
    SessionWarn,
)
from scorecast.models import CommandAck, Role, SessionState
from scorecast.repository import FileSessionRepository
from scorecast.runtime import SessionMirror, SessionRuntime


class SessionNode:
    def __init__(
        self,
        state: SessionState | None = None,
        env: Env | None = None,
        role: Role = Role.HOST,
        repository: FileSessionRepository | None = None,
        registry: CommandRegistry | None = None,
        scoring=None,
    ) -> None:
        if env is None:
            env = Env()

        if state is None:
            state = SessionState(name=env.SCORECAST_SESSION_NAME)

        if repository is None:
            repository = FileSessionRepository(env.SCORECAST_REPOSITORY_DIRECTORY)

        if registry is None:
            registry = CommandRegistry.with_defaults()

        self.env = env
        self.repository = repository
        self.registry = registry
        self.mirror = SessionMirror()

        self._role = role
        self._host_address = env.SCORECAST_HOST_ADDRESS

        self._connect_timeout = TimeParser(env.SCORECAST_CONNECT_TIMEOUT).time
        self._command_timeout = TimeParser(env.SCORECAST_COMMAND_TIMEOUT).time
        self._connection_test_timeout = TimeParser(
            env.SCORECAST_CONNECTION_TEST_TIMEOUT
        ).time
        self._reconnect_backoff = TimeParser(env.SCORECAST_RECONNECT_BACKOFF).time

        # Shared by every component the node owns.
        self._logger = Logger()

        self.runtime = SessionRuntime(
            state,
            env=env,
            repository=repository,
            scoring=scoring,
            logger=self._logger,
        )
        self.runtime.add_tick_listener(self._broadcast_state)

        self._command_server = CommandServer(
            env.SCORECAST_BIND_HOST,
            env.SCORECAST_COMMAND_PORT,
            self._apply_command,
            logger=self._logger,
        )

        self._snapshot_server = SnapshotServer(
            env.SCORECAST_BIND_HOST,
            env.SCORECAST_SNAPSHOT_PORT,
            broadcast_timeout=TimeParser(env.SCORECAST_BROADCAST_TIMEOUT).time,
            logger=self._logger,
        )

        self._snapshot_client: SnapshotClient | None = None

        self._discovery = DiscoveryResponder(
            self.get_role,
            host=env.SCORECAST_BIND_HOST,
            port=env.SCORECAST_DISCOVERY_PORT,
            query=env.SCORECAST_DISCOVERY_QUERY,
            logger=self._logger,
        )

        self._role_lock: asyncio.Lock | None = None
        self._started = False
        self._closed = False

    @property
    def command_port(self) -> int:
        return self._command_server.port

    @property
    def snapshot_port(self) -> int:
        return self._snapshot_server.port

    @property
    def discovery_port(self) -> int:
        return self._discovery.port

    @property
    def host_address(self) -> str:
        return self._host_address

    @property
    def snapshot_server(self) -> SnapshotServer:
        return self._snapshot_server

    @property
    def snapshot_client(self) -> SnapshotClient | None:
        return self._snapshot_client

    def get_role(self) -> Role:
        return self._role

    async def start(self):
        if self._started or self._closed:
            return

        if self._role_lock is None:
            self._role_lock = asyncio.Lock()

        LoggingConfig().update(
            log_level=self.env.SCORECAST_LOG_LEVEL,
            log_directory=self.env.SCORECAST_LOGS_DIRECTORY,
        )

        self.runtime.executor.start()
        await self._discovery.start()

        async with self._role_lock:
            await self._start_role(self._role)
            self._started = True

        await self._log_session("Session node started")

    async def set_role(self, role: Role):
        if self._role_lock is None:
            self._role_lock = asyncio.Lock()

        async with self._role_lock:
            if role == self._role:
                return

            if self._started:
                await self._stop_role(self._role)

            self._role = role

            if self._started:
                await self._start_role(role)

        await self._log_session(f"Switched role to {role.value}")

    async def set_host_address(self, address: str):
        if self._role_lock is None:
            self._role_lock = asyncio.Lock()

        async with self._role_lock:
            self._host_address = address

            if self._started and self._role == Role.SLAVE:
                await self._stop_role(Role.SLAVE)
                await self._start_role(Role.SLAVE)

    async def test_connection(self, address: str | None = None) -> bool:
        """Plain TCP connect probe against the host's command port."""
        if address is None:
            address = self._host_address

        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(
                    address,
                    self.env.SCORECAST_COMMAND_PORT,
                ),
                timeout=self._connection_test_timeout,
            )

        except (OSError, asyncio.TimeoutError):
            return False

        writer.close()
        with contextlib.suppress(ConnectionError, OSError):
            await writer.wait_closed()

        return True

    async def discover(self, address: str | None = None) -> Role:
        if address is None:
            address = self._host_address

        client = DiscoveryClient(
            port=self.env.SCORECAST_DISCOVERY_PORT,
            query=self.env.SCORECAST_DISCOVERY_QUERY,
            timeout=TimeParser(self.env.SCORECAST_DISCOVERY_TIMEOUT).time,
            logger=self._logger,
        )

        return await client.query_role(address)

    async def request(self, command: Command) -> CommandAck | None:
        """
        Apply a command wherever the state lives. A HOST applies it on
        its own executor, a SLAVE sends it to the host.
        """
        if self._role == Role.HOST:
            await self._apply_command(command)
            return CommandAck(ok=True)

        client = CommandClient(
            self._host_address,
            self.env.SCORECAST_COMMAND_PORT,
            connect_timeout=self._connect_timeout,
            ack_timeout=self._command_timeout,
        )

        return await client.send(command)

    async def current_state(self) -> SessionState | None:
        if self._role == Role.HOST:
            return await self.runtime.call_on_logic(lambda: self.runtime.state)

        return self.mirror.current

    async def save(self) -> pathlib.Path:
        return await self.runtime.call_on_logic(
            lambda: self._persist(self.repository.save)
        )

    async def backup(self) -> pathlib.Path:
        return await self.runtime.call_on_logic(
            lambda: self._persist(self.repository.backup)
        )

    async def load(self, name: str):
        loop = asyncio.get_running_loop()
        state = await loop.run_in_executor(
            None,
            self.repository.load,
            name,
        )

        await self.runtime.load_state(state)
        await self._log_session(f"Loaded session {name}")

    def list_saves(self) -> list[str]:
        return self.repository.list_saves()

    def list_backups(self, name: str) -> list[pathlib.Path]:
        return self.repository.list_backups(name)

    async def close(self):
        if self._closed:
            return

        self._closed = True

        if self._started:
            await self._stop_role(self._role)

        self._discovery.close()
        await self.runtime.shutdown()

        await self._log_session("Session node closed")
        await self._logger.close()

    async def _start_role(self, role: Role):
        if role == Role.HOST:
            await self._command_server.start()
            await self._snapshot_server.start()
            self.runtime.start()

        else:
            self.mirror.clear()
            self._snapshot_client = SnapshotClient(
                self._host_address,
                self.env.SCORECAST_SNAPSHOT_PORT,
                self.mirror.replace,
                codec=self.runtime.codec,
                reconnect_backoff=self._reconnect_backoff,
                connect_timeout=self._connect_timeout,
                max_frame_length=self.env.SCORECAST_MAX_FRAME_LENGTH,
                logger=self._logger,
            )
            self._snapshot_client.start()

    async def _stop_role(self, role: Role):
        if role == Role.HOST:
            self.runtime.stop()
            await self._command_server.close()
            await self._snapshot_server.close()

        elif self._snapshot_client is not None:
            await self._snapshot_client.stop()
            self._snapshot_client = None

    async def _persist(self, write: Callable[[SessionState], pathlib.Path]):
        # Runs on the executor, so the state cannot change mid-write.
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            write,
            self.runtime.state,
        )

    async def _apply_command(self, command: Command) -> bool:
        try:
            changed = await self.runtime.call_on_logic(
                lambda: self.registry.apply(self.runtime.state, command)
            )

        except Exception as err:
            await self._logger.log(
                SessionWarn(
                    message=f"Rejected {command.type.value} command - {err}",
                    session=self.env.SCORECAST_SESSION_NAME,
                    role=self._role.value,
                )
            )
            raise

        if not changed:
            await self._logger.log(
                SessionDebug(
                    message=f"Ignored {command.type.value} command with fields {dict(command.fields)}",
                    session=self.env.SCORECAST_SESSION_NAME,
                    role=self._role.value,
                )
            )

        return changed

    async def _broadcast_state(self):
        if self._role != Role.HOST or self._snapshot_server.client_count == 0:
            return

        payload = await self.runtime.state_snapshot()
        await self._snapshot_server.broadcast(payload)

    async def _log_session(self, message: str):
        await self._logger.log(
            SessionInfo(
                message=message,
                session=self.env.SCORECAST_SESSION_NAME,
                role=self._role.value,
            )
        )
