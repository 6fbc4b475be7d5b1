"""
Shared fixtures for scorecast tests.

Async tests are marked with ``@pytest.mark.asyncio``. Network tests bind
loopback sockets on ephemeral ports (port 0) so they can run in
parallel without colliding.
"""

import tempfile
from typing import Generator

import pytest

from scorecast.env import Env
from scorecast.models import Entity, Ledger, SessionState, SessionTime


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture
def temp_repository_directory() -> Generator[str, None, None]:
    with tempfile.TemporaryDirectory() as temp_directory:
        yield temp_directory


@pytest.fixture
def session_state_factory():
    def create_state(
        name: str = "session",
        elapsed: float = 0.0,
        speed: float = 1.0,
    ) -> SessionState:
        return SessionState(
            name=name,
            session_time=SessionTime(elapsed=elapsed, speed=speed),
            entities={
                1: Entity(entity_id=1, name="Red", attributes={"score": 0.0}),
                2: Entity(entity_id=2, name="Blue", attributes={"score": 10.0}),
            },
            ledgers={
                "bridge": Ledger(needed={"wood": 10, "stone": 5}),
            },
        )

    return create_state


@pytest.fixture
def session_state(session_state_factory) -> SessionState:
    return session_state_factory()


@pytest.fixture
def test_env(temp_repository_directory: str) -> Env:
    # Hour-long ticks keep the real ticker quiet while tests drive
    # ``clock.tick()`` by hand.
    return Env(
        SCORECAST_BIND_HOST="127.0.0.1",
        SCORECAST_HOST_ADDRESS="127.0.0.1",
        SCORECAST_COMMAND_PORT=0,
        SCORECAST_SNAPSHOT_PORT=0,
        SCORECAST_DISCOVERY_PORT=0,
        SCORECAST_TICK_INTERVAL="1h",
        SCORECAST_RECONNECT_BACKOFF="0.05s",
        SCORECAST_CONNECT_TIMEOUT="0.5s",
        SCORECAST_COMMAND_TIMEOUT="1s",
        SCORECAST_CONNECTION_TEST_TIMEOUT="0.5s",
        SCORECAST_REPOSITORY_DIRECTORY=temp_repository_directory,
        SCORECAST_LOG_LEVEL="error",
    )
