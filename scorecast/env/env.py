from typing import Callable, Dict, Literal, Union

from pydantic import BaseModel, StrictBool, StrictFloat, StrictInt, StrictStr

PrimaryType = Union[str, int, float, bytes, bool]


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Env(BaseModel):
    SCORECAST_SESSION_NAME: StrictStr = "session"
    SCORECAST_BIND_HOST: StrictStr = "0.0.0.0"
    SCORECAST_HOST_ADDRESS: StrictStr = "127.0.0.1"
    SCORECAST_COMMAND_PORT: StrictInt = 53536
    SCORECAST_SNAPSHOT_PORT: StrictInt = 53537
    SCORECAST_DISCOVERY_PORT: StrictInt = 53535
    SCORECAST_DISCOVERY_QUERY: StrictStr = "WHO_ARE_YOU?"
    SCORECAST_DISCOVERY_TIMEOUT: StrictStr = "1s"
    SCORECAST_CONNECT_TIMEOUT: StrictStr = "2s"
    SCORECAST_COMMAND_TIMEOUT: StrictStr = "2s"
    SCORECAST_CONNECTION_TEST_TIMEOUT: StrictStr = "1.2s"
    SCORECAST_RECONNECT_BACKOFF: StrictStr = "0.75s"
    SCORECAST_BROADCAST_TIMEOUT: StrictStr = "1s"
    SCORECAST_MAX_FRAME_LENGTH: StrictInt = 16 * 1024 * 1024
    SCORECAST_SNAPSHOT_COMPRESSION: StrictBool = True
    SCORECAST_TICK_INTERVAL: StrictStr = "1s"
    SCORECAST_AUTOSAVE_PERIOD: StrictStr = "10m"
    SCORECAST_SCORING_PERIOD: StrictStr = "10s"
    SCORECAST_MULTIPLIER_PERIOD: StrictStr = "10m"
    SCORECAST_MULTIPLIER_GROWTH: StrictFloat = 1.05
    SCORECAST_SCORING_RATE: StrictFloat = 1.0
    SCORECAST_REPOSITORY_DIRECTORY: StrictStr = "data/repository"
    SCORECAST_LOG_LEVEL: Literal[
        "trace",
        "debug",
        "info",
        "warn",
        "error",
        "critical",
        "fatal",
    ] = "info"
    SCORECAST_LOGS_DIRECTORY: StrictStr | None = None

    @classmethod
    def types_map(self) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "SCORECAST_SESSION_NAME": str,
            "SCORECAST_BIND_HOST": str,
            "SCORECAST_HOST_ADDRESS": str,
            "SCORECAST_COMMAND_PORT": int,
            "SCORECAST_SNAPSHOT_PORT": int,
            "SCORECAST_DISCOVERY_PORT": int,
            "SCORECAST_DISCOVERY_QUERY": str,
            "SCORECAST_DISCOVERY_TIMEOUT": str,
            "SCORECAST_CONNECT_TIMEOUT": str,
            "SCORECAST_COMMAND_TIMEOUT": str,
            "SCORECAST_CONNECTION_TEST_TIMEOUT": str,
            "SCORECAST_RECONNECT_BACKOFF": str,
            "SCORECAST_BROADCAST_TIMEOUT": str,
            "SCORECAST_MAX_FRAME_LENGTH": int,
            "SCORECAST_SNAPSHOT_COMPRESSION": _to_bool,
            "SCORECAST_TICK_INTERVAL": str,
            "SCORECAST_AUTOSAVE_PERIOD": str,
            "SCORECAST_SCORING_PERIOD": str,
            "SCORECAST_MULTIPLIER_PERIOD": str,
            "SCORECAST_MULTIPLIER_GROWTH": float,
            "SCORECAST_SCORING_RATE": float,
            "SCORECAST_REPOSITORY_DIRECTORY": str,
            "SCORECAST_LOG_LEVEL": str,
            "SCORECAST_LOGS_DIRECTORY": str,
        }
