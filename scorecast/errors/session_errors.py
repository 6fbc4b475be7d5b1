"""
Exceptions raised by the scorecast session core.

Errors fall into the categories the runtime treats differently:

- Protocol decode errors are recovered per line and reported back over
  the connection that produced them.
- Transport errors are surfaced to direct callers (command sends,
  discovery queries) and absorbed into the reconnect loop on the
  snapshot client.
- Snapshot decode errors discard one frame and leave the stream intact.
- Invalid configuration is rejected synchronously by the call that
  introduced it.
"""


class ScorecastError(Exception):
    """Base class for all scorecast errors."""
    pass


class DecodeError(ScorecastError):
    """
    Raised when a command line cannot be decoded, either because it is
    malformed or because its ``type`` field is missing or unknown.
    """

    def __init__(self, message: str, line: str | None = None) -> None:
        super().__init__(message)
        self.line = line


class InvalidConfigurationError(ScorecastError, ValueError):
    """
    Raised for values rejected at the call that introduced them: a
    non-positive clock speed, a non-positive or fractional job period,
    a negative or fractional initial delay or a duplicate job name.
    """
    pass


class CommandSendError(ScorecastError):
    """
    Raised by the command client when connecting, writing or waiting for
    the acknowledgement fails or times out. Not retried automatically.
    """

    def __init__(
        self,
        message: str,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        super().__init__(message)
        self.host = host
        self.port = port


class CommandRejectedError(ScorecastError):
    """Raised when the host answers a command with an ``ERR`` line."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.reason = message


class DiscoveryTimeoutError(ScorecastError, TimeoutError):
    """Raised when a discovery query receives no reply in time."""

    def __init__(
        self,
        message: str,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        super().__init__(message)
        self.host = host
        self.port = port


class SnapshotDecodeError(ScorecastError):
    """Raised when a snapshot payload cannot be decoded into session state."""
    pass


class FrameTooLargeError(ScorecastError):
    """Raised when a frame's length prefix exceeds the maximum allowed."""

    def __init__(
        self,
        message: str,
        actual_size: int = 0,
        max_size: int = 0,
    ) -> None:
        super().__init__(message)
        self.actual_size = actual_size
        self.max_size = max_size


class RepositoryError(ScorecastError):
    """Raised when a saved session cannot be read back."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
