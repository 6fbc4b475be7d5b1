from .session_errors import (
    CommandRejectedError as CommandRejectedError,
    CommandSendError as CommandSendError,
    DecodeError as DecodeError,
    DiscoveryTimeoutError as DiscoveryTimeoutError,
    FrameTooLargeError as FrameTooLargeError,
    InvalidConfigurationError as InvalidConfigurationError,
    RepositoryError as RepositoryError,
    ScorecastError as ScorecastError,
    SnapshotDecodeError as SnapshotDecodeError,
)
