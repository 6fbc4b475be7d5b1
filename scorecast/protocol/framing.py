from __future__ import annotations

import asyncio

from scorecast.errors import FrameTooLargeError

# Length prefix size (4 bytes = 32-bit unsigned integer, big-endian)
LENGTH_PREFIX_SIZE = 4

# Default max frame length: 16MB of serialized session state
MAX_FRAME_LENGTH = 16 * 1024 * 1024

# Max command line length, newline included
MAX_LINE_LENGTH = 64 * 1024


def frame_message(data: bytes) -> bytes:
    """
    Frame a message with a length prefix for TCP transmission.

    Returns: [4-byte length prefix (big-endian)] + [data]
    """
    length_prefix = len(data).to_bytes(LENGTH_PREFIX_SIZE, 'big')
    return length_prefix + data


async def read_frame(
    reader: asyncio.StreamReader,
    max_frame_length: int = MAX_FRAME_LENGTH,
) -> bytes:
    """
    Read one length-prefixed frame and return its payload.

    Raises:
        asyncio.IncompleteReadError: If the stream ends mid-frame.
        FrameTooLargeError: If the length prefix exceeds max_frame_length.
    """
    prefix = await reader.readexactly(LENGTH_PREFIX_SIZE)
    message_length = int.from_bytes(prefix, 'big')

    if message_length > max_frame_length:
        raise FrameTooLargeError(
            f"Frame length exceeds maximum: {message_length} > {max_frame_length} bytes",
            actual_size=message_length,
            max_size=max_frame_length,
        )

    return await reader.readexactly(message_length)
