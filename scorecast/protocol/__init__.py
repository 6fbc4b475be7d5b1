from .framing import (
    LENGTH_PREFIX_SIZE as LENGTH_PREFIX_SIZE,
    MAX_FRAME_LENGTH as MAX_FRAME_LENGTH,
    MAX_LINE_LENGTH as MAX_LINE_LENGTH,
    frame_message as frame_message,
    read_frame as read_frame,
)
from .snapshot_codec import (
    SNAPSHOT_FORMAT_VERSION as SNAPSHOT_FORMAT_VERSION,
    SnapshotCodec as SnapshotCodec,
)
