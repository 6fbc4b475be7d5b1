import msgspec

from .session_state import SessionState


class SnapshotEnvelope(msgspec.Struct, kw_only=True):
    version: int
    sequence: int
    state: SessionState
