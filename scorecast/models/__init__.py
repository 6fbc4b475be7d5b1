from .command_ack import CommandAck as CommandAck
from .entity import Entity as Entity
from .ledger import Ledger as Ledger
from .role import (
    Role as Role,
    RoleName as RoleName,
)
from .session_state import SessionState as SessionState
from .session_time import SessionTime as SessionTime
from .snapshot_envelope import SnapshotEnvelope as SnapshotEnvelope
