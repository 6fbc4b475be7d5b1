from .client_set import ClientSet as ClientSet
from .command_client import CommandClient as CommandClient
from .command_server import (
    ApplyCommand as ApplyCommand,
    CommandServer as CommandServer,
)
from .snapshot_client import (
    SnapshotCallback as SnapshotCallback,
    SnapshotClient as SnapshotClient,
)
from .snapshot_server import SnapshotServer as SnapshotServer
