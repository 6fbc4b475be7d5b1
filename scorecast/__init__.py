"""
Scorecast session replication core.

One HOST process owns the live session state. Any number of SLAVE
displays receive full snapshots of it and send commands back.

Architecture:
    Slave UI -> CommandClient -> CommandServer -> LogicExecutor -> SessionState
    GameClock -> LogicExecutor -> SnapshotServer -> SnapshotClient -> SessionMirror

    - LogicExecutor: the only context allowed to read or write session state
    - GameClock: speed-scaled session time and periodic timed jobs
    - Discovery: UDP "what role are you" query before any TCP session

Usage:
    from scorecast.nodes import SessionNode
    from scorecast.commands import Command, CommandType
"""
