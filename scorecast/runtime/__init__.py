from .clock_state import ClockState as ClockState
from .game_clock import (
    GameClock as GameClock,
    TickListener as TickListener,
)
from .job_registry import JobRegistry as JobRegistry
from .job_status import (
    JobStatus as JobStatus,
    JobStatusName as JobStatusName,
)
from .logic_executor import LogicExecutor as LogicExecutor
from .scoring import apply_scoring as apply_scoring
from .session_mirror import SessionMirror as SessionMirror
from .session_runtime import (
    SessionRuntime as SessionRuntime,
    format_elapsed as format_elapsed,
)
from .timed_job import (
    JobCall as JobCall,
    TimedJob as TimedJob,
)
