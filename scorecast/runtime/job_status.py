from enum import Enum
from typing import Literal


class JobStatus(Enum):
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


JobStatusName = Literal[
    'CREATED',
    'RUNNING',
    'COMPLETE',
    'CANCELLED',
    'FAILED',
]
