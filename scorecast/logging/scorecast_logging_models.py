from .models import Entry, LogLevel


class ChannelDebug(Entry, kw_only=True):
    channel: str
    host: str
    port: int
    level: LogLevel = LogLevel.DEBUG

class ChannelInfo(Entry, kw_only=True):
    channel: str
    host: str
    port: int
    level: LogLevel = LogLevel.INFO

class ChannelWarn(Entry, kw_only=True):
    channel: str
    host: str
    port: int
    level: LogLevel = LogLevel.WARN

class ChannelError(Entry, kw_only=True):
    channel: str
    host: str
    port: int
    level: LogLevel = LogLevel.ERROR

class ClockDebug(Entry, kw_only=True):
    elapsed: float
    speed: float
    level: LogLevel = LogLevel.DEBUG

class JobDebug(Entry, kw_only=True):
    job: str
    now: int
    next_due: int
    level: LogLevel = LogLevel.DEBUG

class JobError(Entry, kw_only=True):
    job: str
    now: int
    next_due: int
    error: str
    level: LogLevel = LogLevel.ERROR

class ExecutorError(Entry, kw_only=True):
    task: str
    error: str
    level: LogLevel = LogLevel.ERROR

class DiscoveryDebug(Entry, kw_only=True):
    host: str
    port: int
    role: str
    level: LogLevel = LogLevel.DEBUG

class DiscoveryInfo(Entry, kw_only=True):
    host: str
    port: int
    role: str
    level: LogLevel = LogLevel.INFO

class DiscoveryError(Entry, kw_only=True):
    host: str
    port: int
    role: str
    level: LogLevel = LogLevel.ERROR

class SessionDebug(Entry, kw_only=True):
    session: str
    role: str
    level: LogLevel = LogLevel.DEBUG

class SessionInfo(Entry, kw_only=True):
    session: str
    role: str
    level: LogLevel = LogLevel.INFO

class SessionWarn(Entry, kw_only=True):
    session: str
    role: str
    level: LogLevel = LogLevel.WARN

class SessionError(Entry, kw_only=True):
    session: str
    role: str
    level: LogLevel = LogLevel.ERROR
