"""Query log records, channels and logging errors."""

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, Tuple

from querykit.sql.errors import QueryKitError

LEVEL_SLOW_QUERY = "SLOW_QUERY"
LEVEL_DEBUG = "DEBUG"
LEVEL_ERROR = "ERROR"


class LogChannel(IntEnum):
    """Query log channels, each attached to its own sink."""

    ERROR = 1
    DEBUG = 2
    SLOW = 4


CHANNEL_LEVELS = {
    LogChannel.ERROR: LEVEL_ERROR,
    LogChannel.DEBUG: LEVEL_DEBUG,
    LogChannel.SLOW: LEVEL_SLOW_QUERY,
}


class LoggerConfigError(QueryKitError):
    """Raised when a query log channel does not exist."""


class QueryLogError(QueryKitError):
    """Raised when a query log record cannot be serialized or written."""


@dataclass(frozen=True)
class QueryLogRecord:
    """One query log line, created per executed query and channel."""

    level: str
    time: datetime
    query: str
    exec_time_ns: int
    error_msg: str = ""
    trace: str = ""
    args: Tuple[Any, ...] = ()

    def as_event(self) -> Dict[str, Any]:
        """Render the record fields in output order, omitting empty optionals."""
        event: Dict[str, Any] = {
            "Level": self.level,
            "Time": self.time.isoformat(),
            "query": self.query,
            "exec_time_ns": self.exec_time_ns,
        }
        if self.error_msg:
            event["error_msg"] = self.error_msg
        if self.trace:
            event["trace"] = self.trace
        if self.args:
            event["args"] = list(self.args)
        return event
