"""
Multi-channel query logging.

Every executed query is handed to ``QueryLogger.log_query`` exactly once.
Depending on the outcome it is written to up to three channels:

- ERROR: the query raised
- SLOW: the query took at least the slow threshold (default 1 second)
- DEBUG: always, whenever a sink is attached

Records are JSON lines rendered by structlog. Dispatch is synchronous, or
asynchronous through a bounded queue drained by one worker thread.

Configuration is shared by everything that uses the same logger and is not
synchronized: changing sinks or the skip flag while queries run on other
threads has no defined outcome.
"""

import base64
import dataclasses
import queue
import re
import sys
import threading
import traceback
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Literal, Optional, Sequence, TextIO
from uuid import UUID

import structlog
from pydantic import BaseModel

from querykit.config import Settings
from querykit.utils.logging import get_logger

from .models import CHANNEL_LEVELS, LogChannel, LoggerConfigError, QueryLogError, QueryLogRecord

logger = get_logger(__name__)

DEFAULT_SLOW_LOG_MIN = timedelta(seconds=1)

QueuePolicy = Literal["block", "drop"]


@dataclass(frozen=True)
class QueryNormalizer:
    """Strips line comments and collapses whitespace runs of a query."""

    comments: "re.Pattern[str]" = field(default=re.compile(r"--.*\n"))
    whitespace: "re.Pattern[str]" = field(default=re.compile(r"\s+"))

    def normalize(self, query: str) -> str:
        """
        Example:
            >>> QueryNormalizer().normalize("select 1 -- comment\\n")
            'select 1 '
        """
        return self.whitespace.sub(" ", self.comments.sub("", query))


def encode_arg(value: Any) -> Any:
    """JSON fallback for query arguments the json module cannot encode."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def format_error(error: BaseException) -> str:
    try:
        message = str(error)
    except Exception:
        message = "<exception str() failed>"
    return f"{type(error).__name__}: {message}"


def format_trace(error: BaseException) -> str:
    if error.__traceback__ is None:
        return ""
    return "".join(traceback.format_tb(error.__traceback__))


def _channel_logger(sink: TextIO) -> Any:
    return structlog.wrap_logger(
        structlog.PrintLogger(file=sink),
        processors=[structlog.processors.JSONRenderer(default=encode_arg)],
        wrapper_class=structlog.BoundLogger,
        cache_logger_on_first_use=True,
    )


_STOP = object()


class _LogWorker:
    """Single background thread writing queued log invocations."""

    def __init__(self, maxsize: int, policy: QueuePolicy):
        self.policy = policy
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=maxsize)
        self._thread = threading.Thread(
            target=self._run, name="querykit-query-log", daemon=True
        )
        self._thread.start()
        logger.debug("query_log.worker.started", queue_size=maxsize, policy=policy)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def submit(self, task: Callable[[], None]) -> bool:
        """Queue a task; returns False when it was dropped."""
        if self.policy == "block":
            self._queue.put(task)
            return True
        try:
            self._queue.put_nowait(task)
        except queue.Full:
            logger.warning("query_log.dropped", queue_size=self._queue.maxsize)
            return False
        return True

    def _run(self) -> None:
        while True:
            task = self._queue.get()
            try:
                if task is _STOP:
                    return
                task()
            except Exception as e:
                # Asynchronous failures never reach the query caller
                logger.warning("query_log.write_failed", error=format_error(e))
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        self._queue.join()

    def close(self) -> None:
        if self.alive:
            self._queue.put(_STOP)
            self._thread.join()
            logger.debug("query_log.worker.stopped")


class QueryLogger:
    """
    Per-handle query log configuration and emission.

    Example:
        >>> import io
        >>> out = io.StringIO()
        >>> query_logger = QueryLogger()
        >>> query_logger.set_logger(LogChannel.DEBUG, out)
        >>> query_logger.log_query("select 1", 1500, None, ())
        >>> '"Level": "DEBUG"' in out.getvalue()
        True
    """

    def __init__(
        self,
        slow_log_min: timedelta = DEFAULT_SLOW_LOG_MIN,
        log_async: bool = False,
        queue_size: int = 1000,
        queue_policy: QueuePolicy = "block",
        normalizer: Optional[QueryNormalizer] = None,
    ):
        self.normalizer = normalizer or QueryNormalizer()
        self.queue_size = queue_size
        self.queue_policy = queue_policy
        self.skip_next = False
        self._channels: Dict[LogChannel, Any] = {}
        self._slow_log_min_ns = 0
        self._log_async = False
        self._worker: Optional[_LogWorker] = None
        self.set_slow_log_min(slow_log_min)
        self.set_async(log_async)

    @classmethod
    def from_settings(cls, settings: Settings, error_sink: Optional[TextIO] = None) -> "QueryLogger":
        """
        Build a logger from settings.

        Args:
            settings: Loaded settings
            error_sink: Sink for the error channel, used when
                ERROR_LOG_TO_STDERR is enabled (defaults to sys.stderr)
        """
        query_logger = cls(
            slow_log_min=settings.slow_query_threshold,
            log_async=settings.LOG_ASYNC,
            queue_size=settings.LOG_QUEUE_SIZE,
            queue_policy=settings.LOG_QUEUE_POLICY,
        )
        if settings.ERROR_LOG_TO_STDERR:
            query_logger.set_logger(LogChannel.ERROR, error_sink or sys.stderr)
        return query_logger

    @property
    def slow_log_min(self) -> timedelta:
        return timedelta(microseconds=self._slow_log_min_ns // 1000)

    @property
    def log_async(self) -> bool:
        return self._log_async

    def set_logger(self, channel: LogChannel, sink: Optional[TextIO]) -> None:
        """
        Attach a sink to one channel, or detach it with ``None``.

        Raises:
            LoggerConfigError: If ``channel`` is not exactly one LogChannel
        """
        try:
            channel = LogChannel(channel)
        except ValueError:
            raise LoggerConfigError("given log type doesn't exist") from None

        if sink is None:
            self._channels.pop(channel, None)
        else:
            self._channels[channel] = _channel_logger(sink)

    def has_channel(self, channel: LogChannel) -> bool:
        return channel in self._channels

    def set_slow_log_min(self, min_duration: timedelta) -> None:
        self._slow_log_min_ns = min_duration // timedelta(microseconds=1) * 1000

    def set_async(self, log_async: bool) -> None:
        self._log_async = log_async
        if log_async and (self._worker is None or not self._worker.alive):
            self._worker = _LogWorker(self.queue_size, self.queue_policy)

    def skip_log(self) -> None:
        """Suppress the next logging invocation only."""
        self.skip_next = True

    def copy(self) -> "QueryLogger":
        """Logger sharing sinks, threshold, dispatch mode and worker, with its own skip flag."""
        clone = QueryLogger.__new__(QueryLogger)
        clone.normalizer = self.normalizer
        clone.queue_size = self.queue_size
        clone.queue_policy = self.queue_policy
        clone.skip_next = False
        clone._channels = dict(self._channels)
        clone._slow_log_min_ns = self._slow_log_min_ns
        clone._log_async = self._log_async
        clone._worker = self._worker
        return clone

    def log_query(
        self,
        query: str,
        exec_time_ns: int,
        error: Optional[BaseException],
        args: Sequence[Any],
    ) -> None:
        """
        Log one query execution.

        In asynchronous mode the write is queued and this returns at once;
        write failures are then reported to the package logger only.

        Raises:
            QueryLogError: Synchronous mode only, when a record cannot be
                serialized or written. Channels after the failing one are
                not written.
        """
        if self.skip_next:
            self.skip_next = False
            return

        logged_at = datetime.now(timezone.utc)
        write = partial(self._write, query, exec_time_ns, error, tuple(args), logged_at)

        # A copy may outlive the worker it shares; write inline once it is stopped
        if self._log_async and self._worker is not None and self._worker.alive:
            self._worker.submit(write)
            return

        write()

    def _write(
        self,
        query: str,
        exec_time_ns: int,
        error: Optional[BaseException],
        args: tuple,
        logged_at: datetime,
    ) -> None:
        channels = self._channels
        if error is not None and LogChannel.ERROR in channels:
            self._emit(LogChannel.ERROR, query, exec_time_ns, error, args, logged_at)

        if exec_time_ns >= self._slow_log_min_ns and LogChannel.SLOW in channels:
            self._emit(LogChannel.SLOW, query, exec_time_ns, None, args, logged_at)

        if LogChannel.DEBUG in channels:
            self._emit(LogChannel.DEBUG, query, exec_time_ns, None, args, logged_at)

    def _emit(
        self,
        channel: LogChannel,
        query: str,
        exec_time_ns: int,
        error: Optional[BaseException],
        args: tuple,
        logged_at: datetime,
    ) -> None:
        level = CHANNEL_LEVELS[channel]
        try:
            record = QueryLogRecord(
                level=level,
                time=logged_at,
                query=self.normalizer.normalize(query),
                exec_time_ns=exec_time_ns,
                error_msg=format_error(error) if error is not None else "",
                trace=format_trace(error) if error is not None else "",
                args=args,
            )
            self._channels[channel].msg(**record.as_event())
        except Exception as e:
            raise QueryLogError(f"failed to write {level} query log: {format_error(e)}") from e

    def flush(self) -> None:
        """Wait until every queued record has been written."""
        if self._worker is not None and self._worker.alive:
            self._worker.flush()

    def close(self) -> None:
        """
        Drain and stop the background worker, if any.

        Copies sharing the stopped worker write synchronously from then on.
        """
        if self._worker is not None:
            self._worker.close()
            self._worker = None
