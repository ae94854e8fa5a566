"""
Logging for the wearable auth core.

Console output goes through ContextAwareLogger, which folds ``extra`` values
into the message text so they survive hosts that replace formatters (Azure
Functions does). Records can also be shipped in batches to a storage queue
by AzureQueueHandler.
"""

import logging
import os
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from azure.storage.queue import QueueClient

from ..config import get_config
from ..constants import QueueName
from .json_utils import dumps

_function_logger: Optional["ContextAwareLogger"] = None

# Extras live on the record under this prefix
EXTRA_PREFIX = "_"


def _to_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


class ContextAwareLogger:
    """Wraps a logging.Logger; ``extra`` is appended as ``key=value`` pairs."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, method: str, msg: str, extra: Optional[Dict[str, Any]] = None, **kwargs):
        if extra:
            msg = " | ".join([msg] + [f"{key}={value}" for key, value in extra.items()])
            kwargs["extra"] = {f"{EXTRA_PREFIX}{key}": value for key, value in extra.items()}
        getattr(self.logger, method)(msg, **kwargs)

    def debug(self, msg, **kwargs):
        self._log("debug", msg, **kwargs)

    def info(self, msg, **kwargs):
        self._log("info", msg, **kwargs)

    def warning(self, msg, **kwargs):
        self._log("warning", msg, **kwargs)

    def error(self, msg, **kwargs):
        self._log("error", msg, **kwargs)

    def exception(self, msg, **kwargs):
        self._log("exception", msg, **kwargs)


class CorrelationContextFilter(logging.Filter):
    """Stamps records with the correlation id of the current thread."""

    def filter(self, record):
        # exceptions imports this module
        from ..exceptions import get_correlation_id

        correlation_id = get_correlation_id()
        if correlation_id:
            record.correlation_id = correlation_id
        return True


class AzureQueueHandler(logging.Handler):
    """
    Ships log records as JSON messages to an Azure Storage Queue.

    Records are buffered and sent once ``batch_size`` of them accumulated,
    or when the handler is flushed or closed. Send failures go to stderr
    and leave the buffer in place for the next flush.
    """

    def __init__(
        self,
        queue_name: str = QueueName.LOGS.value,
        connection_string: Optional[str] = None,
        batch_size: int = 10,
    ):
        super().__init__()
        self.queue_name = queue_name
        self.connection_string = connection_string or os.getenv("AzureWebJobsStorage")
        self.batch_size = batch_size
        self.log_buffer: List[Dict[str, Any]] = []

    def _to_entry(self, record: logging.LogRecord) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        if getattr(record, "correlation_id", None):
            entry["correlation_id"] = record.correlation_id

        context = {
            key[len(EXTRA_PREFIX) :]: value
            for key, value in vars(record).items()
            if key.startswith(EXTRA_PREFIX) and not key.startswith("__") and value is not None
        }
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }
        return entry

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.log_buffer.append(self._to_entry(record))
        except Exception:
            self.handleError(record)
            return

        if len(self.log_buffer) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        if not self.log_buffer or not self.connection_string:
            return

        try:
            queue_client = QueueClient.from_connection_string(
                conn_str=self.connection_string, queue_name=self.queue_name
            )
            while self.log_buffer:
                queue_client.send_message(dumps(self.log_buffer[0]))
                self.log_buffer.pop(0)
        except Exception as e:
            sys.stderr.write(f"Error sending logs to queue {self.queue_name}: {e}\n")

    def close(self) -> None:
        self.flush()
        super().close()


def configure_logging(
    function_name: str,
    log_level: Optional[Union[int, str]] = None,
    enable_queue: Optional[bool] = None,
    queue_name: Optional[str] = None,
    queue_batch_size: int = 10,
    connection_string: Optional[str] = None,
) -> ContextAwareLogger:
    """
    Configure the function app logger and make it the package default.

    Arguments left unset come from ``config.logging`` and ``config.queue``.
    """
    global _function_logger

    app_config = get_config()
    level = _to_level(log_level if log_level is not None else app_config.logging.level)
    if enable_queue is None:
        enable_queue = app_config.logging.enable_logs_queue

    logger = logging.getLogger(f"function.{function_name}")
    logger.setLevel(level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    correlation_filter = CorrelationContextFilter()
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.addFilter(correlation_filter)
    logger.addHandler(console_handler)

    if enable_queue:
        queue_handler = AzureQueueHandler(
            queue_name=queue_name or QueueName.LOGS.value,
            connection_string=connection_string or app_config.queue.connection_string,
            batch_size=queue_batch_size,
        )
        queue_handler.addFilter(correlation_filter)
        logger.addHandler(queue_handler)

    _function_logger = ContextAwareLogger(logger)
    _function_logger.info(
        "Function logger configured",
        extra={"function_name": function_name, "queue_logging": enable_queue},
    )
    return _function_logger


def get_logger() -> ContextAwareLogger:
    """The configured function logger, or the package logger before configuration."""
    if _function_logger is not None:
        return _function_logger

    logger = logging.getLogger("wearable_auth_core")
    logger.setLevel(_to_level(get_config().logging.level))
    return ContextAwareLogger(logger)
