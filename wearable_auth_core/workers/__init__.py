"""Background task execution."""

from .background_worker import (
    BackgroundWorker,
    RecordingBackgroundWorker,
    SubmittedTask,
    ThreadPoolBackgroundWorker,
    log_task_failure,
)

__all__ = [
    "BackgroundWorker",
    "RecordingBackgroundWorker",
    "SubmittedTask",
    "ThreadPoolBackgroundWorker",
    "log_task_failure",
]
