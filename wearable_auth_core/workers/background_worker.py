"""
Fire-and-forget task execution.

Callers submit work and never await it. Every task carries an error sink so a
failure is recorded and logged instead of disappearing with the thread.
"""

import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import get_config
from ..utils.logger import get_logger

ErrorSink = Callable[[str, BaseException], None]


class BackgroundWorker(ABC):
    """Abstraction over background task execution."""

    @abstractmethod
    def submit(
        self,
        task_name: str,
        fn: Callable[..., Any],
        *args: Any,
        error_sink: Optional[ErrorSink] = None,
        **kwargs: Any,
    ) -> None:
        """Schedule ``fn(*args, **kwargs)``; failures go to ``error_sink``."""

    def shutdown(self, wait: bool = True) -> None:
        """Release worker resources."""


def log_task_failure(task_name: str, error: BaseException) -> None:
    """Default error sink: log and move on."""
    get_logger().error(
        f"Background task failed: {task_name}",
        extra={"task_name": task_name, "error_type": type(error).__name__, "error": str(error)},
    )


class ThreadPoolBackgroundWorker(BackgroundWorker):
    """Runs tasks on a bounded thread pool."""

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers or get_config().sync.worker_threads
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="wearable-sync"
        )
        self.logger = get_logger()

    def submit(self, task_name, fn, *args, error_sink=None, **kwargs) -> None:
        sink = error_sink or log_task_failure
        future = self._executor.submit(fn, *args, **kwargs)

        def _on_done(done: Future) -> None:
            error = done.exception()
            if error is not None:
                sink(task_name, error)

        future.add_done_callback(_on_done)
        self.logger.debug("Background task submitted", extra={"task_name": task_name})

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


@dataclass
class SubmittedTask:
    task_name: str
    fn: Callable[..., Any]
    args: Tuple[Any, ...]
    kwargs: Dict[str, Any]
    error_sink: ErrorSink
    executed: bool = False
    error: Optional[BaseException] = None
    result: Any = None


@dataclass
class RecordingBackgroundWorker(BackgroundWorker):
    """
    Records submitted tasks for inspection.

    With ``run_inline`` set, tasks execute immediately on the calling thread
    and failures are still routed to the error sink, never to the caller.
    """

    run_inline: bool = False
    tasks: List[SubmittedTask] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def submit(self, task_name, fn, *args, error_sink=None, **kwargs) -> None:
        task = SubmittedTask(
            task_name=task_name,
            fn=fn,
            args=args,
            kwargs=kwargs,
            error_sink=error_sink or log_task_failure,
        )
        with self._lock:
            self.tasks.append(task)
        if self.run_inline:
            self._execute(task)

    def run_pending(self) -> None:
        """Execute every recorded task that has not run yet."""
        for task in list(self.tasks):
            if not task.executed:
                self._execute(task)

    @staticmethod
    def _execute(task: SubmittedTask) -> None:
        task.executed = True
        try:
            task.result = task.fn(*task.args, **task.kwargs)
        except Exception as e:
            task.error = e
            task.error_sink(task.task_name, e)
