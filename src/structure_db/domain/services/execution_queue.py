"""Serial execution context for one connection.

All engine work for a connection runs on a single worker thread, in the
order it was submitted. A caller outside the context blocks until its
operation has run. A caller already inside the context (a row callback, a
transaction body, a scalar function) runs inline; queueing it would wait
on the very operation it is part of.

Thread Safety:
    ``run`` may be called from any number of threads. Submissions are
    serialized under a lock, so operations run in the order their
    submissions acquired it.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, TypeVar

from structure_db.domain.errors import lifecycle_violation
from structure_db.infrastructure.logging import get_logger
from structure_db.infrastructure.metrics import MetricsRegistry

T = TypeVar("T")

logger = get_logger(__name__)


class ExecutionQueue:
    """A single-worker FIFO with reentrant pass-through.

    Usage:
        queue = ExecutionQueue("orders-db")
        count = queue.run(lambda: engine.read_user_version())
        queue.shutdown()
    """

    def __init__(
        self,
        name: str = "structure-db",
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            name: Prefix of the worker thread's name.
            metrics: Registry receiving queue wait times.
        """
        self._name = name
        self._metrics = metrics
        self._context = threading.local()
        self._submit_lock = threading.Lock()
        self._closed = False
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=name,
            initializer=self._enter_context,
        )

    def _enter_context(self) -> None:
        # Runs once, on the worker thread.
        self._context.inside = True

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_current(self) -> bool:
        """Whether the calling thread is this queue's worker."""
        return getattr(self._context, "inside", False)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def run(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` in the execution context and return its result.

        Exceptions raised by ``operation`` propagate to the caller unchanged.

        Raises:
            ResourceLifecycleViolation: If the queue has been shut down.
        """
        if self.is_current:
            return operation()

        with self._submit_lock:
            if self._closed:
                raise lifecycle_violation("Execution queue used after shutdown", queue=self._name)
            future = self._executor.submit(self._timed, operation, time.perf_counter())
        return future.result()

    def _timed(self, operation: Callable[[], T], submitted_at: float) -> T:
        if self._metrics is not None:
            self._metrics.queue_wait_seconds.observe(time.perf_counter() - submitted_at)
        return operation()

    def shutdown(self) -> None:
        """Run the work already queued, then stop the worker.

        Called from inside the context, the worker finishes its current
        operation and stops without waiting on itself.

        Raises:
            ResourceLifecycleViolation: If the queue was already shut down.
        """
        with self._submit_lock:
            if self._closed:
                raise lifecycle_violation("Execution queue shut down twice", queue=self._name)
            self._closed = True
        self._executor.shutdown(wait=not self.is_current)
        logger.debug("execution_queue_stopped", queue=self._name)
