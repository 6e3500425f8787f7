"""
Shared worker pool for decode/encode work.

The pool:
 - is created lazily on first use and shared by every caller,
 - caps simultaneous decode/encode operations at ``worker_pool_size`` to bound
   peak memory (images near the dimension limit are heavy to decode),
 - runs work as ``SupervisedTask`` objects whose deadline starts once a worker
   picks the task up, with a separate cap on time spent queued.

Pillow releases the GIL while decoding, resampling and encoding, so threads
run those stages in parallel.
"""

from __future__ import annotations

from concurrent import futures
from concurrent.futures import Future, ThreadPoolExecutor
import logging
from threading import Event, Lock
import time
from typing import Any, Callable, Optional

from . import config

logger = logging.getLogger(__name__)

_POOL: Optional[ThreadPoolExecutor] = None
_LOCK = Lock()

# How often a waiter re-checks a queued task that may have been cancelled.
_START_POLL_SECONDS = 0.05


def get_worker_pool() -> ThreadPoolExecutor:
    """
    Return the process-wide decode/encode pool.

    The pool is built once on first access and sized from settings.
    """
    global _POOL
    if _POOL is not None:
        return _POOL

    with _LOCK:
        if _POOL is None:
            settings = config.get_settings()
            _POOL = ThreadPoolExecutor(
                max_workers=settings.worker_pool_size,
                thread_name_prefix="variant-worker",
            )
            logger.info("Worker pool started with %d workers", settings.worker_pool_size)
    return _POOL


def shutdown_worker_pool(wait: bool = True) -> None:
    """Shut the shared pool down; the next ``get_worker_pool`` call builds a new one."""
    global _POOL
    with _LOCK:
        pool, _POOL = _POOL, None
    if pool is not None:
        pool.shutdown(wait=wait, cancel_futures=True)


class SupervisedTask:
    """
    A pool submission with a running deadline and a bounded queue wait.

    By default the deadline is measured from the moment a worker picks the
    task up, and the time spent queued is capped separately by
    ``queue_timeout``. With ``from_submission`` the single deadline covers
    queueing and running together.

    ``result()`` raises ``TimeoutError`` once either limit passes. The
    underlying work is not interrupted (native resize/encode cannot be
    preempted); its late result is simply never returned.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        args: tuple,
        timeout: float,
        queue_timeout: Optional[float] = None,
        from_submission: bool = False,
    ):
        self.timeout = timeout
        self.queue_timeout = timeout if from_submission else queue_timeout
        self.from_submission = from_submission
        self._fn = fn
        self._args = args
        self._started = Event()
        self._started_at: Optional[float] = None
        self._submitted_at: Optional[float] = None
        self.future: Optional[Future] = None

    def _run(self) -> Any:
        self._started_at = time.monotonic()
        self._started.set()
        return self._fn(*self._args)

    def submit(self, pool: ThreadPoolExecutor) -> "SupervisedTask":
        self._submitted_at = time.monotonic()
        self.future = pool.submit(self._run)
        return self

    def _wait_for_worker(self) -> None:
        queue_deadline = None
        if self.queue_timeout is not None:
            queue_deadline = self._submitted_at + self.queue_timeout

        while not self._started.wait(_START_POLL_SECONDS):
            if self.future.done():
                return
            if queue_deadline is not None and time.monotonic() >= queue_deadline:
                # cancel() fails once a worker has picked the task up.
                if self.future.cancel():
                    raise TimeoutError(
                        f"task waited more than {self.queue_timeout:g}s for a worker"
                    )

    def result(self) -> Any:
        if self.future is None:
            raise RuntimeError("task was never submitted")

        self._wait_for_worker()

        if self._started_at is None:
            # Cancelled before a worker picked it up.
            return self.future.result(timeout=0)

        clock_start = self._submitted_at if self.from_submission else self._started_at
        remaining = self.timeout - (time.monotonic() - clock_start)
        try:
            return self.future.result(timeout=max(remaining, 0.0))
        except futures.TimeoutError:
            self.future.cancel()
            raise TimeoutError(f"task exceeded {self.timeout:g}s deadline") from None


def submit_with_deadline(
    fn: Callable[..., Any],
    *args: Any,
    timeout: float,
    queue_timeout: Optional[float] = None,
    from_submission: bool = False,
) -> SupervisedTask:
    """Run ``fn(*args)`` on the shared pool under a per-task deadline."""
    task = SupervisedTask(fn, args, timeout, queue_timeout=queue_timeout, from_submission=from_submission)
    return task.submit(get_worker_pool())
