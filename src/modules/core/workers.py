"""Bounded worker pool for background units of work.

``BoundedWorkerPool`` runs callables on a fixed set of *core* threads fed
by a bounded FIFO queue.  When the queue is full, extra threads are
spawned up to ``max_size``; an extra thread retires after ``keep_alive``
seconds without work.  With the queue full and ``max_size`` threads alive
the pool is saturated and the configured ``RejectionPolicy`` applies:

- ``DISCARD``: log a warning and return ``False`` from ``submit``.
- ``ABORT``: raise ``WorkRejected``.

A failing unit of work is logged and counted; it never kills its worker
thread.  ``shutdown`` stops intake, lets the workers drain what is already
queued and waits at most ``grace_period`` seconds for them to finish.
In-flight work is never cancelled.
"""

from __future__ import annotations

import itertools
import queue
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set, Tuple

import structlog

from modules.core.exceptions import WorkRejected

logger = structlog.get_logger(__name__)

_Task = Tuple[Callable[..., Any], Tuple[Any, ...], Dict[str, Any]]

# Queued after the real work on shutdown; a worker that dequeues it exits.
_STOP = object()


class RejectionPolicy(str, Enum):
    DISCARD = "discard"
    ABORT = "abort"


def _describe(fn: Callable[..., Any]) -> str:
    return getattr(fn, "name", None) or getattr(fn, "__qualname__", None) or repr(fn)


class BoundedWorkerPool:
    """Thread pool with core/max sizing, a bounded queue and backpressure.

    Example::

        pool = BoundedWorkerPool(core_size=2, max_size=4, queue_capacity=10)
        pool.start()
        pool.submit(send_report, "daily")
        pool.shutdown(grace_period=5.0)
    """

    def __init__(
        self,
        core_size: int = 2,
        max_size: int = 4,
        queue_capacity: int = 100,
        thread_name_prefix: str = "task-",
        keep_alive: float = 60.0,
        rejection_policy: RejectionPolicy | str = RejectionPolicy.DISCARD,
    ) -> None:
        if core_size < 1:
            raise ValueError("core_size must be at least 1.")
        if max_size < core_size:
            raise ValueError("max_size cannot be smaller than core_size.")
        if queue_capacity < 1:
            raise ValueError("queue_capacity must be at least 1.")
        if keep_alive <= 0:
            raise ValueError("keep_alive must be positive.")

        self.core_size = core_size
        self.max_size = max_size
        self.queue_capacity = queue_capacity
        self.thread_name_prefix = thread_name_prefix
        self.keep_alive = keep_alive
        self.rejection_policy = RejectionPolicy(rejection_policy)

        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=queue_capacity)
        self._lock = threading.Lock()
        self._workers: Set[threading.Thread] = set()
        self._seq = itertools.count(1)
        self._running = False
        self._closed = False

        self._completed = 0
        self._failed = 0
        self._rejected = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the core worker threads."""
        with self._lock:
            if self._closed:
                raise RuntimeError("Cannot restart a pool that has been shut down.")
            if self._running:
                logger.warning("worker_pool.already_running")
                return
            self._running = True
            for _ in range(self.core_size):
                self._spawn(core=True)

        logger.info(
            "worker_pool.started",
            core_size=self.core_size,
            max_size=self.max_size,
            queue_capacity=self.queue_capacity,
            rejection_policy=self.rejection_policy.value,
        )

    def shutdown(self, grace_period: float = 10.0) -> bool:
        """Stop accepting work and drain the queue.

        Returns ``True`` when every queued unit of work finished within
        ``grace_period`` seconds.  Worker threads are daemons, so any that
        are still busy afterwards will not keep the process alive.
        """
        with self._lock:
            if self._closed:
                return not self._workers
            self._running = False
            self._closed = True
            workers = list(self._workers)

        logger.info(
            "worker_pool.shutting_down",
            workers=len(workers),
            queued=self._queue.qsize(),
            grace_period=grace_period,
        )
        deadline = time.monotonic() + grace_period

        for _ in workers:
            remaining = deadline - time.monotonic()
            try:
                self._queue.put(_STOP, timeout=max(remaining, 0.001))
            except queue.Full:
                break

        for worker in workers:
            worker.join(timeout=max(deadline - time.monotonic(), 0.0))

        with self._lock:
            alive = [w.name for w in self._workers if w.is_alive()]

        drained = not alive
        if drained:
            logger.info("worker_pool.stopped", completed=self._completed, failed=self._failed)
        else:
            logger.warning("worker_pool.shutdown_timeout", busy_workers=alive)
        return drained

    def __enter__(self) -> BoundedWorkerPool:
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        """Hand a unit of work to the pool without waiting for it.

        Returns ``True`` when the work was accepted.  On saturation the
        rejection policy decides between returning ``False`` and raising
        ``WorkRejected``.
        """
        task: _Task = (fn, args, kwargs)
        with self._lock:
            if not self._running:
                reason = "stopped"
            else:
                try:
                    self._queue.put_nowait(task)
                    return True
                except queue.Full:
                    pass
                if len(self._workers) < self.max_size:
                    self._spawn(core=False, first_task=task)
                    return True
                reason = "saturated"
            self._rejected += 1

        return self._reject(fn, reason)

    def _reject(self, fn: Callable[..., Any], reason: str) -> bool:
        log = logger.bind(work=_describe(fn), reason=reason)
        if self.rejection_policy is RejectionPolicy.ABORT:
            log.warning("worker_pool.work_aborted")
            raise WorkRejected(f"Work '{_describe(fn)}' rejected: pool {reason}.")
        log.warning("worker_pool.work_discarded")
        return False

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    def _spawn(self, core: bool, first_task: Optional[_Task] = None) -> None:
        # Caller holds self._lock.
        thread = threading.Thread(
            target=self._work_loop,
            args=(core, first_task),
            name=f"{self.thread_name_prefix}{next(self._seq)}",
            daemon=True,
        )
        self._workers.add(thread)
        thread.start()

    def _work_loop(self, core: bool, task: Optional[_Task]) -> None:
        try:
            while True:
                if task is None:
                    try:
                        item = self._queue.get(timeout=None if core else self.keep_alive)
                    except queue.Empty:
                        logger.debug("worker_pool.worker_retired")
                        return
                    if item is _STOP:
                        return
                    task = item
                self._execute(task)
                task = None
        finally:
            with self._lock:
                self._workers.discard(threading.current_thread())

    def _execute(self, task: _Task) -> None:
        fn, args, kwargs = task
        try:
            fn(*args, **kwargs)
        except Exception:
            with self._lock:
                self._failed += 1
            logger.exception("worker_pool.work_failed", work=_describe(fn))
        else:
            with self._lock:
                self._completed += 1

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "running": self._running,
                "workers": len(self._workers),
                "queued": self._queue.qsize(),
                "completed": self._completed,
                "failed": self._failed,
                "rejected": self._rejected,
            }
