"""Fixed-interval trigger that hands work off without waiting for it.

The timer runs on its own daemon thread and fires at ``origin + k * interval``
on the monotonic clock, so the cadence never drifts with the duration of
the work.  Each firing walks the states::

    IDLE -> TRIGGERED -> SUBMITTED -> IDLE

and the trigger ends in ``STOPPED`` once ``stop()`` is called.

With a ``BoundedWorkerPool`` each firing is a ``pool.submit``; a rejection
under backpressure is logged and the next firing still happens.  Without a
pool, every firing runs the work on its own short-lived daemon thread; a
firing whose thread cannot be started is logged and counted as rejected.
Failures of the work itself are logged and never reach the timer.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

import structlog

from modules.core.exceptions import WorkRejected
from modules.core.workers import BoundedWorkerPool

logger = structlog.get_logger(__name__)


class TriggerState(str, Enum):
    IDLE = "idle"
    TRIGGERED = "triggered"
    SUBMITTED = "submitted"
    STOPPED = "stopped"


class PeriodicTrigger:
    """Invoke ``work`` every ``interval`` seconds on a worker pool."""

    def __init__(
        self,
        work: Callable[[], Any],
        interval: float,
        pool: Optional[BoundedWorkerPool] = None,
        name: str = "trigger",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive.")
        self._work = work
        self.interval = interval
        self.pool = pool
        self.name = name
        self._clock = clock

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._state = TriggerState.IDLE
        self._tick_count = 0
        self._rejected_count = 0
        self._skipped_count = 0
        self._last_tick: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._state is TriggerState.STOPPED:
            raise RuntimeError(f"Trigger '{self.name}' has been stopped.")
        if self._thread is not None:
            logger.warning("trigger.already_started", trigger=self.name)
            return

        self._thread = threading.Thread(
            target=self._loop, name=f"{self.name}-timer", daemon=True
        )
        self._thread.start()
        logger.info(
            "trigger.started",
            trigger=self.name,
            interval=self.interval,
            pooled=self.pool is not None,
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Stop firing.  Work already handed off keeps running."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("trigger.timer_not_stopped", trigger=self.name)
        with self._lock:
            self._state = TriggerState.STOPPED
        logger.info("trigger.stopped", trigger=self.name, ticks=self._tick_count)

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _loop(self) -> None:
        origin = self._clock()
        k = 1
        while not self._stop_event.wait(max(origin + k * self.interval - self._clock(), 0.0)):
            self._fire()
            due = int((self._clock() - origin) // self.interval) + 1
            if due > k + 1:
                with self._lock:
                    self._skipped_count += due - k - 1
                logger.warning("trigger.ticks_skipped", trigger=self.name, skipped=due - k - 1)
            k = max(k + 1, due)

    def _fire(self) -> None:
        with self._lock:
            if self._state is TriggerState.STOPPED:
                return
            self._state = TriggerState.TRIGGERED
            self._tick_count += 1
            self._last_tick = datetime.now(timezone.utc)
            tick = self._tick_count

        log = logger.bind(trigger=self.name, tick=tick)
        try:
            if self.pool is None:
                threading.Thread(
                    target=self._run_detached,
                    name=f"{self.name}-work-{tick}",
                    daemon=True,
                ).start()
            elif not self.pool.submit(self._work):
                self._record_rejection(log)
        except WorkRejected:
            self._record_rejection(log)
        except RuntimeError:
            # No thread could be started for this firing.
            log.exception("trigger.dispatch_failed")
            self._record_rejection(log)

        self._transition(TriggerState.SUBMITTED)
        log.debug("trigger.submitted")
        self._transition(TriggerState.IDLE)

    def _transition(self, state: TriggerState) -> None:
        with self._lock:
            if self._state is not TriggerState.STOPPED:
                self._state = state

    def _record_rejection(self, log: Any) -> None:
        with self._lock:
            self._rejected_count += 1
        log.warning("trigger.work_rejected")

    def _run_detached(self) -> None:
        try:
            self._work()
        except Exception:
            logger.exception("trigger.work_failed", trigger=self.name)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> TriggerState:
        return self._state

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def rejected_count(self) -> int:
        return self._rejected_count

    @property
    def last_tick(self) -> Optional[datetime]:
        return self._last_tick

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def health(self) -> Dict[str, Any]:
        return {
            "healthy": self.is_running,
            "trigger": self.name,
            "state": self._state.value,
            "interval_seconds": self.interval,
            "tick_count": self._tick_count,
            "rejected_count": self._rejected_count,
            "skipped_count": self._skipped_count,
            "last_tick": self._last_tick.isoformat() if self._last_tick else None,
            "pool": self.pool.stats() if self.pool is not None else None,
        }
