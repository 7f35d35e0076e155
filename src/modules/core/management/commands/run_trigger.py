from __future__ import annotations

import functools
import signal
import threading
from typing import Any, Callable

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import connections
from django.utils.module_loading import import_string

from modules.core.trigger import PeriodicTrigger
from modules.core.workers import BoundedWorkerPool


def build_worker_pool() -> BoundedWorkerPool:
    """Bounded pool sized from the ``TASK_POOL_*`` settings."""
    return BoundedWorkerPool(
        core_size=settings.TASK_POOL_CORE_SIZE,
        max_size=settings.TASK_POOL_MAX_SIZE,
        queue_capacity=settings.TASK_POOL_QUEUE_CAPACITY,
        thread_name_prefix=settings.TASK_POOL_THREAD_PREFIX,
        keep_alive=settings.TASK_POOL_KEEP_ALIVE,
        rejection_policy=settings.TASK_POOL_REJECTION_POLICY,
    )


def release_connections(work: Callable[[], Any]) -> Callable[[], Any]:
    """Close the worker thread's DB connections once each run finishes."""

    @functools.wraps(work)
    def run() -> Any:
        try:
            return work()
        finally:
            connections.close_all()

    return run


class Command(BaseCommand):
    help = "Fire TASK_TRIGGER_TASK every TASK_TRIGGER_INTERVAL seconds on a bounded worker pool."

    def add_arguments(self, parser):
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between firings (defaults to TASK_TRIGGER_INTERVAL).",
        )
        parser.add_argument(
            "--run-for",
            type=float,
            default=None,
            help="Stop after this many seconds instead of running until interrupted.",
        )

    def handle(self, *args, **options):
        interval = options["interval"] or settings.TASK_TRIGGER_INTERVAL
        try:
            work = import_string(settings.TASK_TRIGGER_TASK)
        except ImportError as exc:
            raise CommandError(f"Cannot import TASK_TRIGGER_TASK: {exc}") from exc

        try:
            pool = build_worker_pool()
            trigger = PeriodicTrigger(
                release_connections(work),
                interval=interval,
                pool=pool,
                name=settings.TASK_TRIGGER_NAME,
            )
        except ValueError as exc:
            raise CommandError(str(exc)) from exc

        stop = threading.Event()
        previous = signal.signal(signal.SIGTERM, lambda *_: stop.set())

        self.stdout.write(
            f"Trigger '{trigger.name}' firing every {interval}s "
            f"(pool core={pool.core_size} max={pool.max_size} queue={pool.queue_capacity})"
        )
        pool.start()
        trigger.start()
        try:
            stop.wait(timeout=options["run_for"])
        except KeyboardInterrupt:
            pass
        finally:
            trigger.stop()
            drained = pool.shutdown(grace_period=settings.TASK_POOL_SHUTDOWN_GRACE)
            signal.signal(signal.SIGTERM, previous)

        summary = f"Trigger stopped after {trigger.tick_count} firings."
        if drained:
            self.stdout.write(self.style.SUCCESS(summary))
        else:
            self.stdout.write(self.style.WARNING(f"{summary} Pool did not drain in time."))
