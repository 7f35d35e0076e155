"""Integration tests for the run_trigger and seed_products commands."""

from __future__ import annotations

import threading
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import CommandError, call_command

from modules.core.management.commands.run_trigger import (
    build_worker_pool,
    release_connections,
)
from modules.products.management.commands.seed_products import CATALOG
from modules.products.models import Product

pytestmark = pytest.mark.integration

IMPORT_STRING = "modules.core.management.commands.run_trigger.import_string"


# ===========================================================================
# run_trigger
# ===========================================================================


class TestRunTrigger:
    def test_fires_work_until_run_for_elapses(self):
        calls = []
        lock = threading.Lock()

        def work():
            with lock:
                calls.append(threading.current_thread().name)

        out = StringIO()
        with patch(IMPORT_STRING, return_value=work):
            call_command("run_trigger", "--interval", "0.05", "--run-for", "0.4", stdout=out)

        output = out.getvalue()
        assert "firing every 0.05s" in output
        assert "Trigger stopped after" in output
        assert "Pool did not drain" not in output
        assert len(calls) >= 3
        assert all(name.startswith("task-") for name in calls)

    def test_uses_configured_interval_by_default(self, settings):
        settings.TASK_TRIGGER_INTERVAL = 0.05
        out = StringIO()
        with patch(IMPORT_STRING, return_value=lambda: None):
            call_command("run_trigger", "--run-for", "0.2", stdout=out)
        assert "firing every 0.05s" in out.getvalue()

    def test_reports_pool_that_did_not_drain(self, settings):
        settings.TASK_POOL_SHUTDOWN_GRACE = 0.05
        release = threading.Event()
        out = StringIO()
        try:
            with patch(IMPORT_STRING, return_value=lambda: release.wait(timeout=5)):
                call_command(
                    "run_trigger", "--interval", "0.02", "--run-for", "0.2", stdout=out
                )
        finally:
            release.set()
        assert "Pool did not drain in time." in out.getvalue()

    def test_unknown_task_path_raises(self, settings):
        settings.TASK_TRIGGER_TASK = "modules.products.tasks.does_not_exist"
        with pytest.raises(CommandError, match="Cannot import TASK_TRIGGER_TASK"):
            call_command("run_trigger", "--run-for", "0.1", stdout=StringIO())

    def test_invalid_pool_sizing_raises(self, settings):
        settings.TASK_POOL_MAX_SIZE = 1
        settings.TASK_POOL_CORE_SIZE = 2
        with pytest.raises(CommandError, match="max_size"):
            call_command("run_trigger", "--run-for", "0.1", stdout=StringIO())


class TestBuildWorkerPool:
    def test_sized_from_settings(self, settings):
        settings.TASK_POOL_CORE_SIZE = 3
        settings.TASK_POOL_MAX_SIZE = 5
        settings.TASK_POOL_QUEUE_CAPACITY = 7
        settings.TASK_POOL_THREAD_PREFIX = "report-"
        settings.TASK_POOL_REJECTION_POLICY = "abort"

        pool = build_worker_pool()

        assert (pool.core_size, pool.max_size, pool.queue_capacity) == (3, 5, 7)
        assert pool.thread_name_prefix == "report-"
        assert pool.rejection_policy.value == "abort"


class TestReleaseConnections:
    def test_closes_connections_after_work(self):
        with patch(
            "modules.core.management.commands.run_trigger.connections.close_all"
        ) as close_all:
            assert release_connections(lambda: 42)() == 42
        close_all.assert_called_once_with()

    def test_closes_connections_when_work_fails(self):
        def boom():
            raise RuntimeError("boom")

        with patch(
            "modules.core.management.commands.run_trigger.connections.close_all"
        ) as close_all:
            with pytest.raises(RuntimeError):
                release_connections(boom)()
        close_all.assert_called_once_with()


# ===========================================================================
# seed_products
# ===========================================================================


class TestSeedProducts:
    def test_creates_catalog(self):
        out = StringIO()
        call_command("seed_products", stdout=out)
        assert Product.objects.count() == len(CATALOG)
        assert f"products={len(CATALOG)}, skipped=0" in out.getvalue()

    def test_is_idempotent(self):
        call_command("seed_products", stdout=StringIO())
        out = StringIO()
        call_command("seed_products", stdout=out)
        assert Product.objects.count() == len(CATALOG)
        assert f"products=0, skipped={len(CATALOG)}" in out.getvalue()

    def test_includes_zero_priced_product(self):
        call_command("seed_products", stdout=StringIO())
        assert Product.objects.filter(price=Decimal("0.00")).exists()

    def test_quantities_are_reproducible(self):
        call_command("seed_products", "--seed", "7", stdout=StringIO())
        first = list(Product.objects.order_by("name").values_list("quantity", flat=True))
        Product.objects.all().delete()
        call_command("seed_products", "--seed", "7", stdout=StringIO())
        second = list(Product.objects.order_by("name").values_list("quantity", flat=True))
        assert first == second
