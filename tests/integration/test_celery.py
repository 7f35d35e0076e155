"""Integration tests for the Celery configuration."""

import pytest

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _celery_eager(settings):
    """Run tasks synchronously inside the test process."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


class TestCeleryConfig:
    """Celery loads its configuration through Django settings."""

    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "catalog"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "catalog"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_stock_report_is_registered(self):
        from config.celery import app

        import modules.products.tasks  # noqa: F401

        assert "products.stock_report" in app.tasks


class TestBeatSchedule:
    def test_stock_report_scheduled_at_trigger_interval(self, settings):
        entry = settings.CELERY_BEAT_SCHEDULE[settings.TASK_TRIGGER_NAME]
        assert entry["task"] == "products.stock_report"
        assert entry["schedule"] == settings.TASK_TRIGGER_INTERVAL


class TestStockReportTask:
    """The stock report runs in eager mode."""

    def test_delay_returns_summary(self, make_product):
        from modules.products.tasks import stock_report

        make_product(quantity=0)
        make_product(quantity=5)

        result = stock_report.delay()

        assert result.successful()
        assert result.result == {"total": 2, "out_of_stock": 1}
