"""
Tests for the logging module.

Tests verify:
- Service metadata and ECS field names are added
- Bound context shows up on every event until unbound
- LogContext scopes its keys
"""

import structlog
from structlog.testing import capture_logs

from perema.core import logging as perema_logging
from perema.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


class TestProcessors:
    def test_service_metadata(self):
        configure_logging(level="INFO", json_format=False, service="perema-test")
        event = perema_logging._add_service_metadata(None, "info", {"event": "x"})
        assert event["service.name"] == "perema-test"

    def test_service_metadata_keeps_existing(self):
        event = perema_logging._add_service_metadata(None, "info", {"service.name": "other"})
        assert event["service.name"] == "other"

    def test_elasticsearch_field_names(self):
        event = perema_logging._elasticsearch_compatible(
            None, "info", {"timestamp": "2026-05-04T08:00:00Z", "level": "info", "event": "x"}
        )
        assert event == {"@timestamp": "2026-05-04T08:00:00Z", "log.level": "info", "event": "x"}


class TestContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bind_and_unbind(self):
        bind_context(request_id="req-1", contact_id=7)
        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1", "contact_id": 7}

        unbind_context("contact_id")
        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}

    def test_log_context_scopes_keys(self):
        bind_context(request_id="req-1")
        with LogContext(job="birthday_reminders"):
            assert structlog.contextvars.get_contextvars()["job"] == "birthday_reminders"
        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}


class TestConfigure:
    def test_logger_emits_event(self):
        configure_logging(level="INFO", json_format=True, service="perema")
        with capture_logs() as logs:
            get_logger(__name__).info("birthday_mail_sent", contact_id=3)

        assert logs == [{"event": "birthday_mail_sent", "contact_id": 3, "log_level": "info"}]
