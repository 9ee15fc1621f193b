"""Tests for the FastAPI app factory, middleware and error handlers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from perema.api.app import create_app
from perema.api.middleware.errors import status_for_error_code
from perema.api.utils import _handle_error
from perema.core.settings import PeremaSettings
from perema.ops.result import OperationResult


@pytest.fixture()
def app_settings(tmp_path):
    return PeremaSettings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'app.db'}",
        static_dir=tmp_path / "missing-static",
        photo_dir=tmp_path / "photos",
        scheduler_enabled=False,
        log_json=False,
    )


class TestCreateApp:
    def test_routes_registered(self, app_settings):
        app = create_app(settings=app_settings)
        paths = {getattr(r, "path", "") for r in app.routes}
        for path in (
            "/health",
            "/api/v1/health",
            "/api/v1/contacts",
            "/api/v1/contacts/circles",
            "/api/v1/contacts/{contact_id}/photo",
            "/api/v1/contacts/{contact_id}/notes",
            "/api/v1/contacts/{contact_id}/activities",
            "/api/v1/contacts/{contact_id}/relationships",
            "/api/v1/contacts/{contact_id}/reminders",
            "/api/v1/reminders/due",
            "/api/v1/reminders/{reminder_id}/complete",
            "/api/v1/jobs",
            "/api/v1/jobs/birthdays/run",
            "/api/v1/jobs/reminders/run",
        ):
            assert path in paths, path

    def test_state(self, app_settings):
        app = create_app(settings=app_settings)
        assert app.state.settings is app_settings
        assert app.state.mailer is not None
        assert app.state.scheduler is None
        assert app.state.mailer_error is None

    def test_creates_photo_dir(self, app_settings):
        create_app(settings=app_settings)
        assert app_settings.photo_dir.is_dir()

    def test_openapi(self, app_settings):
        with TestClient(create_app(settings=app_settings)) as client:
            resp = client.get("/api/v1/openapi.json")
        assert resp.status_code == 200
        assert resp.json()["info"]["title"] == "perema API"

    def test_missing_frontend_is_not_fatal(self, app_settings):
        with TestClient(create_app(settings=app_settings)) as client:
            assert client.get("/").status_code == 404
            assert client.get("/api/v1/contacts").status_code == 200


class TestSchedulerLifespan:
    def test_scheduler_started_and_stopped(self, app_settings):
        app_settings.scheduler_enabled = True
        backend = MagicMock()

        with patch("perema.api.app.APSchedulerBackend", return_value=backend):
            app = create_app(settings=app_settings)
            with TestClient(app):
                backend.start.assert_called_once()
                assert backend.add_cron_job.call_count == 1
                assert backend.add_interval_job.call_count == 1
            backend.stop.assert_called_once()

    def test_no_scheduler_without_mailer(self, app_settings):
        app_settings.scheduler_enabled = True
        app_settings.mail_backend = "sendgrid"
        app_settings.sendgrid_api_key = ""

        app = create_app(settings=app_settings)
        assert app.state.mailer is None
        assert app.state.scheduler is None
        assert "SENDGRID_API_KEY" in app.state.mailer_error


class TestMiddleware:
    def test_request_id_generated(self, app_settings):
        with TestClient(create_app(settings=app_settings)) as client:
            resp = client.get("/api/v1/contacts")
        assert resp.headers["X-Request-ID"]
        assert float(resp.headers["X-Process-Time-Ms"]) >= 0

    def test_request_id_propagated(self, app_settings):
        with TestClient(create_app(settings=app_settings)) as client:
            resp = client.get("/api/v1/contacts", headers={"X-Request-ID": "req-42"})
        assert resp.headers["X-Request-ID"] == "req-42"


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("code", "status"),
        [
            ("NOT_FOUND", 404),
            ("VALIDATION_FAILED", 400),
            ("CONFLICT", 409),
            ("TRANSIENT", 503),
            ("UNAVAILABLE", 503),
            ("INTERNAL", 500),
            ("SOMETHING_ELSE", 500),
        ],
    )
    def test_status_for_error_code(self, code, status):
        assert status_for_error_code(code) == status

    def test_handle_error_adds_field(self):
        result = OperationResult.fail("VALIDATION_FAILED", "firstname is required", details={"field": "firstname"})
        resp = _handle_error(result)
        assert resp.status_code == 400
        assert b'"field":"firstname"' in resp.body

    def test_unhandled_exception_is_500(self, app_settings):
        app = create_app(settings=app_settings)

        @app.get("/api/v1/boom")
        def boom():
            raise RuntimeError("secret detail")

        with TestClient(app, raise_server_exceptions=False) as client:
            resp = client.get("/api/v1/boom")
        assert resp.status_code == 500
        assert resp.json()["detail"] == "An unexpected error occurred."

    def test_domain_error_maps_to_status(self, app_settings):
        from perema.core.errors import NotFoundError, ValidationError

        app = create_app(settings=app_settings)

        @app.get("/api/v1/missing")
        def missing():
            raise NotFoundError("Contact 9 not found")

        @app.get("/api/v1/invalid")
        def invalid():
            raise ValidationError("Invalid birthday", field="birthday")

        with TestClient(app, raise_server_exceptions=False) as client:
            not_found = client.get("/api/v1/missing")
            bad = client.get("/api/v1/invalid")

        assert not_found.status_code == 404
        assert not_found.headers["content-type"] == "application/problem+json"
        assert not_found.json()["title"] == "Contact 9 not found"
        assert bad.status_code == 400
        assert bad.json()["errors"][0]["field"] == "birthday"
