"""
Integration tests for API endpoints using FastAPI TestClient.

These tests exercise the full router → ops → response chain
using a temporary SQLite database and the console mailer.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from perema.api.app import create_app
from perema.core.settings import PeremaSettings

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture()
def api_settings(tmp_path):
    static = tmp_path / "static"
    static.mkdir()
    (static / "index.html").write_text("<h1>perema</h1>")
    return PeremaSettings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        static_dir=static,
        photo_dir=tmp_path / "photos",
        scheduler_enabled=False,
        mail_backend="console",
        mail_to="me@example.com",
        log_json=False,
    )


@pytest.fixture()
def client(api_settings):
    """Create a test client with a temporary SQLite database."""
    app = create_app(settings=api_settings)
    with TestClient(app) as c:
        yield c


def _contact(client, **body):
    body.setdefault("firstname", "Anna")
    resp = client.post("/api/v1/contacts", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestHealthEndpoints:
    def test_root_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["service"] == "perema"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["scheduler"]["details"] == {"enabled": False}

    def test_prefixed_health(self, client):
        assert client.get("/api/v1/health").status_code == 200
        assert client.get("/api/v1/health/live").json() == {"status": "alive"}


class TestContactEndpoints:
    def test_create_and_get(self, client):
        anna = _contact(client, lastname="Smith", birthday="--05-04", circles=["family"])
        assert anna["birthday"] == "0001-05-04"

        resp = client.get(f"/api/v1/contacts/{anna['id']}")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["lastname"] == "Smith"
        assert data["notes"] == []
        assert data["reminders"] == []

    def test_create_validation_error(self, client):
        resp = client.post("/api/v1/contacts", json={"lastname": "Smith"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["status"] == 400
        assert body["errors"][0]["field"] == "firstname"

    def test_bad_birthday(self, client):
        resp = client.post("/api/v1/contacts", json={"firstname": "A", "birthday": "May 4"})
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "birthday"

    def test_get_missing(self, client):
        resp = client.get("/api/v1/contacts/999")
        assert resp.status_code == 404
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert resp.json()["instance"] == "/api/v1/contacts/999"

    def test_list(self, client):
        for name in ("Anna", "Bob", "Cleo"):
            _contact(client, firstname=name, circles=["family"] if name != "Bob" else [])

        resp = client.get("/api/v1/contacts", params={"limit": 2, "fields": "firstname"})
        assert resp.status_code == 200
        body = resp.json()
        assert [c["firstname"] for c in body["data"]] == ["Anna", "Bob"]
        assert set(body["data"][0]) == {"id", "firstname"}
        assert body["page"]["total"] == 3
        assert body["page"]["has_more"] is True
        assert body["page"]["total_pages"] == 2

    def test_list_clamps_params(self, client):
        _contact(client)
        body = client.get("/api/v1/contacts", params={"page": 0, "limit": 1000}).json()
        assert body["page"]["page"] == 1
        assert body["page"]["limit"] == 25

    def test_list_unknown_fields_only(self, client):
        anna = _contact(client)
        body = client.get("/api/v1/contacts", params={"fields": "bogus"}).json()
        assert body["data"] == [{"id": anna["id"]}]

    def test_list_filters(self, client):
        _contact(client, firstname="Anna", circles=["family"])
        _contact(client, firstname="Annika", circles=["work"])
        _contact(client, firstname="Bob", circles=["family"])

        body = client.get("/api/v1/contacts", params={"search": "ann", "circle": "family"}).json()
        assert [c["firstname"] for c in body["data"]] == ["Anna"]
        assert body["page"]["total"] == 1

    def test_list_includes(self, client):
        anna = _contact(client)
        client.post(f"/api/v1/contacts/{anna['id']}/notes", json={"content": "hi"})

        body = client.get("/api/v1/contacts", params={"fields": "firstname", "includes": "notes"}).json()
        assert body["data"][0]["notes"][0]["content"] == "hi"

    def test_circles(self, client):
        _contact(client, circles=["work", "family"])
        _contact(client, circles=["climbing"])
        assert client.get("/api/v1/contacts/circles").json()["data"] == ["climbing", "family", "work"]

    def test_update_partial(self, client):
        anna = _contact(client, lastname="Smith")
        resp = client.put(f"/api/v1/contacts/{anna['id']}", json={"nickname": "Annie"})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["nickname"] == "Annie"
        assert data["lastname"] == "Smith"

    def test_delete(self, client):
        anna = _contact(client)
        resp = client.delete(f"/api/v1/contacts/{anna['id']}")
        assert resp.status_code == 204
        assert client.get(f"/api/v1/contacts/{anna['id']}").status_code == 404
        assert client.delete(f"/api/v1/contacts/{anna['id']}").status_code == 404


class TestPhotoEndpoints:
    def test_upload_and_serve(self, client):
        anna = _contact(client)
        resp = client.post(
            f"/api/v1/contacts/{anna['id']}/photo",
            files={"photo": ("me.png", PNG, "image/png")},
        )
        assert resp.status_code == 200, resp.text
        url = resp.json()["data"]["photo"]
        assert url.startswith("/photos/")

        served = client.get(url)
        assert served.status_code == 200
        assert served.content == PNG

    def test_rejects_wrong_type(self, client):
        anna = _contact(client)
        resp = client.post(
            f"/api/v1/contacts/{anna['id']}/photo",
            files={"photo": ("notes.txt", b"hello", "text/plain")},
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "photo"

    def test_rejects_oversized(self, client, api_settings):
        anna = _contact(client)
        big = b"\x00" * (api_settings.max_photo_size_bytes + 1)
        resp = client.post(
            f"/api/v1/contacts/{anna['id']}/photo",
            files={"photo": ("big.png", big, "image/png")},
        )
        assert resp.status_code == 400

    def test_missing_file(self, client):
        anna = _contact(client)
        assert client.post(f"/api/v1/contacts/{anna['id']}/photo").status_code == 400


class TestRecordEndpoints:
    def test_notes(self, client):
        anna = _contact(client)
        resp = client.post(f"/api/v1/contacts/{anna['id']}/notes", json={"content": "Likes tea"})
        assert resp.status_code == 201
        note = resp.json()["data"]

        assert client.get(f"/api/v1/contacts/{anna['id']}/notes").json()["data"][0]["id"] == note["id"]
        resp = client.put(f"/api/v1/notes/{note['id']}", json={"content": "Likes green tea"})
        assert resp.json()["data"]["content"] == "Likes green tea"
        assert client.delete(f"/api/v1/notes/{note['id']}").status_code == 204
        assert client.get(f"/api/v1/notes/{note['id']}").status_code == 404

    def test_notes_unknown_contact(self, client):
        resp = client.post("/api/v1/contacts/999/notes", json={"content": "x"})
        assert resp.status_code == 404

    def test_activities(self, client):
        anna = _contact(client)
        resp = client.post(
            f"/api/v1/contacts/{anna['id']}/activities",
            json={"name": "Climbing", "date": "2024-06-01"},
        )
        assert resp.status_code == 201
        activity = resp.json()["data"]
        assert activity["date"] == "2024-06-01"
        assert client.get(f"/api/v1/activities/{activity['id']}").status_code == 200

    def test_relationships(self, client):
        anna = _contact(client, lastname="Smith")
        bob = _contact(client, firstname="Bob")

        resp = client.post(
            f"/api/v1/contacts/{bob['id']}/relationships",
            json={"related_contact_id": anna["id"], "type": "sibling"},
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["name"] == "Anna Smith"

    def test_relationship_to_missing_contact(self, client):
        bob = _contact(client, firstname="Bob")
        resp = client.post(
            f"/api/v1/contacts/{bob['id']}/relationships",
            json={"related_contact_id": 404},
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["title"] == "Related contact not found"
        assert body["errors"][0]["field"] == "related_contact_id"


class TestReminderEndpoints:
    def test_lifecycle(self, client):
        anna = _contact(client)
        resp = client.post(
            f"/api/v1/contacts/{anna['id']}/reminders",
            json={
                "message": "Call Anna",
                "remind_at": "2024-01-01T09:00:00+01:00",
                "recurrence": "weekly",
                "reoccur_from_completion": False,
                "by_mail": True,
            },
        )
        assert resp.status_code == 201, resp.text
        reminder = resp.json()["data"]
        assert reminder["remind_at"] == "2024-01-01T08:00:00"

        due = client.get("/api/v1/reminders/due", params={"now": "2024-01-02T00:00:00"}).json()["data"]
        assert [r["id"] for r in due] == [reminder["id"]]

        resp = client.post(f"/api/v1/reminders/{reminder['id']}/complete")
        assert resp.status_code == 200
        done = resp.json()["data"]
        assert done["completed"] is False
        assert done["remind_at"] == "2024-01-08T08:00:00"

    def test_complete_once_twice(self, client):
        anna = _contact(client)
        reminder = client.post(
            f"/api/v1/contacts/{anna['id']}/reminders",
            json={"message": "x", "remind_at": "2024-01-01T09:00:00"},
        ).json()["data"]

        first = client.post(
            f"/api/v1/reminders/{reminder['id']}/complete",
            json={"completed_at": "2024-01-02T10:00:00Z"},
        )
        assert first.json()["data"]["completed"] is True
        assert client.post(f"/api/v1/reminders/{reminder['id']}/complete").status_code == 400

    def test_invalid_recurrence(self, client):
        anna = _contact(client)
        resp = client.post(
            f"/api/v1/contacts/{anna['id']}/reminders",
            json={"message": "x", "remind_at": "2024-01-01T09:00:00", "recurrence": "hourly"},
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "recurrence"


class TestJobEndpoints:
    def test_status_without_scheduler(self, client):
        data = client.get("/api/v1/jobs").json()["data"]
        assert data["enabled"] is False
        assert data["mail_backend"] == "console"

    def test_birthdays(self, client):
        _contact(client, firstname="Anna", birthday="1990-05-04")
        _contact(client, firstname="Bob", birthday="1990-05-05")

        data = client.get("/api/v1/jobs/birthdays", params={"date": "2026-05-04"}).json()["data"]
        assert [(c["firstname"], c["age"]) for c in data] == [("Anna", "36 years old")]

    def test_run_birthdays(self, client):
        _contact(client, firstname="Anna", lastname="Smith", birthday="--05-04")

        resp = client.post("/api/v1/jobs/birthdays/run", params={"date": "2026-05-04"})
        assert resp.status_code == 200
        assert resp.json()["data"] == {"day": "2026-05-04", "matched": 1, "sent": 1, "failed": []}

        outbox = client.app.state.mailer.outbox
        assert outbox[0].template_data["birthday_age"] == "unknown age"

    def test_run_reminders(self, client):
        anna = _contact(client)
        client.post(
            f"/api/v1/contacts/{anna['id']}/reminders",
            json={"message": "Call", "remind_at": "2024-01-01T09:00:00", "by_mail": True},
        )
        data = client.post("/api/v1/jobs/reminders/run").json()["data"]
        assert data["due"] == 1
        assert data["sent"] == 1

    def test_run_without_mailer(self, api_settings):
        api_settings.mail_backend = "sendgrid"
        api_settings.sendgrid_api_key = ""
        with TestClient(create_app(settings=api_settings)) as c:
            resp = c.post("/api/v1/jobs/birthdays/run")
            assert resp.status_code == 503
            assert "SENDGRID_API_KEY" in resp.json()["detail"]
            assert c.get("/api/v1/contacts").status_code == 200


class TestFrontend:
    def test_index_served(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert "perema" in resp.text

    def test_api_not_shadowed(self, client):
        assert client.get("/api/v1/contacts").status_code == 200
