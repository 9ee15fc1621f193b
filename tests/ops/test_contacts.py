"""Tests for contact operations: CRUD, listing rules and photos."""

from __future__ import annotations

import datetime

import pytest

from perema.core.errors import ValidationError
from perema.ops.contacts import (
    create_contact,
    delete_contact,
    get_contact,
    list_circles,
    list_contacts,
    normalize_circles,
    parse_birthday,
    resolve_fields,
    resolve_includes,
    set_contact_photo,
    update_contact,
    validate_photo,
)
from perema.ops.notes import create_note
from perema.ops.relationships import create_relationship, get_relationship
from perema.ops.requests import (
    CreateContactRequest,
    CreateRecordRequest,
    ListContactsRequest,
    UpdateContactRequest,
    UploadPhotoRequest,
)
from perema.ops.responses import CONTACT_FIELDS

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestParseBirthday:
    def test_full_date(self):
        assert parse_birthday("1990-05-04") == datetime.date(1990, 5, 4)

    def test_unknown_year(self):
        assert parse_birthday("--05-04") == datetime.date(1, 5, 4)

    def test_date_passthrough(self):
        d = datetime.date(2001, 1, 2)
        assert parse_birthday(d) is d

    def test_empty_is_none(self):
        assert parse_birthday("") is None
        assert parse_birthday(None) is None

    def test_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_birthday("04.05.1990")
        assert exc_info.value.field == "birthday"

    def test_impossible_day(self):
        with pytest.raises(ValidationError):
            parse_birthday("--02-30")


class TestNormalizeCircles:
    def test_strips_and_dedupes(self):
        assert normalize_circles([" family ", "work", "family", ""]) == ["family", "work"]

    def test_csv_string(self):
        assert normalize_circles("family, work") == ["family", "work"]

    def test_none(self):
        assert normalize_circles(None) == []

    def test_rejects_non_strings(self):
        with pytest.raises(ValidationError):
            normalize_circles(["family", 3])


class TestResolveParams:
    def test_fields_default_is_all(self):
        assert resolve_fields(None) == list(CONTACT_FIELDS)

    def test_fields_only_unknown(self):
        assert resolve_fields("bogus") == []

    def test_fields_whitelisted(self):
        assert resolve_fields("birthday,password,firstname") == ["firstname", "birthday"]

    def test_includes_whitelisted(self):
        assert resolve_includes("reminders, notes,secrets") == ["notes", "reminders"]
        assert resolve_includes(None) == []


class TestCreateContact:
    def test_create(self, ctx):
        result = create_contact(
            ctx,
            CreateContactRequest(
                values={"firstname": " Anna ", "birthday": "--05-04", "circles": ["family"]}
            ),
        )
        assert result.success
        assert result.data["id"] > 0
        assert result.data["firstname"] == "Anna"
        assert result.data["birthday"] == datetime.date(1, 5, 4)
        assert result.data["circles"] == ["family"]
        assert result.data["photo"] is None

    def test_firstname_required(self, ctx):
        result = create_contact(ctx, CreateContactRequest(values={"lastname": "Smith"}))
        assert not result.success
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.details["field"] == "firstname"

    def test_unknown_field(self, ctx):
        result = create_contact(ctx, CreateContactRequest(values={"firstname": "A", "age": 3}))
        assert not result.success
        assert result.error.code == "VALIDATION_FAILED"
        assert "age" in result.error.message

    def test_circles_default_empty(self, make_contact):
        assert make_contact()["circles"] == []


class TestGetUpdateDelete:
    def test_get_with_relations(self, ctx, make_contact):
        anna = make_contact()
        create_note(ctx, CreateRecordRequest(contact_id=anna["id"], values={"content": "Likes tea"}))

        result = get_contact(ctx, anna["id"])
        assert result.success
        assert [n["content"] for n in result.data["notes"]] == ["Likes tea"]
        assert result.data["activities"] == []
        assert result.data["relationships"] == []
        assert result.data["reminders"] == []

    def test_get_missing(self, ctx):
        result = get_contact(ctx, 999)
        assert not result.success
        assert result.error.code == "NOT_FOUND"

    def test_partial_update(self, ctx, make_contact):
        anna = make_contact(lastname="Smith", circles=["work"])
        result = update_contact(
            ctx, UpdateContactRequest(contact_id=anna["id"], values={"nickname": "Annie"})
        )
        assert result.success
        assert result.data["nickname"] == "Annie"
        assert result.data["lastname"] == "Smith"
        assert result.data["circles"] == ["work"]

    def test_update_blank_firstname(self, ctx, make_contact):
        anna = make_contact()
        result = update_contact(
            ctx, UpdateContactRequest(contact_id=anna["id"], values={"firstname": "  "})
        )
        assert result.error.code == "VALIDATION_FAILED"

    def test_update_missing(self, ctx):
        result = update_contact(ctx, UpdateContactRequest(contact_id=5, values={"nickname": "x"}))
        assert result.error.code == "NOT_FOUND"

    def test_delete_cascades(self, ctx, make_contact):
        anna = make_contact()
        create_note(ctx, CreateRecordRequest(contact_id=anna["id"], values={"content": "x"}))

        assert delete_contact(ctx, anna["id"]).success
        assert get_contact(ctx, anna["id"]).error.code == "NOT_FOUND"

    def test_delete_unlinks_relationships_of_others(self, ctx, make_contact):
        anna = make_contact(firstname="Anna", lastname="Smith")
        bob = make_contact(firstname="Bob")
        rel = create_relationship(
            ctx,
            CreateRecordRequest(contact_id=bob["id"], values={"related_contact_id": anna["id"]}),
        ).data

        assert delete_contact(ctx, anna["id"]).success

        kept = get_relationship(ctx, rel["id"])
        assert kept.success
        assert kept.data["related_contact_id"] is None
        assert kept.data["name"] == "Anna Smith"

    def test_delete_missing(self, ctx):
        assert delete_contact(ctx, 42).error.code == "NOT_FOUND"


class TestListContacts:
    def test_defaults(self, ctx, make_contact):
        for name in ("Anna", "Bob", "Cleo"):
            make_contact(firstname=name)

        result = list_contacts(ctx, ListContactsRequest())
        assert result.success
        assert result.total == 3
        assert result.limit == 25
        assert result.page == 1
        assert not result.has_more
        assert [c["firstname"] for c in result.data] == ["Anna", "Bob", "Cleo"]
        assert set(result.data[0]) == {"id", *CONTACT_FIELDS}

    def test_page_and_limit_clamped(self, ctx, make_contact):
        make_contact()
        result = list_contacts(ctx, ListContactsRequest(page=0, limit=500))
        assert result.page == 1
        assert result.limit == 25

        result = list_contacts(ctx, ListContactsRequest(page=-3, limit=0))
        assert result.page == 1
        assert result.limit == 25

    def test_pagination(self, ctx, make_contact):
        for i in range(5):
            make_contact(firstname=f"P{i}")

        result = list_contacts(ctx, ListContactsRequest(page=2, limit=2))
        assert [c["firstname"] for c in result.data] == ["P2", "P3"]
        assert result.offset == 2
        assert result.total == 5
        assert result.has_more

        last = list_contacts(ctx, ListContactsRequest(page=3, limit=2))
        assert [c["firstname"] for c in last.data] == ["P4"]
        assert not last.has_more

    def test_page_past_end_is_empty(self, ctx, make_contact):
        make_contact()
        result = list_contacts(ctx, ListContactsRequest(page=9))
        assert result.success
        assert result.data == []
        assert result.total == 1

    def test_fields_projection(self, ctx, make_contact):
        make_contact(birthday="1990-05-04", email="anna@example.com")
        result = list_contacts(ctx, ListContactsRequest(fields="birthday,bogus"))
        assert result.data == [{"id": result.data[0]["id"], "birthday": datetime.date(1990, 5, 4)}]

    def test_only_unknown_fields_returns_ids(self, ctx, make_contact):
        anna = make_contact(firstname="Anna")
        bob = make_contact(firstname="Bob")
        result = list_contacts(ctx, ListContactsRequest(fields="bogus,password"))
        assert result.data == [{"id": anna["id"]}, {"id": bob["id"]}]
        assert result.total == 2

    def test_includes(self, ctx, make_contact):
        anna = make_contact()
        create_note(ctx, CreateRecordRequest(contact_id=anna["id"], values={"content": "hello"}))

        result = list_contacts(ctx, ListContactsRequest(fields="firstname", includes="notes,nope"))
        row = result.data[0]
        assert set(row) == {"id", "firstname", "notes"}
        assert row["notes"][0]["content"] == "hello"

    def test_search_matches_any_name(self, ctx, make_contact):
        make_contact(firstname="Anna", lastname="Berg")
        make_contact(firstname="Bob", nickname="Bobby")
        make_contact(firstname="Cleo", lastname="Annberg")

        names = lambda term: [  # noqa: E731
            c["firstname"] for c in list_contacts(ctx, ListContactsRequest(search=term)).data
        ]
        assert names("ann") == ["Anna", "Cleo"]
        assert names("BOBBY") == ["Bob"]
        assert names("zzz") == []

    def test_search_wildcards_are_literal(self, ctx, make_contact):
        make_contact(firstname="Anna")
        make_contact(firstname="100%")

        result = list_contacts(ctx, ListContactsRequest(search="%"))
        assert [c["firstname"] for c in result.data] == ["100%"]

        result = list_contacts(ctx, ListContactsRequest(search="_"))
        assert result.data == []

    def test_circle_matches_whole_name(self, ctx, make_contact):
        make_contact(firstname="Anna", circles=["family", "work"])
        make_contact(firstname="Bob", circles=["family-friends"])
        make_contact(firstname="Cleo")

        result = list_contacts(ctx, ListContactsRequest(circle="family"))
        assert [c["firstname"] for c in result.data] == ["Anna"]
        assert result.total == 1

    def test_total_counts_filtered_rows(self, ctx, make_contact):
        for i in range(4):
            make_contact(firstname=f"Ann{i}")
        make_contact(firstname="Bob")

        result = list_contacts(ctx, ListContactsRequest(search="ann", limit=2))
        assert len(result.data) == 2
        assert result.total == 4


class TestListCircles:
    def test_sorted_distinct(self, ctx, make_contact):
        make_contact(circles=["work", "family"])
        make_contact(circles=["family", "climbing"])
        make_contact()

        result = list_circles(ctx)
        assert result.data == ["climbing", "family", "work"]

    def test_empty(self, ctx):
        assert list_circles(ctx).data == []


class TestPhotos:
    def _request(self, contact_id, **overrides):
        values = {
            "contact_id": contact_id,
            "filename": "me.png",
            "content_type": "image/png",
            "data": PNG,
        }
        values.update(overrides)
        return UploadPhotoRequest(**values)

    def test_validate_ok(self):
        assert validate_photo(self._request(1, filename="Me.JPG", content_type="image/jpeg"), 1024) == ".jpg"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"filename": ""},
            {"filename": "../etc/passwd.png"},
            {"filename": "notes.txt"},
            {"content_type": "text/plain"},
            {"data": b""},
        ],
    )
    def test_validate_rejects(self, overrides):
        with pytest.raises(ValidationError):
            validate_photo(self._request(1, **overrides), 1024)

    def test_validate_too_large(self):
        with pytest.raises(ValidationError, match="too large"):
            validate_photo(self._request(1, data=b"x" * 2048), 1024)

    def test_store_and_replace(self, ctx, make_contact, tmp_path):
        anna = make_contact()
        photo_dir = tmp_path / "photos"

        first = set_contact_photo(ctx, self._request(anna["id"]), photo_dir=photo_dir, max_bytes=1024)
        assert first.success
        url = first.data["photo"]
        assert url.startswith(f"/photos/contact-{anna['id']}-")
        assert url.endswith(".png")
        first_file = photo_dir / url.removeprefix("/photos/")
        assert first_file.read_bytes() == PNG

        second = set_contact_photo(ctx, self._request(anna["id"]), photo_dir=photo_dir, max_bytes=1024)
        assert second.success
        assert second.data["photo"] != url
        assert not first_file.exists()
        assert len(list(photo_dir.iterdir())) == 1

    def test_store_invalid_keeps_previous(self, ctx, make_contact, tmp_path):
        anna = make_contact()
        photo_dir = tmp_path / "photos"
        ok = set_contact_photo(ctx, self._request(anna["id"]), photo_dir=photo_dir, max_bytes=1024)

        bad = set_contact_photo(
            ctx, self._request(anna["id"], filename="x.exe"), photo_dir=photo_dir, max_bytes=1024
        )
        assert bad.error.code == "VALIDATION_FAILED"
        assert bad.error.details["field"] == "photo"
        assert get_contact(ctx, anna["id"]).data["photo"] == ok.data["photo"]

    def test_store_missing_contact(self, ctx, tmp_path):
        result = set_contact_photo(ctx, self._request(77), photo_dir=tmp_path, max_bytes=1024)
        assert result.error.code == "NOT_FOUND"

    def test_delete_removes_photo(self, ctx, make_contact, tmp_path):
        anna = make_contact()
        photo_dir = tmp_path / "photos"
        stored = set_contact_photo(ctx, self._request(anna["id"]), photo_dir=photo_dir, max_bytes=1024)
        path = photo_dir / stored.data["photo"].removeprefix("/photos/")
        assert path.exists()

        assert delete_contact(ctx, anna["id"], photo_dir=photo_dir).success
        assert not path.exists()
