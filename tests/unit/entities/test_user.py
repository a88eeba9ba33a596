"""Unit tests for the user entity package.

Covers the stored document shape, username derivation and the validation
applied to create and update payloads.
"""

import pytest
from pydantic import ValidationError

from src.roster.entities._base import RecordId
from src.roster.entities.user import User, UserCreate, UserUpdate, derive_username


class TestRecordId:
    def test_wrapper_alias(self):
        record_id = RecordId.model_validate({"$oid": "abc123"})

        assert record_id.oid == "abc123"
        assert record_id.model_dump(by_alias=True) == {"$oid": "abc123"}

    def test_bare_string(self):
        assert RecordId.model_validate("abc123").oid == "abc123"

    def test_empty_id_is_rejected(self):
        with pytest.raises(ValidationError):
            RecordId.model_validate({"$oid": ""})

    def test_generate_gives_24_hex_chars(self):
        oid = RecordId.generate().oid

        assert len(oid) == 24
        int(oid, 16)  # Raises ValueError if not hex

    def test_str(self):
        assert str(RecordId(oid="abc")) == "abc"


class TestDeriveUsername:
    @pytest.mark.parametrize(
        ("name", "last_name", "expected"),
        [
            ("ana", "Garcia Lopez", "AGarcia"),
            ("  luis", "Martinez", "LMartinez"),
            ("maria", "  de la Fuente", "Mde"),
            ("", "Garcia", "Garcia"),
            ("ana", "", "A"),
            (None, None, ""),
        ],
    )
    def test_derivation(self, name, last_name, expected):
        assert derive_username(name, last_name) == expected


class TestUser:
    def test_user_creation_with_defaults(self):
        """User should be created with a generated id and no active flag."""
        user = User(name="Ana", last_name="Garcia", email="ana@x.com")

        assert len(user.record_id) == 24
        assert user.is_active is None
        assert user.username is None

    def test_validates_camel_case_document(self):
        user = User.model_validate(
            {
                "id": {"$oid": "64f0c0a1b2c3d4e5f6a7b8c1"},
                "name": "Ana",
                "lastName": "Garcia",
                "isActive": False,
            }
        )

        assert user.record_id == "64f0c0a1b2c3d4e5f6a7b8c1"
        assert user.last_name == "Garcia"
        assert user.is_active is False

    def test_incomplete_legacy_record_is_accepted(self):
        user = User.model_validate({"id": {"$oid": "x1"}})

        assert user.name is None
        assert user.email is None

    def test_to_document_uses_wrapper_and_camel_case(self):
        user = User(
            id=RecordId(oid="x1"),
            name="Ana",
            last_name="Garcia",
            email="ana@x.com",
            phone=None,
        )

        assert user.to_document() == {
            "id": {"$oid": "x1"},
            "name": "Ana",
            "lastName": "Garcia",
            "email": "ana@x.com",
            "phone": None,
        }

    def test_to_document_keeps_username_and_photo_when_set(self):
        user = User(name="Ana", username="AGarcia", photo="data:image/png;base64,AAAA")

        document = user.to_document()

        assert document["username"] == "AGarcia"
        assert document["photo"] == "data:image/png;base64,AAAA"

    def test_missing_active_flag_is_not_written(self):
        user = User.model_validate({"id": "x1", "name": "Ana"})

        assert user.is_active is None
        assert "isActive" not in user.to_document()

    def test_assigned_field_is_written(self):
        user = User.model_validate({"id": "x1", "name": "Ana"})

        user = user.model_copy(update={"is_active": False})

        assert user.to_document() == {"id": {"$oid": "x1"}, "name": "Ana", "isActive": False}

    def test_numeric_phone_is_kept_as_stored(self):
        user = User.model_validate({"id": "x1", "phone": 600111222, "isActive": None})

        assert user.phone == 600111222
        assert user.to_document()["phone"] == 600111222
        assert user.to_document()["isActive"] is None

    def test_unknown_keys_are_kept(self):
        user = User.model_validate({"id": "x1", "name": "Ana", "enrolledIn": "2024-A"})

        assert user.to_document()["enrolledIn"] == "2024-A"


class TestUserCreate:
    def test_accepts_camel_case(self):
        payload = UserCreate.model_validate(
            {"name": "Ana", "lastName": "Garcia", "email": "ana@x.com"}
        )

        assert payload.last_name == "Garcia"
        assert payload.is_active is None

    def test_client_id_is_ignored(self):
        payload = UserCreate.model_validate(
            {"id": {"$oid": "mine"}, "name": "Ana", "lastName": "G", "email": "a@x.com"}
        )

        assert "id" not in payload.model_dump()

    @pytest.mark.parametrize("missing", ["name", "lastName", "email"])
    def test_required_fields(self, missing):
        body = {"name": "Ana", "lastName": "Garcia", "email": "ana@x.com"}
        del body[missing]

        with pytest.raises(ValidationError):
            UserCreate.model_validate(body)

    def test_blank_name_is_rejected(self):
        with pytest.raises(ValidationError):
            UserCreate(name="   ", last_name="Garcia", email="ana@x.com")

    @pytest.mark.parametrize("email", ["ana", "ana@x", "@x.com", "ana @x.com"])
    def test_malformed_email_is_rejected(self, email):
        with pytest.raises(ValidationError):
            UserCreate(name="Ana", last_name="Garcia", email=email)


class TestUserUpdate:
    def test_changes_contain_only_supplied_fields(self):
        payload = UserUpdate.model_validate({"phone": "555", "isActive": False})

        assert payload.changes() == {"phone": "555", "is_active": False}

    def test_explicit_null_on_optional_field_is_a_change(self):
        assert UserUpdate.model_validate({"photo": None}).changes() == {"photo": None}

    @pytest.mark.parametrize("field", ["name", "lastName", "email", "isActive"])
    def test_required_fields_cannot_be_cleared(self, field):
        with pytest.raises(ValidationError):
            UserUpdate.model_validate({field: None})

    def test_empty_name_is_rejected(self):
        with pytest.raises(ValidationError):
            UserUpdate.model_validate({"name": ""})

    def test_malformed_email_is_rejected(self):
        with pytest.raises(ValidationError):
            UserUpdate(email="not-an-email")
