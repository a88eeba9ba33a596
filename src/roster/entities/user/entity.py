"""User domain entity and the request payloads that produce it."""

import re
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from src.roster.entities._base import CamelModel, Entity

# Same loose shape check the admin UI applies before submitting.
EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


def derive_username(name: str | None, last_name: str | None) -> str:
    """Build a handle from the first letter of ``name`` and first word of ``last_name``.

    >>> derive_username("ana", "Garcia Lopez")
    'AGarcia'
    """
    initial = name.strip()[:1].upper() if name else ""
    words = last_name.split() if last_name else []
    return initial + (words[0] if words else "")


class User(Entity):
    """User record as held in the roster.

    Display fields are optional here because legacy roster files contain
    incomplete records; completeness is enforced on the way in by
    :class:`UserCreate` and :class:`UserUpdate`. Unknown keys read from the
    file are kept so they survive a rewrite, and a field the file never had
    is not added to it (``isActive`` included: a record without it matches
    neither active filter).
    """

    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, description="First name")
    last_name: str | None = Field(default=None, description="Last name(s)")
    username: str | None = Field(default=None, description="Display handle")
    email: str | None = Field(default=None, description="Email address")
    phone: str | int | None = Field(
        default=None, description="Phone number; older files store plain numbers"
    )
    is_active: bool | None = Field(default=None, description="False once deactivated")
    photo: str | None = Field(default=None, description="Opaque encoded image")

    @property
    def record_id(self) -> str:
        return self.id.oid

    def to_document(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON object written to the roster file.

        Apart from the id, only fields that were read from the file or
        explicitly assigned are written.
        """
        document = self.model_dump(by_alias=True, mode="json")
        for name, field in type(self).model_fields.items():
            if name != "id" and name not in self.model_fields_set:
                document.pop(field.alias or name, None)
        return document


class UserCreate(CamelModel):
    """Payload for creating a user. The id is always assigned by the server."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    username: str | None = None
    email: str = Field(min_length=1)
    phone: str | None = None
    is_active: bool | None = None
    photo: str | None = None

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str | None) -> str | None:
        if value is not None and not EMAIL_PATTERN.search(value):
            raise ValueError("email is not valid")
        return value


class UserUpdate(CamelModel):
    """Partial payload: only the keys present in the request are applied."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str | None = None
    last_name: str | None = None
    username: str | None = None
    email: str | None = None
    phone: str | None = None
    is_active: bool | None = None
    photo: str | None = None

    @field_validator("name", "last_name", "email", "is_active")
    @classmethod
    def _not_blank(cls, value: Any) -> Any:
        if value is None or value == "":
            raise ValueError("field cannot be null or empty")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str | None) -> str | None:
        if value is not None and not EMAIL_PATTERN.search(value):
            raise ValueError("email is not valid")
        return value

    def changes(self) -> dict[str, Any]:
        """Fields supplied by the caller, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)
