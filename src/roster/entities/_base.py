import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class RecordId(BaseModel):
    """Identifier wrapper stored as ``{"$oid": "..."}``.

    The roster file was produced by an embedded document database, so the
    wrapper shape is kept both on disk and over HTTP.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    oid: str = Field(alias="$oid", min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"$oid": data}
        return data

    @classmethod
    def generate(cls) -> "RecordId":
        return cls(oid=uuid.uuid4().hex[:24])

    def __str__(self) -> str:
        return self.oid


class CamelModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Entity(CamelModel):
    """Base entity class with an auto-generated wrapped identifier."""

    id: RecordId = Field(
        default_factory=RecordId.generate,
        description="Unique identifier for the entity",
    )
