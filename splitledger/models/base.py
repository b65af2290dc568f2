"""Shared plumbing for models stored as MongoDB documents."""

from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field
from pydantic_core import core_schema


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any) -> ObjectId | None:
    """ObjectId from an ObjectId or its hex string; None when malformed."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class DocumentId(ObjectId):
    """ObjectId field type. Kept as ObjectId in Python dumps, hex string in JSON."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any):
        return core_schema.no_info_plain_validator_function(
            cls.coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(
                str, when_used="json"
            ),
        )

    @classmethod
    def coerce(cls, value: Any) -> ObjectId:
        object_id = to_object_id(value)
        if object_id is None:
            raise ValueError(f"{value!r} is not a valid ObjectId")
        return object_id


class MongoModel(BaseModel):
    """Document keyed by `_id` with creation and update timestamps."""
    id: DocumentId = Field(default_factory=ObjectId, alias="_id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        from_attributes=True
    )

    def touch(self) -> None:
        self.updated_at = utc_now()

    def to_document(self) -> dict:
        """Python-mode dump ready for insert_one/replace_one."""
        doc = self.model_dump(by_alias=True)
        doc["_id"] = to_object_id(self.id)
        return doc
