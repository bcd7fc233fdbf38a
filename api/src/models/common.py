"""
Shared model plumbing.

API payloads and MongoDB documents both use camelCase field names;
Python attributes stay snake_case through an alias generator.
"""

from typing import Any, List, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RecordT = TypeVar("RecordT", bound="DocumentRecord")


class ShopModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        """Dump to a MongoDB-ready dict keyed by the camelCase aliases."""
        return self.model_dump(by_alias=True, exclude_none=True)


class DocumentRecord(ShopModel):
    """A stored document with its ObjectId exposed as a string ``id``."""

    id: str = Field(..., description="Document identifier")

    @classmethod
    def from_document(cls: Type[RecordT], document: Mapping[str, Any]) -> RecordT:
        """Build a record from a raw MongoDB document."""
        data = dict(document)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


class ErrorResponse(BaseModel):
    """Error response schema."""
    error: Union[str, List[str]] = Field(
        ...,
        description="Error message or list of validation messages"
    )

    model_config = {
        "json_schema_extra": {
            "example": {"error": "Invalid input. Please check the provided data."}
        }
    }


def is_missing(value: Any) -> bool:
    """True for absent input: None, blank strings, and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False
