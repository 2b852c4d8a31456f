"""Shared base for entities persisted as documents"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Type, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from app.storage.keys import format_timestamp

ModelT = TypeVar("ModelT", bound="StoredModel")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Stored as a fixed-width UTC string, loaded back as an aware datetime
Timestamp = Annotated[
    datetime,
    AfterValidator(_as_utc),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]


class StoredModel(BaseModel):
    """Entity whose JSON form is the stored document (camelCase keys)"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        extra="ignore",
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)

    @classmethod
    def from_document(cls: Type[ModelT], content: Dict[str, Any]) -> ModelT:
        return cls.model_validate(content)
