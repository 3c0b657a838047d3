from datetime import datetime
from typing import Annotated, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints

from clinic_api.errors import ValidationError


def _as_local_naive(value: datetime) -> datetime:
    # Stored dates are local wall-clock time so that day windows line up with local midnight.
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


PyObjectId = Annotated[str, BeforeValidator(str)]
LocalDatetime = Annotated[datetime, AfterValidator(_as_local_naive)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def now() -> datetime:
    # Mongo keeps millisecond precision, truncate so reads compare equal to writes.
    current = datetime.now()
    return current.replace(microsecond=current.microsecond // 1000 * 1000)


def to_object_id(value: str, label: str = "ID") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {label} format.")
    return ObjectId(value)


class MongoBaseModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, use_enum_values=True)


class InputModel(BaseModel):
    """Request payloads reject keys they do not declare."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)


def new_embedded_document(model: MongoBaseModel) -> dict:
    """Serialize an embedded record for storage under a freshly assigned `_id`."""
    document = model.model_dump(by_alias=True, exclude={"id"})
    return {"_id": ObjectId(), **document}
