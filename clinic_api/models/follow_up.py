from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from clinic_api.models.base import InputModel, LocalDatetime, MongoBaseModel, NonEmptyStr, PyObjectId, now


class FollowUpStatus(str, Enum):
    UPCOMING = "Upcoming"
    COMPLETED = "Completed"
    PENDING = "Pending"


class FollowUp(MongoBaseModel):
    date: datetime
    time: str
    summary: str = ""
    status: FollowUpStatus = FollowUpStatus.UPCOMING
    createdAt: datetime = Field(default_factory=now)


class FollowUpCreate(InputModel):
    date: LocalDatetime
    time: NonEmptyStr = Field(..., description="Time slot, e.g. 10:00 AM")
    summary: Optional[str] = None
    status: FollowUpStatus = FollowUpStatus.UPCOMING


class FollowUpStatusUpdate(InputModel):
    # Upcoming is only ever the initial state.
    status: Literal["Completed", "Pending"]


class FollowUpRow(BaseModel):
    patientId: PyObjectId
    patientName: str
    followUpId: PyObjectId
    date: datetime
    time: str
    summary: Optional[str] = ""
    status: FollowUpStatus
    createdAt: Optional[datetime] = None
    consultationDate: Optional[datetime] = None
