from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from clinic_api.models.base import InputModel, LocalDatetime, MongoBaseModel, NonEmptyStr
from clinic_api.models.follow_up import FollowUp
from clinic_api.models.investigation_file import InvestigationFile
from clinic_api.models.payment import Payment
from clinic_api.models.treatment import Treatment


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class Patient(MongoBaseModel):
    name: str
    age: int
    gender: Gender
    address: Optional[str] = None
    phoneNumber: str
    consultationDate: datetime
    investigationFiles: List[InvestigationFile] = Field(default_factory=list)
    treatment: Optional[Treatment] = Field(default_factory=Treatment)
    payments: List[Payment] = Field(default_factory=list)
    followUps: List[FollowUp] = Field(default_factory=list)
    createdAt: Optional[datetime] = None


class PatientCreate(InputModel):
    name: NonEmptyStr
    age: int = Field(..., ge=0)
    gender: Gender
    address: Optional[str] = None
    phoneNumber: NonEmptyStr
    consultationDate: LocalDatetime


class PatientUpdate(InputModel):
    """Core fields only; embedded records have their own operations."""

    name: Optional[NonEmptyStr] = None
    age: Optional[int] = Field(default=None, ge=0)
    gender: Optional[Gender] = None
    address: Optional[str] = None
    phoneNumber: Optional[NonEmptyStr] = None
    consultationDate: Optional[LocalDatetime] = None


class PatientDeleted(BaseModel):
    patientId: str
    orphanedBlobs: List[str] = Field(default_factory=list)
