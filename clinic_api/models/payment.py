from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from clinic_api.models.base import InputModel, LocalDatetime, MongoBaseModel, PyObjectId, now


class PaymentMethod(str, Enum):
    CASH = "Cash"
    UPI = "UPI"
    CARD = "Card"
    OTHER = "Other"


class Payment(MongoBaseModel):
    paymentMethod: PaymentMethod
    amount: float = Field(..., ge=0)
    billGenerationDate: datetime = Field(default_factory=now)
    notes: str = ""


class PaymentCreate(InputModel):
    paymentMethod: PaymentMethod
    amount: float = Field(..., ge=0)
    billGenerationDate: Optional[LocalDatetime] = None
    notes: Optional[str] = None


class PatientPayments(BaseModel):
    patientId: PyObjectId
    patientName: str
    payments: List[Payment] = Field(default_factory=list)


class PaymentRow(BaseModel):
    patientId: PyObjectId
    patientName: str
    paymentId: PyObjectId
    paymentMethod: PaymentMethod
    amount: float
    billGenerationDate: datetime
    notes: str = ""
