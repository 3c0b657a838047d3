import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from clinic_api.models.base import InputModel, MongoBaseModel, NonEmptyStr

PHONE_SEPARATORS = re.compile(r"[\s()+-]")


class UserRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"


class UserPublic(MongoBaseModel):
    name: str
    email: EmailStr
    phone: str
    role: UserRole = UserRole.STAFF
    createdAt: Optional[datetime] = None


class UserRegister(InputModel):
    name: NonEmptyStr
    email: EmailStr
    phone: str
    password: str = Field(..., min_length=6)
    role: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def phone_has_ten_digits(cls, value: str) -> str:
        digits = PHONE_SEPARATORS.sub("", value)
        if not digits.isdigit() or len(digits) < 10:
            raise ValueError("Please provide a valid phone number (min 10 digits).")
        return value


class UserLogin(InputModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ForgotPassword(InputModel):
    email: EmailStr


class ResetPassword(InputModel):
    email: EmailStr
    otp: NonEmptyStr
    password: str = Field(..., min_length=6)
