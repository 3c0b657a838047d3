from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from clinic_api.models.base import InputModel, MongoBaseModel, now


class HomoeopathyItem(MongoBaseModel):
    medicineName: str = ""
    potency: str = ""
    repetition: str = ""
    instructionForMedicine: str = ""
    instructionForPatient: str = ""
    addedAt: datetime = Field(default_factory=now)


class DietItem(MongoBaseModel):
    type: str = Field(default="", description="Diet category, e.g. weight loss or weight gain")
    description: str = ""
    addedAt: datetime = Field(default_factory=now)


class Treatment(BaseModel):
    homoeopathy: List[HomoeopathyItem] = Field(default_factory=list)
    diet: List[DietItem] = Field(default_factory=list)
    notes: str = ""


# Item payloads ignore stray keys such as an echoed `_id` or `addedAt`,
# which are owned by the server.
class HomoeopathyInput(BaseModel):
    medicineName: Optional[str] = None
    potency: Optional[str] = None
    repetition: Optional[str] = None
    instructionForMedicine: Optional[str] = None
    instructionForPatient: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class DietInput(BaseModel):
    type: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class TreatmentAdd(InputModel):
    homoeopathy: List[HomoeopathyInput] = Field(default_factory=list)
    diet: List[DietInput] = Field(default_factory=list)
    notes: Optional[str] = None


class TreatmentEdit(InputModel):
    itemId: Optional[str] = None
    homoeopathy: List[HomoeopathyInput] = Field(default_factory=list)
    diet: List[DietInput] = Field(default_factory=list)
    notes: Optional[str] = None
