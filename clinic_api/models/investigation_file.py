from datetime import datetime
from typing import Optional

from pydantic import Field

from clinic_api.models.base import MongoBaseModel, now


class InvestigationFile(MongoBaseModel):
    fileName: str = Field(..., description="Original name of the uploaded file")
    url: str = Field(..., description="Retrieval URL in the blob store")
    externalId: str = Field(..., description="Blob store key used for deletion")
    mimeType: Optional[str] = None
    uploadedAt: datetime = Field(default_factory=now)
