from fastapi import APIRouter, Depends, File, UploadFile, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from clinic_api.database import get_database
from clinic_api.models.investigation_file import InvestigationFile
from clinic_api.models.response import ApiResponse
from clinic_api.services import file_service
from clinic_api.storage.blob_store import BlobStore, get_blob_store

router = APIRouter(
    prefix="/patients/{patient_id}/files",
    tags=["Investigation Files"]
)

@router.post("/", response_model=ApiResponse[InvestigationFile], status_code=status.HTTP_201_CREATED)
async def upload_file(
    patient_id: str,
    file: UploadFile = File(..., description="Report or image (PDF, JPEG, PNG...)"),
    db: AsyncIOMotorDatabase = Depends(get_database),
    blob_store: BlobStore = Depends(get_blob_store),
):
    content = await file.read()
    record = await file_service.attach_file(
        db,
        blob_store,
        patient_id,
        filename=file.filename or "upload",
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )
    return ApiResponse[InvestigationFile](data=record, message="File uploaded and linked to patient successfully.")

@router.delete("/{file_id}", response_model=ApiResponse[dict])
async def delete_file(
    patient_id: str,
    file_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database),
    blob_store: BlobStore = Depends(get_blob_store),
):
    await file_service.delete_file(db, blob_store, patient_id, file_id)
    return ApiResponse[dict](data={}, message="Investigation file deleted successfully.")
