from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from clinic_api.database import get_database
from clinic_api.models.patient import Patient, PatientCreate, PatientDeleted, PatientUpdate
from clinic_api.models.response import ApiListResponse, ApiResponse
from clinic_api.services import patient_service
from clinic_api.storage.blob_store import BlobStore, get_blob_store

router = APIRouter(
    prefix="/patients",
    tags=["Patients"]
)

@router.post("/", response_model=ApiResponse[Patient], status_code=status.HTTP_201_CREATED)
async def create_patient(patient: PatientCreate, db: AsyncIOMotorDatabase = Depends(get_database)):
    new_patient = await patient_service.create_patient(db, patient)
    return ApiResponse[Patient](data=new_patient, message="Patient record created successfully.")

@router.get("/", response_model=ApiListResponse[Patient])
async def list_patients(
    name: Optional[str] = Query(None, description="Case-insensitive search on the patient name"),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    patients = await patient_service.list_patients(db, name)
    return ApiListResponse[Patient](data=patients, count=len(patients))

@router.get("/{patient_id}", response_model=ApiResponse[Patient])
async def get_patient(patient_id: str, db: AsyncIOMotorDatabase = Depends(get_database)):
    """Returns a patient with all embedded records."""
    patient = await patient_service.get_patient(db, patient_id)
    return ApiResponse[Patient](data=patient)

@router.patch("/{patient_id}", response_model=ApiResponse[Patient])
async def update_patient(
    patient_id: str, changes: PatientUpdate, db: AsyncIOMotorDatabase = Depends(get_database)
):
    patient = await patient_service.update_patient(db, patient_id, changes)
    return ApiResponse[Patient](data=patient, message="Patient core information updated successfully.")

@router.delete("/{patient_id}", response_model=ApiResponse[PatientDeleted])
async def delete_patient(
    patient_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """
    Deletes the patient and its embedded data, then removes the stored files.
    Files that could not be removed from the blob store are listed in `orphanedBlobs`.
    """
    outcome = await patient_service.delete_patient(db, blob_store, patient_id)
    message = "Patient record and all embedded data deleted successfully."
    if outcome.orphanedBlobs:
        message = "Patient record deleted, but some stored files could not be removed."
    return ApiResponse[PatientDeleted](data=outcome, message=message)
