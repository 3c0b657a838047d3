from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from clinic_api.database import get_database
from clinic_api.models.response import ApiResponse
from clinic_api.models.treatment import Treatment, TreatmentAdd, TreatmentEdit
from clinic_api.services import treatment_service

router = APIRouter(
    prefix="/patients/{patient_id}/treatment",
    tags=["Treatment"]
)

@router.post("/", response_model=ApiResponse[Treatment])
async def add_treatment(patient_id: str, payload: TreatmentAdd, db: AsyncIOMotorDatabase = Depends(get_database)):
    """Appends homoeopathy and diet items; `notes` replaces the current notes."""
    treatment = await treatment_service.add_treatment_items(db, patient_id, payload)
    return ApiResponse[Treatment](data=treatment, message="Treatment added successfully.")

@router.put("/", response_model=ApiResponse[Treatment])
async def edit_treatment(patient_id: str, payload: TreatmentEdit, db: AsyncIOMotorDatabase = Depends(get_database)):
    """
    Edits the item identified by `itemId` with the first submitted homoeopathy
    and/or diet entry. Unknown or missing `itemId` appends a new item.
    """
    treatment = await treatment_service.edit_treatment_item(db, patient_id, payload)
    return ApiResponse[Treatment](data=treatment, message="Treatment updated successfully.")

@router.delete("/{item_id}", response_model=ApiResponse[Treatment])
async def delete_treatment_item(patient_id: str, item_id: str, db: AsyncIOMotorDatabase = Depends(get_database)):
    treatment = await treatment_service.delete_treatment_item(db, patient_id, item_id)
    return ApiResponse[Treatment](data=treatment, message="Treatment item deleted successfully.")
