from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from clinic_api.database import get_database
from clinic_api.models.follow_up import FollowUp, FollowUpCreate, FollowUpRow, FollowUpStatus, FollowUpStatusUpdate
from clinic_api.models.response import ApiListResponse, ApiResponse
from clinic_api.services import follow_up_service

router = APIRouter(tags=["Follow-ups"])

@router.post("/patients/{patient_id}/follow-ups", response_model=ApiResponse[FollowUp], status_code=status.HTTP_201_CREATED)
async def add_follow_up(patient_id: str, follow_up: FollowUpCreate, db: AsyncIOMotorDatabase = Depends(get_database)):
    new_follow_up = await follow_up_service.add_follow_up(db, patient_id, follow_up)
    return ApiResponse[FollowUp](data=new_follow_up, message="Follow-up added successfully.")

@router.get("/patients/{patient_id}/follow-ups", response_model=ApiListResponse[FollowUp])
async def list_patient_follow_ups(patient_id: str, db: AsyncIOMotorDatabase = Depends(get_database)):
    follow_ups = await follow_up_service.list_patient_follow_ups(db, patient_id)
    return ApiListResponse[FollowUp](data=follow_ups, count=len(follow_ups))

@router.patch("/patients/{patient_id}/follow-ups/{follow_up_id}/status", response_model=ApiResponse[FollowUp])
async def update_follow_up_status(
    patient_id: str,
    follow_up_id: str,
    update: FollowUpStatusUpdate,
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    follow_up = await follow_up_service.update_follow_up_status(db, patient_id, follow_up_id, update.status)
    return ApiResponse[FollowUp](data=follow_up, message=f"Follow-up marked as {update.status}.")

@router.delete("/patients/{patient_id}/follow-ups/{follow_up_id}", response_model=ApiResponse[dict])
async def delete_follow_up(patient_id: str, follow_up_id: str, db: AsyncIOMotorDatabase = Depends(get_database)):
    await follow_up_service.delete_follow_up(db, patient_id, follow_up_id)
    return ApiResponse[dict](data={}, message="Follow-up deleted successfully.")

@router.get("/follow-ups", response_model=ApiListResponse[FollowUpRow])
async def list_follow_ups(
    status: Optional[FollowUpStatus] = Query(None, description="Exact status match"),
    name: Optional[str] = Query(None, description="Case-insensitive search on the patient name"),
    date: Optional[datetime] = Query(None, description="Calendar day the follow-up falls on"),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    """
    Follow-ups of all patients, ordered by date and time.
    """
    rows: List[FollowUpRow] = await follow_up_service.list_follow_ups(
        db, status=status.value if status else None, name=name, day=date
    )
    return ApiListResponse[FollowUpRow](data=rows, count=len(rows))
