from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from clinic_api.database import get_database
from clinic_api.models.payment import PatientPayments, Payment, PaymentCreate, PaymentRow
from clinic_api.models.response import ApiListResponse, ApiResponse
from clinic_api.services import payment_service

router = APIRouter(tags=["Payments"])

@router.post("/patients/{patient_id}/payments", response_model=ApiResponse[Payment], status_code=status.HTTP_201_CREATED)
async def add_payment(patient_id: str, payment: PaymentCreate, db: AsyncIOMotorDatabase = Depends(get_database)):
    new_payment = await payment_service.add_payment(db, patient_id, payment)
    return ApiResponse[Payment](data=new_payment, message="Payment recorded successfully.")

@router.get("/patients/{patient_id}/payments", response_model=ApiResponse[PatientPayments])
async def list_patient_payments(patient_id: str, db: AsyncIOMotorDatabase = Depends(get_database)):
    payments = await payment_service.list_patient_payments(db, patient_id)
    return ApiResponse[PatientPayments](data=payments)

@router.delete("/patients/{patient_id}/payments/{payment_id}", response_model=ApiResponse[dict])
async def delete_payment(patient_id: str, payment_id: str, db: AsyncIOMotorDatabase = Depends(get_database)):
    await payment_service.delete_payment(db, patient_id, payment_id)
    return ApiResponse[dict](data={}, message="Payment record deleted successfully.")

@router.get("/payments", response_model=ApiListResponse[PaymentRow])
async def list_all_payments(db: AsyncIOMotorDatabase = Depends(get_database)):
    """Payments of all patients, most recent bill first."""
    rows = await payment_service.list_all_payments(db)
    return ApiListResponse[PaymentRow](data=rows, count=len(rows))
