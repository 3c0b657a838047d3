import logging
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from clinic_api.database import patient_collection, store_errors
from clinic_api.errors import NotFoundError
from clinic_api.models.base import new_embedded_document, to_object_id
from clinic_api.models.payment import PatientPayments, Payment, PaymentCreate, PaymentRow
from clinic_api.services.patient_service import require_patient

logger = logging.getLogger(__name__)


async def add_payment(db: AsyncIOMotorDatabase, patient_id: str, data: PaymentCreate) -> Payment:
    pid = to_object_id(patient_id, "patient ID")

    payment_fields = data.model_dump(exclude_none=True)
    payment_fields.setdefault("notes", "")
    payment_doc = new_embedded_document(Payment(**payment_fields))

    with store_errors("recording payment"):
        result = await patient_collection(db).update_one({"_id": pid}, {"$push": {"payments": payment_doc}})

    if result.matched_count == 0:
        raise NotFoundError(f"Patient with ID {patient_id} not found.")

    logger.info("Payment of %s added for patient %s via %s", data.amount, patient_id, data.paymentMethod)
    return Payment(**payment_doc)


async def delete_payment(db: AsyncIOMotorDatabase, patient_id: str, payment_id: str) -> None:
    """Remove a payment. An id with no matching payment is not an error."""
    pid = to_object_id(patient_id, "patient ID")
    pay_id = to_object_id(payment_id, "payment ID")

    with store_errors("deleting payment"):
        result = await patient_collection(db).update_one({"_id": pid}, {"$pull": {"payments": {"_id": pay_id}}})

    if result.matched_count == 0:
        raise NotFoundError(f"Patient with ID {patient_id} not found.")

    logger.info("Payment record %s deleted from patient %s (removed: %d)", payment_id, patient_id, result.modified_count)


async def list_patient_payments(db: AsyncIOMotorDatabase, patient_id: str) -> PatientPayments:
    pid = to_object_id(patient_id, "patient ID")
    with store_errors("retrieving payments"):
        patient = await require_patient(patient_collection(db), pid, {"name": 1, "payments": 1})

    return PatientPayments(
        patientId=patient_id,
        patientName=patient["name"],
        payments=[Payment(**p) for p in patient.get("payments") or []],
    )


async def list_all_payments(db: AsyncIOMotorDatabase) -> List[PaymentRow]:
    """Every payment of every patient, most recent bill first."""
    pipeline = [
        {"$unwind": "$payments"},
        {
            "$project": {
                "_id": 0,
                "patientId": "$_id",
                "patientName": "$name",
                "paymentId": "$payments._id",
                "paymentMethod": "$payments.paymentMethod",
                "amount": "$payments.amount",
                "billGenerationDate": "$payments.billGenerationDate",
                "notes": "$payments.notes",
            }
        },
        {"$sort": {"billGenerationDate": -1}},
    ]

    rows = []
    with store_errors("retrieving payments"):
        async for row in patient_collection(db).aggregate(pipeline):
            rows.append(PaymentRow(**row))

    logger.info("Payments list retrieved with %d results", len(rows))
    return rows
