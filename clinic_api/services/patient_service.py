import logging
import re
from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument

from clinic_api.database import patient_collection, store_errors
from clinic_api.errors import NotFoundError, ValidationError
from clinic_api.models.base import now, to_object_id
from clinic_api.models.patient import Patient, PatientCreate, PatientDeleted, PatientUpdate
from clinic_api.models.treatment import Treatment
from clinic_api.storage.blob_store import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)


async def require_patient(
    collection: AsyncIOMotorCollection, pid: ObjectId, projection: Optional[dict] = None
) -> dict:
    patient = await collection.find_one({"_id": pid}, projection)
    if patient is None:
        raise NotFoundError(f"Patient with ID {pid} not found.")
    return patient


async def create_patient(db: AsyncIOMotorDatabase, data: PatientCreate) -> Patient:
    patient_dict = data.model_dump()
    patient_dict.update(
        investigationFiles=[],
        treatment=Treatment().model_dump(),
        payments=[],
        followUps=[],
        createdAt=now(),
    )

    collection = patient_collection(db)
    with store_errors("creating patient"):
        result = await collection.insert_one(patient_dict)
        new_patient = await require_patient(collection, result.inserted_id)

    logger.info("Patient created: %s (ID: %s)", data.name, result.inserted_id)
    return Patient(**new_patient)


async def list_patients(db: AsyncIOMotorDatabase, name: Optional[str] = None) -> List[Patient]:
    query = {}
    if name:
        query["name"] = {"$regex": re.escape(name), "$options": "i"}

    patients = []
    with store_errors("retrieving patients"):
        async for patient_doc in patient_collection(db).find(query).sort("consultationDate", -1):
            patients.append(Patient(**patient_doc))

    logger.info("Fetched %d patient records", len(patients))
    return patients


async def get_patient(db: AsyncIOMotorDatabase, patient_id: str) -> Patient:
    pid = to_object_id(patient_id, "patient ID")
    with store_errors("retrieving patient"):
        patient = await require_patient(patient_collection(db), pid)
    return Patient(**patient)


async def update_patient(db: AsyncIOMotorDatabase, patient_id: str, data: PatientUpdate) -> Patient:
    pid = to_object_id(patient_id, "patient ID")
    fields = data.model_dump(exclude_none=True)
    if not fields:
        raise ValidationError("Provide at least one patient field to update.")

    with store_errors("updating patient"):
        patient = await patient_collection(db).find_one_and_update(
            {"_id": pid}, {"$set": fields}, return_document=ReturnDocument.AFTER
        )

    if patient is None:
        raise NotFoundError(f"Patient with ID {patient_id} not found.")

    logger.info("Patient %s updated fields: %s", patient_id, ", ".join(sorted(fields)))
    return Patient(**patient)


async def delete_patient(db: AsyncIOMotorDatabase, blob_store: BlobStore, patient_id: str) -> PatientDeleted:
    """
    Delete the patient record, then every blob its investigation files point to.

    The record is removed first; blobs that cannot be deleted afterwards are
    logged and reported back as orphaned instead of failing the request.
    """
    pid = to_object_id(patient_id, "patient ID")
    with store_errors("deleting patient"):
        patient = await patient_collection(db).find_one_and_delete({"_id": pid})

    if patient is None:
        raise NotFoundError(f"Patient with ID {patient_id} not found.")

    orphaned = []
    for file_doc in patient.get("investigationFiles") or []:
        external_id = file_doc.get("externalId")
        if not external_id:
            continue
        try:
            if not await blob_store.delete(external_id):
                logger.warning("Blob %s of deleted patient %s was already gone", external_id, patient_id)
        except BlobStoreError as e:
            logger.error("Blob %s of deleted patient %s could not be removed: %s", external_id, patient_id, e)
            orphaned.append(external_id)

    logger.info("Patient record deleted for ID: %s", patient_id)
    return PatientDeleted(patientId=patient_id, orphanedBlobs=orphaned)
