import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from clinic_api.config import settings
from clinic_api.database import patient_collection, store_errors
from clinic_api.errors import DependencyError, NotFoundError, StoreError, ValidationError
from clinic_api.models.base import new_embedded_document, to_object_id
from clinic_api.models.investigation_file import InvestigationFile
from clinic_api.storage.blob_store import BlobStore, BlobStoreError, storage_mode_for

logger = logging.getLogger(__name__)


async def _discard_blob(blob_store: BlobStore, external_id: str) -> None:
    try:
        await blob_store.delete(external_id)
        logger.info("Discarded unlinked blob %s", external_id)
    except BlobStoreError as e:
        logger.error("Unlinked blob %s could not be discarded: %s", external_id, e)


async def attach_file(
    db: AsyncIOMotorDatabase,
    blob_store: BlobStore,
    patient_id: str,
    filename: str,
    content: bytes,
    content_type: str,
) -> InvestigationFile:
    """
    Store an uploaded file and append its record to the patient.

    Storing and linking are two separate remote calls. When linking fails,
    either because the patient does not exist or because the store errors,
    the freshly stored blob is deleted before the error is returned.
    """
    if not content:
        raise ValidationError("No file uploaded. Please include a file in the request.")
    pid = to_object_id(patient_id, "patient ID")

    mode = storage_mode_for(content_type)
    folder = f"{settings.BLOB_FOLDER}/{patient_id}"
    try:
        stored = await blob_store.upload(content, folder, filename, content_type, mode)
    except BlobStoreError as e:
        logger.error("File upload failed for patient %s: %s", patient_id, e)
        raise DependencyError("Server error during file upload.", str(e)) from e

    file_record = InvestigationFile(
        fileName=filename,
        url=stored.url,
        externalId=stored.external_id,
        mimeType=content_type,
    )
    file_doc = new_embedded_document(file_record)

    linked = False
    try:
        try:
            result = await patient_collection(db).update_one({"_id": pid}, {"$push": {"investigationFiles": file_doc}})
        except PyMongoError as e:
            logger.error("Linking file to patient %s failed: %s", patient_id, e)
            raise StoreError("Server error during file upload/database save.", str(e)) from e

        if result.matched_count == 0:
            raise NotFoundError(f"Patient with ID {patient_id} not found. File upload aborted.")
        linked = True
    finally:
        # Also covers cancellation while the append is in flight.
        if not linked:
            await _discard_blob(blob_store, stored.external_id)

    logger.info("File %s stored in %s mode and linked to patient %s", filename, mode.value, patient_id)
    return InvestigationFile(**file_doc)


async def delete_file(db: AsyncIOMotorDatabase, blob_store: BlobStore, patient_id: str, file_id: str) -> None:
    pid = to_object_id(patient_id, "patient ID")
    fid = to_object_id(file_id, "file ID")

    collection = patient_collection(db)
    with store_errors("looking up file"):
        patient = await collection.find_one({"_id": pid}, {"investigationFiles": 1})

    file_doc = None
    if patient is not None:
        file_doc = next((f for f in patient.get("investigationFiles") or [] if f.get("_id") == fid), None)
    if file_doc is None:
        raise NotFoundError("Patient or file ID not found.")

    external_id = file_doc["externalId"]
    try:
        if not await blob_store.delete(external_id):
            logger.warning("Blob %s was not found in the blob store, detaching record anyway", external_id)
    except BlobStoreError as e:
        logger.warning("Blob store delete failed for %s, detaching record anyway: %s", external_id, e)

    with store_errors("deleting file"):
        await collection.update_one({"_id": pid}, {"$pull": {"investigationFiles": {"_id": fid}}})

    logger.info("File %s deleted from patient %s (blob %s)", file_id, patient_id, external_id)
