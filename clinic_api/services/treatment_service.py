import logging
from typing import Optional, Type

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import BaseModel

from clinic_api.database import patient_collection, store_errors
from clinic_api.errors import NotFoundError, ValidationError
from clinic_api.models.base import MongoBaseModel, new_embedded_document, to_object_id
from clinic_api.models.treatment import DietItem, HomoeopathyItem, Treatment, TreatmentAdd, TreatmentEdit
from clinic_api.services.patient_service import require_patient

logger = logging.getLogger(__name__)

SEQUENCES = (("homoeopathy", HomoeopathyItem), ("diet", DietItem))


async def ensure_treatment(collection: AsyncIOMotorCollection, pid: ObjectId) -> None:
    """Give a patient without a treatment object an empty one."""
    await collection.update_one(
        {"_id": pid, "treatment": None},
        {"$set": {"treatment": Treatment().model_dump()}},
    )


async def read_treatment(collection: AsyncIOMotorCollection, pid: ObjectId) -> Treatment:
    patient = await require_patient(collection, pid, {"treatment": 1})
    return Treatment(**(patient.get("treatment") or {}))


def _require_payload(homoeopathy: list, diet: list, notes: Optional[str]) -> None:
    if not homoeopathy and not diet and notes is None:
        raise ValidationError("Please provide homoeopathy items, diet items or notes.")


async def add_treatment_items(db: AsyncIOMotorDatabase, patient_id: str, data: TreatmentAdd) -> Treatment:
    pid = to_object_id(patient_id, "patient ID")
    _require_payload(data.homoeopathy, data.diet, data.notes)

    push = {}
    if data.homoeopathy:
        push["treatment.homoeopathy"] = {
            "$each": [new_embedded_document(HomoeopathyItem(**item.model_dump(exclude_none=True))) for item in data.homoeopathy]
        }
    if data.diet:
        push["treatment.diet"] = {
            "$each": [new_embedded_document(DietItem(**item.model_dump(exclude_none=True))) for item in data.diet]
        }

    update = {}
    if push:
        update["$push"] = push
    if data.notes is not None:
        update["$set"] = {"treatment.notes": data.notes}

    collection = patient_collection(db)
    with store_errors("adding treatment"):
        await ensure_treatment(collection, pid)
        result = await collection.update_one({"_id": pid}, update)
        if result.matched_count == 0:
            raise NotFoundError(f"Patient with ID {patient_id} not found.")
        treatment = await read_treatment(collection, pid)

    logger.info(
        "Treatment updated for patient %s: %d homoeopathy, %d diet items added",
        patient_id, len(data.homoeopathy), len(data.diet),
    )
    return treatment


async def _upsert_item(
    collection: AsyncIOMotorCollection,
    pid: ObjectId,
    sequence: str,
    model_cls: Type[MongoBaseModel],
    item: BaseModel,
    item_id: Optional[ObjectId],
) -> None:
    # Merge into the matching element in place, otherwise append a new one.
    path = f"treatment.{sequence}"
    fields = item.model_dump(exclude_none=True)

    if item_id is not None:
        selector = {"_id": pid, f"{path}._id": item_id}
        if fields:
            result = await collection.update_one(
                selector, {"$set": {f"{path}.$.{key}": value for key, value in fields.items()}}
            )
            matched = result.matched_count > 0
        else:
            matched = await collection.find_one(selector, {"_id": 1}) is not None

        if matched:
            logger.info("Edited %s item %s for patient %s", sequence, item_id, pid)
            return
        logger.info("No %s item %s for patient %s, appending instead", sequence, item_id, pid)

    await collection.update_one({"_id": pid}, {"$push": {path: new_embedded_document(model_cls(**fields))}})


async def edit_treatment_item(db: AsyncIOMotorDatabase, patient_id: str, data: TreatmentEdit) -> Treatment:
    """
    Edit one homoeopathy and/or diet item.

    Only the first element of each submitted list is used. With a matching
    `itemId` the supplied fields are merged onto the existing item, keeping its
    `_id` and `addedAt`; an unknown or absent `itemId` appends a new item.
    """
    pid = to_object_id(patient_id, "patient ID")
    _require_payload(data.homoeopathy, data.diet, data.notes)
    item_id = to_object_id(data.itemId, "item ID") if data.itemId else None

    collection = patient_collection(db)
    with store_errors("editing treatment"):
        await require_patient(collection, pid, {"_id": 1})
        await ensure_treatment(collection, pid)

        if data.homoeopathy:
            await _upsert_item(collection, pid, "homoeopathy", HomoeopathyItem, data.homoeopathy[0], item_id)
        if data.diet:
            await _upsert_item(collection, pid, "diet", DietItem, data.diet[0], item_id)
        if data.notes is not None:
            await collection.update_one({"_id": pid}, {"$set": {"treatment.notes": data.notes}})

        return await read_treatment(collection, pid)


async def delete_treatment_item(db: AsyncIOMotorDatabase, patient_id: str, item_id: str) -> Treatment:
    pid = to_object_id(patient_id, "patient ID")
    iid = to_object_id(item_id, "item ID")

    collection = patient_collection(db)
    with store_errors("deleting treatment item"):
        for sequence, _ in SEQUENCES:
            path = f"treatment.{sequence}"
            result = await collection.update_one(
                {"_id": pid, f"{path}._id": iid}, {"$pull": {path: {"_id": iid}}}
            )
            if result.matched_count:
                logger.info("Treatment %s item %s deleted from patient %s", sequence, item_id, patient_id)
                return await read_treatment(collection, pid)

        await require_patient(collection, pid, {"_id": 1})

    raise NotFoundError(f"Treatment item with ID {item_id} not found.")
