import logging
import re
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from clinic_api.database import patient_collection, store_errors
from clinic_api.errors import NotFoundError
from clinic_api.models.base import new_embedded_document, to_object_id
from clinic_api.models.follow_up import FollowUp, FollowUpCreate, FollowUpRow
from clinic_api.services.patient_service import require_patient

logger = logging.getLogger(__name__)


def day_window(day: datetime) -> Tuple[datetime, datetime]:
    """Local midnight of `day` up to the last millisecond before the next one."""
    if day.tzinfo is not None:
        day = day.astimezone().replace(tzinfo=None)
    start = datetime(day.year, day.month, day.day)
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return start, end


async def add_follow_up(db: AsyncIOMotorDatabase, patient_id: str, data: FollowUpCreate) -> FollowUp:
    pid = to_object_id(patient_id, "patient ID")
    follow_up_doc = new_embedded_document(
        FollowUp(date=data.date, time=data.time, summary=data.summary or "", status=data.status)
    )

    with store_errors("adding follow-up"):
        result = await patient_collection(db).update_one({"_id": pid}, {"$push": {"followUps": follow_up_doc}})

    if result.matched_count == 0:
        raise NotFoundError(f"Patient with ID {patient_id} not found.")

    logger.info("Follow-up on %s %s added for patient %s", data.date.date(), data.time, patient_id)
    return FollowUp(**follow_up_doc)


async def update_follow_up_status(
    db: AsyncIOMotorDatabase, patient_id: str, follow_up_id: str, status: str
) -> FollowUp:
    pid = to_object_id(patient_id, "patient ID")
    fid = to_object_id(follow_up_id, "follow-up ID")

    collection = patient_collection(db)
    with store_errors("updating follow-up status"):
        result = await collection.update_one(
            {"_id": pid, "followUps._id": fid}, {"$set": {"followUps.$.status": status}}
        )
        if result.matched_count == 0:
            raise NotFoundError("Patient or follow-up not found.")
        patient = await collection.find_one({"_id": pid}, {"followUps": 1})

    # The follow-up or the patient may be removed between the update and this read.
    updated = next((f for f in (patient or {}).get("followUps") or [] if f["_id"] == fid), None)
    if updated is None:
        raise NotFoundError("Patient or follow-up not found.")
    logger.info("Follow-up %s of patient %s marked as %s", follow_up_id, patient_id, status)
    return FollowUp(**updated)


async def delete_follow_up(db: AsyncIOMotorDatabase, patient_id: str, follow_up_id: str) -> None:
    """Remove a follow-up. An id with no matching follow-up is not an error."""
    pid = to_object_id(patient_id, "patient ID")
    fid = to_object_id(follow_up_id, "follow-up ID")

    with store_errors("deleting follow-up"):
        result = await patient_collection(db).update_one({"_id": pid}, {"$pull": {"followUps": {"_id": fid}}})

    if result.matched_count == 0:
        raise NotFoundError(f"Patient with ID {patient_id} not found.")

    logger.info("Follow-up %s deleted from patient %s (removed: %d)", follow_up_id, patient_id, result.modified_count)


async def list_patient_follow_ups(db: AsyncIOMotorDatabase, patient_id: str) -> List[FollowUp]:
    pid = to_object_id(patient_id, "patient ID")
    with store_errors("fetching follow-ups"):
        patient = await require_patient(patient_collection(db), pid, {"followUps": 1})
    return [FollowUp(**f) for f in patient.get("followUps") or []]


async def list_follow_ups(
    db: AsyncIOMotorDatabase,
    status: Optional[str] = None,
    name: Optional[str] = None,
    day: Optional[datetime] = None,
) -> List[FollowUpRow]:
    """
    Flatten the follow-ups of all patients into rows, optionally filtered.

    Filters combine: `status` matches exactly, `name` is a case-insensitive
    substring of the patient name and `day` keeps follow-ups dated within that
    local calendar day. Rows come back ordered by date, then time.
    """
    pipeline = [
        {"$unwind": "$followUps"},
        {
            "$project": {
                "_id": 0,
                "patientId": "$_id",
                "patientName": "$name",
                "followUpId": "$followUps._id",
                "date": "$followUps.date",
                "time": "$followUps.time",
                "summary": "$followUps.summary",
                "status": "$followUps.status",
                "createdAt": "$followUps.createdAt",
                "consultationDate": "$consultationDate",
            }
        },
    ]

    match = {}
    if status:
        match["status"] = status
    if name:
        match["patientName"] = {"$regex": re.escape(name), "$options": "i"}
    if day is not None:
        start, end = day_window(day)
        match["date"] = {"$gte": start, "$lte": end}
        logger.info("Filtering follow-ups from %s to %s", start.isoformat(), end.isoformat())
    if match:
        pipeline.append({"$match": match})

    pipeline.append({"$sort": {"date": 1, "time": 1}})

    rows = []
    with store_errors("retrieving follow-ups"):
        async for row in patient_collection(db).aggregate(pipeline):
            rows.append(FollowUpRow(**row))

    logger.info("Follow-up list retrieved with %d results", len(rows))
    return rows
