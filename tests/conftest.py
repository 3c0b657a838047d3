"""
Shared fixtures for the clinic API test suite.

Mongo is replaced by mongomock-motor; the blob store and mail sender are
in-memory doubles injected through FastAPI dependency overrides.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from clinic_api.database import get_database
from clinic_api.errors import DependencyError
from clinic_api.main import app
from clinic_api.models.patient import PatientCreate
from clinic_api.notifications import get_mail_sender
from clinic_api.services import patient_service
from clinic_api.storage.blob_store import BlobStore, BlobStoreError, StoredBlob, get_blob_store


class FakeBlobStore(BlobStore):
    """Keeps blobs in a dict and records every call."""

    def __init__(self):
        self.blobs = {}
        self.uploads = []
        self.deleted = []
        self.failing_deletes = set()
        self.fail_uploads = False

    async def upload(self, content, folder, filename, content_type, mode):
        if self.fail_uploads:
            raise BlobStoreError("upload refused")
        key = f"{folder}/{len(self.uploads)}-{filename}"
        self.uploads.append({"key": key, "mode": mode, "content_type": content_type})
        self.blobs[key] = content
        return StoredBlob(url=f"https://blobs.test/{key}", external_id=key)

    async def delete(self, external_id):
        if external_id in self.failing_deletes:
            raise BlobStoreError(f"cannot delete {external_id}")
        self.deleted.append(external_id)
        return self.blobs.pop(external_id, None) is not None


class RecordingMailSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_password_reset_otp(self, email, name, otp, expiry_minutes):
        if self.fail:
            raise DependencyError("Email could not be sent. Server error.", "smtp down")
        self.sent.append({"email": email, "name": name, "otp": otp, "expiry_minutes": expiry_minutes})


@pytest.fixture
def db():
    return AsyncMongoMockClient()["clinic_test"]


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def mail_sender():
    return RecordingMailSender()


@pytest.fixture
def client(db, blob_store, mail_sender):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_mail_sender] = lambda: mail_sender
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def patient_payload():
    return {
        "name": "A",
        "age": 30,
        "gender": "Male",
        "phoneNumber": "9999999999",
        "consultationDate": "2024-01-01",
    }


@pytest.fixture
async def patient(db):
    """A stored patient created through the service layer."""
    return await patient_service.create_patient(
        db,
        PatientCreate(
            name="Asha Patel",
            age=42,
            gender="Female",
            address="12 MG Road",
            phoneNumber="9876543210",
            consultationDate=datetime(2024, 1, 15),
        ),
    )
