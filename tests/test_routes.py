"""
End-to-end tests through the HTTP layer: status codes, response envelopes
and the clinic workflows.
"""

from datetime import datetime, timedelta

from bson import ObjectId


def _create_patient(client, payload):
    response = client.post("/api/patients/", json=payload)
    assert response.status_code == 201
    return response.json()["data"]


class TestPatientRoutes:

    def test_create_patient(self, client, patient_payload):
        response = client.post("/api/patients/", json=patient_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Patient record created successfully."
        data = body["data"]
        assert data["_id"]
        assert data["name"] == "A"
        assert data["age"] == 30
        assert data["gender"] == "Male"
        assert data["phoneNumber"] == "9999999999"
        assert data["consultationDate"].startswith("2024-01-01")
        assert data["followUps"] == []
        assert data["treatment"] == {"homoeopathy": [], "diet": [], "notes": ""}

    def test_missing_required_fields(self, client):
        response = client.post("/api/patients/", json={"name": "A"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Invalid request data."
        assert any("phoneNumber" in problem for problem in body["details"])

    def test_invalid_gender(self, client, patient_payload):
        response = client.post("/api/patients/", json={**patient_payload, "gender": "Unknown"})
        assert response.status_code == 400

    def test_list_get_update_delete(self, client, patient_payload):
        created = _create_patient(client, patient_payload)
        _create_patient(client, {**patient_payload, "name": "Bina"})

        listing = client.get("/api/patients/", params={"name": "bin"}).json()
        assert listing["count"] == 1
        assert listing["data"][0]["name"] == "Bina"

        fetched = client.get(f"/api/patients/{created['_id']}").json()
        assert fetched["data"]["_id"] == created["_id"]

        updated = client.patch(f"/api/patients/{created['_id']}", json={"address": "Pune"})
        assert updated.status_code == 200
        assert updated.json()["data"]["address"] == "Pune"

        deleted = client.delete(f"/api/patients/{created['_id']}")
        assert deleted.status_code == 200
        assert deleted.json()["data"]["orphanedBlobs"] == []
        assert client.get(f"/api/patients/{created['_id']}").status_code == 404

    def test_update_rejects_unknown_keys(self, client, patient_payload):
        created = _create_patient(client, patient_payload)

        response = client.patch(f"/api/patients/{created['_id']}", json={"payments": []})

        assert response.status_code == 400

    def test_malformed_id(self, client):
        response = client.get("/api/patients/12345")

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid patient ID format."}

    def test_unknown_id(self, client):
        response = client.get(f"/api/patients/{ObjectId()}")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestTreatmentRoutes:

    def test_add_edit_delete(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        base = f"/api/patients/{patient_id}/treatment/"

        added = client.post(base, json={"homoeopathy": [{"medicineName": "Arnica", "potency": "30C"}], "notes": "start"})
        assert added.status_code == 200
        item = added.json()["data"]["homoeopathy"][0]

        edited = client.put(base, json={"itemId": item["_id"], "homoeopathy": [{"potency": "200C"}]})
        assert edited.status_code == 200
        edited_item = edited.json()["data"]["homoeopathy"][0]
        assert edited_item["_id"] == item["_id"]
        assert edited_item["addedAt"] == item["addedAt"]
        assert edited_item["medicineName"] == "Arnica"
        assert edited_item["potency"] == "200C"

        appended = client.put(base, json={"itemId": str(ObjectId()), "homoeopathy": [{"medicineName": "Sulphur"}]})
        assert len(appended.json()["data"]["homoeopathy"]) == 2

        removed = client.delete(f"{base}{item['_id']}")
        assert removed.status_code == 200
        assert [h["medicineName"] for h in removed.json()["data"]["homoeopathy"]] == ["Sulphur"]

        missing = client.delete(f"{base}{item['_id']}")
        assert missing.status_code == 404

    def test_empty_add_rejected(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        response = client.post(f"/api/patients/{patient_id}/treatment/", json={})
        assert response.status_code == 400


class TestFileRoutes:

    def test_upload_and_delete(self, client, blob_store, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]

        uploaded = client.post(
            f"/api/patients/{patient_id}/files/",
            files={"file": ("report.pdf", b"%PDF-1.7", "application/pdf")},
        )
        assert uploaded.status_code == 201
        record = uploaded.json()["data"]
        assert record["fileName"] == "report.pdf"
        assert record["mimeType"] == "application/pdf"
        assert record["externalId"] in blob_store.blobs

        deleted = client.delete(f"/api/patients/{patient_id}/files/{record['_id']}")
        assert deleted.status_code == 200
        assert blob_store.blobs == {}

        again = client.delete(f"/api/patients/{patient_id}/files/{record['_id']}")
        assert again.status_code == 404

    def test_upload_requires_file(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        response = client.post(f"/api/patients/{patient_id}/files/")
        assert response.status_code == 400

    def test_upload_to_unknown_patient_leaves_no_blob(self, client, blob_store):
        response = client.post(
            f"/api/patients/{ObjectId()}/files/",
            files={"file": ("xray.png", b"png-bytes", "image/png")},
        )

        assert response.status_code == 404
        assert blob_store.blobs == {}

    def test_blob_store_outage(self, client, blob_store, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        blob_store.fail_uploads = True

        response = client.post(
            f"/api/patients/{patient_id}/files/",
            files={"file": ("xray.png", b"png-bytes", "image/png")},
        )

        assert response.status_code == 500
        assert response.json()["details"] == "upload refused"

    def test_delete_file_after_patient_deleted(self, client, blob_store, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        record = client.post(
            f"/api/patients/{patient_id}/files/",
            files={"file": ("xray.png", b"png-bytes", "image/png")},
        ).json()["data"]

        assert client.delete(f"/api/patients/{patient_id}").status_code == 200
        response = client.delete(f"/api/patients/{patient_id}/files/{record['_id']}")

        assert response.status_code == 404
        assert blob_store.blobs == {}


class TestPaymentRoutes:

    def test_add_payment(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]

        response = client.post(f"/api/patients/{patient_id}/payments", json={"paymentMethod": "Cash", "amount": 500})

        assert response.status_code == 201
        payment = response.json()["data"]
        billed = datetime.fromisoformat(payment["billGenerationDate"])
        assert abs(billed - datetime.now()) < timedelta(minutes=1)

        listing = client.get(f"/api/patients/{patient_id}/payments").json()["data"]
        assert listing["patientName"] == "A"
        assert len(listing["payments"]) == 1

    def test_negative_amount_rejected(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        response = client.post(f"/api/patients/{patient_id}/payments", json={"paymentMethod": "Cash", "amount": -1})
        assert response.status_code == 400

    def test_unknown_method_rejected(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        response = client.post(f"/api/patients/{patient_id}/payments", json={"paymentMethod": "Cheque", "amount": 1})
        assert response.status_code == 400

    def test_delete_unknown_payment_succeeds(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        client.post(f"/api/patients/{patient_id}/payments", json={"paymentMethod": "UPI", "amount": 50})

        response = client.delete(f"/api/patients/{patient_id}/payments/{ObjectId()}")

        assert response.status_code == 200
        assert response.json()["success"] is True
        listing = client.get(f"/api/patients/{patient_id}/payments").json()["data"]
        assert len(listing["payments"]) == 1

    def test_all_payments(self, client, patient_payload):
        first = _create_patient(client, patient_payload)["_id"]
        second = _create_patient(client, {**patient_payload, "name": "B"})["_id"]
        client.post(f"/api/patients/{first}/payments",
                    json={"paymentMethod": "Cash", "amount": 1, "billGenerationDate": "2024-01-01T10:00:00"})
        client.post(f"/api/patients/{second}/payments",
                    json={"paymentMethod": "Card", "amount": 2, "billGenerationDate": "2024-06-01T10:00:00"})

        body = client.get("/api/payments").json()

        assert body["count"] == 2
        assert [row["patientName"] for row in body["data"]] == ["B", "A"]


class TestFollowUpRoutes:

    def test_add_then_complete(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]

        created = client.post(f"/api/patients/{patient_id}/follow-ups", json={"date": "2024-02-01", "time": "10:00"})
        assert created.status_code == 201
        follow_up = created.json()["data"]
        assert follow_up["status"] == "Upcoming"

        updated = client.patch(
            f"/api/patients/{patient_id}/follow-ups/{follow_up['_id']}/status", json={"status": "Completed"}
        )
        assert updated.status_code == 200
        assert updated.json()["message"] == "Follow-up marked as Completed."

        final = client.get(f"/api/patients/{patient_id}/follow-ups").json()["data"]
        assert final == [{**follow_up, "status": "Completed"}]

    def test_upcoming_is_not_a_settable_status(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        follow_up = client.post(
            f"/api/patients/{patient_id}/follow-ups", json={"date": "2024-02-01", "time": "10:00"}
        ).json()["data"]

        response = client.patch(
            f"/api/patients/{patient_id}/follow-ups/{follow_up['_id']}/status", json={"status": "Upcoming"}
        )

        assert response.status_code == 400

    def test_time_is_required(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        response = client.post(f"/api/patients/{patient_id}/follow-ups", json={"date": "2024-02-01"})
        assert response.status_code == 400

    def test_list_filtered_by_date(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        for date, time in [("2024-02-01T18:30:00", "06:30 PM"), ("2024-02-02T00:00:00", "12:00 AM"),
                           ("2024-02-01T00:00:00", "12:00 AM"), ("2024-01-31T23:59:00", "11:59 PM")]:
            client.post(f"/api/patients/{patient_id}/follow-ups", json={"date": date, "time": time})

        body = client.get("/api/follow-ups", params={"date": "2024-02-01"}).json()

        assert body["count"] == 2
        assert [row["date"] for row in body["data"]] == ["2024-02-01T00:00:00", "2024-02-01T18:30:00"]
        assert all(row["patientName"] == "A" for row in body["data"])

    def test_list_rejects_unknown_status(self, client):
        assert client.get("/api/follow-ups", params={"status": "Cancelled"}).status_code == 400

    def test_delete_unknown_follow_up_succeeds(self, client, patient_payload):
        patient_id = _create_patient(client, patient_payload)["_id"]
        response = client.delete(f"/api/patients/{patient_id}/follow-ups/{ObjectId()}")
        assert response.status_code == 200


class TestAuthRoutes:

    def test_register_login_and_reset(self, client, mail_sender):
        registered = client.post(
            "/api/auth/register",
            json={"name": "Reception", "email": "desk@vrushticlinic.com", "phone": "9876543210", "password": "secret1"},
        )
        assert registered.status_code == 201
        assert "passwordHash" not in registered.json()["data"]
        assert registered.json()["data"]["role"] == "staff"

        duplicate = client.post(
            "/api/auth/register",
            json={"name": "Again", "email": "desk@vrushticlinic.com", "phone": "9876543210", "password": "secret1"},
        )
        assert duplicate.status_code == 409

        login = client.post("/api/auth/login", json={"email": "desk@vrushticlinic.com", "password": "secret1"})
        assert login.status_code == 200
        assert login.json()["data"]["email"] == "desk@vrushticlinic.com"

        bad_login = client.post("/api/auth/login", json={"email": "desk@vrushticlinic.com", "password": "nope"})
        assert bad_login.status_code == 401
        assert bad_login.json() == {"success": False, "error": "Invalid credentials."}

        forgot = client.post("/api/auth/forgot-password", json={"email": "desk@vrushticlinic.com"})
        assert forgot.status_code == 200
        otp = mail_sender.sent[0]["otp"]

        reset = client.post(
            "/api/auth/reset-password",
            json={"email": "desk@vrushticlinic.com", "otp": otp, "password": "brandnew"},
        )
        assert reset.status_code == 200
        assert client.post("/api/auth/login", json={"email": "desk@vrushticlinic.com", "password": "brandnew"}).status_code == 200

    def test_forgot_password_for_unknown_email_looks_the_same(self, client, mail_sender):
        response = client.post("/api/auth/forgot-password", json={"email": "ghost@vrushticlinic.com"})

        assert response.status_code == 200
        assert response.json()["message"] == "If a user with that email exists, an OTP has been sent."
        assert mail_sender.sent == []

    def test_mail_outage(self, client, mail_sender):
        client.post(
            "/api/auth/register",
            json={"name": "Reception", "email": "desk@vrushticlinic.com", "phone": "9876543210", "password": "secret1"},
        )
        mail_sender.fail = True

        response = client.post("/api/auth/forgot-password", json={"email": "desk@vrushticlinic.com"})

        assert response.status_code == 500
        assert response.json()["error"] == "Email could not be sent. Server error."

    def test_invalid_email_rejected(self, client):
        response = client.post(
            "/api/auth/register",
            json={"name": "X", "email": "not-an-email", "phone": "9876543210", "password": "secret1"},
        )
        assert response.status_code == 400
