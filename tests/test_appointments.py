import pytest
from conftest import PATIENT_ID

from ukuqala.models import PatientRecord


@pytest.fixture
def booking(doctor):
    return {
        "doctorId": doctor.id,
        "scheduledAt": "2026-11-02T09:00:00Z",
        "durationMinutes": 30,
        "type": "virtual",
        "reason": "Persistent cough",
        "attachments": [{"name": "xray.png", "url": "https://files.example.com/xray.png"}],
    }


@pytest.fixture
def appointment(client, booking, patient_headers):
    response = client.post("/appointments", json=booking, headers=patient_headers)
    assert response.status_code == 201
    return response.json()["data"]


def set_status(client, appointment_id, headers, **body):
    return client.post(f"/appointments/{appointment_id}/status", json=body, headers=headers)


def test_patient_books_for_themselves(appointment, doctor):
    assert appointment["doctor_id"] == doctor.id
    assert appointment["patient_external_id"] == PATIENT_ID
    assert appointment["status"] == "pending"
    assert appointment["scheduled_at"] == "2026-11-02T09:00:00"
    assert appointment["attachments"] == [{"name": "xray.png", "url": "https://files.example.com/xray.png"}]


def test_doctor_must_name_patient(client, booking, doctor_headers):
    response = client.post("/appointments", json=booking, headers=doctor_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "patientExternalId required"


def test_doctor_books_only_for_self(client, booking, doctor_headers, make_doctor):
    other = make_doctor()
    booking.update(doctorId=other.id, patientExternalId=PATIENT_ID)

    response = client.post("/appointments", json=booking, headers=doctor_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "Doctors can only book their own appointments"


def test_booking_unknown_doctor(client, booking, patient_headers):
    booking["doctorId"] = "0b8f2a6e-1111-4222-8333-444455556666"

    response = client.post("/appointments", json=booking, headers=patient_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Doctor not found"


def test_booking_validation(client, booking, patient_headers):
    booking.update(doctorId="nope", durationMinutes=0, type="phone")

    response = client.post("/appointments", json=booking, headers=patient_headers)

    assert response.status_code == 422
    fields = {error["loc"][-1] for error in response.json()["errors"]}
    assert {"doctorId", "durationMinutes", "type"} <= fields


def test_list_and_filter_by_status(client, appointment, booking, doctor_headers, patient_headers):
    booking["scheduledAt"] = "2026-11-05T09:00:00Z"
    later = client.post("/appointments", json=booking, headers=patient_headers).json()["data"]
    set_status(client, later["id"], doctor_headers, status="confirmed")

    everything = client.get("/appointments", headers=doctor_headers).json()["data"]
    assert [a["id"] for a in everything] == [later["id"], appointment["id"]]

    confirmed = client.get("/appointments", params={"status": "confirmed"}, headers=patient_headers).json()["data"]
    assert [a["id"] for a in confirmed] == [later["id"]]


def test_other_patient_cannot_see_appointment(client, appointment, other_patient_headers):
    response = client.get(f"/appointments/{appointment['id']}", headers=other_patient_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "Forbidden"


def test_unknown_appointment(client, doctor_headers):
    response = client.get("/appointments/missing", headers=doctor_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Appointment not found"


def test_confirm_creates_patient_record(client, db_session, appointment, doctor, doctor_headers):
    response = set_status(client, appointment["id"], doctor_headers, status="confirmed", meetingUrl="https://meet/x")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "confirmed"
    assert response.json()["data"]["meeting_url"] == "https://meet/x"

    record = db_session.query(PatientRecord).filter_by(doctor_id=doctor.id).one()
    assert record.patient_external_id == PATIENT_ID
    assert record.patient_name == "Thandi Nkosi"
    assert record.patient_address == "Durban, ZA"
    assert record.on_platform is True
    assert record.qr_code == f"QR-{PATIENT_ID[:8]}"
    assert record.consultations == 1


def test_completion_bumps_existing_record(client, db_session, appointment, doctor, doctor_headers):
    set_status(client, appointment["id"], doctor_headers, status="confirmed")
    set_status(client, appointment["id"], doctor_headers, status="completed")

    record = db_session.query(PatientRecord).filter_by(doctor_id=doctor.id).one()
    assert record.consultations == 2


def test_reschedule_without_time_keeps_slot(client, appointment, doctor_headers):
    response = set_status(client, appointment["id"], doctor_headers, status="rescheduled", reason="Awaiting labs")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "rescheduled"
    assert data["scheduled_at"] == appointment["scheduled_at"]
    assert data["reschedule_reason"] == "Awaiting labs"


def test_reschedule_moves_appointment(client, appointment, doctor_headers):
    response = set_status(
        client,
        appointment["id"],
        doctor_headers,
        status="rescheduled",
        scheduledAt="2026-11-03T12:30:00+02:00",
        reason="Clinic closed",
    )

    data = response.json()["data"]
    assert data["status"] == "rescheduled"
    assert data["scheduled_at"] == "2026-11-03T10:30:00"
    assert data["reschedule_reason"] == "Clinic closed"


def test_patient_can_only_cancel(client, appointment, patient_headers):
    response = set_status(client, appointment["id"], patient_headers, status="confirmed")
    assert response.status_code == 403
    assert response.json()["message"] == "Patients can only cancel appointments"

    response = set_status(client, appointment["id"], patient_headers, status="canceled", reason="Feeling better")
    assert response.status_code == 200
    assert response.json()["data"]["cancel_reason"] == "Feeling better"


def test_terminal_status_is_final(client, appointment, doctor_headers):
    set_status(client, appointment["id"], doctor_headers, status="canceled")

    response = set_status(client, appointment["id"], doctor_headers, status="confirmed")

    assert response.status_code == 400
    assert response.json()["message"] == "Appointment is already canceled"
