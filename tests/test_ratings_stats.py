from datetime import datetime

import pytest
from conftest import OTHER_PATIENT_ID, PATIENT_ID

from ukuqala.models import Appointment, Conversation, DoctorRating
from ukuqala.routes.stats import daily_counts, monthly_counts, monthly_distinct


@pytest.fixture
def concluded_conversation(db_session, doctor):
    conversation = Conversation(doctor_id=doctor.id, patient_external_id=PATIENT_ID, status="concluded")
    db_session.add(conversation)
    db_session.commit()
    return conversation


def rate(client, headers, doctor_id, **fields):
    return client.post("/ratings", json={"doctorId": doctor_id, "score": 5, **fields}, headers=headers)


def test_patient_rates_concluded_conversation(client, doctor, concluded_conversation, patient_headers):
    response = rate(client, patient_headers, doctor.id, conversationId=concluded_conversation.id, comment="Kind")

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["patient_external_id"] == PATIENT_ID
    assert data["conversation_id"] == concluded_conversation.id
    assert data["comment"] == "Kind"


def test_conversation_can_only_be_rated_once(client, doctor, concluded_conversation, patient_headers):
    rate(client, patient_headers, doctor.id, conversationId=concluded_conversation.id)

    response = rate(client, patient_headers, doctor.id, conversationId=concluded_conversation.id, score=1)

    assert response.status_code == 409
    assert response.json()["message"] == "Conversation already rated"


def test_rating_requires_concluded_conversation(client, db_session, doctor, patient_headers):
    conversation = Conversation(doctor_id=doctor.id, patient_external_id=PATIENT_ID, status="active")
    db_session.add(conversation)
    db_session.commit()

    response = rate(client, patient_headers, doctor.id, conversationId=conversation.id)

    assert response.status_code == 400
    assert response.json()["message"] == "Conversation must be concluded to rate"


def test_rating_someone_elses_conversation(client, doctor, concluded_conversation, other_patient_headers):
    response = rate(client, other_patient_headers, doctor.id, conversationId=concluded_conversation.id)

    assert response.status_code == 403
    assert response.json()["message"] == "Conversation does not belong to this patient/doctor"


def test_rating_unknown_conversation(client, doctor, patient_headers):
    response = rate(client, patient_headers, doctor.id, conversationId="0b8f2a6e-1111-4222-8333-444455556666")

    assert response.status_code == 404
    assert response.json()["message"] == "Conversation not found"


def test_doctors_cannot_rate(client, doctor, doctor_headers):
    response = rate(client, doctor_headers, doctor.id)

    assert response.status_code == 403
    assert response.json()["message"] == "Only patients can rate doctors"


def test_score_bounds(client, doctor, patient_headers):
    assert rate(client, patient_headers, doctor.id, score=0).status_code == 422
    assert rate(client, patient_headers, doctor.id, score=6).status_code == 422
    assert rate(client, patient_headers, doctor.id, score=3).status_code == 201


def test_doctor_lists_own_ratings(client, doctor, doctor_headers, patient_headers):
    rate(client, patient_headers, doctor.id, score=4)
    rate(client, patient_headers, doctor.id, score=2)

    response = client.get("/ratings/doctor", headers=doctor_headers)

    assert [r["score"] for r in response.json()["data"]] == [2, 4]
    assert client.get("/ratings/doctor", headers=patient_headers).status_code == 403


def test_daily_counts_keeps_most_recent_days():
    days = [datetime(2026, 3, d, 9) for d in range(1, 21)] + [datetime(2026, 3, 20, 15)]

    result = daily_counts(days)

    assert len(result) == 14
    assert result[0] == {"day": "2026-03-07", "count": 1}
    assert result[-1] == {"day": "2026-03-20", "count": 2}


def test_monthly_distinct_counts_unique_patients():
    rows = [
        (datetime(2026, 1, 5), "a"),
        (datetime(2026, 1, 9), "a"),
        (datetime(2026, 1, 20), "b"),
        (datetime(2026, 2, 1), "a"),
    ]

    assert monthly_distinct(rows, "patients") == [{"month": "Jan", "patients": 2}, {"month": "Feb", "patients": 1}]


def test_monthly_counts_last_six_months():
    values = [datetime(2025, month, 1) for month in range(1, 9)]

    result = monthly_counts(values, "concluded")

    assert [row["month"] for row in result] == ["Mar", "Apr", "May", "Jun", "Jul", "Aug"]
    assert all(row["concluded"] == 1 for row in result)


def test_doctor_stats(client, db_session, doctor, doctor_headers):
    def appointment(when, patient, status):
        return Appointment(
            doctor_id=doctor.id, patient_external_id=patient, scheduled_at=when, type="virtual", status=status
        )

    db_session.add_all(
        [
            appointment(datetime(2026, 9, 1, 9), PATIENT_ID, "confirmed"),
            appointment(datetime(2026, 9, 1, 11), OTHER_PATIENT_ID, "pending"),
            appointment(datetime(2026, 10, 2, 9), PATIENT_ID, "confirmed"),
            Conversation(
                doctor_id=doctor.id,
                patient_external_id=PATIENT_ID,
                status="concluded",
                created_at=datetime(2026, 10, 1),
            ),
            Conversation(doctor_id=doctor.id, patient_external_id=OTHER_PATIENT_ID, status="active"),
            DoctorRating(doctor_id=doctor.id, patient_external_id=PATIENT_ID, score=5),
            DoctorRating(doctor_id=doctor.id, patient_external_id=OTHER_PATIENT_ID, score=4),
            DoctorRating(doctor_id=doctor.id, patient_external_id=OTHER_PATIENT_ID, score=4),
        ]
    )
    db_session.commit()

    stats = client.get("/stats/doctor", headers=doctor_headers).json()["data"]

    assert stats["totalAppointments"] == 3
    assert stats["confirmedAppointments"] == 2
    assert stats["totalPatients"] == 2
    assert stats["concludedConversations"] == 1
    assert stats["ratingsCount"] == 3
    assert stats["avgRating"] == 4.33
    assert stats["dailyAppointments"] == [{"day": "2026-09-01", "count": 2}, {"day": "2026-10-02", "count": 1}]
    assert stats["monthlyPatients"] == [{"month": "Sep", "patients": 2}, {"month": "Oct", "patients": 1}]
    assert stats["monthlyConcluded"] == [{"month": "Oct", "concluded": 1}]


def test_stats_for_new_doctor(client, doctor_headers):
    stats = client.get("/stats/doctor", headers=doctor_headers).json()["data"]

    assert stats["totalAppointments"] == 0
    assert stats["avgRating"] == 0
    assert stats["dailyAppointments"] == []
    assert stats["monthlyConcluded"] == []
