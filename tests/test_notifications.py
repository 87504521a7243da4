from conftest import auth_headers

from ukuqala.security_utils import create_doctor_token


def notify(client, headers, **fields):
    payload = {"type": "appointment", "title": "New booking", "message": "Thandi booked Monday 09:00"}
    payload.update(fields)
    return client.post("/notifications", json=payload, headers=headers)


def test_create_notification(client, doctor, doctor_headers):
    response = notify(client, doctor_headers, meta={"appointmentId": "a1"})

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["doctor_id"] == doctor.id
    assert data["unread"] is True
    assert data["meta"] == {"appointmentId": "a1"}


def test_meta_defaults_to_empty(client, doctor_headers):
    assert notify(client, doctor_headers).json()["data"]["meta"] == {}


def test_type_and_title_required(client, doctor_headers):
    response = notify(client, doctor_headers, title=None)

    assert response.status_code == 400
    assert response.json()["message"] == "type and title required"


def test_mark_read_and_filter_unread(client, doctor_headers):
    first = notify(client, doctor_headers, title="First").json()["data"]
    notify(client, doctor_headers, title="Second")

    response = client.patch(f"/notifications/{first['id']}/read", headers=doctor_headers)
    assert response.status_code == 200
    assert response.json()["data"]["unread"] is False

    everything = client.get("/notifications", headers=doctor_headers).json()["data"]
    unread = client.get("/notifications", params={"unread": "true"}, headers=doctor_headers).json()["data"]
    assert [n["title"] for n in everything] == ["Second", "First"]
    assert [n["title"] for n in unread] == ["Second"]


def test_notifications_are_private(client, doctor_headers, make_doctor):
    created = notify(client, doctor_headers).json()["data"]
    other = make_doctor()
    other_headers = auth_headers(create_doctor_token(other.id, other.email))

    assert client.get("/notifications", headers=other_headers).json()["data"] == []
    response = client.patch(f"/notifications/{created['id']}/read", headers=other_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Notification not found"
