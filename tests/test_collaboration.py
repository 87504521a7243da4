import pytest
from conftest import PATIENT_ID, auth_headers

from ukuqala.domain.collaboration.service import card_from_profile, ordered_pair
from ukuqala.security_utils import create_doctor_token


@pytest.fixture
def peer(make_doctor):
    return make_doctor(first_name="Kwame", last_name="Asante", avatar_url="https://cdn.example.com/kwame.png")


@pytest.fixture
def peer_headers(peer):
    return auth_headers(create_doctor_token(peer.id, peer.email))


@pytest.fixture
def chat(client, peer, doctor_headers):
    response = client.post("/collaboration/chats", json={"peerDoctorId": peer.id}, headers=doctor_headers)
    assert response.status_code == 201
    return response.json()["data"]


def post(client, chat_id, headers, **body):
    return client.post(f"/collaboration/chats/{chat_id}/messages", json=body, headers=headers)


def test_ordered_pair():
    assert ordered_pair("b", "a") == ("a", "b")
    assert ordered_pair("a", "b") == ("a", "b")


def test_start_chat_stores_ordered_pair(chat, doctor, peer):
    assert (chat["doctor_id"], chat["peer_doctor_id"]) == ordered_pair(doctor.id, peer.id)
    names = {chat["doctor"]["first_name"], chat["peer_doctor"]["first_name"]}
    assert names == {"Amara", "Kwame"}


def test_either_doctor_finds_same_thread(client, chat, doctor, peer_headers):
    response = client.post("/collaboration/chats", json={"peerDoctorId": doctor.id}, headers=peer_headers)

    assert response.json()["data"]["id"] == chat["id"]


def test_cannot_collaborate_with_self(client, doctor, doctor_headers):
    response = client.post("/collaboration/chats", json={"peerDoctorId": doctor.id}, headers=doctor_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot start a collaboration with yourself"


def test_unknown_peer(client, doctor_headers):
    response = client.post(
        "/collaboration/chats", json={"peerDoctorId": "0b8f2a6e-1111-4222-8333-444455556666"}, headers=doctor_headers
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Doctor not found"


def test_list_chats_for_both_members(client, chat, doctor_headers, peer_headers, peer):
    mine = client.get("/collaboration/chats", headers=doctor_headers).json()["data"]
    theirs = client.get("/collaboration/chats", headers=peer_headers).json()["data"]

    assert [c["id"] for c in mine] == [chat["id"]]
    assert [c["id"] for c in theirs] == [chat["id"]]
    avatars = {mine[0]["doctor"]["avatar_url"], mine[0]["peer_doctor"]["avatar_url"]}
    assert peer.avatar_url in avatars


def test_text_message(client, chat, doctor, doctor_headers, peer_headers):
    response = post(client, chat["id"], doctor_headers, type="text", content="Second opinion on an ECG?")

    assert response.status_code == 201
    message = response.json()["data"]
    assert message["doctor_id"] == doctor.id
    assert message["metadata"] == {}

    listed = client.get(f"/collaboration/chats/{chat['id']}/messages", headers=peer_headers).json()["data"]
    assert [m["content"] for m in listed] == ["Second opinion on an ECG?"]


def test_patient_card_from_payload(client, chat, doctor_headers):
    card = {"patientName": "Thandi Nkosi", "patientAge": 34, "bloodGroup": "O+"}

    message = post(client, chat["id"], doctor_headers, type="patient_card", patientPayload=card, notes="Wheezing").json()[
        "data"
    ]

    assert message["type"] == "patient_card"
    assert message["content"] == ""
    assert message["metadata"]["notes"] == "Wheezing"
    assert message["metadata"]["patient"]["patientName"] == "Thandi Nkosi"
    assert message["metadata"]["patient"]["medicalCondition"] == "N/A"


def test_patient_card_from_supabase_profile(client, chat, supabase, patient, doctor_headers):
    supabase.profiles[PATIENT_ID]["primary_condition"] = "Asthma"

    message = post(client, chat["id"], doctor_headers, type="patient_card", patientId=PATIENT_ID).json()["data"]

    patient_card = message["metadata"]["patient"]
    assert patient_card["patientName"] == "Thandi Nkosi"
    assert patient_card["medicalCondition"] == "Asthma"
    assert message["metadata"]["notes"] == ""


def test_patient_card_for_unknown_patient(client, chat, doctor_headers):
    message = post(client, chat["id"], doctor_headers, type="patient_card", patientId="missing").json()["data"]

    assert message["metadata"] == {"patient": None, "notes": ""}


def test_outsider_is_forbidden(client, chat, make_doctor):
    outsider = make_doctor()
    headers = auth_headers(create_doctor_token(outsider.id, outsider.email))

    response = client.get(f"/collaboration/chats/{chat['id']}/messages", headers=headers)

    assert response.status_code == 403
    assert client.get("/collaboration/chats/nope/messages", headers=headers).status_code == 404


def test_card_from_profile_defaults():
    card = card_from_profile({"name": "Sipho"})

    assert card["patientName"] == "Sipho"
    assert card["bloodGroup"] == "N/A"
    assert card["avatar"] == ""
