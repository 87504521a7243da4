import pytest
from conftest import auth_headers

from ukuqala.domain.chatbot.service import HISTORY_LIMIT
from ukuqala.models import ChatbotMessage
from ukuqala.security_utils import create_doctor_token


@pytest.fixture
def chat(client, doctor_headers):
    response = client.post("/chatbot/conversations", json={"title": "Dosing questions"}, headers=doctor_headers)
    assert response.status_code == 201
    return response.json()["data"]


def ask(client, chat_id, headers, content="Max paracetamol dose for adults?"):
    return client.post(f"/chatbot/conversations/{chat_id}/messages", json={"content": content}, headers=headers)


def test_create_conversation_with_default_title(client, doctor_headers):
    without_body = client.post("/chatbot/conversations", headers=doctor_headers)
    blank = client.post("/chatbot/conversations", json={"title": "   "}, headers=doctor_headers)

    assert without_body.status_code == 201
    assert without_body.json()["data"]["title"] == "New chat"
    assert blank.json()["data"]["title"] == "New chat"


def test_list_conversations(client, chat, doctor_headers):
    conversations = client.get("/chatbot/conversations", headers=doctor_headers).json()["data"]

    assert [c["title"] for c in conversations] == ["Dosing questions"]


def test_ask_stores_question_and_reply(client, chat, mistral, doctor_headers):
    response = ask(client, chat["id"], doctor_headers)

    assert response.status_code == 201
    thread = response.json()["data"]
    assert [m["role"] for m in thread] == ["user", "assistant"]
    assert thread[1]["content"] == mistral.reply
    assert thread[1]["metadata"] == {"model": "mistral-medium-latest"}
    assert thread[0]["reactions"] == []
    assert mistral.calls == [[{"role": "user", "content": "Max paracetamol dose for adults?"}]]

    listed = client.get(f"/chatbot/conversations/{chat['id']}/messages", headers=doctor_headers).json()["data"]
    assert [m["id"] for m in listed] == [m["id"] for m in thread]


def test_history_sent_to_assistant_is_capped(client, db_session, chat, mistral, doctor_headers):
    for i in range(HISTORY_LIMIT + 5):
        db_session.add(ChatbotMessage(conversation_id=chat["id"], role="user", content=f"old {i}", meta={}))
        db_session.commit()

    ask(client, chat["id"], doctor_headers, content="latest")

    history = mistral.calls[-1]
    assert len(history) == HISTORY_LIMIT
    assert history[-1] == {"role": "user", "content": "latest"}


def test_assistant_failure_keeps_question(client, chat, mistral, doctor_headers):
    mistral.fail = True

    response = ask(client, chat["id"], doctor_headers)

    assert response.status_code == 502
    assert response.json() == {"success": False, "message": "Chat assistant request failed"}
    listed = client.get(f"/chatbot/conversations/{chat['id']}/messages", headers=doctor_headers).json()["data"]
    assert [m["role"] for m in listed] == ["user"]


def test_other_doctor_cannot_use_conversation(client, chat, make_doctor):
    other = make_doctor()
    headers = auth_headers(create_doctor_token(other.id, other.email))

    response = ask(client, chat["id"], headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Conversation not found"


def test_reactions_are_idempotent(client, chat, doctor_headers):
    reply = ask(client, chat["id"], doctor_headers).json()["data"][1]
    url = f"/chatbot/messages/{reply['id']}/reaction"

    first = client.post(url, json={"reaction": "like"}, headers=doctor_headers)
    client.post(url, json={"reaction": "like"}, headers=doctor_headers)
    client.post(url, json={"reaction": "save"}, headers=doctor_headers)

    assert first.json()["data"] == {"messageId": reply["id"], "reaction": "like", "active": True}
    listed = client.get(f"/chatbot/conversations/{chat['id']}/messages", headers=doctor_headers).json()["data"]
    assert sorted(listed[1]["reactions"]) == ["like", "save"]

    client.post(url, json={"reaction": "like", "active": False}, headers=doctor_headers)
    client.post(url, json={"reaction": "like", "active": False}, headers=doctor_headers)
    listed = client.get(f"/chatbot/conversations/{chat['id']}/messages", headers=doctor_headers).json()["data"]
    assert listed[1]["reactions"] == ["save"]


def test_reaction_validation_and_missing_message(client, doctor_headers):
    bad = client.post("/chatbot/messages/whatever/reaction", json={"reaction": "love"}, headers=doctor_headers)
    missing = client.post("/chatbot/messages/whatever/reaction", json={"reaction": "like"}, headers=doctor_headers)

    assert bad.status_code == 422
    assert missing.status_code == 404
    assert missing.json()["message"] == "Message not found"
