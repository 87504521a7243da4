import asyncio

import pytest
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from ukuqala import realtime
from ukuqala.security_utils import create_doctor_token


class FakeServer:
    """Records what the handlers ask the Socket.IO server to do"""

    def __init__(self):
        self.sessions = {}
        self.rooms = []
        self.emitted = []

    async def save_session(self, sid, session):
        self.sessions[sid] = session

    async def get_session(self, sid):
        return self.sessions.get(sid, {})

    async def enter_room(self, sid, room):
        self.rooms.append((sid, room))

    async def emit(self, event, data, **kwargs):
        self.emitted.append((event, data, kwargs))


@pytest.fixture
def server(monkeypatch):
    fake = FakeServer()
    for name in ("save_session", "get_session", "enter_room", "emit"):
        monkeypatch.setattr(realtime.sio, name, getattr(fake, name))
    return fake


def connect_doctor(server, sid="sid-1", doctor_id="doc-1"):
    token = create_doctor_token(doctor_id, f"{doctor_id}@example.com")
    asyncio.run(realtime.connect(sid, {}, {"token": token}))


def test_extract_token_prefers_auth_payload():
    environ = {"QUERY_STRING": "EIO=4&token=from-query"}

    assert realtime.extract_token(environ, {"token": "from-auth"}) == "from-auth"
    assert realtime.extract_token(environ, None) == "from-query"
    assert realtime.extract_token({}, {}) is None


def test_connect_saves_doctor_session(server):
    connect_doctor(server)

    assert server.sessions["sid-1"]["user"]["id"] == "doc-1"


def test_connect_with_query_token(server):
    token = create_doctor_token("doc-2", "doc-2@example.com")

    asyncio.run(realtime.connect("sid-2", {"QUERY_STRING": f"token={token}"}))

    assert server.sessions["sid-2"]["user"]["id"] == "doc-2"


@pytest.mark.parametrize("auth", [None, {"token": "not-a-jwt"}])
def test_connect_rejects_missing_or_bad_token(server, auth):
    with pytest.raises(SocketConnectionRefused):
        asyncio.run(realtime.connect("sid-x", {}, auth))
    assert server.sessions == {}


def test_join_enters_room(server):
    connect_doctor(server)

    asyncio.run(realtime.join("sid-1", {"room": "appt-1234"}))

    assert server.rooms == [("sid-1", "appt-1234")]
    assert server.emitted == [("joined", {"room": "appt-1234"}, {"to": "sid-1"})]


def test_join_without_room_is_ignored(server):
    asyncio.run(realtime.join("sid-1", {}))
    asyncio.run(realtime.join("sid-1", "appt-1234"))

    assert server.rooms == []


def test_offer_is_relayed_to_rest_of_room(server):
    connect_doctor(server)

    asyncio.run(realtime.call_offer("sid-1", {"room": "appt-1234", "offer": {"sdp": "v=0"}}))

    assert server.emitted == [
        ("call-offer", {"from": "doc-1", "offer": {"sdp": "v=0"}}, {"room": "appt-1234", "skip_sid": "sid-1"})
    ]


def test_answer_and_candidate_relay(server):
    connect_doctor(server)

    asyncio.run(realtime.call_answer("sid-1", {"room": "r", "answer": {"sdp": "a"}}))
    asyncio.run(realtime.ice_candidate("sid-1", {"room": "r", "candidate": {"candidate": "c"}}))

    assert [event for event, _, _ in server.emitted] == ["call-answer", "ice-candidate"]
    assert server.emitted[1][1] == {"from": "doc-1", "candidate": {"candidate": "c"}}


def test_relay_drops_incomplete_messages(server):
    connect_doctor(server)

    asyncio.run(realtime.call_offer("sid-1", {"room": "r"}))
    asyncio.run(realtime.call_offer("sid-1", {"offer": {"sdp": "v=0"}}))
    asyncio.run(realtime.call_offer("sid-1", None))
    asyncio.run(realtime.call_offer("sid-1", "appt-1234"))
    asyncio.run(realtime.call_end("sid-1", ["r"]))

    assert server.emitted == []


def test_call_end_carries_only_sender(server):
    connect_doctor(server)

    asyncio.run(realtime.call_end("sid-1", {"room": "r"}))

    assert server.emitted == [("call-end", {"from": "doc-1"}, {"room": "r", "skip_sid": "sid-1"})]
