"""
Socket.IO signaling for doctor video calls.

Clients connect with a doctor JWT (``auth.token`` or ``?token=``), join a
room named after the call channel and relay WebRTC offers, answers and ICE
candidates to the other members of that room.
"""

import logging
from typing import Optional
from urllib.parse import parse_qs

import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from . import config
from .security_utils import decode_doctor_token

logger = logging.getLogger(__name__)


def _cors_origins():
    if config.CORS_ORIGIN == "*":
        return "*"
    return [origin.strip() for origin in config.CORS_ORIGIN.split(",") if origin.strip()]


sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=_cors_origins())


def extract_token(environ: dict, auth: Optional[dict]) -> Optional[str]:
    if isinstance(auth, dict) and auth.get("token"):
        return auth["token"]
    query = parse_qs(environ.get("QUERY_STRING", ""))
    values = query.get("token")
    return values[0] if values else None


async def _sender_id(sid: str) -> Optional[str]:
    session = await sio.get_session(sid)
    user = session.get("user") or {}
    return user.get("id")


@sio.event
async def connect(sid, environ, auth=None):
    token = extract_token(environ, auth)
    payload = decode_doctor_token(token) if token else None
    if not payload:
        logger.warning(f"❌ Socket {sid} rejected: missing or invalid token")
        raise SocketConnectionRefused("unauthorized")

    await sio.save_session(sid, {"user": payload})
    logger.info(f"🔌 Socket connected: doctor {payload['id']} ({sid})")


@sio.event
async def disconnect(sid, *args):
    logger.info(f"🔌 Socket disconnected: {sid}")


@sio.event
async def join(sid, data):
    if not isinstance(data, dict) or not data.get("room"):
        return
    room = data["room"]
    await sio.enter_room(sid, room)
    await sio.emit("joined", {"room": room}, to=sid)


async def relay(sid, event: str, data: Optional[dict], field: Optional[str] = None):
    """Forward ``field`` from ``data`` to the rest of the room, tagged with the sender"""
    if not isinstance(data, dict):
        return
    room = data.get("room")
    if not room or (field and not data.get(field)):
        return

    message = {"from": await _sender_id(sid)}
    if field:
        message[field] = data[field]
    await sio.emit(event, message, room=room, skip_sid=sid)


@sio.on("call-offer")
async def call_offer(sid, data):
    await relay(sid, "call-offer", data, "offer")


@sio.on("call-answer")
async def call_answer(sid, data):
    await relay(sid, "call-answer", data, "answer")


@sio.on("ice-candidate")
async def ice_candidate(sid, data):
    await relay(sid, "ice-candidate", data, "candidate")


@sio.on("call-end")
async def call_end(sid, data):
    await relay(sid, "call-end", data)
