"""
Message payload encryption

Conversation messages are stored as an AES-256-GCM blob. The stored
payload is a JSON object of three base64 strings::

    {"ciphertext": ..., "iv": ..., "tag": ...}

``iv`` is a fresh 12-byte nonce per message and ``tag`` the 16-byte
GCM authentication tag, kept apart from the ciphertext.
"""

import base64
import binascii
import json
import os
from typing import Any, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .. import config

KEY_SIZE = 32
IV_SIZE = 12
TAG_SIZE = 16


class PayloadDecryptionError(ValueError):
    """Raised when a stored payload fails authentication"""


def _get_cipher() -> AESGCM:
    key = (config.ENCRYPTION_KEY or "").strip().encode("utf-8")
    if len(key) != KEY_SIZE:
        raise RuntimeError("ENCRYPTION_KEY missing or not 32 characters")
    return AESGCM(key)


def encrypt_payload(obj: Any) -> dict[str, str]:
    """Serialize ``obj`` as JSON and encrypt it with a random IV."""
    iv = os.urandom(IV_SIZE)
    plaintext = json.dumps(obj).encode("utf-8")
    sealed = _get_cipher().encrypt(iv, plaintext, None)
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return {
        "ciphertext": base64.b64encode(ciphertext).decode("ascii"),
        "iv": base64.b64encode(iv).decode("ascii"),
        "tag": base64.b64encode(tag).decode("ascii"),
    }


def decrypt_payload(payload: Optional[dict]) -> Optional[Any]:
    """
    Decrypt a payload produced by :func:`encrypt_payload`.

    Returns None when the payload is missing any of its three fields.
    Raises :class:`PayloadDecryptionError` when authentication fails or the
    fields are not valid base64.
    """
    if not payload or not all(payload.get(field) for field in ("ciphertext", "iv", "tag")):
        return None

    cipher = _get_cipher()
    try:
        iv = base64.b64decode(payload["iv"])
        tag = base64.b64decode(payload["tag"])
        ciphertext = base64.b64decode(payload["ciphertext"])
    except binascii.Error as e:
        raise PayloadDecryptionError("Message payload is not valid base64") from e
    try:
        plaintext = cipher.decrypt(iv, ciphertext + tag, None)
    except (InvalidTag, ValueError) as e:
        # ValueError: nonce of the wrong length
        raise PayloadDecryptionError("Message payload failed authentication") from e
    return json.loads(plaintext.decode("utf-8"))
