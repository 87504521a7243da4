"""
Security utilities
Password/PIN hashing, doctor token issuance and filename hygiene
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import JWT_EXPIRY, JWT_SECRET

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_EXPIRY_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: str) -> bool:
    """Verify password (or app PIN) against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# TOKEN MANAGEMENT
# ============================================================================


def parse_expiry(value: str) -> timedelta:
    """
    Parse a duration such as "7d", "12h", "30m" or "3600" into a timedelta.

    Unknown formats fall back to 7 days.
    """
    match = re.fullmatch(r"\s*(\d+)\s*([smhdw]?)\s*", value or "")
    if not match:
        logger.warning(f"⚠️ Unrecognised JWT_EXPIRY '{value}', defaulting to 7d")
        return timedelta(days=7)
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _EXPIRY_UNITS.get(unit or "s"))


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Data to encode in the token
        expires_delta: Token expiration time (default JWT_EXPIRY)
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or parse_expiry(JWT_EXPIRY))
    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, JWT_SECRET, algorithm=ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"JWT verification failed: {e}")
        return None


def create_doctor_token(doctor_id: str, email: str) -> str:
    return create_jwt_token({"id": doctor_id, "email": email, "role": "doctor"})


def decode_doctor_token(token: str) -> Optional[dict[str, Any]]:
    """Return the payload only for tokens minted for doctors"""
    payload = verify_jwt_token(token)
    if not payload or payload.get("role") != "doctor" or not payload.get("id"):
        return None
    return payload


# ============================================================================
# FILE NAMES
# ============================================================================


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent directory traversal and other attacks

    Args:
        filename: Original filename

    Returns:
        Safe filename
    """
    filename = filename.replace("\\", "/").split("/")[-1]
    filename = re.sub(r"[^\w\s.-]", "", filename)
    filename = re.sub(r"\s+", "_", filename).lstrip(".")

    if len(filename) > 255:
        name, _, ext = filename.rpartition(".")
        if name:
            filename = name[: 250 - len(ext)] + "." + ext
        else:
            filename = filename[:255]

    return filename or "file"
