"""
Shared authentication helpers.
Provides token creation, verification, and role enforcement.

Tokens are stateless: validity is a pure function of the signature
and the current time, so nothing about sessions is kept server-side.
"""

import os
import time
import threading
import uuid
import jwt
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, NamedTuple, Optional
from flask import request
from dotenv import load_dotenv

from backend.errors import AuthError, ForbiddenError

# Load .env only once here
load_dotenv()

# Load secrets & configs
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET is missing. Set it in .env")

JWT_ALGORITHM = "HS256"
TOKEN_EXPIRATION_MINUTES = int(os.getenv("TOKEN_EXPIRATION_MINUTES", 60))  # Default 1 hour


class Identity(NamedTuple):
    """Verified caller identity exposed to route handlers."""
    user_id: int
    is_admin: bool
    issued_at: int


# issuedAt never repeats within a process; jti keeps tokens distinct across
# worker processes that issue in the same millisecond.
_issue_lock = threading.Lock()
_last_issued_at = 0


def _next_issued_at() -> int:
    """Return a millisecond timestamp strictly greater than any previous one."""
    global _last_issued_at
    with _issue_lock:
        now_ms = int(time.time() * 1000)
        _last_issued_at = max(now_ms, _last_issued_at + 1)
        return _last_issued_at


# --- JWT CREATION ---
def create_token(user_id: int, is_admin: bool) -> str:
    """
    Generates a new JWT for a given user.

    Args:
        user_id (int): The unique ID of the user.
        is_admin (bool): Whether the user has admin privileges.

    Returns:
        str: Encoded JWT string.
    """
    issued_at = _next_issued_at()
    now = datetime.fromtimestamp(issued_at / 1000, tz=timezone.utc)

    payload = {
        "userId": user_id,
        "isAdmin": bool(is_admin),
        "issuedAt": issued_at,
        "exp": now + timedelta(minutes=TOKEN_EXPIRATION_MINUTES),
        "iat": now,
        "jti": uuid.uuid4().hex
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


# --- JWT DECODING ---
def decode_token(token: str) -> Dict[str, Any]:
    """
    Read the claims of a token without checking its signature or expiry.

    Only meant for internal lookups on tokens that already went through
    verify_token().

    Raises:
        AuthError: If the token is structurally malformed.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        raise AuthError("invalid token")

    if not isinstance(payload, dict) or "userId" not in payload:
        raise AuthError("invalid token")

    return payload


# --- JWT VALIDATION ---
def verify_token(token: str) -> Identity:
    """
    Validate a JWT's signature and expiry.

    Args:
        token (str): JWT string.

    Returns:
        Identity: The verified caller.

    Raises:
        AuthError: If the token is expired, tampered with, or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat", "userId"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("token expired")
    except jwt.InvalidTokenError:
        raise AuthError("invalid token")

    return Identity(
        user_id=payload["userId"],
        is_admin=bool(payload.get("isAdmin", False)),
        issued_at=payload.get("issuedAt", 0),
    )


def bearer_token_from_request() -> str:
    """
    Extract the raw token from an `Authorization: Bearer <token>` header.

    Raises:
        AuthError: If the header is absent or not in Bearer format.
    """
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")

    if scheme != "Bearer" or not token.strip():
        raise AuthError("missing token")

    return token.strip()


def verify_token_from_request() -> Identity:
    """
    Verify the JWT in the Authorization header of the current request.

    Returns:
        Identity: The verified caller.

    Raises:
        AuthError: Missing, malformed, tampered, or expired token.
    """
    return verify_token(bearer_token_from_request())


def optional_identity_from_request() -> Optional[Identity]:
    """
    Identity of the caller if a valid token is present, otherwise None.

    Used by public routes that personalise their output for logged-in users.
    """
    try:
        return verify_token_from_request()
    except AuthError:
        return None


def require_admin(identity: Identity) -> None:
    """
    Raises:
        ForbiddenError: If the verified identity is not an admin.
    """
    if not identity.is_admin:
        raise ForbiddenError("permission denied")
