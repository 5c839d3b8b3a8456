"""
Authentication service logic: registration, login, and profile lookup.

Route handlers stay thin and delegate here. Errors are raised as
`backend.errors` exceptions and translated to HTTP by the gateway.
"""

import os
import logging
from typing import Any, Dict

import psycopg2.errors
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from backend.database.db_connection import transaction
from backend.auth_service.utils import create_token, decode_token
from backend.errors import AuthError, ConflictError, NotFoundError, ValidationError

PASSWORD_HASH_COST = int(os.getenv("PASSWORD_HASH_COST", 10))

ph = PasswordHasher(time_cost=PASSWORD_HASH_COST)


def public_user(row: Dict[str, Any]) -> Dict[str, Any]:
    """Project a users row to its external representation (no password hash)."""
    return {
        "id": row["id"],
        "username": row["username"],
        "email": row["email"],
        "isAdmin": bool(row["is_admin"]),
    }


def normalize_email(email: Any) -> str:
    return (email or "").strip().lower()


def _require_strings(*values: Any) -> None:
    """
    Raises:
        ValidationError: A credential was sent as something other than text.
    """
    if any(value is not None and not isinstance(value, str) for value in values):
        raise ValidationError("Credentials must be strings")


# --- REGISTER ---
def register(username: str, email: str, password: str) -> Dict[str, Any]:
    """
    Create a new (non-admin) user.

    Returns:
        dict: The created user without its password hash.

    Raises:
        ValidationError: A field is missing or not a string.
        ConflictError: The email is already registered.
    """
    _require_strings(username, email, password)

    username = (username or "").strip()
    email = normalize_email(email)

    if not username or not email or not password:
        raise ValidationError("Username, email and password required")

    pw_hash = ph.hash(password)

    sql = """
        INSERT INTO users (username, email, password_hash)
        VALUES (%s, %s, %s)
        RETURNING id, username, email, is_admin;
    """

    try:
        with transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (username, email, pw_hash))
                user = cur.fetchone()
    except psycopg2.errors.UniqueViolation:
        raise ConflictError("Email already exists")

    logging.info(f"[Auth] Registered user {user['id']}")
    return public_user(user)


# --- LOGIN ---
def login(email: str, password: str) -> str:
    """
    Check credentials and issue a fresh session token.

    Raises:
        ValidationError: Email or password missing or not a string.
        AuthError: Unknown email or wrong password.
    """
    _require_strings(email, password)

    email = normalize_email(email)
    if not email or not password:
        raise ValidationError("Email and password required")

    sql = "SELECT id, password_hash, is_admin FROM users WHERE email = %s;"

    with transaction() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, (email,))
            user = cur.fetchone()

    if not user:
        logging.warning("[Auth] Login failed: unknown email")
        raise AuthError("Invalid credentials")

    try:
        ph.verify(user["password_hash"], password)
    except (VerificationError, InvalidHashError):
        logging.warning(f"[Auth] Login failed for user {user['id']}")
        raise AuthError("Invalid credentials")

    return create_token(user["id"], user["is_admin"])


# --- PROFILE ---
def get_profile(token: str) -> Dict[str, Any]:
    """
    Look up the user a token belongs to.

    The token is expected to have been verified by the caller already.

    Raises:
        AuthError: Malformed token.
        NotFoundError: The user no longer exists.
    """
    payload = decode_token(token)

    sql = "SELECT id, username, email, is_admin FROM users WHERE id = %s;"

    with transaction() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, (payload["userId"],))
            user = cur.fetchone()

    if not user:
        raise NotFoundError("User not found.")

    return public_user(user)
