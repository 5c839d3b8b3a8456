"""
Database schema bootstrap and admin seeding.

Creates the users, events, and rsvps tables if they are missing, and
optionally creates (or promotes) an admin account, since the API never
lets users grant themselves admin rights.

Usage:
    python -m backend.database.init_db
    python -m backend.database.init_db --admin-email admin@example.com \
        --admin-username admin --admin-password 'secret'
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from backend.database.db_connection import transaction

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id            SERIAL PRIMARY KEY,
    username      VARCHAR(100) NOT NULL,
    email         VARCHAR(255) NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    is_admin      BOOLEAN NOT NULL DEFAULT FALSE,
    created_at    TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS events (
    id          SERIAL PRIMARY KEY,
    name        VARCHAR(200) NOT NULL,
    description TEXT NOT NULL,
    date        DATE NOT NULL,
    time        TIME NOT NULL,
    location    VARCHAR(255) NOT NULL,
    created_by  INTEGER REFERENCES users (id) ON DELETE SET NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS rsvps (
    user_id  INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    event_id INTEGER NOT NULL REFERENCES events (id) ON DELETE CASCADE,
    PRIMARY KEY (user_id, event_id)
);

CREATE INDEX IF NOT EXISTS rsvps_event_id_idx ON rsvps (event_id);
"""


def init_db() -> None:
    """Create all tables and indexes that do not exist yet."""
    with transaction() as conn:
        with conn.cursor() as cur:
            cur.execute(SCHEMA)

    logging.info("Database schema is up to date.")


def create_admin(username: str, email: str, password: str) -> Dict[str, Any]:
    """
    Create an admin account, or promote the existing account with that email.

    The password is only used when the account is created.

    Returns:
        dict: The admin user without its password hash.
    """
    from backend.auth_service.service import normalize_email, ph, public_user

    email = normalize_email(email)
    if not username or not email or not password:
        raise ValueError("username, email and password are required")

    sql = """
        INSERT INTO users (username, email, password_hash, is_admin)
        VALUES (%s, %s, %s, TRUE)
        ON CONFLICT (email) DO UPDATE SET is_admin = TRUE
        RETURNING id, username, email, is_admin;
    """

    with transaction() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, (username.strip(), email, ph.hash(password)))
            user = cur.fetchone()

    logging.info(f"Admin account ready: user {user['id']}")
    return public_user(user)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create the database schema and seed an admin.")
    parser.add_argument("--admin-username", default="admin")
    parser.add_argument("--admin-email")
    parser.add_argument("--admin-password")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")

    init_db()

    if args.admin_email:
        if not args.admin_password:
            parser.error("--admin-password is required with --admin-email")
        create_admin(args.admin_username, args.admin_email, args.admin_password)

    return 0


if __name__ == "__main__":
    sys.exit(main())
