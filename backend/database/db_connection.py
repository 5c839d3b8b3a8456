"""
PostgreSQL connection helper.
Provides get_db() and transaction() for use by services.
"""

import os
import logging
from contextlib import contextmanager
from typing import Iterator

import psycopg2
from psycopg2.extras import DictCursor
from dotenv import load_dotenv

# Load .env variables from the project root
load_dotenv()


def get_db():
    """
    Returns a new psycopg2 connection with dictionary-based row access.

    This utility ensures consistent connection parameters across services.

    Returns:
        psycopg2.extensions.connection: A connection object with DictCursor factory.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: If connection fails.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")

    try:
        conn = psycopg2.connect(database_url)

        # Rows come back as dictionaries (e.g., {"id": 1, "email": "..."})
        conn.cursor_factory = DictCursor
        return conn
    except psycopg2.Error as e:
        logging.error(f"Error connecting to database: {e}")
        raise


@contextmanager
def transaction() -> Iterator["psycopg2.extensions.connection"]:
    """
    Run a block inside a single database transaction.

    Commits when the block exits normally, rolls back when it raises,
    and always closes the connection afterwards.

    Usage:
        with transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(...)
    """
    conn = get_db()
    try:
        with conn:
            yield conn
    finally:
        conn.close()
