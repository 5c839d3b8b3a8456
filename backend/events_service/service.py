"""
Event and RSVP logic: create/delete events (admin only), list events,
and toggle a user's RSVP.

Every mutating call runs in a single transaction, so an RSVP toggle or an
event deletion either fully applies or not at all.
"""

import logging
from datetime import date, time
from typing import Any, Dict, Iterator, Optional

from backend.database.db_connection import transaction
from backend.auth_service.utils import Identity, require_admin
from backend.errors import NotFoundError, ValidationError

# --- CONSTANTS FOR VALIDATION ---
REQUIRED_FIELDS = ("name", "description", "date", "time", "location")
NAME_MAX_LENGTH = 200
FETCH_BATCH_SIZE = 100

EVENT_COLUMNS = """
    e.id, e.name, e.description, e.date, e.time, e.location, e.created_by,
    (SELECT COUNT(*) FROM rsvps r WHERE r.event_id = e.id) AS attendee_count,
    EXISTS (
        SELECT 1 FROM rsvps r WHERE r.event_id = e.id AND r.user_id = %s
    ) AS rsvped
"""


def _iso(value: Any) -> Any:
    return value.isoformat() if hasattr(value, "isoformat") else value


def event_to_dict(row: Dict[str, Any]) -> Dict[str, Any]:
    """Project an events row (with aggregates) to its JSON shape."""
    return {
        "id": row["id"],
        "name": row["name"],
        "description": row["description"],
        "date": _iso(row["date"]),
        "time": _iso(row["time"]),
        "location": row["location"],
        "createdBy": row["created_by"],
        "attendeeCount": int(row.get("attendee_count") or 0),
        "rsvped": bool(row.get("rsvped")),
    }


def _validate_event(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check the payload of a new event and parse its date and time.

    Raises:
        ValidationError: A field is missing or malformed.
    """
    fields = {}
    for key in REQUIRED_FIELDS:
        value = data.get(key)
        if isinstance(value, str):
            value = value.strip()
        fields[key] = value

    missing = [key for key in REQUIRED_FIELDS if fields[key] is None or fields[key] == ""]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    malformed = [key for key in REQUIRED_FIELDS if not isinstance(fields[key], str)]
    if malformed:
        raise ValidationError(f"Fields must be strings: {', '.join(malformed)}")

    if len(fields["name"]) > NAME_MAX_LENGTH:
        raise ValidationError(f"Name must be {NAME_MAX_LENGTH} characters or less.")

    try:
        fields["date"] = date.fromisoformat(str(fields["date"]))
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD.")

    try:
        fields["time"] = time.fromisoformat(str(fields["time"]))
    except ValueError:
        raise ValidationError("Invalid time format. Use HH:MM.")

    return fields


# --- CREATE ---
def create_event(identity: Identity, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create an event. Admin only.

    Raises:
        ForbiddenError: The caller is not an admin.
        ValidationError: A required field is missing or malformed.
    """
    require_admin(identity)
    fields = _validate_event(data or {})

    sql = """
        INSERT INTO events (name, description, date, time, location, created_by)
        VALUES (%s, %s, %s, %s, %s, %s)
        RETURNING id, name, description, date, time, location, created_by;
    """

    with transaction() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, (
                fields["name"], fields["description"], fields["date"],
                fields["time"], fields["location"], identity.user_id
            ))
            event = cur.fetchone()

    logging.info(f"[Events] User {identity.user_id} created event {event['id']}")
    return event_to_dict(event)


# --- DELETE ---
def delete_event(identity: Identity, event_id: int) -> None:
    """
    Delete an event and every RSVP pointing at it. Admin only.

    Raises:
        ForbiddenError: The caller is not an admin.
        NotFoundError: No such event.
    """
    require_admin(identity)

    with transaction() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT id FROM events WHERE id = %s FOR UPDATE;", (event_id,))
            if not cur.fetchone():
                raise NotFoundError("Event not found")

            # rsvps.event_id also cascades on delete
            cur.execute("DELETE FROM rsvps WHERE event_id = %s;", (event_id,))
            cur.execute("DELETE FROM events WHERE id = %s;", (event_id,))

    logging.info(f"[Events] User {identity.user_id} deleted event {event_id}")


# --- LIST ---
class EventListing:
    """
    Lazy listing of all events, ordered by date and time.

    Iterating runs the query on a server-side cursor and fetches rows in
    batches of FETCH_BATCH_SIZE. Each new iteration re-runs the query, so a
    listing can be consumed more than once. An empty iteration means there
    are no events; failures raise instead.
    """

    def __init__(self, identity: Optional[Identity] = None):
        self.user_id = identity.user_id if identity else None

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        sql = f"SELECT {EVENT_COLUMNS} FROM events e ORDER BY e.date, e.time, e.id;"

        with transaction() as conn:
            with conn.cursor(name="events_listing") as cur:
                cur.execute(sql, (self.user_id,))
                while True:
                    rows = cur.fetchmany(FETCH_BATCH_SIZE)
                    if not rows:
                        break
                    for row in rows:
                        yield event_to_dict(row)


def list_events(identity: Optional[Identity] = None) -> EventListing:
    """
    All events with attendee counts, and whether `identity` has RSVPed.
    """
    return EventListing(identity)


def get_event(event_id: int, identity: Optional[Identity] = None) -> Dict[str, Any]:
    """
    Raises:
        NotFoundError: No such event.
    """
    sql = f"SELECT {EVENT_COLUMNS} FROM events e WHERE e.id = %s;"
    user_id = identity.user_id if identity else None

    with transaction() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, (user_id, event_id))
            event = cur.fetchone()

    if not event:
        raise NotFoundError("Event not found")

    return event_to_dict(event)


# --- RSVP ---
def toggle_rsvp(identity: Identity, event_id: int) -> Dict[str, Any]:
    """
    Flip the caller's attendance of an event.

    Adds the caller if absent and removes them if present. The event row is
    locked for the duration, so concurrent toggles on one event serialize.

    Returns:
        dict: {"rsvped": bool, "attendeeCount": int}

    Raises:
        NotFoundError: No such event.
    """
    with transaction() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT id FROM events WHERE id = %s FOR UPDATE;", (event_id,))
            if not cur.fetchone():
                raise NotFoundError("Event not found")

            cur.execute(
                "DELETE FROM rsvps WHERE user_id = %s AND event_id = %s;",
                (identity.user_id, event_id)
            )
            rsvped = cur.rowcount == 0

            if rsvped:
                cur.execute(
                    """
                    INSERT INTO rsvps (user_id, event_id)
                    VALUES (%s, %s)
                    ON CONFLICT (user_id, event_id) DO NOTHING;
                    """,
                    (identity.user_id, event_id)
                )

            cur.execute(
                "SELECT COUNT(*) AS attendee_count FROM rsvps WHERE event_id = %s;",
                (event_id,)
            )
            attendee_count = cur.fetchone()["attendee_count"]

    logging.info(
        f"[Events] User {identity.user_id} "
        f"{'joined' if rsvped else 'left'} event {event_id}"
    )
    return {"rsvped": rsvped, "attendeeCount": int(attendee_count)}
