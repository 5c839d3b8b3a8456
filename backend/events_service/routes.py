"""
Events service routes: create, list, delete events, and RSVP.
Handles event lifecycle management and participation.
"""

import logging
from typing import Tuple, Dict, Any

from flask import Blueprint, request, jsonify, Response

from backend.events_service import service
from backend.auth_service.utils import verify_token_from_request, optional_identity_from_request

events_bp = Blueprint("events", __name__)


@events_bp.before_request
def before_request() -> None:
    logging.info(f"[Events] Incoming {request.method} {request.path}")


@events_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Events] Response {response.status}")
    return response


@events_bp.route("/", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    Return all events.

    Anonymous callers get the listing with `rsvped` always false; a valid
    token personalises `rsvped`. An empty list means no events exist.

    Returns:
        200: List of event objects.
    """
    identity = optional_identity_from_request()

    events = list(service.list_events(identity))

    return jsonify(events), 200


@events_bp.route("/<int:event_id>", methods=["GET"])
def get_event(event_id: int) -> Tuple[Response, int]:
    """
    Get a single event by ID.

    Returns:
        200: Event object.
        404: Event not found.
    """
    identity = optional_identity_from_request()

    return jsonify(service.get_event(event_id, identity)), 200


@events_bp.route("/", methods=["POST"])
def create_event() -> Tuple[Response, int]:
    """
    Create an event (admin only).

    Expects JSON with name, description, date (YYYY-MM-DD),
    time (HH:MM) and location.

    Returns:
        201: The created event.
        400: Validation error.
        401: Missing or invalid token.
        403: Caller is not an admin.
    """
    identity = verify_token_from_request()
    data: Dict[str, Any] = request.get_json(silent=True) or {}

    event = service.create_event(identity, data)

    return jsonify(event), 201


@events_bp.route("/<int:event_id>", methods=["DELETE"])
def delete_event(event_id: int) -> Tuple[Response, int]:
    """
    Delete an event and its RSVPs (admin only).

    Returns:
        200: Status deleted.
        401/403: Authentication or permission failure.
        404: Event not found.
    """
    identity = verify_token_from_request()

    service.delete_event(identity, event_id)

    return jsonify({"status": "deleted"}), 200


@events_bp.route("/<int:event_id>/rsvp", methods=["POST"])
def rsvp(event_id: int) -> Tuple[Response, int]:
    """
    Toggle the caller's RSVP to an event.

    Returns:
        200: {"rsvped": bool, "attendeeCount": int}
        401: Missing or invalid token.
        404: Event not found.
    """
    identity = verify_token_from_request()

    return jsonify(service.toggle_rsvp(identity, event_id)), 200
