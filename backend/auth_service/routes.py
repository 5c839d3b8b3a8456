"""
Authentication service route handlers.

Provides routes for:
- User registration
- User login
- Profile retrieval (/api/users/profile)

Business rules live in `auth_service.service`; JWT logic in `auth_service.utils`.
"""

import logging
from typing import Tuple, Dict, Any

from flask import Blueprint, request, jsonify, Response

from backend.auth_service import service
from backend.auth_service.utils import bearer_token_from_request, verify_token_from_request

auth_bp = Blueprint("auth", __name__)
users_bp = Blueprint("users", __name__)


# --- REQUEST LOGGING ---
@auth_bp.before_request
@users_bp.before_request
def before_request() -> None:
    """
    Log every incoming request method and path to the authentication service.
    Headers are left out so tokens never end up in the logs.
    """
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
@users_bp.after_request
def after_request(response: Response) -> Response:
    """
    Log the response status code for every request.

    Args:
        response (Response): The Flask response object.

    Returns:
        Response: The passed-through response object.
    """
    logging.info(f"[Auth] Response {response.status}")
    return response


# --- REGISTER ---
@auth_bp.route("/register", methods=["POST"])
def register() -> Tuple[Response, int]:
    """
    Register a new user in the system.

    Expects a JSON body with:
    - username (str)
    - email (str): Unique email address.
    - password (str)

    Returns:
        201: The created user (id, username, email, isAdmin).
        400: Missing fields or email already exists.
        500: Server-side error (hashing or database).
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}

    user = service.register(data.get("username"), data.get("email"), data.get("password"))

    return jsonify(user), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        200: JSON with the token.
        400: Missing credentials.
        401: Invalid credentials (wrong password or email).
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}

    token = service.login(data.get("email"), data.get("password"))

    return jsonify({"token": token}), 200


# --- GET CURRENT USER ---
@users_bp.route("/profile", methods=["GET"])
def get_profile() -> Tuple[Response, int]:
    """
    Retrieve the current user's profile.

    Requires Authorization header: Bearer <token>

    Returns:
        200: User profile object.
        401: Authentication failure.
        404: User not found in DB.
    """
    verify_token_from_request()

    user = service.get_profile(bearer_token_from_request())

    return jsonify(user), 200
