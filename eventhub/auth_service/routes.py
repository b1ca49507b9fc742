"""
Auth page route handlers.

Provides routes for:
- Showing the sign-in / register form
- Submitting it
- Switching between the two modes

All backend calls are delegated to `auth_service.page`.
"""

import logging
from typing import Tuple, Union

from flask import Blueprint, request, redirect, render_template, url_for, Response

from eventhub.gateway.sessions import current_client_session

auth_bp = Blueprint("auth", __name__)


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    """
    Log every incoming request method and path to the auth page.
    Headers are left out: they carry the session cookie.
    """
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
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


# --- SHOW FORM ---
@auth_bp.route("", methods=["GET"])
def auth_page() -> Tuple[str, int]:
    """
    Render the auth form in its current mode.

    Returns:
        200: HTML page.
    """
    page = current_client_session().auth_page
    return render_template("auth.html", page=page), 200


# --- SUBMIT ---
@auth_bp.route("", methods=["POST"])
def submit() -> Union[Response, Tuple[str, int]]:
    """
    Sign in or register, depending on the current mode.

    Expects form fields:
    - email (str)
    - password (str)

    Returns:
        302: Redirect to the application root on success.
        200: The form again, with the backend's error message.
    """
    page = current_client_session().auth_page
    navigate = page.submit(request.form.get("email", ""), request.form.get("password", ""))
    if navigate:
        return redirect(url_for("dashboard.index"))
    return render_template("auth.html", page=page), 200


# --- TOGGLE MODE ---
@auth_bp.route("/mode", methods=["POST"])
def toggle_mode() -> Tuple[str, int]:
    """
    Switch between sign-in and register, keeping whatever was typed.

    The password is echoed back into this one response only; it is never
    stored on the page.
    """
    page = current_client_session().auth_page
    page.toggle_mode(request.form.get("email"))
    return render_template("auth.html", page=page, password=request.form.get("password", "")), 200
