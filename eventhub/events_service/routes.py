"""
Dashboard routes: event list, admin event management, registrant drill-down,
registration and sign-out.

Every route here sits behind the route guard. Actions re-render the page in
place; only a full GET loads it afresh.
"""

import logging
from typing import Tuple

from flask import Blueprint, request, redirect, render_template, url_for, Response

from eventhub.auth_service.guard import login_required
from eventhub.events_service.dashboard import DashboardPage
from eventhub.gateway.sessions import current_client_session

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.before_request
def before_request() -> None:
    logging.info(f"[Dashboard] Incoming {request.method} {request.path}")


@dashboard_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Dashboard] Response {response.status}")
    return response


def current_dashboard() -> DashboardPage:
    """Return this browser's dashboard, mounted for whoever is signed in now."""
    session = current_client_session()
    user = session.auth.current_user
    if session.dashboard.user != user:
        session.dashboard.mount(user)
    return session.dashboard


def render_dashboard() -> Tuple[str, int]:
    session = current_client_session()
    return render_template("dashboard.html", page=session.dashboard, user=session.auth.current_user), 200


@dashboard_bp.route("/", methods=["GET"])
@dashboard_bp.route("/<path:path>", methods=["GET"])
@login_required
def index(path: str = "") -> Tuple[str, int]:
    """
    Load the dashboard: fetch the user's role and the event list.

    Any unknown path lands here too.
    """
    session = current_client_session()
    session.dashboard.mount(session.auth.current_user)
    return render_dashboard()


@dashboard_bp.route("/events/form", methods=["POST"])
@login_required
def toggle_event_form() -> Tuple[str, int]:
    current_dashboard().toggle_event_form()
    return render_dashboard()


@dashboard_bp.route("/events", methods=["POST"])
@login_required
def create_event() -> Tuple[str, int]:
    """
    Create an event from the submitted form (admins only).

    Expects form fields: title, description, event_type, start_date,
    end_date, location, max_participants.
    """
    current_dashboard().create_event(request.form.to_dict())
    return render_dashboard()


@dashboard_bp.route("/events/<event_id>/participants", methods=["POST"])
@login_required
def show_participants(event_id: str) -> Tuple[str, int]:
    current_dashboard().fetch_participants(event_id)
    return render_dashboard()


@dashboard_bp.route("/events/<event_id>/register", methods=["POST"])
@login_required
def register(event_id: str) -> Tuple[str, int]:
    current_dashboard().register_for_event(event_id)
    return render_dashboard()


@dashboard_bp.route("/signout", methods=["POST"])
@login_required
def sign_out() -> Response:
    """
    Sign out. The auth context drops the user, so the guard on the next
    page load sends the browser to /auth.
    """
    current_dashboard().sign_out()
    return redirect(url_for("dashboard.index"))
