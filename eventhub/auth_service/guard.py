"""
Route guard for the protected part of the application.
"""

from functools import wraps
from typing import Any, Callable

from flask import redirect, render_template, url_for

from eventhub.auth_service.context import AuthContext
from eventhub.gateway.sessions import current_client_session

LOADING = "loading"
UNAUTHENTICATED = "unauthenticated"
AUTHENTICATED = "authenticated"


def guard_state(auth: AuthContext) -> str:
    """Map auth-context state onto one of LOADING, UNAUTHENTICATED, AUTHENTICATED."""
    if auth.is_loading:
        return LOADING
    if auth.current_user is None:
        return UNAUTHENTICATED
    return AUTHENTICATED


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """
    Only run `view` for a signed-in client session.

    While the initial session fetch is pending a placeholder page is served;
    without a user the browser is sent to the auth page.
    """
    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        state = guard_state(current_client_session().auth)
        if state == LOADING:
            return render_template("loading.html"), 200
        if state == UNAUTHENTICATED:
            return redirect(url_for("auth.auth_page"))
        return view(*args, **kwargs)

    return wrapper
