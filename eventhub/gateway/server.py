"""
Gateway: combines the auth and dashboard blueprints.
This is the local entrypoint for development.
"""

import os
import atexit
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from flask import Flask, jsonify

from eventhub.auth_service.routes import auth_bp
from eventhub.config import load_config
from eventhub.database.backend import Backend, get_backend
from eventhub.events_service.routes import dashboard_bp
from eventhub.gateway.sessions import REGISTRY_KEY, SessionRegistry

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates")


def format_date(value: Optional[datetime]) -> str:
    """Template filter: show a datetime as its date only."""
    if not value:
        return ""
    return value.strftime("%b %d, %Y")


def create_app(
    backend_factory: Optional[Callable[[], Backend]] = None,
    config: Optional[Dict[str, Any]] = None,
) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        backend_factory: Builds one Backend per client session. Defaults to a
            supabase client built from SUPABASE_URL / SUPABASE_ANON_KEY.
        config (dict): Overrides applied on top of the environment config.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__, template_folder=TEMPLATE_DIR)
    app.config.update(load_config())
    if config:
        app.config.update(config)

    # Basic console logging during requests
    logging.basicConfig(level=app.config["LOG_LEVEL"], format="[%(levelname)s] %(asctime)s - %(message)s")

    if backend_factory is None:
        def backend_factory() -> Backend:
            return get_backend(app.config["SUPABASE_URL"], app.config["SUPABASE_ANON_KEY"])

    registry = SessionRegistry(
        backend_factory,
        initial_wait=app.config["AUTH_INITIAL_WAIT_SECONDS"],
        idle_minutes=app.config["SESSION_IDLE_MINUTES"],
    )
    app.extensions[REGISTRY_KEY] = registry
    atexit.register(registry.close_all)

    app.add_template_filter(format_date, "date")

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(dashboard_bp)
    logging.info("All blueprints registered successfully.")

    # --- BASIC HEALTH CHECKPOINT ---
    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("GATEWAY_PORT", 5050))
    app.run(host="0.0.0.0", port=port, debug=True)
