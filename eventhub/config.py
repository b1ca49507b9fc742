"""
Application configuration.
Reads settings from the environment (and a local .env file).
"""

import os
import logging
from typing import Dict, Any

from dotenv import load_dotenv

# Load .env only once here
load_dotenv()

DEFAULT_SECRET_KEY = "dev-secret-change-me"


def load_config() -> Dict[str, Any]:
    """
    Build the Flask config mapping from environment variables.

    Returns:
        dict: Config values for `app.config.update()`.
    """
    secret_key = os.getenv("SECRET_KEY", DEFAULT_SECRET_KEY)
    if secret_key == DEFAULT_SECRET_KEY:
        logging.warning("[Config] SECRET_KEY is not set; using the development default.")

    return {
        "SECRET_KEY": secret_key,
        "SUPABASE_URL": os.getenv("SUPABASE_URL"),
        "SUPABASE_ANON_KEY": os.getenv("SUPABASE_ANON_KEY"),
        "AUTH_INITIAL_WAIT_SECONDS": float(os.getenv("AUTH_INITIAL_WAIT_SECONDS", 0.5)),
        "SESSION_IDLE_MINUTES": int(os.getenv("SESSION_IDLE_MINUTES", 60)),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").upper(),
    }
