"""Single source of truth for all configuration and secrets.

All modules import from here, never from os.environ directly.

Values come from a plain .env file at secrets/internal.env (chmod 600),
or the file named by LISTKEEPER_ENV_FILE. Process environment variables
take precedence over the file.
"""

import os
from pathlib import Path

from dotenv import dotenv_values

PROJECT_ROOT = Path(__file__).resolve().parent.parent

ENV_FILE = Path(os.environ.get("LISTKEEPER_ENV_FILE", PROJECT_ROOT / "secrets" / "internal.env"))


def _load(path: Path) -> dict[str, str | None]:
    """Load the env file (if present) with environment overrides applied."""
    values = dict(dotenv_values(path)) if path.exists() else {}
    values.update(os.environ)
    return values


_settings = _load(ENV_FILE)

# --- Mailchimp ---
MAILCHIMP_API_KEY: str = _settings.get("MAILCHIMP_API_KEY") or ""
MAILCHIMP_BASE_URL: str = _settings.get("MAILCHIMP_BASE_URL") or ""
REMOTE_TIMEOUT: float = float(_settings.get("REMOTE_TIMEOUT") or "30")

# --- Cache ---
CACHE_DB_PATH: str = _settings.get("CACHE_DB_PATH") or str(PROJECT_ROOT / "data" / "cache.db")
LIST_COUNTS_CACHE_TTL: int = int(_settings.get("LIST_COUNTS_CACHE_TTL") or "1200")
