"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. **Environment variables**: e.g., INFLUENCE_DB_PATH=/tmp/influence.db
#   2. **.env file**: key=value lines in the project root .env file
#
# Field ``influence_db_path`` maps to env var ``INFLUENCE_DB_PATH``.
# Defaults below apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Influence graph cache settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Influence Graph Cache ===
    influence_db_path: str = "data/influence.db"

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"
