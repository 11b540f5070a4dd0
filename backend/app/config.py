"""Application configuration with environment variable support.

All settings can be overridden via environment variables prefixed with ``IDEAFLOW_``,
or via a ``.env`` file in the project root.

Examples::

    IDEAFLOW_PORT=9000 ideaflow start
    IDEAFLOW_DATA_DIR=/var/data/ideaflow ideaflow start
    IDEAFLOW_LOG_LEVEL=DEBUG ideaflow start
    IDEAFLOW_DATABASE_URL_OVERRIDE=postgresql+asyncpg://... ideaflow start
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root: two levels up from this file (backend/app/config.py -> ideaflow/)
_BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """IdeaFlow configuration — all values overridable via env vars."""

    model_config = SettingsConfigDict(
        env_prefix="IDEAFLOW_",
        env_file=str(_BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Paths
    data_dir: Path = _BASE_DIR / "data"

    # Logging
    log_level: str = "INFO"

    # Full SQLAlchemy async URL; when unset a SQLite file in data_dir is used
    database_url_override: str | None = None

    # Review pipeline
    quick_approve_rating: int = 5
    early_review_hours: int = 24
    # Reviews a challenge submission needs before it can be approved or rejected
    challenge_min_reviews: int = 2

    # Gamification
    leaderboard_limit: int = 10

    @property
    def db_path(self) -> Path:
        return self.data_dir / "ideaflow.db"

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return f"sqlite+aiosqlite:///{self.db_path}"


# Singleton instance — import this everywhere
settings = Settings()

BASE_DIR = _BASE_DIR
DATA_DIR = settings.data_dir
DATABASE_URL = settings.database_url

API_HOST = settings.host
API_PORT = settings.port
