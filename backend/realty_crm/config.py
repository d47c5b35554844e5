"""
Runtime configuration.

Environment variables are loaded from .env files (repo root first, then
backend/.env for overrides) and read into a frozen Settings object.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, find_dotenv

PLACEHOLDER_OPENAI_KEY = "your_openai_api_key_here"


def load_environment() -> None:
    """Load .env files without overriding variables already set."""
    try:
        repo_root_env = Path(__file__).resolve().parents[2] / ".env"
        backend_env = Path(__file__).resolve().parents[1] / ".env"
        if repo_root_env.exists():
            load_dotenv(dotenv_path=repo_root_env, override=False)
        if backend_env.exists():
            load_dotenv(dotenv_path=backend_env, override=False)
        # Fall back to auto-discovery upward from the working directory
        if not repo_root_env.exists() and not backend_env.exists():
            load_dotenv(find_dotenv(usecwd=True), override=False)
    except OSError:
        # A missing or unreadable .env must not stop the app from starting
        pass


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str]
    intent_model: str
    chat_model: str
    store_backend: str
    google_cloud_project: Optional[str]
    google_maps_api_key: Optional[str]
    prospect_radius_meters: int
    prospect_request_delay: float
    prospect_retention_days: int
    log_level: str
    environment: str
    frontend_url: str
    cloud_run_frontend_url: Optional[str]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key) and self.openai_api_key != PLACEHOLDER_OPENAI_KEY

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            intent_model=os.getenv("INTENT_MODEL", "gpt-4o-mini"),
            chat_model=os.getenv("CHAT_MODEL", "gpt-4o-mini"),
            store_backend=os.getenv("STORE_BACKEND", "firestore").lower(),
            google_cloud_project=os.getenv("GOOGLE_CLOUD_PROJECT"),
            google_maps_api_key=os.getenv("GOOGLE_MAPS_API_KEY"),
            prospect_radius_meters=int(os.getenv("PROSPECT_SEARCH_RADIUS_METERS", "5000")),
            prospect_request_delay=float(os.getenv("PROSPECT_REQUEST_DELAY_SECONDS", "0.5")),
            prospect_retention_days=int(os.getenv("PROSPECT_RETENTION_DAYS", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            environment=os.getenv("NODE_ENV", "development"),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
            cloud_run_frontend_url=os.getenv("CLOUD_RUN_FRONTEND_URL"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
