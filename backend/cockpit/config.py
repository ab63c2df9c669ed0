import json
import logging
from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache

_config_logger = logging.getLogger(__name__)

_SETTINGS_FILE = Path("data/settings.json")
_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)
_MODEL_KEYS = frozenset({
    "assistant_model",
    "image_model",
    "speech_model",
    "search_model",
})

# Placeholder key shipped in public templates; never a real credential.
_PLACEHOLDER_API_KEY_MARKER = "AIzaSyDFx"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Cockpit Yara API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Local store (embedded, per device)
    database_url: str = "sqlite:///data/cockpit_local.db"

    # Remote store (Firestore); cloud sync runs only with valid credentials
    firebase_api_key: str = ""
    firebase_project_id: str = ""
    firebase_app_id: str = "marcenapp-cockpit-v1"
    firestore_base_url: str = "https://firestore.googleapis.com/v1"
    identity_toolkit_url: str = "https://identitytoolkit.googleapis.com/v1"
    secure_token_url: str = "https://securetoken.googleapis.com/v1"
    remote_poll_interval: float = 3.0

    # OpenRouter configuration (assistant gateway)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_app_name: str = "Cockpit Yara"

    # LLM models via OpenRouter
    assistant_model: str = "google/gemini-3-flash-preview"
    image_model: str = "google/gemini-2.5-flash-image"
    speech_model: str = "openai/gpt-4o-audio-preview"
    search_model: str = "google/gemini-3-flash-preview"
    speech_voice: str = "alloy"
    speech_enabled: bool = True  # push synthesized replies to connected UIs

    # Carpenter profile identity (singleton key in the local store)
    profile_email: str = "mestre@oficina.digital"

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine SQL queries
    log_level_http: str = "WARNING"          # httpx / httpcore outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_sync: str = "INFO"             # sync orchestrator + remote store
    log_level_openrouter: str = "INFO"       # OpenRouter assistant gateway

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    def model_post_init(self, __context: object) -> None:
        """Merge runtime overrides from data/settings.json into model settings."""
        if _SETTINGS_FILE.exists():
            try:
                overrides = json.loads(_SETTINGS_FILE.read_text("utf-8"))
                for key in _MODEL_KEYS:
                    if key in overrides and isinstance(overrides[key], str):
                        object.__setattr__(self, key, overrides[key])
            except Exception as exc:
                _config_logger.warning("Could not load settings overrides: %s", exc)

    @property
    def remote_store_enabled(self) -> bool:
        """True when the Firebase credentials look usable.

        Malformed or placeholder credentials keep the session in local mode.
        """
        key = self.firebase_api_key.strip()
        return (
            len(key) > 15
            and _PLACEHOLDER_API_KEY_MARKER not in key
            and bool(self.firebase_project_id.strip())
        )

    @property
    def assistant_enabled(self) -> bool:
        key = self.openrouter_api_key.strip()
        return bool(key) and key != "YOUR_API_KEY"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
