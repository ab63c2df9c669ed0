"""Application service for runtime model settings management.

Reads/writes the assistant model choices to a JSON file so they persist
across restarts without touching the local store.
"""

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from cockpit.config import get_settings
from cockpit.domain.exceptions import AssistantUnavailableError, ChatProviderError

logger = logging.getLogger(__name__)

SETTINGS_FILE = Path("data/settings.json")

MODEL_KEYS = [
    "assistant_model",
    "image_model",
    "speech_model",
    "search_model",
]

MODEL_LABELS = {
    "assistant_model": "Yara (chat, BOM, contratos)",
    "image_model": "Renderização",
    "speech_model": "Voz",
    "search_model": "Pesquisa de fornecedores",
}


def _read_overrides() -> dict[str, Any]:
    """Read the JSON overrides file, returning {} if missing or corrupt."""
    if not SETTINGS_FILE.exists():
        return {}
    try:
        return json.loads(SETTINGS_FILE.read_text("utf-8"))
    except (OSError, ValueError):
        logger.warning("Could not read %s — using defaults", SETTINGS_FILE)
        return {}


def _write_overrides(data: dict[str, Any]) -> None:
    SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_FILE.write_text(json.dumps(data, indent=2), encoding="utf-8")


def get_model_settings() -> dict[str, str]:
    """Return the effective model id for each assistant capability."""
    defaults = get_settings()
    overrides = _read_overrides()
    return {
        key: overrides.get(key, getattr(defaults, key))
        for key in MODEL_KEYS
    }


def update_model_settings(updates: dict[str, str]) -> dict[str, str]:
    """Persist model overrides and return the new effective values.

    Unknown keys and blank values are ignored. The Settings cache is cleared
    so the next gateway built at startup picks the new values up.
    """
    overrides = _read_overrides()
    for key in MODEL_KEYS:
        value = (updates.get(key) or "").strip()
        if value:
            overrides[key] = value
    _write_overrides(overrides)

    get_settings.cache_clear()

    logger.info("Model settings updated: %s", {k: overrides.get(k) for k in MODEL_KEYS})
    return get_model_settings()


async def fetch_available_models(http_client: httpx.AsyncClient | None = None) -> list[dict[str, str]]:
    """Fetch the model catalogue from OpenRouter as {id, name} dicts sorted by name."""
    settings = get_settings()
    if not settings.assistant_enabled:
        raise AssistantUnavailableError()

    headers = {
        "Authorization": f"Bearer {settings.openrouter_api_key}",
        "X-Title": settings.openrouter_app_name,
    }
    client = http_client or httpx.AsyncClient(timeout=15.0)
    try:
        response = await client.get(f"{settings.openrouter_base_url}/models", headers=headers)
    except httpx.HTTPError as exc:
        raise ChatProviderError("openrouter", 503, f"Connection failed: {exc}") from exc
    finally:
        if http_client is None:
            await client.aclose()

    if response.status_code != 200:
        raise ChatProviderError("openrouter", response.status_code, response.text[:300])

    models = [
        {"id": m.get("id", ""), "name": m.get("name", m.get("id", ""))}
        for m in response.json().get("data", [])
    ]
    models.sort(key=lambda m: m["name"].lower())
    return models
