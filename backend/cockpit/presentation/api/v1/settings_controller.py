"""Settings API controller — manage the assistant model choices."""

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from cockpit.application.services.settings_service import (
    MODEL_KEYS,
    MODEL_LABELS,
    get_model_settings,
    update_model_settings,
    fetch_available_models,
)
from cockpit.domain.exceptions import AssistantUnavailableError, ChatProviderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


# ── Schemas ──────────────────────────────────────────────────────────

class ModelSettingsResponse(BaseModel):
    """Current model settings with labels."""
    models: dict[str, str]           # key → current model id
    labels: dict[str, str]           # key → human-friendly label
    restart_required: bool = False


class ModelSettingsUpdate(BaseModel):
    """Payload for updating model selections."""
    models: dict[str, str]


class AvailableModel(BaseModel):
    id: str
    name: str


# ── Endpoints ────────────────────────────────────────────────────────

@router.get("/models", response_model=ModelSettingsResponse)
async def get_models():
    """Return the current model for each assistant capability."""
    return ModelSettingsResponse(
        models=get_model_settings(),
        labels=MODEL_LABELS,
    )


@router.put("/models", response_model=ModelSettingsResponse)
async def put_models(body: ModelSettingsUpdate):
    """Update model settings; they take effect on the next start."""
    unknown = set(body.models.keys()) - set(MODEL_KEYS)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown model keys: {', '.join(sorted(unknown))}",
        )

    updated = update_model_settings(body.models)
    return ModelSettingsResponse(
        models=updated,
        labels=MODEL_LABELS,
        restart_required=True,
    )


@router.get("/available-models", response_model=list[AvailableModel])
async def get_available_models():
    """Fetch the list of available models from OpenRouter."""
    try:
        models = await fetch_available_models()
    except AssistantUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    except ChatProviderError as exc:
        logger.warning("Failed to fetch OpenRouter models: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to fetch models from OpenRouter: {exc.message}",
        )
    return [AvailableModel(**m) for m in models]
