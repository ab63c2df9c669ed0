"""FastAPI dependency injection — wires infrastructure to the application layer.

The long-lived components (storage, remote store, sync session, gateway) are
built once by ``build_context`` in the lifespan and kept on ``app.state``;
the dependency functions below hand them to the controllers.
"""

import logging
from dataclasses import dataclass, field

from fastapi import Depends, HTTPException, Request, status

from cockpit.application.interfaces import SpeechOutput, UnavailableSpeechOutput
from cockpit.application.services import (
    CarpenterProfileService,
    ProjectSyncService,
    SSEManager,
    WorkshopService,
)
from cockpit.config import Settings
from cockpit.infrastructure.database.repositories import SQLAlchemyProfileStore, SQLAlchemyProjectStore
from cockpit.infrastructure.database.session import StorageContext
from cockpit.infrastructure.llm import OpenRouterAssistantGateway
from cockpit.infrastructure.openrouter import OpenRouterClient
from cockpit.infrastructure.remote import FirestoreRestClient
from cockpit.infrastructure.speech_output import BroadcastSpeechOutput

logger = logging.getLogger(__name__)


@dataclass
class CockpitContext:
    """Everything one running service owns, opened and closed together."""

    settings: Settings
    storage: StorageContext
    sync: ProjectSyncService
    workshop: WorkshopService
    profiles: CarpenterProfileService
    sse: SSEManager
    remote: FirestoreRestClient | None = None
    startup_notices: list[str] = field(default_factory=list)

    async def close(self) -> None:
        await self.workshop.close()
        await self.sync.stop()
        await self.sse.shutdown()
        if self.remote is not None:
            await self.remote.close()
        await self.storage.close()


def build_context(settings: Settings) -> CockpitContext:
    """Construct (but do not open) the service graph from settings."""
    storage = StorageContext(settings.database_url, echo=False)
    project_store = SQLAlchemyProjectStore(storage)
    profile_store = SQLAlchemyProfileStore(storage, settings.profile_email)
    sse = SSEManager()

    remote = None
    if settings.remote_store_enabled:
        remote = FirestoreRestClient(
            api_key=settings.firebase_api_key.strip(),
            project_id=settings.firebase_project_id.strip(),
            app_id=settings.firebase_app_id,
            firestore_base_url=settings.firestore_base_url,
            identity_toolkit_url=settings.identity_toolkit_url,
            secure_token_url=settings.secure_token_url,
            poll_interval=settings.remote_poll_interval,
        )
    else:
        logger.warning("Firebase credentials missing or invalid — cloud sync disabled")

    provider = None
    if settings.assistant_enabled:
        provider = OpenRouterClient(
            api_key=settings.openrouter_api_key.strip(),
            base_url=settings.openrouter_base_url,
            app_name=settings.openrouter_app_name,
        )
    else:
        logger.warning("OPENROUTER_API_KEY is not configured; the assistant runs in offline mode.")

    speech: SpeechOutput = BroadcastSpeechOutput(sse) if settings.speech_enabled else UnavailableSpeechOutput()
    gateway = OpenRouterAssistantGateway(
        provider,
        assistant_model=settings.assistant_model,
        image_model=settings.image_model,
        speech_model=settings.speech_model,
        search_model=settings.search_model,
        speech_voice=settings.speech_voice,
        speech_output=speech,
    )

    sync = ProjectSyncService(project_store, remote)
    profiles = CarpenterProfileService(profile_store, settings.profile_email)
    return CockpitContext(
        settings=settings,
        storage=storage,
        sync=sync,
        workshop=WorkshopService(sync, gateway, profiles),
        profiles=profiles,
        sse=sse,
        remote=remote,
    )


def get_context(request: Request) -> CockpitContext:
    context = getattr(request.app.state, "cockpit", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return context


def get_sync_service(context: CockpitContext = Depends(get_context)) -> ProjectSyncService:
    return context.sync


def get_workshop_service(context: CockpitContext = Depends(get_context)) -> WorkshopService:
    return context.workshop


def get_profile_service(context: CockpitContext = Depends(get_context)) -> CarpenterProfileService:
    return context.profiles


def get_sse_manager(context: CockpitContext = Depends(get_context)) -> SSEManager:
    return context.sse
