"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from cockpit.presentation.api.v1.endpoints.health import router as health_router
from cockpit.presentation.api.v1.endpoints.clients import router as clients_router
from cockpit.presentation.api.v1.endpoints.workshop import router as workshop_router
from cockpit.presentation.api.v1.endpoints.profile import router as profile_router
from cockpit.presentation.api.v1.settings_controller import router as settings_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(clients_router)
router.include_router(workshop_router)
router.include_router(profile_router)
router.include_router(settings_router)
