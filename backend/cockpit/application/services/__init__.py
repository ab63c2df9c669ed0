from .project_sync_service import ProjectSyncService, SyncMode, SyncResult
from .profile_service import CarpenterProfileService
from .workshop_service import ChatOutcome, ToolOutcome, WorkshopService
from .sse_manager import SSEManager

__all__ = [
    "ProjectSyncService",
    "SyncMode",
    "SyncResult",
    "CarpenterProfileService",
    "ChatOutcome",
    "ToolOutcome",
    "WorkshopService",
    "SSEManager",
]
