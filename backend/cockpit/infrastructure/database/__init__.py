from .base import Base
from .session import SCHEMA_VERSION, StorageContext
from .models import ProjectModel, CarpenterProfileModel, StoreMetaModel

__all__ = [
    "Base",
    "SCHEMA_VERSION",
    "StorageContext",
    "ProjectModel",
    "CarpenterProfileModel",
    "StoreMetaModel",
]
