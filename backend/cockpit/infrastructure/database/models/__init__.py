from .project import ProjectModel
from .carpenter_profile import CarpenterProfileModel
from .store_meta import StoreMetaModel

__all__ = [
    "ProjectModel",
    "CarpenterProfileModel",
    "StoreMetaModel",
]
