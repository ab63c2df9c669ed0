from .project_repository import SQLAlchemyProjectStore
from .profile_repository import SQLAlchemyProfileStore

__all__ = [
    "SQLAlchemyProjectStore",
    "SQLAlchemyProfileStore",
]
