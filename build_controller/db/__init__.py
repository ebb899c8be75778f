"""
Database package for the build controller.
"""

from .base import Base, get_db, get_engine, get_session_local, init_database
from .models import ResourceModel
from .services import ResourceService, retry_on_conflict

__all__ = [
    "Base",
    "get_db",
    "get_engine",
    "get_session_local",
    "init_database",
    "ResourceModel",
    "ResourceService",
    "retry_on_conflict",
]
