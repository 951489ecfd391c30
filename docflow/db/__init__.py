"""
Database package for docflow.
"""

from .audit_models import AuditLogModel
from .base import Base, create_tables, get_db, get_engine, get_session_local
from .models import (
    ArtifactModel,
    AttachmentModel,
    CommentModel,
    RecipientSlotModel,
)

__all__ = [
    "Base",
    "create_tables",
    "get_db",
    "get_engine",
    "get_session_local",
    "ArtifactModel",
    "AttachmentModel",
    "AuditLogModel",
    "CommentModel",
    "RecipientSlotModel",
]
