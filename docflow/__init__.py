"""
docflow

Approval workflow for requests and files routed between departments.
"""

import importlib.metadata

__version__ = importlib.metadata.version("docflow")

from .workflow import (
    Action,
    Actor,
    ArtifactKind,
    ArtifactStatus,
    Recipient,
    RecipientKind,
    Role,
)
from .workflow.services import ApprovalWorkflow

__all__ = [
    "Action",
    "Actor",
    "ApprovalWorkflow",
    "ArtifactKind",
    "ArtifactStatus",
    "Recipient",
    "RecipientKind",
    "Role",
]
