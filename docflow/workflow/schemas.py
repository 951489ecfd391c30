"""
Artifact schemas.

Pydantic models for the payloads the workflow accepts and the shapes it
returns. None of the input schemas expose ``status``, ``signature`` or
``comments`` as writable fields: those only change through workflow
operations.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator

from .enums import (
    Action,
    ArtifactKind,
    ArtifactStatus,
    Category,
    Priority,
    SignatureType,
    SlotStatus,
)
from .primitives import Actor, Recipient


def _unique_recipients(recipients: List[Recipient]) -> List[Recipient]:
    seen = set()
    for recipient in recipients:
        if recipient.key in seen:
            raise ValueError(f"Duplicate recipient: {recipient.kind.value}:{recipient.id}")
        seen.add(recipient.key)
    return recipients


class AttachmentDescriptor(BaseModel):
    """Metadata for a stored attachment. The bytes live elsewhere."""

    model_config = ConfigDict(extra="forbid")

    name: constr(min_length=1, max_length=256) = Field(..., description="File name")
    size_bytes: int = Field(..., ge=0, description="Size in bytes")
    media_type: constr(min_length=1, max_length=128) = Field(
        ..., description="MIME type (e.g., 'application/pdf')"
    )
    uri: constr(min_length=1, max_length=2000) = Field(
        ..., description="Storage locator"
    )


class ArtifactCreate(BaseModel):
    """Schema for creating a new artifact.

    Title, description and recipients may be left empty for drafts; they are
    enforced at submission.
    """

    model_config = ConfigDict(extra="forbid")

    kind: ArtifactKind = ArtifactKind.REQUEST
    title: constr(max_length=512) = ""
    description: str = ""
    category: Category = Category.APPROVAL
    priority: Priority = Priority.MEDIUM
    target_recipients: List[Recipient] = Field(default_factory=list)
    requires_signature: bool = False
    attachments: List[AttachmentDescriptor] = Field(default_factory=list)

    @field_validator("target_recipients")
    @classmethod
    def _check_recipients(cls, value):
        return _unique_recipients(value)


class ArtifactPatch(BaseModel):
    """Fields the creator may change while the artifact is editable.

    Unset fields are left alone.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[constr(max_length=512)] = None
    description: Optional[str] = None
    category: Optional[Category] = None
    priority: Optional[Priority] = None
    target_recipients: Optional[List[Recipient]] = None
    requires_signature: Optional[bool] = None
    attachments: Optional[List[AttachmentDescriptor]] = None

    @field_validator("target_recipients")
    @classmethod
    def _check_recipients(cls, value):
        if value is None:
            return value
        return _unique_recipients(value)


class ActionRequest(BaseModel):
    """A reviewer action on an artifact."""

    model_config = ConfigDict(extra="forbid")

    action: Action
    comment: Optional[str] = None
    expected_version: Optional[int] = Field(None, ge=1)


class SignaturePayload(BaseModel):
    """A signature supplied by the creator."""

    model_config = ConfigDict(extra="forbid")

    type: SignatureType = SignatureType.TEXT
    data: constr(min_length=1) = Field(
        ..., description="Typed name, data URL of a drawing, or storage locator"
    )


class SignatureRequest(SignaturePayload):
    expected_version: Optional[int] = Field(None, ge=1)


class CommentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str


class EditRequest(ArtifactPatch):
    expected_version: Optional[int] = Field(None, ge=1)


class Comment(BaseModel):
    """One entry of an artifact's audit trail."""

    seq: int
    author: Actor
    timestamp: datetime
    text: str
    is_signature: bool = False
    action: Optional[Action] = None


class ReviewerSlot(BaseModel):
    recipient: Recipient
    status: SlotStatus
    acted_by: Optional[str] = None
    action_comment: Optional[str] = None
    acted_at: Optional[datetime] = None
    signature_requested: bool = False


class Signature(BaseModel):
    type: SignatureType
    data: str
    signed_by: str
    signed_at: datetime


class Artifact(BaseModel):
    """Read model of an artifact as returned to callers."""

    id: str
    kind: ArtifactKind
    title: str
    description: str
    category: Category
    priority: Priority
    status: ArtifactStatus
    created_by: Actor
    target_recipients: List[ReviewerSlot]
    requires_signature: bool
    signature_provided: bool
    signature: Optional[Signature] = None
    attachments: List[AttachmentDescriptor]
    comments: List[Comment]
    version: int
    created_at: datetime
    updated_at: datetime
    submitted_at: Optional[datetime] = None
