"""
Common workflow primitives.

These are the building blocks shared by the artifact schemas and the service.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, constr
from ulid import ULID

from .enums import RecipientKind, Role


def generate_ulid() -> str:
    """Generate a ULID for object IDs.

    ULIDs are lexicographically sortable and globally unique.
    """
    return str(ULID())


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class Actor(BaseModel):
    """The authenticated user performing an operation.

    Supplied by the identity layer on every call; used for authorization
    checks and for attribution in comments and the audit log.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    actor_id: constr(min_length=1, max_length=128) = Field(
        ..., description="Unique identifier for the user"
    )
    role: Role = Field(Role.DEPARTMENT, description="Role of the user")
    department_id: Optional[constr(min_length=1, max_length=128)] = Field(
        None, description="Department the user belongs to"
    )
    display: Optional[constr(min_length=1, max_length=256)] = Field(
        None, description="Human-readable display name"
    )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class Recipient(BaseModel):
    """A department or reviewer an artifact is routed to."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: RecipientKind = Field(..., description="department or user")
    id: constr(min_length=1, max_length=128) = Field(
        ..., description="Department ID or user ID"
    )
    display: Optional[constr(min_length=1, max_length=256)] = Field(
        None, description="Human-readable name"
    )

    @property
    def key(self) -> tuple:
        """Identity of the recipient; display names do not count."""
        return (RecipientKind(self.kind).value, self.id)

    def matches(self, actor: Actor) -> bool:
        """Whether ``actor`` may review on behalf of this recipient.

        A user recipient is matched by ID. A department recipient is matched
        by any director of that department.
        """
        if self.kind == RecipientKind.USER:
            return actor.actor_id == self.id
        return actor.role == Role.DIRECTOR and actor.department_id == self.id
