"""
Canonical workflow enums.

These enums define the allowed values for artifact fields. The database layer
mirrors them as SQL enums so no other value can ever be stored.
"""

from enum import Enum


class ArtifactKind(str, Enum):
    """What was submitted: an inter-department request or an uploaded file."""

    REQUEST = "request"
    FILE = "file"


class ArtifactStatus(str, Enum):
    """Lifecycle state of an artifact."""

    DRAFT = "draft"
    PENDING = "pending"
    NEED_SIGNATURE = "need_signature"
    SENT_BACK = "sent_back"
    APPROVED = "approved"
    REJECTED = "rejected"


class SlotStatus(str, Enum):
    """Outcome of a single recipient's review."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SENT_BACK = "sent_back"
    NEED_SIGNATURE = "need_signature"


class Action(str, Enum):
    """Workflow actions.

    The reviewer actions (``approve``, ``reject``, ``sendBack``,
    ``requestSignature``) are the ones accepted by ``take_action``; the rest
    are performed by the creator through dedicated operations.
    """

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    SEND_BACK = "sendBack"
    REQUEST_SIGNATURE = "requestSignature"
    RESUBMIT = "resubmit"
    PROVIDE_SIGNATURE = "provideSignature"


REVIEWER_ACTIONS = frozenset(
    {Action.APPROVE, Action.REJECT, Action.SEND_BACK, Action.REQUEST_SIGNATURE}
)


class Priority(str, Enum):
    """Priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Category(str, Enum):
    """What the artifact is about."""

    APPROVAL = "approval"
    BUDGET = "budget"
    SUPPORT = "support"
    POLICY = "policy"
    PROCUREMENT = "procurement"
    OTHER = "other"


class RecipientKind(str, Enum):
    """Recipients are either whole departments or specific reviewers."""

    DEPARTMENT = "department"
    USER = "user"


class Role(str, Enum):
    """Roles supplied by the identity layer."""

    ADMIN = "admin"
    DIRECTOR = "director"
    DEPARTMENT = "department"


class SignatureType(str, Enum):
    """How a signature was captured."""

    TEXT = "text"
    DRAW = "draw"
    UPLOAD = "upload"
