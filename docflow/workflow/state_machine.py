"""
Artifact lifecycle state machine.

The six states and the transition table are defined here once and shared by
every caller. Functions in this module are pure: they take statuses and slot
outcomes and return statuses, leaving persistence to the service layer.

    draft --submit--> pending
    pending --approve--> approved        (aggregated over recipient slots)
    pending --reject--> rejected
    pending --sendBack--> sent_back
    pending --requestSignature--> need_signature
    sent_back --resubmit--> pending
    need_signature --provideSignature--> approved   (aggregated)
"""

from typing import Dict, FrozenSet, Iterable, Tuple

from .enums import Action, ArtifactStatus, SlotStatus

TERMINAL_STATES: FrozenSet[ArtifactStatus] = frozenset(
    {ArtifactStatus.APPROVED, ArtifactStatus.REJECTED}
)

RECOVERABLE_STATES: FrozenSet[ArtifactStatus] = frozenset(
    {ArtifactStatus.SENT_BACK, ArtifactStatus.NEED_SIGNATURE}
)

# States in which the creator may still edit content.
EDITABLE_STATES: FrozenSet[ArtifactStatus] = frozenset(
    {ArtifactStatus.DRAFT, ArtifactStatus.PENDING, ArtifactStatus.SENT_BACK}
)

# States in which the recipient list may be rewritten.
ROUTABLE_STATES: FrozenSet[ArtifactStatus] = frozenset(
    {ArtifactStatus.DRAFT, ArtifactStatus.SENT_BACK}
)

# (from, action) -> nominal target. Aggregation over recipient slots may keep
# an approve or signature in ``pending`` until every recipient has settled.
TRANSITIONS: Dict[Tuple[ArtifactStatus, Action], ArtifactStatus] = {
    (ArtifactStatus.DRAFT, Action.SUBMIT): ArtifactStatus.PENDING,
    (ArtifactStatus.PENDING, Action.APPROVE): ArtifactStatus.APPROVED,
    (ArtifactStatus.PENDING, Action.REJECT): ArtifactStatus.REJECTED,
    (ArtifactStatus.PENDING, Action.SEND_BACK): ArtifactStatus.SENT_BACK,
    (ArtifactStatus.PENDING, Action.REQUEST_SIGNATURE): ArtifactStatus.NEED_SIGNATURE,
    (ArtifactStatus.SENT_BACK, Action.RESUBMIT): ArtifactStatus.PENDING,
    (ArtifactStatus.NEED_SIGNATURE, Action.PROVIDE_SIGNATURE): ArtifactStatus.APPROVED,
}

# Reviewer actions that may not be taken without an explanation.
COMMENT_REQUIRED: FrozenSet[Action] = frozenset({Action.REJECT, Action.SEND_BACK})

# Slot outcome recorded for each reviewer action.
SLOT_OUTCOMES: Dict[Action, SlotStatus] = {
    Action.APPROVE: SlotStatus.APPROVED,
    Action.REJECT: SlotStatus.REJECTED,
    Action.SEND_BACK: SlotStatus.SENT_BACK,
    Action.REQUEST_SIGNATURE: SlotStatus.NEED_SIGNATURE,
}

APPROVAL_POLICIES = ("all", "any")


def is_terminal(status: ArtifactStatus) -> bool:
    return ArtifactStatus(status) in TERMINAL_STATES


def can_transition(status: ArtifactStatus, action: Action) -> bool:
    """Return True if ``action`` is legal from ``status``."""
    return (ArtifactStatus(status), Action(action)) in TRANSITIONS


def next_status(status: ArtifactStatus, action: Action) -> ArtifactStatus:
    """Return the nominal target of ``action`` from ``status``.

    Raises:
        KeyError: if the transition is not defined.
    """
    return TRANSITIONS[(ArtifactStatus(status), Action(action))]


def allowed_actions(status: ArtifactStatus) -> FrozenSet[Action]:
    """All actions with a defined transition out of ``status``."""
    status = ArtifactStatus(status)
    return frozenset(action for (src, action) in TRANSITIONS if src == status)


def aggregate_status(
    slot_statuses: Iterable[SlotStatus], policy: str = "all"
) -> ArtifactStatus:
    """Derive an artifact's status from its recipient slots.

    Rules, in order of precedence:
    - any rejection rejects the artifact;
    - any send-back sends it back;
    - any outstanding signature request means it needs a signature;
    - with policy ``all`` it is approved once every slot approved,
      with ``any`` once at least one slot approved;
    - otherwise it is still pending.
    """
    if policy not in APPROVAL_POLICIES:
        raise ValueError(f"Unknown approval policy: {policy!r}")

    statuses = [SlotStatus(s) for s in slot_statuses]
    if not statuses:
        return ArtifactStatus.PENDING
    if SlotStatus.REJECTED in statuses:
        return ArtifactStatus.REJECTED
    if SlotStatus.SENT_BACK in statuses:
        return ArtifactStatus.SENT_BACK
    if SlotStatus.NEED_SIGNATURE in statuses:
        return ArtifactStatus.NEED_SIGNATURE

    approved = [s == SlotStatus.APPROVED for s in statuses]
    if policy == "all" and all(approved):
        return ArtifactStatus.APPROVED
    if policy == "any" and any(approved):
        return ArtifactStatus.APPROVED
    return ArtifactStatus.PENDING
