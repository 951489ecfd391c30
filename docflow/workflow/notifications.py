"""
Transition notifications.

The workflow informs a ``Notifier`` after each committed change so the outer
system can raise toasts or send email. Notifiers are observers: a failing
notifier is logged and never undoes or fails the operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Protocol

import structlog

from .primitives import Actor, Recipient, utc_now

logger = structlog.get_logger()


@dataclass(frozen=True)
class TransitionEvent:
    """A committed workflow change."""

    artifact_id: str
    operation: str
    actor: Actor
    old_status: Optional[str]
    new_status: str
    created_by: str
    recipients: List[Recipient] = field(default_factory=list)
    comment: Optional[str] = None
    occurred_at: datetime = field(default_factory=utc_now)

    @property
    def status_changed(self) -> bool:
        return self.old_status != self.new_status


class Notifier(Protocol):
    def notify(self, event: TransitionEvent) -> None: ...


class LoggingNotifier:
    """Default notifier: emits one structured log line per event."""

    def notify(self, event: TransitionEvent) -> None:
        logger.info(
            "Artifact transition",
            artifact_id=event.artifact_id,
            operation=event.operation,
            actor_id=event.actor.actor_id,
            old_status=event.old_status,
            new_status=event.new_status,
        )


class RecordingNotifier:
    """Keeps events in memory; useful for tests and local tooling."""

    def __init__(self) -> None:
        self.events: List[TransitionEvent] = []

    def notify(self, event: TransitionEvent) -> None:
        self.events.append(event)


def dispatch(notifiers: List[Notifier], event: TransitionEvent) -> None:
    """Deliver ``event`` to every notifier, isolating failures."""
    for notifier in notifiers:
        try:
            notifier.notify(event)
        except Exception as e:
            logger.warning(
                "Notifier failed",
                notifier=type(notifier).__name__,
                artifact_id=event.artifact_id,
                error=str(e),
            )
