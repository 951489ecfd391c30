"""
Display configuration.

Labels and badge colors for statuses and priorities, and the per-role color
palette. Front ends read this table from ``/workflow/statuses`` instead of
keeping their own copies.
"""

from typing import Any, Dict

from .enums import ArtifactStatus, Priority, Role
from .state_machine import RECOVERABLE_STATES, TERMINAL_STATES, allowed_actions

STATUS_DISPLAY: Dict[ArtifactStatus, Dict[str, str]] = {
    ArtifactStatus.DRAFT: {"label": "Draft", "badge": "bg-gray-100 text-gray-800"},
    ArtifactStatus.PENDING: {"label": "Pending", "badge": "bg-orange-100 text-orange-800"},
    ArtifactStatus.NEED_SIGNATURE: {"label": "Need Signature", "badge": "bg-blue-100 text-blue-800"},
    ArtifactStatus.SENT_BACK: {"label": "Sent Back", "badge": "bg-yellow-100 text-yellow-800"},
    ArtifactStatus.APPROVED: {"label": "Approved", "badge": "bg-green-100 text-green-800"},
    ArtifactStatus.REJECTED: {"label": "Rejected", "badge": "bg-red-100 text-red-800"},
}

PRIORITY_DISPLAY: Dict[Priority, Dict[str, str]] = {
    Priority.LOW: {"label": "Low", "badge": "bg-blue-100 text-blue-800"},
    Priority.MEDIUM: {"label": "Medium", "badge": "bg-orange-100 text-orange-800"},
    Priority.HIGH: {"label": "High", "badge": "bg-red-100 text-red-800"},
    Priority.URGENT: {"label": "Urgent", "badge": "bg-purple-100 text-purple-800"},
}

ROLE_PALETTES: Dict[Role, Dict[str, str]] = {
    Role.ADMIN: {"primary": "red", "accent": "rose", "gradient": "from-red-500 to-rose-600"},
    Role.DIRECTOR: {"primary": "blue", "accent": "indigo", "gradient": "from-blue-500 to-indigo-600"},
    Role.DEPARTMENT: {"primary": "green", "accent": "emerald", "gradient": "from-green-500 to-emerald-600"},
}

FALLBACK_BADGE = "bg-gray-100 text-gray-800"


def status_badge(status: str) -> str:
    """Badge classes for a status value; unknown values get the neutral badge."""
    try:
        return STATUS_DISPLAY[ArtifactStatus(status)]["badge"]
    except ValueError:
        return FALLBACK_BADGE


def status_label(status: str) -> str:
    try:
        return STATUS_DISPLAY[ArtifactStatus(status)]["label"]
    except ValueError:
        return status


def display_table() -> Dict[str, Any]:
    """Everything a front end needs to render statuses, priorities and roles."""
    return {
        "statuses": [
            {
                "value": status.value,
                "label": info["label"],
                "badge": info["badge"],
                "terminal": status in TERMINAL_STATES,
                "recoverable": status in RECOVERABLE_STATES,
                "actions": sorted(a.value for a in allowed_actions(status)),
            }
            for status, info in STATUS_DISPLAY.items()
        ],
        "priorities": [
            {"value": p.value, **info} for p, info in PRIORITY_DISPLAY.items()
        ],
        "roles": {role.value: palette for role, palette in ROLE_PALETTES.items()},
    }
