"""
Identity dependency for the API.

The session/auth layer in front of the service authenticates the user and
forwards who they are in request headers. This module turns those headers
into an ``Actor``.
"""

from typing import Optional

from fastapi import Header, HTTPException

from .enums import Role
from .primitives import Actor


def get_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: str = Header(Role.DEPARTMENT.value),
    x_actor_department: Optional[str] = Header(None),
    x_actor_name: Optional[str] = Header(None),
) -> Actor:
    """FastAPI dependency returning the calling actor."""
    if not x_actor_id:
        raise HTTPException(status_code=401, detail="Missing X-Actor-Id header")

    try:
        role = Role(x_actor_role.lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role '{x_actor_role}'")

    return Actor(
        actor_id=x_actor_id,
        role=role,
        department_id=x_actor_department or None,
        display=x_actor_name or None,
    )


def get_trace_id(x_request_id: Optional[str] = Header(None)) -> Optional[str]:
    """Correlation ID propagated into audit entries."""
    return x_request_id
