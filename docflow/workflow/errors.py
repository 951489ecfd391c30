"""
Typed workflow errors.

Every failed operation raises one of these. Each carries a stable ``code``
and a human-readable message so callers can render or map it without parsing
strings.
"""

from typing import Any, Dict, Optional


class WorkflowError(Exception):
    """Base class for workflow failures."""

    code = "WORKFLOW_ERROR"

    def __init__(self, message: str, artifact_id: Optional[str] = None):
        self.message = message
        self.artifact_id = artifact_id
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.artifact_id:
            data["artifact_id"] = self.artifact_id
        return data


class ValidationError(WorkflowError):
    """A required field or argument is missing or malformed."""

    code = "VALIDATION_ERROR"


class InvalidTransitionError(WorkflowError):
    """The action is not legal from the artifact's current status."""

    code = "INVALID_TRANSITION"

    def __init__(self, artifact_id: str, status: str, action: str):
        self.status = status
        self.action = action
        super().__init__(
            f"Action '{action}' is not allowed while artifact is '{status}'",
            artifact_id=artifact_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"status": self.status, "action": self.action})
        return data


class InvalidStateError(WorkflowError):
    """The artifact's status does not allow the requested modification."""

    code = "INVALID_STATE"

    def __init__(self, artifact_id: str, status: str, operation: str):
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} artifact while it is '{status}'",
            artifact_id=artifact_id,
        )


class AuthorizationError(WorkflowError):
    """The actor lacks permission for the operation."""

    code = "NOT_AUTHORIZED"


class DuplicateSignatureError(WorkflowError):
    """A signature was already recorded for this artifact."""

    code = "DUPLICATE_SIGNATURE"

    def __init__(self, artifact_id: str):
        super().__init__(
            f"Artifact {artifact_id} has already been signed", artifact_id=artifact_id
        )


class ConflictError(WorkflowError):
    """Another writer changed the artifact first; refresh and retry."""

    code = "CONFLICT"

    def __init__(
        self,
        artifact_id: str,
        expected_version: Optional[int] = None,
        current_version: Optional[int] = None,
    ):
        self.expected_version = expected_version
        self.current_version = current_version
        if expected_version is not None and current_version is not None:
            message = (
                f"Artifact {artifact_id} is at version {current_version}, "
                f"expected {expected_version}"
            )
        else:
            message = f"Artifact {artifact_id} was modified concurrently"
        super().__init__(message, artifact_id=artifact_id)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "expected_version": self.expected_version,
                "current_version": self.current_version,
            }
        )
        return data


class NotFoundError(WorkflowError):
    """No artifact exists with the given ID."""

    code = "NOT_FOUND"

    def __init__(self, artifact_id: str):
        super().__init__(f"Artifact {artifact_id} not found", artifact_id=artifact_id)
