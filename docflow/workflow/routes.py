"""
Artifact API Routes.

REST endpoints over the approval workflow. All artifact endpoints are
prefixed with /artifacts; workflow metadata lives under /workflow.
"""

from typing import Any, Dict, List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..db.base import get_db
from .display import display_table
from .enums import RecipientKind
from .errors import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
    WorkflowError,
)
from .identity import get_actor, get_trace_id
from .primitives import Actor, Recipient
from .schemas import (
    ActionRequest,
    ArtifactCreate,
    AttachmentDescriptor,
    CommentCreate,
    EditRequest,
    SignatureRequest,
)
from .services import ApprovalWorkflow

router = APIRouter(prefix="/artifacts", tags=["artifacts"])
workflow_router = APIRouter(prefix="/workflow", tags=["workflow"])
audit_router = APIRouter(prefix="/audit", tags=["audit"])


def _http_status(error: WorkflowError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, ValidationError):
        return 422
    # Invalid transition/state, duplicate signature and version conflicts
    return 409


def _raise_http(error: WorkflowError) -> NoReturn:
    raise HTTPException(status_code=_http_status(error), detail=error.to_dict())


def get_workflow(db: Session = Depends(get_db)) -> ApprovalWorkflow:
    """Dependency providing a workflow service bound to the request session."""
    return ApprovalWorkflow(db)


# =============================================================================
# Artifact Endpoints
# =============================================================================


@router.post("", status_code=201)
async def create_artifact(
    artifact: ArtifactCreate,
    submit: bool = False,
    actor: Actor = Depends(get_actor),
    trace_id: Optional[str] = Depends(get_trace_id),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Create an artifact as a draft, or submit it immediately with ?submit=true."""
    try:
        db_artifact = workflow.create(artifact, actor, submit=submit, trace_id=trace_id)
    except WorkflowError as e:
        _raise_http(e)

    return {
        "status": "success",
        "artifact": db_artifact.to_dict(),
    }


@router.get("")
async def list_artifacts(
    created_by: Optional[str] = None,
    recipient_kind: Optional[RecipientKind] = None,
    recipient_id: Optional[str] = None,
    status: Optional[str] = None,
    kind: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> List[Dict[str, Any]]:
    """List artifacts with optional filtering.

    Passing both ``recipient_kind`` and ``recipient_id`` lists the artifacts
    routed to that recipient.
    """
    if recipient_kind is not None or recipient_id is not None:
        if recipient_kind is None or not recipient_id:
            raise HTTPException(
                status_code=422,
                detail="recipient_kind and recipient_id must be given together",
            )
        artifacts = workflow.list_for_recipient(
            Recipient(kind=recipient_kind, id=recipient_id),
            status=status,
            limit=limit,
            offset=offset,
        )
    else:
        artifacts = workflow.list(
            created_by=created_by,
            status=status,
            kind=kind,
            priority=priority,
            category=category,
            limit=limit,
            offset=offset,
        )
    return [a.to_dict() for a in artifacts]


@router.get("/inbox")
async def get_inbox(
    status: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_actor),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> List[Dict[str, Any]]:
    """Artifacts awaiting or past review by the calling actor."""
    artifacts = workflow.inbox(actor, status=status, limit=limit, offset=offset)
    return [a.to_dict() for a in artifacts]


@router.get("/{artifact_id}")
async def get_artifact(
    artifact_id: str,
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Get an artifact by ID."""
    artifact = workflow.get(artifact_id)

    if not artifact:
        _raise_http(NotFoundError(artifact_id))

    return artifact.to_dict()


@router.patch("/{artifact_id}")
async def edit_artifact(
    artifact_id: str,
    patch: EditRequest,
    actor: Actor = Depends(get_actor),
    trace_id: Optional[str] = Depends(get_trace_id),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Edit an artifact's content (creator only, while draft/pending/sent_back)."""
    changes = patch.model_dump(exclude_unset=True, exclude={"expected_version"})
    try:
        artifact = workflow.edit(
            artifact_id,
            actor,
            changes,
            expected_version=patch.expected_version,
            trace_id=trace_id,
        )
    except WorkflowError as e:
        _raise_http(e)

    return {"status": "success", "artifact": artifact.to_dict()}


# =============================================================================
# Workflow Transition Endpoints
# =============================================================================


@router.post("/{artifact_id}/submit")
async def submit_artifact(
    artifact_id: str,
    actor: Actor = Depends(get_actor),
    trace_id: Optional[str] = Depends(get_trace_id),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Submit a draft to its recipients."""
    try:
        artifact = workflow.submit(artifact_id, actor, trace_id=trace_id)
    except WorkflowError as e:
        _raise_http(e)

    return {"status": "success", "artifact": artifact.to_dict()}


@router.post("/{artifact_id}/actions")
async def take_action(
    artifact_id: str,
    request: ActionRequest,
    actor: Actor = Depends(get_actor),
    trace_id: Optional[str] = Depends(get_trace_id),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Apply a reviewer action: approve, reject, sendBack or requestSignature."""
    try:
        artifact = workflow.take_action(
            artifact_id,
            actor,
            request.action,
            comment=request.comment,
            expected_version=request.expected_version,
            trace_id=trace_id,
        )
    except WorkflowError as e:
        _raise_http(e)

    return {"status": "success", "artifact": artifact.to_dict()}


@router.post("/{artifact_id}/signature")
async def provide_signature(
    artifact_id: str,
    request: SignatureRequest,
    actor: Actor = Depends(get_actor),
    trace_id: Optional[str] = Depends(get_trace_id),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Sign an artifact that is waiting for the creator's signature."""
    payload = request.model_dump(exclude={"expected_version"})
    try:
        artifact = workflow.provide_signature(
            artifact_id,
            actor,
            payload,
            expected_version=request.expected_version,
            trace_id=trace_id,
        )
    except WorkflowError as e:
        _raise_http(e)

    return {"status": "success", "artifact": artifact.to_dict()}


@router.post("/{artifact_id}/resubmit")
async def resubmit_artifact(
    artifact_id: str,
    request: Optional[CommentCreate] = None,
    actor: Actor = Depends(get_actor),
    trace_id: Optional[str] = Depends(get_trace_id),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Send a corrected artifact back to its reviewers."""
    try:
        artifact = workflow.resubmit(
            artifact_id,
            actor,
            comment=request.text if request else None,
            trace_id=trace_id,
        )
    except WorkflowError as e:
        _raise_http(e)

    return {"status": "success", "artifact": artifact.to_dict()}


# =============================================================================
# Comment, Attachment and History Endpoints
# =============================================================================


@router.post("/{artifact_id}/comments", status_code=201)
async def add_comment(
    artifact_id: str,
    request: CommentCreate,
    actor: Actor = Depends(get_actor),
    trace_id: Optional[str] = Depends(get_trace_id),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Append a comment to the artifact's trail."""
    try:
        comment = workflow.add_comment(artifact_id, actor, request.text, trace_id=trace_id)
    except WorkflowError as e:
        _raise_http(e)

    return {"status": "success", "comment": comment.to_dict()}


@router.get("/{artifact_id}/comments")
async def list_comments(
    artifact_id: str,
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> List[Dict[str, Any]]:
    """The artifact's comments in append order."""
    try:
        comments = workflow.comments(artifact_id)
    except WorkflowError as e:
        _raise_http(e)

    return [c.to_dict() for c in comments]


@router.post("/{artifact_id}/attachments", status_code=201)
async def add_attachment(
    artifact_id: str,
    descriptor: AttachmentDescriptor,
    actor: Actor = Depends(get_actor),
    trace_id: Optional[str] = Depends(get_trace_id),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Attach a stored file to the artifact."""
    try:
        attachment = workflow.add_attachment(artifact_id, actor, descriptor, trace_id=trace_id)
    except WorkflowError as e:
        _raise_http(e)

    return {"status": "success", "attachment": attachment.to_dict()}


@router.get("/{artifact_id}/history")
async def get_history(
    artifact_id: str,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> List[Dict[str, Any]]:
    """Audit log entries for the artifact, newest first."""
    try:
        entries = workflow.history(artifact_id, limit=limit, offset=offset)
    except WorkflowError as e:
        _raise_http(e)

    return [entry.to_dict() for entry in entries]


# =============================================================================
# Workflow Metadata
# =============================================================================


@workflow_router.get("/statuses")
async def get_statuses() -> Dict[str, Any]:
    """Status, priority and role display configuration."""
    return display_table()


# =============================================================================
# Audit Log
# =============================================================================


@audit_router.get("")
async def search_audit_log(
    trace_id: Optional[str] = None,
    actor_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_actor),
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> List[Dict[str, Any]]:
    """Audit entries for one request trace, one actor or one action, newest first."""
    try:
        entries = workflow.audit_entries(
            actor,
            trace_id=trace_id,
            actor_id=actor_id,
            action=action,
            limit=limit,
            offset=offset,
        )
    except WorkflowError as e:
        _raise_http(e)

    return [entry.to_dict() for entry in entries]
