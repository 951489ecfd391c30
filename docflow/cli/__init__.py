"""
Command Line Interface for docflow.
"""

from typing import Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..db.base import create_tables, get_session_local
from ..log_config import configure_logging
from ..workflow.display import display_table, status_label
from ..workflow.enums import RecipientKind, Role
from ..workflow.primitives import Actor, Recipient
from ..workflow.services import ApprovalWorkflow

app = typer.Typer(help="docflow - approval workflow for requests and files")
console = Console()


@app.callback()
def main():
    """docflow - approval workflow for requests and files"""
    configure_logging()


def _artifact_table(title: str, artifacts) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Kind")
    table.add_column("Priority")
    table.add_column("Status", style="bold")
    table.add_column("Updated", style="dim")

    for artifact in artifacts:
        table.add_row(
            artifact.id,
            artifact.title or "(untitled)",
            artifact.kind,
            artifact.priority,
            status_label(artifact.status),
            artifact.updated_at.strftime("%Y-%m-%d %H:%M") if artifact.updated_at else "",
        )
    return table


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    dev: bool = typer.Option(False, help="Run in development mode with reload"),
):
    """Start the docflow API server."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    rprint(Panel.fit(f"Starting docflow on http://{host}:{port}", style="bold blue"))
    uvicorn.run("docflow.main:app", host=host, port=port, reload=dev)


@app.command("init-db")
def init_db():
    """Create all database tables."""
    create_tables()
    console.print("Database tables created")


@app.command()
def show(artifact_id: str = typer.Argument(..., help="Artifact ID")):
    """Show an artifact, its reviewers and its comment trail."""
    db = get_session_local()()
    try:
        artifact = ApprovalWorkflow(db, notifiers=[]).get(artifact_id)
        if artifact is None:
            console.print(f"Artifact {artifact_id} not found", style="red")
            raise typer.Exit(code=1)

        rprint(
            Panel.fit(
                f"[bold]{artifact.title or '(untitled)'}[/bold]\n"
                f"{artifact.description}\n\n"
                f"Status: {status_label(artifact.status)}  "
                f"Priority: {artifact.priority}  Category: {artifact.category}\n"
                f"Created by: {artifact.created_by_display or artifact.created_by_id}  "
                f"Version: {artifact.version}",
                title=artifact.id,
            )
        )

        reviewers = Table(title="Reviewers")
        reviewers.add_column("Recipient")
        reviewers.add_column("Status")
        reviewers.add_column("Acted by")
        reviewers.add_column("Comment")
        for slot in artifact.recipients:
            reviewers.add_row(
                f"{slot.recipient_kind}:{slot.recipient_display or slot.recipient_id}",
                slot.status,
                slot.acted_by or "",
                slot.action_comment or "",
            )
        console.print(reviewers)

        trail = Table(title="Comments")
        trail.add_column("#", justify="right")
        trail.add_column("Author")
        trail.add_column("When", style="dim")
        trail.add_column("Text")
        for comment in artifact.comments:
            marker = " [signature]" if comment.is_signature else ""
            trail.add_row(
                str(comment.seq),
                comment.author_display or comment.author_id,
                comment.created_at.strftime("%Y-%m-%d %H:%M"),
                comment.text + marker,
            )
        console.print(trail)
    finally:
        db.close()


@app.command()
def inbox(
    actor_id: str = typer.Option(..., "--actor", help="Reviewer user ID"),
    role: Role = typer.Option(Role.DIRECTOR, help="Reviewer role"),
    department: Optional[str] = typer.Option(None, help="Reviewer department ID"),
    status: Optional[str] = typer.Option(None, help="Filter by status"),
):
    """List the artifacts addressed to a reviewer."""
    actor = Actor(actor_id=actor_id, role=role, department_id=department)
    db = get_session_local()()
    try:
        artifacts = ApprovalWorkflow(db, notifiers=[]).inbox(actor, status=status)
        console.print(_artifact_table(f"Inbox for {actor_id}", artifacts))
    finally:
        db.close()


@app.command()
def routed(
    kind: RecipientKind = typer.Option(..., help="Recipient kind"),
    recipient_id: str = typer.Option(..., "--id", help="Department or user ID"),
    status: Optional[str] = typer.Option(None, help="Filter by status"),
):
    """List the artifacts routed to a department or user."""
    db = get_session_local()()
    try:
        artifacts = ApprovalWorkflow(db, notifiers=[]).list_for_recipient(
            Recipient(kind=kind, id=recipient_id), status=status
        )
        console.print(_artifact_table(f"Routed to {kind.value}:{recipient_id}", artifacts))
    finally:
        db.close()


@app.command()
def statuses():
    """Show the workflow states and the actions allowed from each."""
    table = Table(title="Workflow States")
    table.add_column("Status", style="cyan")
    table.add_column("Label")
    table.add_column("Terminal")
    table.add_column("Actions")

    for entry in display_table()["statuses"]:
        table.add_row(
            entry["value"],
            entry["label"],
            "yes" if entry["terminal"] else "no",
            ", ".join(entry["actions"]) or "-",
        )
    console.print(table)


if __name__ == "__main__":
    app()
