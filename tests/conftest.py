"""Test configuration and fixtures."""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from docflow.db.base import build_engine, create_tables, get_db
from docflow.workflow.enums import RecipientKind, Role
from docflow.workflow.notifications import RecordingNotifier
from docflow.workflow.primitives import Actor, Recipient
from docflow.workflow.schemas import ArtifactCreate
from docflow.workflow.services import ApprovalWorkflow


@pytest.fixture
def engine():
    """A fresh in-memory database per test."""
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def workflow(db_session, notifier) -> ApprovalWorkflow:
    return ApprovalWorkflow(db_session, notifiers=[notifier])


@pytest.fixture
def creator() -> Actor:
    return Actor(
        actor_id="u-john",
        role=Role.DEPARTMENT,
        department_id="marketing",
        display="John Doe",
    )


@pytest.fixture
def finance_director() -> Actor:
    return Actor(
        actor_id="u-fiona",
        role=Role.DIRECTOR,
        department_id="finance",
        display="Fiona Finance",
    )


@pytest.fixture
def legal_director() -> Actor:
    return Actor(actor_id="u-leo", role=Role.DIRECTOR, department_id="legal")


@pytest.fixture
def outsider() -> Actor:
    return Actor(actor_id="u-olga", role=Role.DEPARTMENT, department_id="hr")


@pytest.fixture
def admin() -> Actor:
    return Actor(actor_id="u-root", role=Role.ADMIN)


@pytest.fixture
def finance() -> Recipient:
    return Recipient(kind=RecipientKind.DEPARTMENT, id="finance", display="Finance")


@pytest.fixture
def legal() -> Recipient:
    return Recipient(kind=RecipientKind.DEPARTMENT, id="legal", display="Legal")


@pytest.fixture
def budget_request(finance) -> ArtifactCreate:
    return ArtifactCreate(
        title="Budget Q2",
        description="Marketing budget for the second quarter",
        category="budget",
        priority="high",
        target_recipients=[finance],
    )


@pytest.fixture
def pending_artifact(workflow, creator, budget_request):
    """A budget request submitted to Finance."""
    return workflow.create(budget_request, creator, submit=True)


@pytest.fixture
def client(session_factory) -> TestClient:
    """API client bound to the per-test database.

    Not used as a context manager, so the lifespan (and its table creation on
    the configured database) does not run.
    """
    from docflow.api import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
