"""
API tests for the artifact endpoints.

Tests the approval flow over HTTP: POST artifact -> submit -> reviewer action
-> signature, plus error mapping, identity headers and listings.
"""

import pytest

from docflow.config import Settings

CREATOR = {
    "X-Actor-Id": "u-john",
    "X-Actor-Role": "department",
    "X-Actor-Department": "marketing",
    "X-Actor-Name": "John Doe",
}
FINANCE_DIRECTOR = {
    "X-Actor-Id": "u-fiona",
    "X-Actor-Role": "director",
    "X-Actor-Department": "finance",
}
OUTSIDER = {"X-Actor-Id": "u-olga", "X-Actor-Role": "department"}
ADMIN = {"X-Actor-Id": "u-root", "X-Actor-Role": "admin"}

BUDGET_REQUEST = {
    "title": "Budget Q2",
    "description": "Marketing budget for the second quarter",
    "category": "budget",
    "priority": "high",
    "target_recipients": [{"kind": "department", "id": "finance", "display": "Finance"}],
}


def _create(client, submit: bool = True, payload=None) -> dict:
    resp = client.post(
        f"/artifacts?submit={'true' if submit else 'false'}",
        json=payload or BUDGET_REQUEST,
        headers=CREATOR,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["artifact"]


class TestCreateAndRead:
    """Tests for creating and fetching artifacts."""

    def test_create_draft(self, client):
        artifact = _create(client, submit=False)

        assert artifact["status"] == "draft"
        assert artifact["created_by"]["actor_id"] == "u-john"
        assert artifact["created_by"]["display"] == "John Doe"
        assert artifact["version"] == 1
        assert artifact["target_recipients"][0]["recipient"]["id"] == "finance"

    def test_create_and_submit(self, client):
        artifact = _create(client)

        assert artifact["status"] == "pending"
        assert artifact["submitted_at"] is not None

    def test_status_is_not_writable(self, client):
        resp = client.post(
            "/artifacts", json={**BUDGET_REQUEST, "status": "approved"}, headers=CREATOR
        )

        assert resp.status_code == 422

    def test_missing_identity(self, client):
        resp = client.post("/artifacts", json=BUDGET_REQUEST)

        assert resp.status_code == 401

    def test_unknown_role(self, client):
        resp = client.post(
            "/artifacts",
            json=BUDGET_REQUEST,
            headers={"X-Actor-Id": "u-x", "X-Actor-Role": "superuser"},
        )

        assert resp.status_code == 401

    def test_submit_incomplete(self, client):
        resp = client.post(
            "/artifacts?submit=true", json={"title": "No recipients"}, headers=CREATOR
        )

        assert resp.status_code == 422
        assert resp.json()["detail"]["error"] == "VALIDATION_ERROR"

    def test_get_artifact(self, client):
        created = _create(client)

        resp = client.get(f"/artifacts/{created['id']}")

        assert resp.status_code == 200
        assert resp.json()["title"] == "Budget Q2"

    def test_get_missing(self, client):
        resp = client.get("/artifacts/does-not-exist")

        assert resp.status_code == 404
        assert resp.json()["detail"]["error"] == "NOT_FOUND"
        assert resp.json()["detail"]["artifact_id"] == "does-not-exist"


class TestWorkflowEndpoints:
    """Tests for the transition endpoints."""

    def test_signature_flow(self, client):
        artifact_id = _create(client)["id"]

        resp = client.post(
            f"/artifacts/{artifact_id}/actions",
            json={"action": "requestSignature"},
            headers=FINANCE_DIRECTOR,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["artifact"]["status"] == "need_signature"

        resp = client.post(
            f"/artifacts/{artifact_id}/signature",
            json={"type": "text", "data": "John Doe"},
            headers=CREATOR,
        )
        assert resp.status_code == 200, resp.text
        artifact = resp.json()["artifact"]
        assert artifact["status"] == "approved"
        assert artifact["signature_provided"] is True
        assert [c["is_signature"] for c in artifact["comments"]] == [False, True]

        resp = client.post(
            f"/artifacts/{artifact_id}/signature",
            json={"type": "text", "data": "Again"},
            headers=CREATOR,
        )
        assert resp.status_code == 409
        assert resp.json()["detail"]["error"] == "DUPLICATE_SIGNATURE"

    def test_reject_needs_comment(self, client):
        artifact_id = _create(client)["id"]

        resp = client.post(
            f"/artifacts/{artifact_id}/actions",
            json={"action": "reject"},
            headers=FINANCE_DIRECTOR,
        )

        assert resp.status_code == 422

    def test_unknown_action(self, client):
        artifact_id = _create(client)["id"]

        resp = client.post(
            f"/artifacts/{artifact_id}/actions",
            json={"action": "escalate"},
            headers=FINANCE_DIRECTOR,
        )

        assert resp.status_code == 422

    def test_outsider_forbidden(self, client):
        artifact_id = _create(client)["id"]

        resp = client.post(
            f"/artifacts/{artifact_id}/actions",
            json={"action": "approve"},
            headers=OUTSIDER,
        )

        assert resp.status_code == 403
        assert resp.json()["detail"]["error"] == "NOT_AUTHORIZED"

    def test_terminal_state_conflict(self, client):
        artifact_id = _create(client)["id"]
        client.post(
            f"/artifacts/{artifact_id}/actions",
            json={"action": "approve"},
            headers=FINANCE_DIRECTOR,
        )

        resp = client.post(
            f"/artifacts/{artifact_id}/actions",
            json={"action": "reject", "comment": "Too late"},
            headers=FINANCE_DIRECTOR,
        )

        assert resp.status_code == 409
        detail = resp.json()["detail"]
        assert detail["error"] == "INVALID_TRANSITION"
        assert detail["status"] == "approved"

    def test_edit_approved_is_invalid_state(self, client):
        artifact_id = _create(client)["id"]
        client.post(
            f"/artifacts/{artifact_id}/actions",
            json={"action": "approve"},
            headers=FINANCE_DIRECTOR,
        )

        resp = client.patch(f"/artifacts/{artifact_id}", json={"title": "New"}, headers=CREATOR)

        assert resp.status_code == 409
        assert resp.json()["detail"]["error"] == "INVALID_STATE"

    def test_version_conflict(self, client):
        artifact = _create(client)
        client.patch(
            f"/artifacts/{artifact['id']}",
            json={"description": "Updated", "expected_version": artifact["version"]},
            headers=CREATOR,
        )

        resp = client.post(
            f"/artifacts/{artifact['id']}/actions",
            json={"action": "approve", "expected_version": artifact["version"]},
            headers=FINANCE_DIRECTOR,
        )

        assert resp.status_code == 409
        assert resp.json()["detail"]["error"] == "CONFLICT"

    def test_send_back_and_resubmit(self, client):
        artifact_id = _create(client)["id"]
        client.post(
            f"/artifacts/{artifact_id}/actions",
            json={"action": "sendBack", "comment": "Attach the quote"},
            headers=FINANCE_DIRECTOR,
        )

        resp = client.post(
            f"/artifacts/{artifact_id}/attachments",
            json={
                "name": "quote.pdf",
                "size_bytes": 1024,
                "media_type": "application/pdf",
                "uri": "s3://docflow/quote.pdf",
            },
            headers=CREATOR,
        )
        assert resp.status_code == 201, resp.text

        resp = client.post(
            f"/artifacts/{artifact_id}/resubmit",
            json={"text": "Quote attached"},
            headers=CREATOR,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["artifact"]["status"] == "pending"

    def test_submit_draft(self, client):
        artifact_id = _create(client, submit=False)["id"]

        resp = client.post(f"/artifacts/{artifact_id}/submit", headers=CREATOR)

        assert resp.status_code == 200
        assert resp.json()["artifact"]["status"] == "pending"


class TestCommentsAndHistory:
    """Tests for the comment trail and audit history endpoints."""

    def test_comment_roundtrip(self, client):
        artifact_id = _create(client)["id"]

        resp = client.post(
            f"/artifacts/{artifact_id}/comments",
            json={"text": "Reviewing this week"},
            headers=FINANCE_DIRECTOR,
        )
        assert resp.status_code == 201
        assert resp.json()["comment"]["seq"] == 1

        resp = client.get(f"/artifacts/{artifact_id}/comments")
        assert resp.status_code == 200
        assert [c["text"] for c in resp.json()] == ["Reviewing this week"]

    def test_empty_comment(self, client):
        artifact_id = _create(client)["id"]

        resp = client.post(
            f"/artifacts/{artifact_id}/comments", json={"text": ""}, headers=CREATOR
        )

        assert resp.status_code == 422

    def test_history_carries_trace_id(self, client):
        resp = client.post(
            "/artifacts",
            json=BUDGET_REQUEST,
            headers={**CREATOR, "X-Request-ID": "req-42"},
        )
        artifact_id = resp.json()["artifact"]["id"]

        resp = client.get(f"/artifacts/{artifact_id}/history")

        assert resp.status_code == 200
        entries = resp.json()
        assert len(entries) == 1
        assert entries[0]["action"] == "created"
        assert entries[0]["trace_id"] == "req-42"
        assert entries[0]["actor_id"] == "u-john"


class TestListings:
    """Tests for list, recipient and inbox endpoints."""

    def test_list_by_creator(self, client):
        _create(client)

        resp = client.get("/artifacts", params={"created_by": "u-john"})

        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_list_by_recipient(self, client):
        _create(client, submit=False)
        submitted = _create(client)

        resp = client.get(
            "/artifacts", params={"recipient_kind": "department", "recipient_id": "finance"}
        )

        assert resp.status_code == 200
        assert [a["id"] for a in resp.json()] == [submitted["id"]]

    def test_recipient_filter_needs_both_parts(self, client):
        resp = client.get("/artifacts", params={"recipient_kind": "department"})

        assert resp.status_code == 422

    @pytest.mark.parametrize(
        "headers,expected",
        [(FINANCE_DIRECTOR, 1), (OUTSIDER, 0)],
    )
    def test_inbox(self, client, headers, expected):
        _create(client)

        resp = client.get("/artifacts/inbox", headers=headers)

        assert resp.status_code == 200
        assert len(resp.json()) == expected


class TestSystemEndpoints:
    """Tests for metadata endpoints."""

    def test_health(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_statuses(self, client):
        resp = client.get("/workflow/statuses")

        assert resp.status_code == 200
        body = resp.json()
        labels = {s["value"]: s["label"] for s in body["statuses"]}
        assert labels["need_signature"] == "Need Signature"
        assert labels["sent_back"] == "Sent Back"
        assert set(body["roles"]) == {"admin", "director", "department"}

    def test_wildcard_origin_gets_no_credentials(self, client):
        resp = client.get("/health", headers={"Origin": "https://intranet.example"})

        assert resp.headers["access-control-allow-origin"] == "*"
        assert "access-control-allow-credentials" not in resp.headers

    def test_listed_origins_allow_credentials(self):
        assert Settings(cors_origins="https://intranet.example").cors_allow_credentials()
        assert not Settings(cors_origins="*").cors_allow_credentials()


class TestAuditSearch:
    """Tests for the cross-artifact audit log search."""

    def test_by_trace_id(self, client):
        client.post("/artifacts", json=BUDGET_REQUEST, headers={**CREATOR, "X-Request-ID": "req-7"})
        client.post("/artifacts", json=BUDGET_REQUEST, headers={**CREATOR, "X-Request-ID": "req-8"})

        resp = client.get("/audit", params={"trace_id": "req-7"}, headers=ADMIN)

        assert resp.status_code == 200, resp.text
        entries = resp.json()
        assert len(entries) == 1
        assert entries[0]["trace_id"] == "req-7"

    def test_by_actor(self, client):
        artifact_id = _create(client)["id"]
        client.post(
            f"/artifacts/{artifact_id}/actions",
            json={"action": "approve"},
            headers=FINANCE_DIRECTOR,
        )

        resp = client.get("/audit", params={"actor_id": "u-fiona"}, headers=ADMIN)

        assert resp.status_code == 200
        entries = resp.json()
        assert [e["action"] for e in entries] == ["status_changed"]
        assert entries[0]["entity_id"] == artifact_id

    def test_by_action(self, client):
        _create(client, submit=False)
        _create(client, submit=False)

        resp = client.get("/audit", params={"action": "created", "limit": 1}, headers=ADMIN)

        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_admin_only(self, client):
        resp = client.get("/audit", params={"actor_id": "u-john"}, headers=CREATOR)

        assert resp.status_code == 403
        assert resp.json()["detail"]["error"] == "NOT_AUTHORIZED"

    def test_requires_one_filter(self, client):
        assert client.get("/audit", headers=ADMIN).status_code == 422
        resp = client.get(
            "/audit", params={"actor_id": "u-john", "trace_id": "req-7"}, headers=ADMIN
        )
        assert resp.status_code == 422

    def test_unknown_action(self, client):
        resp = client.get("/audit", params={"action": "deleted"}, headers=ADMIN)

        assert resp.status_code == 422
        assert resp.json()["detail"]["error"] == "VALIDATION_ERROR"
