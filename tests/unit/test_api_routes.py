"""Tests for API routes."""

import pytest
from fastapi.testclient import TestClient

from policy_api import create_app
from policy_api.app import app_state
from policy_config import ClientSettings, PolicyKind
from policy_runtime import PolicyStore

TOKEN = "secret"
AUTH = {"Authorization": f"Bearer {TOKEN}"}

SLA_CONFIG = {
    "working_hours": {"mode": "24x7"},
    "priorities": [{"key": "VIP", "first_response_minutes": 5, "resolution_minutes": 60}],
}

ESCALATION_CONFIG = {
    "rules": [
        {
            "trigger": "percentage_elapsed",
            "percentage": "80",
            "recipients": ["supervisor"],
            "channels": ["email"],
            "behavior": "notify",
            "severity": "medium",
        }
    ]
}


@pytest.fixture
def reset_app_state():
    """Reset application state before and after tests."""
    app_state.store = None
    app_state.api_token = None
    yield
    app_state.store = None
    app_state.api_token = None


@pytest.fixture
def store():
    """Create a fresh policy store."""
    return PolicyStore()


@pytest.fixture
def client(store, reset_app_state):
    """Create a test client for the local policy service."""
    return TestClient(create_app(store=store, settings=ClientSettings(api_token=TOKEN)))


@pytest.fixture
def sla_template(store):
    """Create an SLA template."""
    return store.create_template(PolicyKind.SLA, name="Default SLA")


@pytest.fixture
def escalation_template(store):
    """Create an escalation template."""
    return store.create_template(PolicyKind.ESCALATION, name="Default escalation")


class TestAuthentication:
    """Tests for the bearer credential check."""

    def test_missing_credential(self, client):
        """Test requests without a credential are rejected."""
        response = client.get("/sla-policies/")

        assert response.status_code == 401
        body = response.json()
        assert body["code"] == 401
        assert body["request_id"] == response.headers["X-Request-ID"]

    def test_wrong_credential(self, client):
        """Test requests with a wrong credential are rejected."""
        response = client.get("/sla-policies/", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 403

    def test_any_credential_without_configured_token(self, store, reset_app_state):
        """Test any bearer credential is accepted when none is configured."""
        client = TestClient(create_app(store=store))

        response = client.get("/sla-policies/", headers={"Authorization": "Bearer anything"})

        assert response.status_code == 200


class TestTemplateRoutes:
    """Tests for template endpoints."""

    def test_create_and_list(self, client):
        """Test creating a template and listing it."""
        response = client.post(
            "/escalation-policies/",
            json={"name": "Queue escalation", "scope_type": "queue", "scope_value": "billing"},
            headers=AUTH,
        )

        assert response.status_code == 201
        created = response.json()
        assert created["scope_value"] == "billing"

        listing = client.get("/escalation-policies/", headers=AUTH).json()
        assert listing["count"] == 1
        assert listing["results"][0]["id"] == created["id"]
        assert client.get("/sla-policies/", headers=AUTH).json()["count"] == 0

    def test_create_empty_name(self, client):
        """Test an empty template name is rejected."""
        response = client.post("/sla-policies/", json={"name": " "}, headers=AUTH)

        assert response.status_code == 400

    def test_filter_active(self, client, store):
        """Test filtering templates by activity."""
        store.create_template(PolicyKind.SLA, name="Active")
        store.create_template(PolicyKind.SLA, name="Inactive", is_active=False)

        response = client.get("/sla-policies/", params={"is_active": "false"}, headers=AUTH)

        assert [t["name"] for t in response.json()["results"]] == ["Inactive"]

    def test_get_template(self, client, sla_template):
        """Test fetching a template."""
        response = client.get(f"/sla-policies/{sla_template.id}/", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["name"] == "Default SLA"

    def test_get_template_wrong_kind(self, client, sla_template):
        """Test an SLA template is not served as an escalation policy."""
        response = client.get(f"/escalation-policies/{sla_template.id}/", headers=AUTH)

        assert response.status_code == 404

    def test_patch_template(self, client, sla_template):
        """Test deactivating a template leaves other fields alone."""
        response = client.patch(
            f"/sla-policies/{sla_template.id}/", json={"is_active": False}, headers=AUTH
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert response.json()["name"] == "Default SLA"


class TestVersionRoutes:
    """Tests for version endpoints."""

    def test_create_version_normalizes(self, client, escalation_template):
        """Test created versions hold the normalized config."""
        response = client.post(
            "/escalation-policy-versions/",
            json={"template": escalation_template.id, "config": ESCALATION_CONFIG},
            headers={**AUTH, "X-Actor": "alice"},
        )

        assert response.status_code == 201
        version = response.json()
        assert version["status"] == "draft"
        assert version["version"] == 1
        assert version["created_by_label"] == "alice"
        assert version["config"]["rules"][0]["percentage"] == 80

    def test_create_invalid_version(self, client, escalation_template):
        """Test invalid configs are rejected with their error tokens."""
        response = client.post(
            "/escalation-policy-versions/",
            json={"template": escalation_template.id, "config": {"rules": []}},
            headers=AUTH,
        )

        assert response.status_code == 422
        assert response.json()["details"] == {"errors": ["rules"]}

    def test_create_version_oversized_number(self, client, sla_template):
        """Test a number beyond float range is rejected with its token."""
        config = {
            "priorities": [
                {"key": "VIP", "first_response_minutes": "9" * 401, "resolution_minutes": 60}
            ]
        }

        response = client.post(
            "/sla-policy-versions/",
            json={"template": sla_template.id, "config": config},
            headers=AUTH,
        )

        assert response.status_code == 422
        assert response.json()["details"] == {"errors": ["first_response_minutes"]}

    def test_create_version_unknown_template(self, client):
        """Test creating under a missing template."""
        response = client.post(
            "/sla-policy-versions/",
            json={"template": "missing", "config": SLA_CONFIG},
            headers=AUTH,
        )

        assert response.status_code == 404

    def test_list_versions(self, client, store, sla_template):
        """Test listing versions for a template, newest first by default."""
        first = store.create_version(sla_template.id, SLA_CONFIG)
        second = store.create_version(sla_template.id, SLA_CONFIG)

        newest = client.get(
            "/sla-policy-versions/", params={"template": sla_template.id}, headers=AUTH
        ).json()
        oldest = client.get(
            "/sla-policy-versions/",
            params={"template": sla_template.id, "ordering": "created_at"},
            headers=AUTH,
        ).json()

        assert newest["count"] == 2
        assert [v["id"] for v in newest["results"]] == [second.id, first.id]
        assert [v["id"] for v in oldest["results"]] == [first.id, second.id]

    def test_list_versions_bad_ordering(self, client):
        """Test unsupported orderings are rejected."""
        response = client.get("/sla-policy-versions/", params={"ordering": "version"}, headers=AUTH)

        assert response.status_code == 400

    def test_save_draft(self, client, store, sla_template):
        """Test saving a draft replaces its config."""
        version = store.create_version(sla_template.id, SLA_CONFIG)
        config = {
            "priorities": [{"key": "P1", "first_response_minutes": "10", "resolution_minutes": 90}]
        }

        response = client.patch(
            f"/sla-policy-versions/{version.id}/", json={"config": config}, headers=AUTH
        )

        assert response.status_code == 200
        assert response.json()["config"] == {
            "working_hours": {"mode": "24x7"},
            "priorities": [{"key": "P1", "first_response_minutes": 10, "resolution_minutes": 90}],
        }

    def test_save_published_conflicts(self, client, store, sla_template):
        """Test saving a published version returns 409."""
        version = store.create_version(sla_template.id, SLA_CONFIG)
        store.publish(version.id)

        response = client.patch(
            f"/sla-policy-versions/{version.id}/", json={"config": SLA_CONFIG}, headers=AUTH
        )

        assert response.status_code == 409

    def test_publish(self, client, store, sla_template):
        """Test publishing archives the previous version."""
        previous = store.create_version(sla_template.id, SLA_CONFIG)
        store.publish(previous.id)
        version = store.create_version(sla_template.id, SLA_CONFIG)

        response = client.post(f"/sla-policy-versions/{version.id}/publish/", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["status"] == "published"
        assert client.get(
            f"/sla-policy-versions/{previous.id}/", headers=AUTH
        ).json()["status"] == "archived"

    def test_publish_twice(self, client, store, sla_template):
        """Test publishing an already published version returns 409."""
        version = store.create_version(sla_template.id, SLA_CONFIG)
        client.post(f"/sla-policy-versions/{version.id}/publish/", headers=AUTH)

        response = client.post(f"/sla-policy-versions/{version.id}/publish/", headers=AUTH)

        assert response.status_code == 409
        assert "only drafts can be published" in response.json()["message"]

    def test_simulate(self, client, store, escalation_template):
        """Test simulating a version."""
        version = store.create_version(
            escalation_template.id, {"rules": [{"trigger": "breach", "severity": "high"}]}
        )

        response = client.get(f"/escalation-policy-versions/{version.id}/simulate/", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["count"] == 1
        assert response.json()["results"][0]["severity"] == "high"

    def test_version_not_found(self, client):
        """Test fetching a missing version."""
        response = client.get("/escalation-policy-versions/missing/", headers=AUTH)

        assert response.status_code == 404
        assert response.json()["code"] == 404
