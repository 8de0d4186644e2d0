"""
Tests for the long-term retention policy HTTP surface.
"""

from unittest.mock import MagicMock, patch

import pytest
from azure.core.exceptions import HttpResponseError
from fastapi.testclient import TestClient

from sqlretention.main import app
from sqlretention.routes.sql_retention import get_client


PREFIX = "/sql/long-term-retention-policies"

BODY = {
    "database_name": "db1",
    "resource_group_name": "rg1",
    "server_name": "srv1",
    "backup_long_term_retention_policy": {
        "weekly_retention": "P1W",
        "monthly_retention": "P1M",
        "yearly_retention": "P1Y",
        "week_of_year": 1,
    },
}


@pytest.fixture
def api(fake_client):
    app.dependency_overrides[get_client] = lambda: fake_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(api):
    response = api.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_azure_health_reports_missing_subscription(api, monkeypatch):
    monkeypatch.delenv("AZURE_SUBSCRIPTION_ID", raising=False)
    assert api.get("/api/azure/health").json()["status"] == "misconfigured"


def test_azure_health_ok(api, monkeypatch):
    monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", "sub")
    monkeypatch.delenv("SERVICE_SECRET", raising=False)
    assert api.get("/api/azure/health").json() == {"status": "ok", "broker_configured": False}


def test_azure_health_reports_broker_configured(api, monkeypatch):
    monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", "sub")
    monkeypatch.setenv("SERVICE_SECRET", "s3cret")
    assert api.get("/api/azure/health").json() == {"status": "ok", "broker_configured": True}


def test_put_then_get(api, policy_id):
    response = api.put(PREFIX, json=BODY)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == policy_id
    assert data["backup_long_term_retention_policy"] == BODY["backup_long_term_retention_policy"]

    response = api.get(PREFIX + policy_id)
    assert response.status_code == 200
    assert response.json() == data


def test_put_with_timeout_override(api, policies):
    response = api.put(PREFIX, params={"timeout_minutes": 2}, json=BODY)
    assert response.status_code == 200
    get_call = [call for call in policies.calls if call[0] == "get"][0]
    assert get_call[-1]["timeout"] <= 120


def test_put_rejects_invalid_server_name(api, policies):
    response = api.put(PREFIX, json={**BODY, "server_name": "Bad_Name"})
    assert response.status_code == 422
    assert policies.calls == []


def test_put_rejects_missing_database_name(api, policies):
    body = {k: v for k, v in BODY.items() if k != "database_name"}
    assert api.put(PREFIX, json=body).status_code == 422
    assert policies.calls == []


def test_put_wait_failure_is_gateway_timeout(api, policies):
    policies.wait_error = HttpResponseError("failed")
    response = api.put(PREFIX, json=BODY)
    assert response.status_code == 504


def test_put_request_failure_is_bad_gateway(api, policies):
    policies.create_error = HttpResponseError("throttled")
    response = api.put(PREFIX, json=BODY)
    assert response.status_code == 502
    assert "throttled" in response.json()["detail"]


def test_get_malformed_id(api, policies):
    response = api.get(PREFIX + "/subscriptions/sub/resourceGroups/rg1/servers/srv1")
    assert response.status_code == 400
    assert policies.calls == []


def test_get_missing_database(api):
    response = api.get(
        PREFIX + "/subscriptions/sub/resourceGroups/rg1/providers/Microsoft.Sql"
        "/servers/srv1/databases/gone/backupLongTermRetentionPolicies/default"
    )
    assert response.status_code == 404


def test_delete_resets_policy(api, policies, policy_id):
    api.put(PREFIX, json=BODY)

    response = api.delete(PREFIX + policy_id)

    assert response.status_code == 200
    assert response.json() == {"status": "reset", "id": policy_id}
    parameters = policies.calls[-1][5]
    assert (parameters.weekly_retention, parameters.monthly_retention,
            parameters.yearly_retention, parameters.week_of_year) == ("P0W", "P0W", "P0W", 1)


def test_import(api, policy_id):
    api.put(PREFIX, json=BODY)

    response = api.post(PREFIX + "/import", json={"id": policy_id})

    assert response.status_code == 200
    data = response.json()
    assert data["database_name"] == "db1"
    assert data["server_name"] == "srv1"
    assert data["resource_group_name"] == "rg1"
    assert data["backup_long_term_retention_policy"]["weekly_retention"] == "P1W"


def test_import_malformed_id(api):
    assert api.post(PREFIX + "/import", json={"id": "bogus"}).status_code == 400


def test_client_dependency_failure(monkeypatch):
    monkeypatch.delenv("AZURE_SUBSCRIPTION_ID", raising=False)
    app.dependency_overrides.clear()
    response = TestClient(app).put(PREFIX, json=BODY)
    assert response.status_code == 500
    assert "AZURE_SUBSCRIPTION_ID" in response.json()["detail"]


@pytest.mark.parametrize("method, path, body", [
    ("GET", PREFIX + "/subscriptions/sub/resourceGroups/rg1/servers/srv1", None),
    ("DELETE", PREFIX + "/subscriptions/sub/resourceGroups/rg1/servers/srv1", None),
    ("POST", PREFIX + "/import", {"id": "/subscriptions/sub/resourceGroups/rg1"}),
])
def test_malformed_id_wins_over_missing_configuration(monkeypatch, method, path, body):
    monkeypatch.delenv("AZURE_SUBSCRIPTION_ID", raising=False)
    app.dependency_overrides.clear()
    with patch("sqlretention.routes.sql_retention.get_sql_client") as mock_get_sql_client:
        response = TestClient(app).request(method, path, json=body)
    assert response.status_code == 400
    mock_get_sql_client.assert_not_called()


class TestClientLifetime:

    @pytest.fixture
    def managed_client(self, policies):
        client = MagicMock()
        client.long_term_retention_policies = policies
        app.dependency_overrides.clear()
        with patch("sqlretention.routes.sql_retention.get_sql_client", return_value=client) as mock_get:
            yield client, mock_get
        app.dependency_overrides.clear()

    def test_closed_after_request(self, managed_client, policy_id):
        client, mock_get = managed_client
        response = TestClient(app).get(PREFIX + policy_id, headers={"X-Credential-Id": "cred-1"})
        assert response.status_code == 200
        mock_get.assert_called_once_with(credential_id="cred-1")
        client.close.assert_called_once()

    def test_closed_after_failed_request(self, managed_client, policies):
        client, _ = managed_client
        policies.create_error = HttpResponseError("throttled")
        response = TestClient(app).put(PREFIX, json=BODY)
        assert response.status_code == 502
        client.close.assert_called_once()
