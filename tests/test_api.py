"""
Tests for the HTTP API
"""

import pytest
from fastapi.testclient import TestClient

from nl_analytics.adapters import AdapterRegistry
from nl_analytics.main import app, get_adapters, get_orchestrator, get_storage
from nl_analytics.orchestrator import QueryOrchestrator
from nl_analytics.services.storage import InMemoryStorage


@pytest.fixture
def client():
    storage = InMemoryStorage()
    adapters = AdapterRegistry()
    orchestrator = QueryOrchestrator(storage=storage, adapters=adapters)

    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_adapters] = lambda: adapters
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()
    adapters.cleanup()


def register_csv(client, path, user_id="user-1"):
    response = client.post("/api/v1/data-sources", json={
        "userId": user_id,
        "name": "Sales",
        "type": "csv",
        "config": {"file_path": path},
    })
    assert response.status_code == 201
    return response.json()


class TestServiceEndpoints:
    """Test cases for health and root endpoints"""

    def test_health(self, client):
        """Test health reports a healthy service"""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["dependencies"]["ai"] == "disabled"

    def test_root(self, client):
        """Test the root lists the endpoints"""
        assert client.get("/").json()["endpoints"]["query"] == "/api/v1/query"


class TestQueryEndpoints:
    """Test cases for data source and query endpoints"""

    def test_query_flow(self, client, sales_csv):
        """Test registering a source and asking a question"""
        source = register_csv(client, sales_csv)
        assert source["type"] == "csv"
        assert source["isActive"] is True

        response = client.post("/api/v1/query", json={
            "userId": "user-1",
            "conversationId": "conv-1",
            "naturalLanguageQuery": "Show sales by region",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["queryId"]
        assert body["visualization"]["type"] == "pie"
        assert body["visualization"]["data"]["labels"] == ["Widget", "Gadget", "Gizmo"]
        assert body["insights"]["summary"]

    def test_metric_query(self, client, sales_csv):
        """Test a count question returns one row and no chart"""
        register_csv(client, sales_csv)

        body = client.post("/api/v1/query", json={
            "userId": "user-1",
            "conversationId": "conv-1",
            "naturalLanguageQuery": "How many sales in 2024",
        }).json()

        assert body["results"] == [{"count_sales": 2}]
        assert body["visualization"] is None

    def test_no_data_source(self, client):
        """Test a user without sources gets a 404 with the error code"""
        response = client.post("/api/v1/query", json={
            "userId": "nobody",
            "conversationId": "conv-1",
            "naturalLanguageQuery": "Show sales by region",
        })

        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "NO_DATA_SOURCE"

    def test_configuration_error(self, client, tmp_path):
        """Test configuration errors map to 400"""
        register_csv(client, str(tmp_path / "gone.csv"))

        response = client.post("/api/v1/query", json={
            "userId": "user-1",
            "conversationId": "conv-1",
            "naturalLanguageQuery": "Show sales by region",
        })

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "CONFIGURATION_ERROR"

    def test_empty_query_rejected(self, client):
        """Test request validation"""
        response = client.post("/api/v1/query", json={
            "userId": "user-1",
            "conversationId": "conv-1",
            "naturalLanguageQuery": "",
        })
        assert response.status_code == 422

    def test_validate_data_source(self, client, sales_csv, tmp_path):
        """Test data source validation"""
        good = register_csv(client, sales_csv)
        bad = register_csv(client, str(tmp_path / "gone.csv"))

        assert client.get(f"/api/v1/data-sources/{good['id']}/validate").json() == {"id": good["id"], "valid": True}
        assert client.get(f"/api/v1/data-sources/{bad['id']}/validate").json()["valid"] is False
        assert client.get("/api/v1/data-sources/missing/validate").status_code == 404


class TestCoreEndpoints:
    """Test cases for the stateless core endpoints"""

    def test_validate_sql(self, client):
        """Test SQL validation results"""
        body = client.post("/core/v1/validate-sql", json={"sql": "DROP TABLE orders"}).json()

        assert body["valid"] is False
        assert "Query must start with SELECT" in body["errors"]
        assert "Dangerous operation 'DROP' not allowed" in body["errors"]

        assert client.post("/core/v1/validate-sql", json={"sql": "SELECT 1"}).json()["valid"] is True

    def test_transform_chart(self, client):
        """Test records are shaped into chart data"""
        response = client.post("/core/v1/transform-chart", json={
            "records": [{"category": "A", "value": 10}, {"category": "B", "value": 30}],
            "chart_type": "pie",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["chart_data"]["labels"] == ["A", "B"]
        assert body["chart_data"]["metrics"]["Total"] == "40"
        assert body["suggested_chart_type"] == "pie"
        assert body["summary"].startswith("pie chart with 2 data points")

    def test_transform_chart_empty(self, client):
        """Test empty records are a client error"""
        response = client.post("/core/v1/transform-chart", json={"records": []})
        assert response.status_code == 400

    def test_chart_config(self, client):
        """Test axis bindings and reshaped data"""
        body = client.post("/core/v1/chart-config", json={
            "chart_type": "pie",
            "records": [{"region": "East", "sales": 400}],
        }).json()

        assert body["config"]["dataKey"] == "value"
        assert body["data"] == [{"name": "East", "value": 400}]

    def test_analyze(self, client):
        """Test local analysis with suggestions"""
        body = client.post("/core/v1/analyze", json={"query": "How many sales in 2024"}).json()

        assert body["analysis"]["queryType"] == "metrics"
        assert body["analysis"]["timeframe"] == "2024"
        assert body["suggestions"] == ["Add a grouping dimension, for example 'by region' or 'per product'"]
