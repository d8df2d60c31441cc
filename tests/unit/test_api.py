"""
Unit Tests - Reports API
"""
import inspect

import pytest
from fastapi.testclient import TestClient

from sales_analytics.main import create_app
from sales_analytics.serving.api.routes.reports import get_customer_report, get_product_report, read_view


@pytest.fixture
def client(warehouse) -> TestClient:
    return TestClient(create_app(warehouse=warehouse))


class TestHealthEndpoints:
    """Tests for health checks"""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["warehouse"]["rows"]["fact_sales"] == 8

    def test_ready(self, client):
        assert client.get("/api/v1/health/ready").status_code == 200

    def test_not_ready_without_warehouse(self):
        client = TestClient(create_app())

        response = client.get("/api/v1/health/ready")

        assert response.status_code == 503
        assert client.get("/api/v1/reports/customers").status_code == 503


class TestReportEndpoints:
    """Tests for report endpoints"""

    def test_catalog(self, client):
        response = client.get("/api/v1/reports")

        assert response.status_code == 200
        names = [v["name"] for v in response.json()["views"]]
        assert "report_customers" in names
        assert "category_contribution" in names

    def test_customer_report(self, client):
        response = client.get("/api/v1/reports/customers", params={"reference_date": "2024-06-15"})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 4
        first = body["items"][0]
        assert first["customer_key"] == 1
        assert first["customer_segment"] == "VIP"
        assert first["recency"] == 41

    def test_customer_report_segment_filter(self, client):
        response = client.get(
            "/api/v1/reports/customers",
            params={"segment": "Regular", "reference_date": "2024-06-15"},
        )

        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["customer_key"] == 2

    def test_invalid_segment(self, client):
        response = client.get("/api/v1/reports/customers", params={"segment": "Gold"})

        assert response.status_code == 422

    def test_product_report_category_filter(self, client):
        response = client.get(
            "/api/v1/reports/products",
            params={"category": "Bikes", "reference_date": "2024-06-15"},
        )

        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["product_name"] == "Road Bike"
        assert body["items"][0]["product_segment"] == "Low-Performer"

    def test_pagination(self, client):
        response = client.get(
            "/api/v1/reports/products",
            params={"limit": 2, "offset": 1, "reference_date": "2024-06-15"},
        )

        body = response.json()
        assert body["total"] == 4
        assert [item["product_key"] for item in body["items"]] == [20, 30]

    def test_generic_view(self, client):
        response = client.get("/api/v1/reports/cumulative_sales_by_year")

        assert response.status_code == 200
        body = response.json()
        assert body["columns"][0] == "period"
        assert body["rows"][-1]["running_total_sales"] == 11080.0

    def test_unknown_view(self, client):
        response = client.get("/api/v1/reports/report_nothing")

        assert response.status_code == 404

    def test_report_endpoints_run_in_threadpool(self):
        """Polars recomputation must not run on the event loop"""
        for endpoint in (get_customer_report, get_product_report, read_view):
            assert not inspect.iscoroutinefunction(endpoint)
