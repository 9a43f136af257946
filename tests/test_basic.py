"""
Basic tests for the quote lead API.
"""

from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)


def test_root_endpoint():
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Quote Lead API"


def test_health_endpoint():
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_request_id_header_echoed():
    """Test that a caller-supplied request ID is echoed back."""
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"
    assert "X-Response-Time-Ms" in response.headers


def test_quotes_endpoint_rejects_empty_payload(client):
    """Test that an empty payload is rejected before any persistence."""
    response = client.post("/v1/quotes", json={})
    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "invalid_request"
    assert "request_id" in body


def test_quotes_endpoint_rejects_malformed_email(client, payload_factory):
    """Test that a malformed email is an input shape error."""
    response = client.post("/v1/quotes", json=payload_factory(email="not-an-email"))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_request"


def test_quotes_endpoint_rejects_bad_date(client, payload_factory):
    """Test that a non-ISO date of birth is rejected."""
    response = client.post("/v1/quotes", json=payload_factory(dobTitular="18/11/1961"))
    assert response.status_code == 400


def test_quotes_endpoint_rejects_unknown_discovery_source(client, payload_factory):
    """Test that discoverySource is limited to its fixed choices."""
    response = client.post("/v1/quotes", json=payload_factory(discoverySource="tiktok"))
    assert response.status_code == 400


def test_quotes_endpoint_accepts_valid_payload(client, payload_factory):
    """Test a valid submission end to end."""
    response = client.post("/v1/quotes", json=payload_factory())
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert "quote_id" in body
    assert body["hubspot_contact_id"] == "contact-1"
