from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from contract_assistant.core import chat_assistant, contract_analyzer
from contract_assistant.core.exceptions import (
    ConfigurationError, DocuSignAuthError, DocuSignError, DocuSignNotFoundError
)
from contract_assistant.main import app
from contract_assistant.routes import contract as contract_routes
from contract_assistant.routes.analysis import get_contract_analyzer
from contract_assistant.routes.auth import get_docusign_client

ENVELOPE_URL = "https://app.docusign.com/documents/details/abc-123"


class StubDocuSignClient:
    """Replaces DocuSignClient, raising `error` when one is set"""

    def __init__(self, error=None):
        self.error = error

    def build_auth_url(self):
        if self.error:
            raise self.error
        return "https://account-d.docusign.com/oauth/auth?client_id=abc"

    async def exchange_code(self, code):
        if self.error:
            raise self.error
        return {"access_token": "token-xyz", "token_type": "Bearer", "expires_in": 3600, "account_id": "acc-1"}

    async def fetch_contract_text(self, access_token, docusign_url):
        if self.error:
            raise self.error
        return {
            "content": "Contract text",
            "envelope_id": "abc-123",
            "account_id": "acc-1",
            "document_count": 1,
            "is_scanned": False
        }


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _use_docusign(stub):
    app.dependency_overrides[get_docusign_client] = lambda: stub


def test_root_and_health(client):
    assert client.get("/").json() == {"message": "Welcome to the Contract Assistant API"}

    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert "total_entries" in health["cache"]


def test_cors_allows_extension_origin(client):
    response = client.options("/api/chat", headers={
        "Origin": "chrome-extension://abcdefghijklmnop",
        "Access-Control-Request-Method": "POST"
    })
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "chrome-extension://abcdefghijklmnop"
    assert response.headers["access-control-max-age"] == "86400"


def test_contract_url_handover(client):
    response = client.post("/api/contract/url", json={"url": ENVELOPE_URL})
    assert response.status_code == 200
    assert response.json() == {"message": "URL received successfully", "url": ENVELOPE_URL, "redirect": True}

    assert client.get("/api/contract/url/pending").json() == {"url": ENVELOPE_URL}
    # Picked up only once
    assert client.get("/api/contract/url/pending").json() == {"url": None}


@pytest.mark.parametrize("payload, error", [
    ({}, "URL is required"),
    ({"url": "https://example.com/envelopes/abc"}, "Invalid DocuSign URL"),
])
def test_contract_url_validation(client, payload, error):
    response = client.post("/api/contract/url", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": error}


def test_contract_url_accepts_any_docusign_page(client):
    signing_url = "https://na3.docusign.net/Signing/StartInSession.aspx?t=abc"
    response = client.post("/api/contract/url", json={"url": signing_url})
    assert response.status_code == 200
    assert client.get("/api/contract/url/pending").json() == {"url": signing_url}


def test_unknown_route_keeps_default_error_body(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


def test_auth_url(client):
    _use_docusign(StubDocuSignClient())
    response = client.get("/api/auth/docusign/url")
    assert response.status_code == 200
    assert response.json()["url"].startswith("https://account-d.docusign.com/oauth/auth")


def test_auth_url_not_configured(client):
    _use_docusign(StubDocuSignClient(ConfigurationError("DocuSign Client ID not configured")))
    response = client.get("/api/auth/docusign/url")
    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to generate auth URL", "details": "DocuSign Client ID not configured"
    }


def test_token_exchange(client):
    _use_docusign(StubDocuSignClient())
    response = client.post("/api/auth/docusign/token", json={"code": "abc"})
    assert response.status_code == 200
    assert response.json()["access_token"] == "token-xyz"
    assert response.json()["account_id"] == "acc-1"


def test_token_exchange_failure(client):
    _use_docusign(StubDocuSignClient(DocuSignError("Failed to exchange token", details={"error": "invalid_grant"})))
    response = client.post("/api/auth/docusign/token", json={"code": "abc"})
    assert response.status_code == 500
    assert response.json()["details"] == {"error": "invalid_grant"}


def test_fetch_contract(client):
    _use_docusign(StubDocuSignClient())
    response = client.post(
        "/api/fetch-contract",
        json={"docusignUrl": ENVELOPE_URL},
        headers={"Authorization": "Bearer token-xyz"}
    )
    assert response.status_code == 200
    assert response.json() == {
        "content": "Contract text",
        "envelopeId": "abc-123",
        "accountId": "acc-1",
        "documentCount": 1,
        "isScanned": False
    }


def test_fetch_contract_request_validation(client):
    _use_docusign(StubDocuSignClient())

    missing_url = client.post("/api/fetch-contract", json={}, headers={"Authorization": "Bearer t"})
    assert missing_url.status_code == 400

    missing_token = client.post("/api/fetch-contract", json={"docusignUrl": ENVELOPE_URL})
    assert missing_token.status_code == 401
    assert missing_token.json()["error"] == "No authorization token provided"

    no_envelope = client.post(
        "/api/fetch-contract",
        json={"docusignUrl": "https://app.docusign.com/home"},
        headers={"Authorization": "Bearer t"}
    )
    assert no_envelope.status_code == 400
    assert no_envelope.json()["error"] == "Invalid DocuSign URL"


@pytest.mark.parametrize("error, status", [
    (DocuSignAuthError(), 401),
    (DocuSignNotFoundError(), 404),
    (DocuSignError("Failed to fetch document list", status_code=502), 500),
    (RuntimeError("boom"), 500),
])
def test_fetch_contract_upstream_errors(client, error, status):
    _use_docusign(StubDocuSignClient(error))
    response = client.post(
        "/api/fetch-contract",
        json={"docusignUrl": ENVELOPE_URL},
        headers={"Authorization": "Bearer token-xyz"}
    )
    assert response.status_code == status


def test_fetch_contract_keeps_upstream_message(client):
    _use_docusign(StubDocuSignClient(DocuSignError("No documents found in the envelope", status_code=502)))
    response = client.post(
        "/api/fetch-contract",
        json={"docusignUrl": ENVELOPE_URL},
        headers={"Authorization": "Bearer token-xyz"}
    )
    assert response.status_code == 500
    assert response.json() == {
        "error": "No documents found in the envelope", "details": "No documents found in the envelope"
    }


def test_upload_contract(client, monkeypatch):
    async def fake_parse(data):
        assert data == b"%PDF-1.4 fake"
        return True, "Scanned text"

    monkeypatch.setattr(contract_routes, "parse_pdf_async", fake_parse)

    response = client.post(
        "/api/contract/upload",
        files={"file": ("contract.pdf", b"%PDF-1.4 fake", "application/pdf")}
    )
    assert response.status_code == 200
    assert response.json()["content"] == "Scanned text"
    assert response.json()["isScanned"] is True
    assert response.json()["envelopeId"] is None


def test_upload_rejects_non_pdf(client):
    response = client.post("/api/contract/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400


def test_analyze_contract_and_retrieve(client, monkeypatch, storage_dir, fake_model, sample_contract):
    monkeypatch.setattr(contract_analyzer, "call_openai_api", fake_model)

    response = client.post("/api/analyze-contract", json={"contractContent": sample_contract})
    assert response.status_code == 200
    body = response.json()
    assert body["summary"].startswith("A services agreement")
    assert body["riskLevel"] in ("Low", "Moderate", "High")
    assert body["passCount"] == 3
    assert body["importantDates"][0]["formattedDate"] == "January 15, 2024"
    assert set(body["categoryScores"]) == {"financial", "legal", "compliance", "operational"}

    stored = client.get(f"/api/analysis/{body['analysisId']}")
    assert stored.status_code == 200
    assert stored.json() == body


def test_analyze_contract_failure_returns_fallback(client, monkeypatch):
    class FailingAnalyzer:
        async def analyze(self, content):
            raise RuntimeError("model unavailable")

    app.dependency_overrides[get_contract_analyzer] = lambda: FailingAnalyzer()

    response = client.post("/api/analyze-contract", json={"contractContent": "Some contract"})
    assert response.status_code == 200
    body = response.json()
    assert body["isPartialAnalysis"] is True
    assert body["riskScore"] == 50
    assert body["error"] == "model unavailable"


def test_analyze_empty_content_returns_fallback(client):
    response = client.post("/api/analyze-contract", json={})
    assert response.status_code == 200
    assert response.json()["error"] == "Contract content is required"


def test_unknown_analysis(client, storage_dir):
    assert client.get("/api/analysis/00000000-0000-0000-0000-000000000000").status_code == 404
    assert client.get("/api/analysis/not-an-id").status_code == 404


def test_chat(client, monkeypatch):
    async def fake_call(system_prompt, user_prompt, purpose="analysis", timeout=None, use_cache=True):
        return "The renewal is automatic."

    monkeypatch.setattr(chat_assistant, "call_openai_api", fake_call)

    response = client.post("/api/chat", json={
        "question": "What terms apply to renewal?",
        "context": "Summary: A lease.\nRisk Score: 30%\nKey Terms: Auto renewal"
    })
    assert response.status_code == 200
    assert response.json() == {"response": "The renewal is automatic.", "focus": "terms"}


def test_chat_with_structured_analysis(client, monkeypatch):
    async def fake_call(system_prompt, user_prompt, purpose="analysis", timeout=None, use_cache=True):
        return "Moderate risk."

    monkeypatch.setattr(chat_assistant, "call_openai_api", fake_call)

    response = client.post("/api/chat", json={
        "question": "How risky is it?",
        "analysis": {"summary": "A lease.", "riskScore": 45, "keyTerms": ["Rent"]}
    })
    assert response.status_code == 200
    assert response.json()["focus"] == "risk"


def test_chat_requires_context(client):
    response = client.post("/api/chat", json={"question": "Anything?"})
    assert response.status_code == 400


def test_chat_model_failure(client, monkeypatch):
    async def fake_call(system_prompt, user_prompt, purpose="analysis", timeout=None, use_cache=True):
        return ""

    monkeypatch.setattr(chat_assistant, "call_openai_api", fake_call)

    response = client.post("/api/chat", json={"question": "Anything?", "context": "Summary: A lease."})
    assert response.status_code == 500
    assert response.json()["error"] == "Failed to generate response"


def test_calendar_link(client):
    response = client.post("/api/calendar/link", json={
        "dateInfo": {
            "date": "03/15/2024",
            "context": "Payment is due on 03/15/2024.",
            "type": "absolute",
            "formattedDate": "March 15, 2024",
            "eventType": "Payment"
        },
        "calendarType": "outlook"
    })
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Contract Payment: Payment"
    assert body["startDate"] == "2024-03-15"
    params = parse_qs(urlparse(body["url"]).query)
    assert params["startdt"] == ["2024-03-15T00:00:00"]
