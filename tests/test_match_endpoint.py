"""
Tests for POST /invoices/match (score only, nothing stored).
"""

from fastapi.testclient import TestClient
from invoice_match.api.main import app
from invoice_match.services.invoice_types import JobRecord
from invoice_match.services.storage import invoice_store

client = TestClient(app)

INVOICE = {
    "ship_to_address": "123 Main Street",
    "ship_to_city": "Springfield",
    "ship_to_zip": "62704",
    "invoice_date": "2025-05-02",
}

CANDIDATE = {
    "id": "job-80",
    "status": "completed",
    "address_street": "123 Main St",
    "address_city": "Springfield",
    "address_zip": "62704",
    "date_out": "2025-05-01",
}


def test_match_with_explicit_candidates(auth_headers):
    r = client.post("/invoices/match", json={"invoice": INVOICE, "candidates": [CANDIDATE]}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"job_id": "job-80", "confidence": "high", "score": 80, "match_status": "matched"}
    assert invoice_store.list_invoices() == []


def test_match_ignores_ineligible_candidates(auth_headers):
    pending = {**CANDIDATE, "status": "pending"}
    r = client.post("/invoices/match", json={"invoice": INVOICE, "candidates": [pending]}, headers=auth_headers)
    assert r.json()["match_status"] == "unmatched"
    assert r.json()["job_id"] is None


def test_match_uses_store_when_candidates_omitted(auth_headers):
    invoice_store.upsert_job(JobRecord(**CANDIDATE))
    r = client.post("/invoices/match", json={"invoice": INVOICE}, headers=auth_headers)
    assert r.json()["job_id"] == "job-80"


def test_match_applies_prior_match_penalty(auth_headers):
    invoice_store.save_invoice({"invoice_number": "earlier", "matched_job_id": "job-80", "match_status": "matched"})
    r = client.post("/invoices/match", json={"invoice": INVOICE, "candidates": [CANDIDATE]}, headers=auth_headers)
    # 80 - 50 = 30, below the gate
    assert r.json()["match_status"] == "unmatched"


def test_match_accepts_extra_job_columns_and_numeric_ids(auth_headers):
    candidate = {**CANDIDATE, "id": 80, "equipment_count": 3}
    r = client.post("/invoices/match", json={"invoice": INVOICE, "candidates": [candidate]}, headers=auth_headers)
    assert r.json()["job_id"] == "80"


def test_match_requires_auth():
    r = client.post("/invoices/match", json={"invoice": INVOICE, "candidates": [CANDIDATE]})
    assert r.status_code == 401


def test_match_invalid_body_returns_422(auth_headers):
    r = client.post("/invoices/match", json={"candidates": "nope"}, headers=auth_headers)
    assert r.status_code == 422
