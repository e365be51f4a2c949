"""
Tests for the invoice/job stores.

Both backends run the same contract tests; SQLite-only behaviour
(persistence, schema constraints) is covered at the end.
"""

import os
import sqlite3
import tempfile
import pytest
from invoice_match.services.invoice_types import JobRecord
from invoice_match.services.storage import InMemoryInvoiceStore, InvoiceStoreError, SQLiteInvoiceStore


@pytest.fixture
def db_path():
    """Create a temporary database file for testing"""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    if os.path.exists(path):
        os.remove(path)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, db_path):
    if request.param == "memory":
        return InMemoryInvoiceStore()
    return SQLiteInvoiceStore(db_path)


def test_candidate_jobs_filtered_by_status(store):
    store.upsert_job(JobRecord(id="1", status="completed", completed_at="2025-09-01T10:00:00"))
    store.upsert_job(JobRecord(id="2", status="pending"))
    store.upsert_job(JobRecord(id="3", status="in-progress"))

    ids = {job.id for job in store.list_candidate_jobs(["completed", "in-progress"])}
    assert ids == {"1", "3"}


def test_candidate_jobs_most_recent_first(store):
    store.upsert_job(JobRecord(id="old", status="completed", completed_at="2025-08-01T10:00:00"))
    store.upsert_job(JobRecord(id="open", status="in-progress"))
    store.upsert_job(JobRecord(id="new", status="completed", completed_at="2025-09-15T10:00:00"))

    ids = [job.id for job in store.list_candidate_jobs(["completed", "in-progress"])]
    assert ids == ["new", "old", "open"]


def test_upsert_replaces_job(store):
    store.upsert_job(JobRecord(id="1", status="pending"))
    store.upsert_job(JobRecord(id="1", status="completed", address_city="Fontana"))

    jobs = store.list_candidate_jobs(["completed"])
    assert len(jobs) == 1
    assert jobs[0].address_city == "Fontana"


def test_candidate_jobs_round_trip_fields(store):
    job = JobRecord(
        id="j1", status="completed", job_site_name="Harbor Point Tower",
        customer_name="Acme Construction", address_street="1200 Harbor Blvd",
        address_city="Long Beach", address_state="CA", address_zip="90802",
        date_out="2025-09-28", completed_at="2025-09-29T16:00:00",
    )
    store.upsert_job(job)
    assert store.list_candidate_jobs(["completed"]) == [job]


def test_has_confirmed_match_only_for_matched_status(store):
    store.save_invoice({"invoice_number": "1", "matched_job_id": "j1", "match_status": "pending_review"})
    assert store.has_confirmed_match("j1") is False

    store.save_invoice({"invoice_number": "2", "matched_job_id": "j1", "match_status": "matched"})
    assert store.has_confirmed_match("j1") is True
    assert store.has_confirmed_match("j2") is False


def test_save_and_get_invoice(store):
    invoice_id = store.save_invoice({
        "invoice_number": "INV-1",
        "vendor_name": "Contoso Fuel Services",
        "total_amount": 385.0,
        "match_status": "unmatched",
    })

    invoice = store.get_invoice(invoice_id)
    assert invoice["id"] == invoice_id
    assert invoice["invoice_number"] == "INV-1"
    assert invoice["total_amount"] == 385.0
    assert invoice["created_at"]


def test_get_missing_invoice(store):
    assert store.get_invoice("does-not-exist") is None


def test_list_invoices_filter(store):
    store.save_invoice({"invoice_number": "1", "match_status": "matched", "matched_job_id": "j1"})
    store.save_invoice({"invoice_number": "2", "match_status": "unmatched"})
    store.save_invoice({"invoice_number": "3", "match_status": "unmatched"})

    assert len(store.list_invoices()) == 3
    unmatched = store.list_invoices(match_status="unmatched")
    assert {inv["invoice_number"] for inv in unmatched} == {"2", "3"}
    assert store.list_invoices(match_status="pending_review") == []


def test_numeric_job_ids_are_strings():
    assert JobRecord(id=42, status="completed").id == "42"


class TestSQLiteOnly:

    def test_persists_across_instances(self, db_path):
        first = SQLiteInvoiceStore(db_path)
        first.upsert_job(JobRecord(id="j1", status="completed"))
        invoice_id = first.save_invoice({"invoice_number": "INV-9", "match_status": "matched", "matched_job_id": "j1"})

        second = SQLiteInvoiceStore(db_path)
        assert second.get_invoice(invoice_id)["invoice_number"] == "INV-9"
        assert second.has_confirmed_match("j1") is True
        assert [j.id for j in second.list_candidate_jobs(["completed"])] == ["j1"]

    def test_extra_keys_ignored(self, db_path):
        store = SQLiteInvoiceStore(db_path)
        invoice_id = store.save_invoice({"invoice_number": "INV-1", "content": "OCR text", "match_status": "unmatched"})
        assert "content" not in store.get_invoice(invoice_id)

    def test_missing_status_defaults_to_unmatched(self, db_path):
        store = SQLiteInvoiceStore(db_path)
        invoice_id = store.save_invoice({"invoice_number": "INV-1"})
        assert store.get_invoice(invoice_id)["match_status"] == "unmatched"

    def test_rejects_unknown_match_status(self, db_path):
        store = SQLiteInvoiceStore(db_path)
        with pytest.raises(InvoiceStoreError):
            store.save_invoice({"invoice_number": "INV-1", "match_status": "approved"})

    def test_prior_match_index_exists(self, db_path):
        SQLiteInvoiceStore(db_path)
        conn = sqlite3.connect(db_path)
        names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'index'")}
        conn.close()
        assert "idx_invoices_matched_job" in names

    def test_empty_status_list(self, db_path):
        store = SQLiteInvoiceStore(db_path)
        store.upsert_job(JobRecord(id="j1", status="completed"))
        assert store.list_candidate_jobs([]) == []
