"""
In-memory invoice/job store (for demo and tests).
In production, use SQLite or a real database.
"""
from datetime import datetime, UTC
from typing import Dict, Iterable, Optional
import uuid
from .invoice_store_base import InvoiceStoreBase
from ..invoice_types import JobRecord


def _completed_sort_key(job: JobRecord):
    # Jobs without completed_at sort after every dated job
    return (job.completed_at is not None, job.completed_at or "")


class InMemoryInvoiceStore(InvoiceStoreBase):
    def __init__(self):
        self._jobs: Dict[str, JobRecord] = {}
        self._invoices: Dict[str, dict] = {}

    def clear(self) -> None:
        """Drop all jobs and invoices"""
        self._jobs.clear()
        self._invoices.clear()

    def upsert_job(self, job: JobRecord) -> None:
        self._jobs[job.id] = job

    def list_candidate_jobs(self, statuses: Iterable[str]) -> list[JobRecord]:
        wanted = set(statuses)
        jobs = [job for job in self._jobs.values() if job.status in wanted]
        return sorted(jobs, key=_completed_sort_key, reverse=True)

    def has_confirmed_match(self, job_id: str) -> bool:
        return any(
            inv.get("matched_job_id") == job_id and inv.get("match_status") == "matched"
            for inv in self._invoices.values()
        )

    def save_invoice(self, invoice_data: dict) -> str:
        """Store an invoice and return its ID"""
        invoice_id = str(uuid.uuid4())
        self._invoices[invoice_id] = {
            **invoice_data,
            "id": invoice_id,
            "created_at": datetime.now(UTC).isoformat(),
        }
        return invoice_id

    def get_invoice(self, invoice_id: str) -> Optional[dict]:
        return self._invoices.get(invoice_id)

    def list_invoices(self, match_status: Optional[str] = None) -> list:
        invoices = [
            inv for inv in self._invoices.values()
            if match_status is None or inv.get("match_status") == match_status
        ]
        return sorted(invoices, key=lambda inv: inv["created_at"], reverse=True)


# Global instance (in production, use dependency injection)
invoice_store = InMemoryInvoiceStore()
