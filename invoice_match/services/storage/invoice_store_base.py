"""
Abstract base class for invoice/job store implementations.

Defines the interface that all stores must implement, enabling
dependency injection and easy swapping of storage backends.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from ..invoice_types import JobRecord

MATCH_STATUSES = ("matched", "pending_review", "unmatched")


class InvoiceStoreError(Exception):
    """Raised when the backing store can't complete a read or write."""


class InvoiceStoreBase(ABC):
    """
    Abstract base class for invoice and job storage.

    Jobs are owned by the dispatch side of the system; this service only
    reads them (upsert_job exists for seeding and sync). Invoices are written
    once on ingestion.

    Implementations can use:
    - In-memory storage (for testing/demo)
    - SQLite (for single-instance deployments)
    - PostgreSQL (for production)
    """

    @abstractmethod
    def upsert_job(self, job: JobRecord) -> None:
        """Insert or replace a job snapshot keyed by job.id."""
        pass

    @abstractmethod
    def list_candidate_jobs(self, statuses: Iterable[str]) -> list[JobRecord]:
        """
        Jobs whose status is one of `statuses`.

        Ordered by completed_at descending, jobs without completed_at last.
        """
        pass

    @abstractmethod
    def has_confirmed_match(self, job_id: str) -> bool:
        """True if any invoice has matched_job_id == job_id and match_status == 'matched'."""
        pass

    @abstractmethod
    def save_invoice(self, invoice_data: dict) -> str:
        """
        Persist an invoice row and return its ID.

        Args:
            invoice_data: Extracted fields plus match columns
                (matched_job_id, match_confidence, match_status) and
                email metadata.

        Returns:
            Invoice ID (unique identifier)
        """
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Optional[dict]:
        """
        Get an invoice by ID.

        Returns:
            Invoice dictionary (the saved fields plus 'id' and 'created_at'),
            or None if not found.
        """
        pass

    @abstractmethod
    def list_invoices(self, match_status: Optional[str] = None) -> list:
        """
        List invoices, newest first, optionally filtered by match_status.
        """
        pass
