"""
SQLite-based invoice/job store for single-instance deployments.

Provides persistent storage of received invoices and their match decisions,
plus a local snapshot of jobs to match against.
"""

import sqlite3
import uuid
from datetime import datetime, UTC
from typing import Iterable, Optional
from loguru import logger
from .invoice_store_base import InvoiceStoreBase, InvoiceStoreError
from ..invoice_types import JobRecord

JOB_COLUMNS = (
    "id", "status", "job_site_name", "customer_name",
    "address_street", "address_city", "address_state", "address_zip",
    "date_out", "completed_at",
)

INVOICE_COLUMNS = (
    "invoice_number", "invoice_date", "due_date", "vendor_name", "customer_name",
    "ship_to_name", "ship_to_address", "ship_to_city", "ship_to_state", "ship_to_zip",
    "total_amount", "balance_due", "payment_terms", "confidence",
    "matched_job_id", "match_confidence", "match_score", "match_status",
    "pdf_filename", "email_from", "email_subject", "email_received_at",
)


class SQLiteInvoiceStore(InvoiceStoreBase):
    """
    SQLite-backed invoice store with persistent storage.

    Features:
    - Persistent storage across application restarts
    - Indexed prior-match lookups (matched_job_id, match_status)
    - Status-based filtering
    """

    def __init__(self, db_path: str = "invoices.db"):
        """
        Initialize store with database path.

        Args:
            db_path: Path to SQLite database file (default: invoices.db)
        """
        self.db_path = db_path
        self._init_database()

    def _init_database(self):
        """Create jobs and invoices tables if they don't exist"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS jobs (
                id TEXT PRIMARY KEY,
                status TEXT,
                job_site_name TEXT,
                customer_name TEXT,
                address_street TEXT,
                address_city TEXT,
                address_state TEXT,
                address_zip TEXT,
                date_out TEXT,
                completed_at TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS invoices (
                id TEXT PRIMARY KEY,
                invoice_number TEXT,
                invoice_date TEXT,
                due_date TEXT,
                vendor_name TEXT,
                customer_name TEXT,
                ship_to_name TEXT,
                ship_to_address TEXT,
                ship_to_city TEXT,
                ship_to_state TEXT,
                ship_to_zip TEXT,
                total_amount REAL,
                balance_due REAL,
                payment_terms TEXT,
                confidence REAL,
                matched_job_id TEXT,
                match_confidence TEXT,
                match_score INTEGER,
                match_status TEXT NOT NULL DEFAULT 'unmatched',
                pdf_filename TEXT,
                email_from TEXT,
                email_subject TEXT,
                email_received_at TEXT,
                created_at TEXT NOT NULL,
                CHECK (match_status IN ('matched', 'pending_review', 'unmatched'))
            )
        """)

        # Indexes for the candidate query and the per-candidate prior-match lookup
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_jobs_status
            ON jobs(status)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_invoices_matched_job
            ON invoices(matched_job_id, match_status)
        """)

        conn.commit()
        conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def upsert_job(self, job: JobRecord) -> None:
        values = job.model_dump(include=set(JOB_COLUMNS))
        placeholders = ", ".join("?" for _ in JOB_COLUMNS)

        conn = self._get_connection()
        try:
            conn.execute(
                f"INSERT OR REPLACE INTO jobs ({', '.join(JOB_COLUMNS)}) VALUES ({placeholders})",
                tuple(values[col] for col in JOB_COLUMNS),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise InvoiceStoreError(f"Failed to save job {job.id}: {e}") from e
        finally:
            conn.close()

    def list_candidate_jobs(self, statuses: Iterable[str]) -> list[JobRecord]:
        """
        Jobs in any of the given statuses, most recently completed first.
        """
        statuses = list(statuses)
        if not statuses:
            return []
        placeholders = ", ".join("?" for _ in statuses)

        conn = self._get_connection()
        try:
            rows = conn.execute(f"""
                SELECT {', '.join(JOB_COLUMNS)}
                FROM jobs
                WHERE status IN ({placeholders})
                ORDER BY completed_at IS NULL, completed_at DESC
            """, statuses).fetchall()
        except sqlite3.Error as e:
            raise InvoiceStoreError(f"Failed to query candidate jobs: {e}") from e
        finally:
            conn.close()

        return [JobRecord(**dict(row)) for row in rows]

    def has_confirmed_match(self, job_id: str) -> bool:
        conn = self._get_connection()
        try:
            row = conn.execute("""
                SELECT id FROM invoices
                WHERE matched_job_id = ? AND match_status = 'matched'
                LIMIT 1
            """, (job_id,)).fetchone()
        except sqlite3.Error as e:
            raise InvoiceStoreError(f"Prior-match lookup failed for job {job_id}: {e}") from e
        finally:
            conn.close()

        return row is not None

    def save_invoice(self, invoice_data: dict) -> str:
        """
        Persist an invoice row and return the invoice ID.

        Keys outside the invoices table (e.g. OCR content) are ignored.
        """
        invoice_id = str(uuid.uuid4())
        created_at = datetime.now(UTC).isoformat()
        row = {col: invoice_data.get(col) for col in INVOICE_COLUMNS}
        row["match_status"] = row["match_status"] or "unmatched"
        row["id"] = invoice_id
        row["created_at"] = created_at

        conn = self._get_connection()
        try:
            conn.execute(
                f"INSERT INTO invoices ({', '.join(row)}) VALUES ({', '.join('?' for _ in row)})",
                tuple(row.values()),
            )
            conn.commit()
        except sqlite3.Error as e:
            logger.error("Failed to save invoice", error=str(e))
            raise InvoiceStoreError(f"Failed to save invoice: {e}") from e
        finally:
            conn.close()

        return invoice_id

    def get_invoice(self, invoice_id: str) -> Optional[dict]:
        conn = self._get_connection()
        try:
            row = conn.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
        finally:
            conn.close()

        return dict(row) if row is not None else None

    def list_invoices(self, match_status: Optional[str] = None) -> list:
        """
        List invoices (ordered by creation time, newest first).

        Args:
            match_status: Optional filter, one of 'matched', 'pending_review', 'unmatched'
        """
        conn = self._get_connection()
        try:
            if match_status is None:
                rows = conn.execute("""
                    SELECT * FROM invoices
                    ORDER BY created_at DESC
                """).fetchall()
            else:
                rows = conn.execute("""
                    SELECT * FROM invoices
                    WHERE match_status = ?
                    ORDER BY created_at DESC
                """, (match_status,)).fetchall()
        finally:
            conn.close()

        return [dict(row) for row in rows]
