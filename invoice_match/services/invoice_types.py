from pydantic import BaseModel

class InvoiceRecord(BaseModel):
    """Structured fields pulled from a vendor invoice. Every field may be missing."""
    invoice_number: str | None = None
    invoice_date: str | None = None
    due_date: str | None = None
    vendor_name: str | None = None
    customer_name: str | None = None  # Bill-to company
    ship_to_name: str | None = None   # Ship-to company / job site
    ship_to_address: str | None = None
    ship_to_city: str | None = None
    ship_to_state: str | None = None
    ship_to_zip: str | None = None
    total_amount: float | None = None
    balance_due: float | None = None
    payment_terms: str | None = None
    confidence: float = 0.0
    content: str | None = None  # Full OCR text content


class JobRecord(BaseModel):
    """Snapshot of a job row as read from the job store."""
    id: str
    status: str | None = None
    job_site_name: str | None = None
    customer_name: str | None = None
    address_street: str | None = None
    address_city: str | None = None
    address_state: str | None = None
    address_zip: str | None = None
    date_out: str | None = None
    completed_at: str | None = None

    model_config = {"extra": "ignore", "coerce_numbers_to_str": True}
