from pydantic import BaseModel, Field
from ..services.invoice_types import InvoiceRecord, JobRecord

class ReceiveInvoiceRequest(BaseModel):
    pdf_base64: str | None = Field(default=None)
    pdf_filename: str | None = Field(default=None)
    email_from: str | None = Field(default=None)
    email_subject: str | None = Field(default=None)
    email_date: str | None = Field(default=None)


class ReceiveInvoiceResponse(BaseModel):
    success: bool = True
    invoice_id: str
    match_status: str
    matched_job_id: str | None = None
    match_confidence: str | None = None


class MatchRequest(BaseModel):
    invoice: InvoiceRecord
    candidates: list[JobRecord] | None = None  # None = use the job store


class MatchResponse(BaseModel):
    job_id: str | None = None
    confidence: str | None = None
    score: int | None = None
    match_status: str
