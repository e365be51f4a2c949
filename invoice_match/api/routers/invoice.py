import base64
import binascii
from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from ..deps import enforce_rate_limit, get_invoice_store, verify_webhook_secret
from ...models.invoice import (
    MatchRequest,
    MatchResponse,
    ReceiveInvoiceRequest,
    ReceiveInvoiceResponse,
)
from ...services.form_recognizer import InvoiceExtractionError
from ...services.invoice_ingestion import find_job_match, ingest_invoice
from ...services.matching import create_match_engine, derive_match_status
from ...services.storage import MATCH_STATUSES, InvoiceStoreBase, InvoiceStoreError

router = APIRouter(prefix="/invoices", tags=["invoices"])

protected = [Depends(enforce_rate_limit), Depends(verify_webhook_secret)]


@router.post("/receive", response_model=ReceiveInvoiceResponse, dependencies=protected)
async def receive_invoice(
    req: ReceiveInvoiceRequest,
    store: InvoiceStoreBase = Depends(get_invoice_store),
):
    """
    Receive a vendor invoice PDF (forwarded from the invoices mailbox),
    extract it, match it to a job and store the result.

    Example request:
    {
        "pdf_base64": "JVBERi0xLjQK...",
        "pdf_filename": "INV-10023.pdf",
        "email_from": "billing@contosofuel.com",
        "email_subject": "Invoice INV-10023",
        "email_date": "2025-09-30T14:02:00Z"
    }

    match_status is "matched" only for high-confidence matches;
    medium/low go to "pending_review" and no match is "unmatched".
    """
    if not req.pdf_base64:
        raise HTTPException(status_code=400, detail="No PDF data provided")
    try:
        pdf_bytes = base64.b64decode(req.pdf_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="pdf_base64 is not valid base64")

    try:
        row = await ingest_invoice(
            pdf_bytes,
            store=store,
            pdf_filename=req.pdf_filename or "invoice.pdf",
            email_from=req.email_from,
            email_subject=req.email_subject,
            email_received_at=req.email_date,
        )
    except InvoiceExtractionError as e:
        raise HTTPException(status_code=500, detail=f"Failed to parse invoice: {e}")
    except InvoiceStoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to save invoice: {e}")

    return ReceiveInvoiceResponse(
        invoice_id=row["id"],
        match_status=row["match_status"],
        matched_job_id=row["matched_job_id"],
        match_confidence=row["match_confidence"],
    )


@router.post("/match", response_model=MatchResponse, dependencies=protected)
async def match_invoice(
    req: MatchRequest,
    store: InvoiceStoreBase = Depends(get_invoice_store),
):
    """
    Score an already-extracted invoice against jobs without storing anything.

    Pass `candidates` to match against an explicit job list (in priority
    order); omit it to use the job store's completed / in-progress jobs.
    Prior confirmed matches in the store are penalized either way.
    """
    engine = create_match_engine(prior_match_lookup=store.has_confirmed_match)
    if req.candidates is None:
        result = find_job_match(req.invoice, store, engine)
    else:
        result = engine.select_match(req.invoice, req.candidates)

    return MatchResponse(
        job_id=result.job_id,
        confidence=result.confidence,
        score=result.score,
        match_status=derive_match_status(result),
    )


@router.get("")
async def list_invoices(
    match_status: str | None = None,
    store: InvoiceStoreBase = Depends(get_invoice_store),
):
    """List received invoices, newest first"""
    if match_status is not None and match_status not in MATCH_STATUSES:
        raise HTTPException(status_code=400, detail=f"Unknown match_status: {match_status}")
    invoices = store.list_invoices(match_status=match_status)
    logger.debug("Listing invoices", match_status=match_status, count=len(invoices))
    return {"total": len(invoices), "invoices": invoices}


@router.get("/{invoice_id}")
async def get_invoice(
    invoice_id: str,
    store: InvoiceStoreBase = Depends(get_invoice_store),
):
    invoice = store.get_invoice(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice
