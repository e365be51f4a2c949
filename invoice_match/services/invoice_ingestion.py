"""
Invoice ingestion: extract fields from a vendor PDF, match it to a job,
store the decision and notify downstream.
"""

from loguru import logger
from .form_recognizer import extract_invoice_fields
from .graph import post_review_card
from .invoice_types import InvoiceRecord
from .matching import InvoiceMatchEngine, MatchResult, create_match_engine, derive_match_status
from .storage import InvoiceStoreBase
from .events.event_publisher import EventPublisher, InvoiceMatchedEvent, get_event_publisher


def find_job_match(
    invoice: InvoiceRecord,
    store: InvoiceStoreBase,
    engine: InvoiceMatchEngine | None = None,
) -> MatchResult:
    """
    Match an invoice against the store's current candidate jobs.

    A failing candidate query degrades to no match; the invoice is still
    stored as unmatched for a person to sort out.
    """
    engine = engine or create_match_engine(prior_match_lookup=store.has_confirmed_match)
    try:
        candidates = store.list_candidate_jobs(engine.config.eligible_statuses)
    except Exception as e:
        logger.error("Candidate job query failed, treating invoice as unmatched", error=str(e))
        return MatchResult.no_match()

    if not candidates:
        logger.info("No candidate jobs to match against")
        return MatchResult.no_match()

    return engine.select_match(invoice, candidates)


def build_invoice_row(invoice: InvoiceRecord, match: MatchResult, **metadata) -> dict:
    """Invoice fields plus match columns, in the shape the store persists."""
    row = invoice.model_dump(exclude={"content"})
    row.update(
        matched_job_id=match.job_id,
        match_confidence=match.confidence,
        match_score=match.score,
        match_status=derive_match_status(match),
    )
    row.update(metadata)
    return row


async def ingest_invoice(
    pdf_bytes: bytes,
    store: InvoiceStoreBase,
    engine: InvoiceMatchEngine | None = None,
    publisher: EventPublisher | None = None,
    pdf_filename: str = "invoice.pdf",
    email_from: str | None = None,
    email_subject: str | None = None,
    email_received_at: str | None = None,
) -> dict:
    """
    Run the full pipeline for one received invoice.

    Raises:
        InvoiceExtractionError: Document Intelligence failed
        InvoiceStoreError: the invoice row couldn't be written

    Returns:
        The stored invoice row (including 'id')
    """
    logger.info("Processing invoice", email_from=email_from, email_subject=email_subject)

    invoice = extract_invoice_fields(pdf_bytes)
    match = find_job_match(invoice, store, engine)

    row = build_invoice_row(
        invoice,
        match,
        pdf_filename=pdf_filename,
        email_from=email_from,
        email_subject=email_subject,
        email_received_at=email_received_at,
    )
    invoice_id = store.save_invoice(row)
    row["id"] = invoice_id

    logger.info(
        "Invoice saved",
        invoice_id=invoice_id,
        match_status=row["match_status"],
        matched_job_id=row["matched_job_id"],
    )

    # Notifications never fail the ingestion
    try:
        (publisher or get_event_publisher()).publish_invoice_matched(
            InvoiceMatchedEvent(
                invoice_id=invoice_id,
                vendor=invoice.vendor_name or "Unknown",
                invoice_number=invoice.invoice_number or "N/A",
                total=invoice.total_amount,
                matched_job_id=match.job_id,
                match_confidence=match.confidence,
                match_status=row["match_status"],
            )
        )
    except Exception as e:
        logger.warning(f"Failed to publish event: {e}")

    if row["match_status"] == "pending_review":
        try:
            result = await post_review_card(row, invoice_id)
            logger.info("Review card", invoice_id=invoice_id, result=result)
        except Exception as e:
            logger.warning(f"Failed to post review card: {e}")

    return row
