from loguru import logger
from azure.ai.documentintelligence import DocumentIntelligenceClient
from azure.core.credentials import AzureKeyCredential
from .invoice_types import InvoiceRecord
from ..core.config import settings


class InvoiceExtractionError(Exception):
    """Raised when Document Intelligence can't analyze the document."""


def parse_amount(raw) -> float | None:
    """Parse "$1,234.56", "USD 123.45" or "123.45" into a float."""
    if raw is None:
        return None
    # Handle currency symbols, currency codes, and commas
    amount_str = str(raw).replace("$", "").replace(",", "")
    for curr_code in ["USD", "AUD", "EUR", "GBP", "CAD"]:
        amount_str = amount_str.replace(curr_code, "")
    amount_str = amount_str.strip()
    if not amount_str:
        return None
    try:
        return float(amount_str)
    except ValueError:
        logger.warning(f"Could not parse invoice amount: {raw}")
        return None


def _field_content(fields, field_name):
    if not fields or field_name not in fields:
        return None
    field = fields[field_name]
    if getattr(field, "content", None):
        return field.content
    value = getattr(field, "value_string", None)
    return str(value) if value is not None else None


def _field_date(fields, field_name):
    """ISO date when DI resolved one, else the printed text"""
    if not fields or field_name not in fields:
        return None
    value = getattr(fields[field_name], "value_date", None)
    if value is not None:
        return value.isoformat()
    return _field_content(fields, field_name)


def _field_amount(fields, field_name):
    if not fields or field_name not in fields:
        return None
    currency = getattr(fields[field_name], "value_currency", None)
    if currency is not None and getattr(currency, "amount", None) is not None:
        return float(currency.amount)
    return parse_amount(_field_content(fields, field_name))


def _shipping_address(fields) -> dict:
    """Split DI's ShippingAddress into street/city/state/zip"""
    if not fields or "ShippingAddress" not in fields:
        return {}
    address = getattr(fields["ShippingAddress"], "value_address", None)
    if address is None:
        # Unstructured: keep the first printed line as the street
        content = _field_content(fields, "ShippingAddress") or ""
        first_line = content.splitlines()[0].strip() if content.strip() else None
        return {"ship_to_address": first_line}

    street = getattr(address, "street_address", None)
    if not street:
        parts = [getattr(address, "house_number", None), getattr(address, "road", None)]
        street = " ".join(p for p in parts if p) or None
    return {
        "ship_to_address": street,
        "ship_to_city": getattr(address, "city", None),
        "ship_to_state": getattr(address, "state", None),
        "ship_to_zip": getattr(address, "postal_code", None),
    }


def extract_invoice_fields(file_bytes: bytes) -> InvoiceRecord:
    # Check if Azure Document Intelligence is configured
    if settings.az_di_endpoint and settings.az_di_api_key:
        logger.info(
            "Using Azure Document Intelligence for invoice extraction",
            endpoint=settings.az_di_endpoint[:50] + "..." if len(settings.az_di_endpoint) > 50 else settings.az_di_endpoint
        )

        try:
            client = DocumentIntelligenceClient(
                endpoint=settings.az_di_endpoint,
                credential=AzureKeyCredential(settings.az_di_api_key)
            )

            logger.info(f"Analyzing document of size {len(file_bytes)} bytes")

            poller = client.begin_analyze_document(
                "prebuilt-invoice",
                body=file_bytes,
                content_type="application/octet-stream"
            )
            result = poller.result()
        except Exception as e:
            logger.error(f"Azure DI extraction failed: {str(e)}")
            raise InvoiceExtractionError(f"Invoice extraction failed: {str(e)}") from e

        ocr_content = result.content if getattr(result, "content", None) else ""

        if not result.documents:
            # Not an invoice layout DI recognizes; matching will see no signals
            logger.warning(
                "Azure DI prebuilt-invoice model found no structured invoice data. "
                "Returning OCR content only."
            )
            return InvoiceRecord(confidence=0.0, content=ocr_content)

        doc = result.documents[0]
        fields = doc.fields if hasattr(doc, "fields") else {}

        invoice = InvoiceRecord(
            invoice_number=_field_content(fields, "InvoiceId"),
            invoice_date=_field_date(fields, "InvoiceDate"),
            due_date=_field_date(fields, "DueDate"),
            vendor_name=_field_content(fields, "VendorName"),
            customer_name=_field_content(fields, "CustomerName"),
            ship_to_name=_field_content(fields, "ShippingAddressRecipient"),
            total_amount=_field_amount(fields, "InvoiceTotal"),
            balance_due=_field_amount(fields, "AmountDue"),
            payment_terms=_field_content(fields, "PaymentTerm"),
            confidence=doc.confidence if getattr(doc, "confidence", None) is not None else 0.0,
            content=ocr_content,
            **_shipping_address(fields),
        )

        logger.info(
            "Successfully extracted invoice data from Azure DI",
            vendor=invoice.vendor_name,
            invoice_number=invoice.invoice_number,
            ship_to=invoice.ship_to_address,
            confidence=invoice.confidence
        )
        return invoice

    logger.warning(
        "Azure Document Intelligence not configured - using MOCK data. "
        "Set AZ_DI_ENDPOINT and AZ_DI_API_KEY to use real extraction."
    )

    # Mock extraction for demo
    text_len = len(file_bytes or b"")
    conf = 0.92 if text_len > 0 else 0.0

    logger.info(
        "Returning mock invoice extraction",
        file_size_bytes=text_len,
        confidence=conf
    )

    return InvoiceRecord(
        invoice_number="INV-10023",
        invoice_date="2025-09-30",
        due_date="2025-10-15",
        vendor_name="Contoso Fuel Services",
        customer_name="Acme Construction",
        ship_to_name="Harbor Point Tower",
        ship_to_address="1200 Harbor Boulevard",
        ship_to_city="Long Beach",
        ship_to_state="CA",
        ship_to_zip="90802",
        total_amount=385.00,
        balance_due=385.00,
        payment_terms="NET 15",
        confidence=conf,
        content="INVOICE\nContoso Fuel Services\nInvoice #: INV-10023\nShip To: Harbor Point Tower\nTotal: USD 385.00",
    )
