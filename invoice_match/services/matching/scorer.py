"""
Candidate scoring for invoice-to-job matching.

Each signal compares one invoice field with one job field and is skipped
when either side is empty, so missing data never costs points. Scores are
deterministic for identical inputs.
"""

from datetime import datetime, timezone
from typing import Dict
from .config import MatchConfig
from .text import normalize_address, token_set_similarity
from ..invoice_types import InvoiceRecord, JobRecord

_DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%Y/%m/%d")


def parse_date(value: str | None) -> datetime | None:
    """Parse an ISO-8601 or US-style date string; None if it can't be read."""
    if not value or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = None
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def days_between(a: str | None, b: str | None) -> float | None:
    first, second = parse_date(a), parse_date(b)
    if first is None or second is None:
        return None
    return abs((first - second).total_seconds()) / 86400


def _present(value: str | None) -> str | None:
    """Field value with surrounding blanks removed, or None when nothing usable is left"""
    if value is None:
        return None
    value = value.strip()
    if not any(ch.isalnum() for ch in value):
        return None
    return value


def _contains_either(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


def score_breakdown(
    invoice: InvoiceRecord,
    job: JobRecord,
    config: MatchConfig | None = None,
) -> Dict[str, int]:
    """
    Points awarded per signal for one candidate job.

    Keys are only present for signals that scored. Exact/fuzzy pairs are
    mutually exclusive: the exact (or containment) tier is tried first.
    """
    config = config or MatchConfig()
    points: Dict[str, int] = {}

    invoice_street, job_street = _present(invoice.ship_to_address), _present(job.address_street)
    invoice_addr = normalize_address(invoice_street) if invoice_street else ""
    job_addr = normalize_address(job_street) if job_street else ""
    # Two addresses that normalize to nothing are not a match
    if invoice_addr and job_addr:
        if invoice_addr == job_addr:
            points["address_exact"] = config.address_exact_points
        elif token_set_similarity(invoice_addr, job_addr) > config.address_fuzzy_threshold:
            points["address_fuzzy"] = config.address_fuzzy_points

    invoice_city, job_city = _present(invoice.ship_to_city), _present(job.address_city)
    if invoice_city and job_city:
        if invoice_city.lower() == job_city.lower():
            points["city"] = config.city_points

    invoice_zip, job_zip = _present(invoice.ship_to_zip), _present(job.address_zip)
    if invoice_zip and job_zip:
        if invoice_zip == job_zip:
            points["zip"] = config.zip_points

    invoice_site, job_site = _present(invoice.ship_to_name), _present(job.job_site_name)
    if invoice_site and job_site:
        if _contains_either(invoice_site, job_site):
            points["site_name_contains"] = config.site_name_contains_points
        elif token_set_similarity(invoice_site, job_site) > config.site_name_fuzzy_threshold:
            points["site_name_fuzzy"] = config.site_name_fuzzy_points

    invoice_customer, job_customer = _present(invoice.customer_name), _present(job.customer_name)
    if invoice_customer and job_customer:
        if _contains_either(invoice_customer, job_customer):
            points["customer_name_contains"] = config.customer_name_contains_points

    days = days_between(invoice.invoice_date, job.date_out)
    if days is not None:
        for max_days, band_points in config.date_bands:
            if days <= max_days:
                points["date_proximity"] = band_points
                break

    return points


def score_candidate(
    invoice: InvoiceRecord,
    job: JobRecord,
    config: MatchConfig | None = None,
) -> int:
    """Total base score for one candidate job (before any prior-match penalty)."""
    return sum(score_breakdown(invoice, job, config).values())
