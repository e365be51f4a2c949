from functools import lru_cache
from fastapi import Depends, Header, HTTPException, Request
from ..core.config import settings
from ..services.rate_limit import InMemoryRateLimiter, RateLimiterBase
from ..services.storage import InvoiceStoreBase, SQLiteInvoiceStore, invoice_store


@lru_cache
def _sqlite_store(db_path: str) -> SQLiteInvoiceStore:
    return SQLiteInvoiceStore(db_path)


def get_invoice_store() -> InvoiceStoreBase:
    """Store selected by INVOICE_STORE_BACKEND (memory | sqlite)"""
    if settings.invoice_store_backend == "sqlite":
        return _sqlite_store(settings.invoice_db_path)
    return invoice_store


rate_limiter = InMemoryRateLimiter(
    max_requests=settings.rate_limit_max_requests,
    window_seconds=settings.rate_limit_window_seconds,
)


def get_rate_limiter() -> RateLimiterBase:
    return rate_limiter


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_rate_limit(request: Request, limiter: RateLimiterBase = Depends(get_rate_limiter)):
    key = client_key(request)
    if not limiter.check(key):
        raise HTTPException(status_code=429, detail="Too many requests. Please try again later.")
    limiter.record(key)


def verify_webhook_secret(authorization: str | None = Header(default=None)):
    secret = settings.invoice_webhook_secret
    if not secret or authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")
