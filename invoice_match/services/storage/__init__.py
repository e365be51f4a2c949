from .invoice_store_base import InvoiceStoreBase, InvoiceStoreError, MATCH_STATUSES
from .invoices import InMemoryInvoiceStore, invoice_store
from .invoices_sqlite import SQLiteInvoiceStore

__all__ = [
    "InvoiceStoreBase",
    "InvoiceStoreError",
    "MATCH_STATUSES",
    "InMemoryInvoiceStore",
    "SQLiteInvoiceStore",
    "invoice_store",
]
