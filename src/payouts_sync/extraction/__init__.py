"""Accounting-document extraction.

Pulls invoices and credit notes from the marketplace page by page, resolves
each document's shop to a payouts destination token and program, and drops
the documents that cannot be paid.
"""

from .models import (
    AccountingDocumentType,
    AccountingDocument,
    ShopToken,
    ShopTokenResolution,
    ExtractionReport,
)
from .pagination import fetch_all_pages, partition
from .converters import convert_invoice, convert_credit_note, convert_shop_token
from .token_resolver import ShopTokenResolver
from .reconciler import TokenReconciler
from .service import (
    AccountingDocumentExtractService,
    DocumentKind,
    INVOICES,
    CREDIT_NOTES,
    build_list_request,
)

__all__ = [
    # Models
    "AccountingDocumentType",
    "AccountingDocument",
    "ShopToken",
    "ShopTokenResolution",
    "ExtractionReport",
    # Building blocks
    "fetch_all_pages",
    "partition",
    "convert_invoice",
    "convert_credit_note",
    "convert_shop_token",
    "ShopTokenResolver",
    "TokenReconciler",
    # Pipeline
    "AccountingDocumentExtractService",
    "DocumentKind",
    "INVOICES",
    "CREDIT_NOTES",
    "build_list_request",
]
