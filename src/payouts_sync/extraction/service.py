"""Accounting-document extraction pipeline."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from ..connectors.base import (
    InvoiceListRequest,
    MarketplaceConnector,
    MiraklInvoice,
    MIRAKL_MAX_RESULTS_PER_PAGE,
)
from .converters import convert_credit_note, convert_invoice
from .models import AccountingDocument, AccountingDocumentType, ExtractionReport
from .pagination import fetch_all_pages
from .reconciler import TokenReconciler
from .token_resolver import ShopTokenResolver

logger = logging.getLogger(__name__)


def build_list_request(document_type: AccountingDocumentType, start_date: Optional[datetime]) -> InvoiceListRequest:
    """Pending, complete documents of one type created since ``start_date``."""
    return InvoiceListRequest(
        start_date=start_date,
        payment_status="PENDING",
        state="COMPLETE",
        type=document_type.value,
        max=MIRAKL_MAX_RESULTS_PER_PAGE,
    )


@dataclass(frozen=True)
class DocumentKind:
    """What differs between invoice and credit-note extraction."""
    document_type: AccountingDocumentType
    convert: Callable[[MiraklInvoice], AccountingDocument]
    build_request: Callable[[AccountingDocumentType, Optional[datetime]], InvoiceListRequest] = build_list_request

    @property
    def label(self) -> str:
        return "invoices" if self.document_type == AccountingDocumentType.INVOICE else "credit notes"


INVOICES = DocumentKind(AccountingDocumentType.INVOICE, convert_invoice)
CREDIT_NOTES = DocumentKind(AccountingDocumentType.CREDIT_NOTE, convert_credit_note)


class AccountingDocumentExtractService:
    """Fetches documents of one type, resolves their shops and keeps the payable ones."""

    def __init__(
        self,
        connector: MarketplaceConnector,
        kind: DocumentKind,
        resolver: ShopTokenResolver,
        reconciler: Optional[TokenReconciler] = None,
        search_by_id_max_days: int = 180,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """Initialize the extraction service.

        Args:
            connector: Marketplace connector.
            kind: Document type capabilities (request builder, converter, tag).
            resolver: Shop token resolver.
            reconciler: Token reconciler, a fresh one by default.
            search_by_id_max_days: Lookback window for by-id extraction.
            clock: Returns the current time; injectable for tests.
        """
        self.connector = connector
        self.kind = kind
        self.resolver = resolver
        self.reconciler = reconciler or TokenReconciler()
        self.search_by_id_max_days = search_by_id_max_days
        self._clock = clock

    def fetch_documents(self, start_date: Optional[datetime]) -> List[MiraklInvoice]:
        """Page through every matching document; API errors propagate."""
        request = self.kind.build_request(self.kind.document_type, start_date)

        def fetch_page(offset: int):
            return self.connector.get_invoices(request.model_copy(update={"offset": offset}))

        documents = fetch_all_pages(fetch_page, page_size=request.max)
        logger.info(f"Fetched {len(documents)} {self.kind.label} since {start_date}")
        return documents

    def _associate(self, start_date: Optional[datetime], raw: List[MiraklInvoice]) -> ExtractionReport:
        documents = [self.kind.convert(invoice) for invoice in raw]
        resolution = self.resolver.resolve(documents)
        mapped, skipped = self.reconciler.reconcile(documents, resolution)
        return ExtractionReport(
            document_type=self.kind.document_type,
            start_date=start_date,
            total_fetched=len(raw),
            documents=mapped,
            skipped_document_ids=[doc.id for doc in skipped],
        )

    def extract(self, delta: Optional[datetime]) -> ExtractionReport:
        return self._associate(delta, self.fetch_documents(delta))

    def extract_accounting_documents(self, delta: Optional[datetime]) -> List[AccountingDocument]:
        """Documents modified since ``delta`` whose shop has a payout destination."""
        return self.extract(delta).documents

    def by_id_window_start(self) -> datetime:
        return self._clock() - timedelta(days=self.search_by_id_max_days)

    def extract_by_ids(self, ids: Iterable[str]) -> ExtractionReport:
        wanted = set(ids)
        start_date = self.by_id_window_start()
        raw = [invoice for invoice in self.fetch_documents(start_date) if invoice.id in wanted]
        missing = wanted - {invoice.id for invoice in raw}
        if missing:
            logger.warning(
                f"{self.kind.label.capitalize()} [{','.join(sorted(missing))}] were not found "
                f"in the last {self.search_by_id_max_days} days"
            )
        return self._associate(start_date, raw)

    def extract_accounting_documents_by_ids(self, ids: Iterable[str]) -> List[AccountingDocument]:
        """Documents with the given ids, searched within the by-id lookback window."""
        return self.extract_by_ids(ids).documents
