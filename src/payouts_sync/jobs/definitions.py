"""Wiring of the named jobs from settings."""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..config import Settings
from ..connectors import MarketplaceConnector, PayoutsConnector, get_connectors
from ..extraction import (
    AccountingDocument,
    AccountingDocumentExtractService,
    CREDIT_NOTES,
    INVOICES,
    DocumentKind,
    ShopTokenResolver,
)
from ..kyc import KycDocumentService
from ..notifications import Notifier, get_notifier
from ..retry import RetryPolicy
from ..sellers import (
    CurrencyResolutionConfig,
    CurrencyResolver,
    Seller,
    SellerConverter,
    SellerExtractService,
    ShopTokenWriter,
    TokenSynchronizationService,
    bank_account_strategy_executor,
    user_strategy_executor,
)
from ..services import AccountingPaymentService
from .batch import BatchJob, BatchJobResult

logger = logging.getLogger(__name__)

INVOICES_JOB = "invoices"
CREDIT_NOTES_JOB = "credit-notes"
SELLERS_JOB = "sellers"
BANK_ACCOUNTS_JOB = "bank-accounts"
KYC_DOCUMENTS_JOB = "kyc-documents"

JOB_NAMES = [INVOICES_JOB, CREDIT_NOTES_JOB, SELLERS_JOB, BANK_ACCOUNTS_JOB, KYC_DOCUMENTS_JOB]


@dataclass
class JobDefinition:
    """A runnable job and, for document jobs, its by-id extraction."""
    job: BatchJob
    extract_by_ids: Optional[Callable[[List[str]], List]] = None

    @property
    def supports_ids(self) -> bool:
        return self.extract_by_ids is not None

    def run(self, delta=None) -> BatchJobResult:
        return self.job.run(delta)

    def run_by_ids(self, ids: List[str]) -> BatchJobResult:
        """Process only the given document ids.

        Raises:
            ValueError: If the job cannot select items by id.
        """
        if self.extract_by_ids is None:
            raise ValueError(f"Job {self.job.name} does not support extraction by ids")
        return self.job.run_with(lambda: self.extract_by_ids(ids))


class JobFactory:
    """Builds every job's service graph once from shared connectors."""

    def __init__(
        self,
        settings: Settings,
        marketplace: Optional[MarketplaceConnector] = None,
        payouts: Optional[PayoutsConnector] = None,
        notifier: Optional[Notifier] = None,
    ):
        if marketplace is None or payouts is None:
            default_marketplace, default_payouts = get_connectors(settings)
            marketplace = marketplace or default_marketplace
            payouts = payouts or default_payouts
        self.settings = settings
        self.marketplace = marketplace
        self.payouts = payouts
        self.notifier = notifier or get_notifier(settings)
        self.retry_policy = RetryPolicy.from_settings(settings)

        self.resolver = ShopTokenResolver(marketplace, self.notifier)
        self.writer = ShopTokenWriter(marketplace, self.notifier)
        currency_resolver = CurrencyResolver(CurrencyResolutionConfig.parse(settings.currency_priority))
        self.seller_extract = SellerExtractService(marketplace, SellerConverter(currency_resolver))
        self.token_sync = TokenSynchronizationService(payouts, self.writer)
        self.payment_service = AccountingPaymentService(payouts)

    def document_extract_service(self, kind: DocumentKind) -> AccountingDocumentExtractService:
        return AccountingDocumentExtractService(
            self.marketplace,
            kind,
            self.resolver,
            search_by_id_max_days=self.settings.search_by_id_max_days,
        )

    def _pay(self, document: AccountingDocument) -> bool:
        self.payment_service.pay(document)
        return True

    def _document_job(self, name: str, kind: DocumentKind) -> JobDefinition:
        service = self.document_extract_service(kind)
        job = BatchJob(
            name,
            service.extract_accounting_documents,
            self._pay,
            lambda document: document.id,
            self.notifier,
        )
        return JobDefinition(job, extract_by_ids=service.extract_accounting_documents_by_ids)

    def _sellers_job(self) -> JobDefinition:
        executor = user_strategy_executor(self.payouts, self.writer, self.notifier, self.retry_policy)

        def process(seller: Seller) -> bool:
            seller = self.token_sync.synchronize_token(seller)
            return executor.execute(seller, seller.client_user_id) is not None

        job = BatchJob(
            SELLERS_JOB, self.seller_extract.extract_sellers, process,
            lambda seller: seller.client_user_id, self.notifier,
        )
        return JobDefinition(job)

    def _bank_accounts_job(self) -> JobDefinition:
        executor = bank_account_strategy_executor(self.payouts, self.writer, self.notifier, self.retry_policy)

        def process(seller: Seller) -> bool:
            seller = self.token_sync.synchronize_token(seller)
            return executor.execute(seller, seller.client_user_id) is not None

        job = BatchJob(
            BANK_ACCOUNTS_JOB, self.seller_extract.extract_sellers_with_bank_accounts, process,
            lambda seller: seller.client_user_id, self.notifier,
        )
        return JobDefinition(job)

    def _kyc_job(self) -> JobDefinition:
        service = KycDocumentService(
            self.marketplace, self.payouts, self.seller_extract, self.writer, self.notifier
        )
        job = BatchJob(
            KYC_DOCUMENTS_JOB, service.extract_pending, service.push,
            lambda seller: seller.client_user_id, self.notifier,
        )
        return JobDefinition(job)

    def build(self) -> Dict[str, JobDefinition]:
        return {
            INVOICES_JOB: self._document_job(INVOICES_JOB, INVOICES),
            CREDIT_NOTES_JOB: self._document_job(CREDIT_NOTES_JOB, CREDIT_NOTES),
            SELLERS_JOB: self._sellers_job(),
            BANK_ACCOUNTS_JOB: self._bank_accounts_job(),
            KYC_DOCUMENTS_JOB: self._kyc_job(),
        }


def build_jobs(
    settings: Settings,
    marketplace: Optional[MarketplaceConnector] = None,
    payouts: Optional[PayoutsConnector] = None,
    notifier: Optional[Notifier] = None,
) -> Dict[str, JobDefinition]:
    """All named jobs sharing one set of connectors."""
    return JobFactory(settings, marketplace, payouts, notifier).build()
