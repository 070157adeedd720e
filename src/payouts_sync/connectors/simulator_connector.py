"""In-memory connectors for running the jobs without Mirakl or Hyperwallet."""

import json
import uuid
import time
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional, Set, Union

from .base import (
    MarketplaceConnector,
    PayoutsConnector,
    HyperwalletApiError,
    HyperwalletBankAccount,
    HyperwalletPayment,
    HyperwalletUser,
    HyperwalletVerificationDocument,
    InvoiceListRequest,
    MiraklApiError,
    MiraklInvoice,
    MiraklShop,
    MiraklShopDocument,
    Page,
    ShopUpdate,
)

logger = logging.getLogger(__name__)

# Uploads whose file name contains this marker are rejected
FAILING_FILES = "fail"


@dataclass
class SimulatorConfig:
    """Failure injection and latency for the simulators."""
    delay_ms: int = 0
    failing_shop_ids: Set[str] = field(default_factory=set)  # any lookup including one of these fails
    failing_update_shop_ids: Set[str] = field(default_factory=set)
    fail_invoice_listing: bool = False
    # operation name -> number of consecutive calls that fail before succeeding
    transient_failures: Dict[str, int] = field(default_factory=dict)
    failing_client_user_ids: Set[str] = field(default_factory=set)


def _apply_delay(config: SimulatorConfig) -> None:
    if config.delay_ms > 0:
        time.sleep(config.delay_ms / 1000.0)


class SimulatorMarketplaceConnector(MarketplaceConnector):
    """
    Marketplace simulator backed by in-memory invoices, shops and documents.
    Every call is recorded so tests can assert on page offsets and batches.
    """

    def __init__(
        self,
        invoices: Optional[List[MiraklInvoice]] = None,
        shops: Optional[List[MiraklShop]] = None,
        documents: Optional[List[MiraklShopDocument]] = None,
        config: Optional[SimulatorConfig] = None,
    ):
        self.config = config or SimulatorConfig()
        self.invoices: List[MiraklInvoice] = list(invoices or [])
        self.shops: Dict[str, MiraklShop] = {shop.id: shop for shop in shops or []}
        self.documents: List[MiraklShopDocument] = list(documents or [])
        self.document_contents: Dict[str, bytes] = {}
        self.invoice_requests: List[InvoiceListRequest] = []
        self.shop_lookups: List[Set[str]] = []
        self.shop_updates: List[ShopUpdate] = []
        logger.info("SimulatorMarketplaceConnector initialized")

    @classmethod
    def from_fixture(cls, path: Union[str, Path], config: Optional[SimulatorConfig] = None) -> "SimulatorMarketplaceConnector":
        """Load invoices, shops and documents from a JSON fixture file."""
        data = json.loads(Path(path).read_text())
        return cls(
            invoices=[MiraklInvoice.model_validate(raw) for raw in data.get("invoices", [])],
            shops=[MiraklShop.model_validate(raw) for raw in data.get("shops", [])],
            documents=[MiraklShopDocument.model_validate(raw) for raw in data.get("documents", [])],
            config=config,
        )

    def get_invoices(self, request: InvoiceListRequest) -> Page:
        _apply_delay(self.config)
        self.invoice_requests.append(request.model_copy())
        if self.config.fail_invoice_listing:
            raise MiraklApiError("Simulated invoice listing failure", status_code=500)
        matching = [
            invoice for invoice in self.invoices
            if invoice.type == request.type
            and invoice.payment_status == request.payment_status
            and invoice.state == request.state
            and (request.start_date is None or invoice.date_created >= request.start_date)
        ]
        return Page(
            items=matching[request.offset:request.offset + request.max],
            total_count=len(matching),
        )

    def get_shops(self, shop_ids: Set[str], paginate: bool = False) -> List[MiraklShop]:
        _apply_delay(self.config)
        self.shop_lookups.append(set(shop_ids))
        if shop_ids & self.config.failing_shop_ids:
            raise MiraklApiError("Simulated shop lookup failure", status_code=500)
        return [self.shops[shop_id] for shop_id in sorted(shop_ids) if shop_id in self.shops]

    def list_shops(self, updated_since: Optional[datetime], page_size: int, offset: int) -> Page:
        _apply_delay(self.config)
        matching = [
            shop for shop in self.shops.values()
            if updated_since is None
            or shop.last_updated_date is None
            or shop.last_updated_date >= updated_since
        ]
        return Page(items=matching[offset:offset + page_size], total_count=len(matching))

    def update_shops(self, updates: List[ShopUpdate]) -> None:
        _apply_delay(self.config)
        for update in updates:
            if update.shop_id in self.config.failing_update_shop_ids:
                raise MiraklApiError(f"Simulated update failure for shop {update.shop_id}", status_code=400)
        for update in updates:
            self.shop_updates.append(update)
            shop = self.shops.get(update.shop_id)
            if shop is None:
                continue
            fields = {f.code: f for f in shop.additional_fields}
            for f in update.additional_fields:
                fields[f.code] = f
            self.shops[update.shop_id] = shop.model_copy(update={"additional_fields": list(fields.values())})

    def get_shop_documents(self, shop_ids: Set[str]) -> List[MiraklShopDocument]:
        _apply_delay(self.config)
        return [doc for doc in self.documents if doc.shop_id in shop_ids]

    def download_shop_document(self, document_id: str) -> bytes:
        return self.document_contents.get(document_id, f"document {document_id}".encode())

    def health_check(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "provider": "simulator",
            "invoice_count": len(self.invoices),
            "shop_count": len(self.shops),
        }


class SimulatorPayoutsConnector(PayoutsConnector):
    """Payouts simulator keeping users, bank accounts and payments in memory."""

    def __init__(self, config: Optional[SimulatorConfig] = None, programs: Optional[Set[str]] = None):
        self.config = config or SimulatorConfig()
        self.programs = programs
        self.users: Dict[str, HyperwalletUser] = {}
        self.bank_accounts: Dict[str, HyperwalletBankAccount] = {}
        self.payments: Dict[str, HyperwalletPayment] = {}
        self.uploads: Dict[str, List[HyperwalletVerificationDocument]] = {}
        self.calls: List[str] = []
        self._transient = dict(self.config.transient_failures)

    def _generate_token(self, prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4()}"

    def _check(self, operation: str, program: str, client_user_id: Optional[str] = None) -> None:
        _apply_delay(self.config)
        self.calls.append(operation)
        if self.programs is not None and program not in self.programs:
            raise HyperwalletApiError(f"Unknown program '{program}'", status_code=400)
        if client_user_id and client_user_id in self.config.failing_client_user_ids:
            raise HyperwalletApiError(f"Simulated {operation} failure", status_code=500)
        remaining = self._transient.get(operation, 0)
        if remaining > 0:
            self._transient[operation] = remaining - 1
            raise HyperwalletApiError(f"Simulated transient {operation} failure", status_code=503)

    def _owner_of(self, user_token: str) -> Optional[str]:
        user = self.users.get(user_token)
        return user.client_user_id if user else None

    def create_bank_account(self, program: str, bank_account: HyperwalletBankAccount) -> HyperwalletBankAccount:
        self._check("create_bank_account", program, self._owner_of(bank_account.user_token))
        created = bank_account.model_copy(update={"token": self._generate_token("trm")})
        self.bank_accounts[created.token] = created
        return created

    def update_bank_account(self, program: str, bank_account: HyperwalletBankAccount) -> HyperwalletBankAccount:
        self._check("update_bank_account", program, self._owner_of(bank_account.user_token))
        if bank_account.token not in self.bank_accounts:
            raise HyperwalletApiError(f"Bank account {bank_account.token} not found", status_code=404)
        self.bank_accounts[bank_account.token] = bank_account
        return bank_account

    def create_user(self, program: str, user: HyperwalletUser) -> HyperwalletUser:
        self._check("create_user", program, user.client_user_id)
        created = user.model_copy(update={"token": self._generate_token("usr"), "program_token": program})
        self.users[created.token] = created
        return created

    def update_user(self, program: str, user: HyperwalletUser) -> HyperwalletUser:
        self._check("update_user", program, user.client_user_id)
        if user.token not in self.users:
            raise HyperwalletApiError(f"User {user.token} not found", status_code=404)
        self.users[user.token] = user
        return user

    def find_user(self, program: str, client_user_id: str) -> Optional[HyperwalletUser]:
        self._check("find_user", program)
        for user in self.users.values():
            if user.client_user_id == client_user_id:
                return user
        return None

    def create_payment(self, program: str, payment: HyperwalletPayment) -> HyperwalletPayment:
        self._check("create_payment", program)
        for existing in self.payments.values():
            if existing.client_payment_id == payment.client_payment_id:
                raise HyperwalletApiError(
                    f"Duplicate clientPaymentId {payment.client_payment_id}", status_code=400
                )
        created = payment.model_copy(update={"token": self._generate_token("pmt"), "program_token": program})
        self.payments[created.token] = created
        return created

    def upload_documents(
        self,
        program: str,
        user_token: str,
        documents: List[HyperwalletVerificationDocument],
    ) -> None:
        self._check("upload_documents", program, self._owner_of(user_token))
        file_names = [name for doc in documents for name in doc.upload_files]
        if any(FAILING_FILES in name for name in file_names):
            raise HyperwalletApiError("Something bad happened", status_code=400)
        self.uploads.setdefault(user_token, []).extend(documents)

    def health_check(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "provider": "simulator",
            "user_count": len(self.users),
            "bank_account_count": len(self.bank_accounts),
            "payment_count": len(self.payments),
        }
