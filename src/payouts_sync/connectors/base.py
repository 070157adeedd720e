from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List, Set
from pydantic import BaseModel, Field

# Mirakl shop additional field codes
HW_PROGRAM = "hw-program"
HW_BANK_ACCOUNT_TOKEN = "hw-bankaccount-token"
HW_USER_TOKEN = "hw-user-token"
HW_KYC_REQ_PROOF_IDENTITY_BUSINESS = "hw-kyc-req-proof-identity-business"

MIRAKL_MAX_RESULTS_PER_PAGE = 100


class ConnectorError(Exception):
    """Base error for upstream API failures."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body

    def describe(self) -> str:
        """Render the error with the upstream payload for logs and alerts."""
        if self.status_code:
            return f"{self} (status={self.status_code}) {self.response_body}".strip()
        return str(self)


class MiraklApiError(ConnectorError):
    pass


class HyperwalletApiError(ConnectorError):
    pass


# Marketplace (Mirakl) models
class MiraklAdditionalField(BaseModel):
    code: str
    value: Optional[str] = None


class MiraklInvoice(BaseModel):
    id: str
    shop_id: Optional[str] = None
    type: str
    payment_status: str = "PENDING"
    state: str = "COMPLETE"
    currency_iso_code: str
    amount_transferred: Decimal = Decimal("0")
    total_commissions_incl_tax: Decimal = Decimal("0")
    total_charged_amount: Decimal = Decimal("0")
    date_created: datetime
    due_date: Optional[datetime] = None


class MiraklShop(BaseModel):
    id: str
    name: Optional[str] = None
    professional: bool = False
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None  # ISO alpha-2
    currency_iso_code: Optional[str] = None
    payment_info: Optional[Dict[str, Any]] = None
    additional_fields: List[MiraklAdditionalField] = Field(default_factory=list)
    last_updated_date: Optional[datetime] = None

    def additional_field(self, code: str) -> Optional[str]:
        for field in self.additional_fields:
            if field.code == code:
                return field.value
        return None


class MiraklShopDocument(BaseModel):
    id: str
    shop_id: str
    type: str
    file_name: str


class ShopUpdate(BaseModel):
    shop_id: str
    additional_fields: List[MiraklAdditionalField]


class Page(BaseModel):
    """One page of a paginated upstream listing."""
    items: List[Any] = Field(default_factory=list)
    total_count: int = 0


class InvoiceListRequest(BaseModel):
    start_date: Optional[datetime] = None
    payment_status: str = "PENDING"
    state: str = "COMPLETE"
    type: str
    max: int = MIRAKL_MAX_RESULTS_PER_PAGE
    offset: int = 0


# Payouts provider (Hyperwallet) models
class HyperwalletBankAccount(BaseModel):
    token: Optional[str] = None
    user_token: str
    type: str = "BANK_ACCOUNT"
    bank_account_type: Optional[str] = None
    profile_type: Optional[str] = None
    transfer_method_country: str
    transfer_method_currency: str
    bank_account_id: str
    bank_id: Optional[str] = None
    branch_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_name: Optional[str] = None


class HyperwalletUser(BaseModel):
    token: Optional[str] = None
    client_user_id: str
    program_token: Optional[str] = None
    profile_type: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_name: Optional[str] = None
    email: Optional[str] = None
    address_line1: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class HyperwalletPayment(BaseModel):
    token: Optional[str] = None
    client_payment_id: str
    amount: Decimal
    currency: str
    destination_token: str
    program_token: Optional[str] = None
    purpose: str = "OTHER"


class HyperwalletVerificationDocument(BaseModel):
    category: str  # IDENTIFICATION | BUSINESS
    type: str
    country: Optional[str] = None
    upload_files: Dict[str, bytes] = Field(default_factory=dict)


class MarketplaceConnector(ABC):
    """
    Operator-side view of the marketplace. Every method is a single upstream
    call; pagination and batching are handled by the callers.
    """

    @abstractmethod
    def get_invoices(self, request: InvoiceListRequest) -> Page:
        """Return one page of accounting documents as MiraklInvoice items."""
        raise NotImplementedError

    @abstractmethod
    def get_shops(self, shop_ids: Set[str], paginate: bool = False) -> List[MiraklShop]:
        raise NotImplementedError

    @abstractmethod
    def list_shops(self, updated_since: Optional[datetime], page_size: int, offset: int) -> Page:
        """Return one page of shops updated since the given time."""
        raise NotImplementedError

    @abstractmethod
    def update_shops(self, updates: List[ShopUpdate]) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_shop_documents(self, shop_ids: Set[str]) -> List[MiraklShopDocument]:
        raise NotImplementedError

    @abstractmethod
    def download_shop_document(self, document_id: str) -> bytes:
        raise NotImplementedError

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True}


class PayoutsConnector(ABC):
    """
    Payouts/identity provider. Calls are keyed by the program the shop
    belongs to; implementations resolve the program name to credentials.
    """

    @abstractmethod
    def create_bank_account(self, program: str, bank_account: HyperwalletBankAccount) -> HyperwalletBankAccount:
        raise NotImplementedError

    @abstractmethod
    def update_bank_account(self, program: str, bank_account: HyperwalletBankAccount) -> HyperwalletBankAccount:
        raise NotImplementedError

    @abstractmethod
    def create_user(self, program: str, user: HyperwalletUser) -> HyperwalletUser:
        raise NotImplementedError

    @abstractmethod
    def update_user(self, program: str, user: HyperwalletUser) -> HyperwalletUser:
        raise NotImplementedError

    @abstractmethod
    def find_user(self, program: str, client_user_id: str) -> Optional[HyperwalletUser]:
        raise NotImplementedError

    @abstractmethod
    def create_payment(self, program: str, payment: HyperwalletPayment) -> HyperwalletPayment:
        raise NotImplementedError

    @abstractmethod
    def upload_documents(
        self,
        program: str,
        user_token: str,
        documents: List[HyperwalletVerificationDocument],
    ) -> None:
        raise NotImplementedError

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True}
