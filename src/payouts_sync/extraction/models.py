"""Models for accounting-document extraction."""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, List, Set
from pydantic import BaseModel, Field


class AccountingDocumentType(str, enum.Enum):
    """Marketplace accounting document types the jobs extract."""
    INVOICE = "AUTO_INVOICE"
    CREDIT_NOTE = "MANUAL_CREDIT"


class AccountingDocument(BaseModel):
    """An invoice or credit note; token and program are filled by reconciliation."""
    id: str = Field(..., description="Document identifier in the marketplace")
    shop_id: Optional[str] = Field(None, description="Shop the document belongs to")
    document_type: AccountingDocumentType
    payment_status: str = Field(default="PENDING")
    currency: str = Field(..., description="Three-letter currency code")
    transferred_amount: Decimal = Field(default=Decimal("0"), description="Amount owed to the shop")
    commission_amount: Decimal = Field(default=Decimal("0"), description="Operator commission")
    created_at: datetime
    due_date: Optional[datetime] = None
    destination_token: Optional[str] = Field(None, description="Payouts destination token")
    hyperwallet_program: Optional[str] = Field(None, description="Payouts program name")

    class Config:
        frozen = True


class ShopToken(BaseModel):
    """Where a shop's payouts go."""
    shop_id: str
    destination_token: str
    program: str

    class Config:
        frozen = True


class ShopTokenResolution(BaseModel):
    """Result of resolving shops to tokens.

    ``failed_shop_ids`` lists shops whose lookup call failed; they are absent
    from ``tokens`` exactly like shops that lack a token.
    """
    tokens: Dict[str, ShopToken] = Field(default_factory=dict)
    failed_shop_ids: Set[str] = Field(default_factory=set)


class ExtractionReport(BaseModel):
    """What an extraction run produced and dropped."""
    document_type: AccountingDocumentType
    start_date: Optional[datetime] = None
    total_fetched: int = 0
    documents: List[AccountingDocument] = Field(default_factory=list)
    skipped_document_ids: List[str] = Field(default_factory=list)
