"""Seller and bank account models."""

import enum
from typing import Optional
from pydantic import BaseModel, Field


class ProfileType(str, enum.Enum):
    INDIVIDUAL = "INDIVIDUAL"
    BUSINESS = "BUSINESS"


class BankAccountType(str, enum.Enum):
    IBAN = "IBAN"
    ABA = "ABA"
    CANADIAN = "CANADIAN"
    UK = "UK"


class BankAccountDetails(BaseModel):
    """Bank account as declared on the marketplace shop."""
    token: Optional[str] = Field(None, description="Payouts bank account token, if already created")
    type: BankAccountType
    bank_account_number: str
    bank_id: Optional[str] = Field(None, description="BIC, routing, institution or sort code")
    branch_id: Optional[str] = None
    transfer_method_country: str
    transfer_method_currency: str

    class Config:
        frozen = True


class Seller(BaseModel):
    """A marketplace shop as a payouts user."""
    client_user_id: str = Field(..., description="Marketplace shop id")
    token: Optional[str] = Field(None, description="Payouts user token")
    hyperwallet_program: Optional[str] = None
    profile_type: ProfileType = ProfileType.INDIVIDUAL
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_name: Optional[str] = None
    email: Optional[str] = None
    address_line1: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    currency: Optional[str] = None
    kyc_requested: bool = False
    bank_account_details: Optional[BankAccountDetails] = None

    class Config:
        frozen = True
