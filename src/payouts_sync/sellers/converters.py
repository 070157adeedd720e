"""Marketplace shop to seller, and seller to payouts payloads."""

import logging
from typing import Any, Dict, Optional

from ..connectors.base import (
    HyperwalletBankAccount,
    HyperwalletUser,
    MiraklShop,
    HW_BANK_ACCOUNT_TOKEN,
    HW_KYC_REQ_PROOF_IDENTITY_BUSINESS,
    HW_PROGRAM,
    HW_USER_TOKEN,
)
from .currency import CurrencyResolver
from .models import BankAccountDetails, BankAccountType, ProfileType, Seller

logger = logging.getLogger(__name__)

# Fixed bank country per account type; IBAN accounts take it from the IBAN
BANK_ACCOUNT_COUNTRIES = {
    BankAccountType.ABA: "US",
    BankAccountType.CANADIAN: "CA",
    BankAccountType.UK: "GB",
}


class SellerConverter:
    def __init__(self, currency_resolver: CurrencyResolver):
        self.currency_resolver = currency_resolver

    def _bank_account_fields(self, payment_info: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            account_type = BankAccountType((payment_info.get("@type") or "").upper())
        except ValueError:
            logger.warning(f"Unsupported bank account type {payment_info.get('@type')!r}")
            return None

        if account_type == BankAccountType.IBAN:
            iban = (payment_info.get("iban") or "").replace(" ", "")
            if len(iban) < 2:
                return None
            return {"type": account_type, "bank_account_number": iban,
                    "bank_id": payment_info.get("bic"), "country": iban[:2].upper()}
        fields = {"type": account_type, "bank_account_number": payment_info.get("bank_account_number"),
                  "country": BANK_ACCOUNT_COUNTRIES[account_type]}
        if account_type == BankAccountType.ABA:
            fields["bank_id"] = payment_info.get("routing_number")
        elif account_type == BankAccountType.CANADIAN:
            fields["bank_id"] = payment_info.get("institution_number")
            fields["branch_id"] = payment_info.get("transit_number")
        else:
            fields["bank_id"] = payment_info.get("bank_sort_code")
        return fields

    def convert_bank_account_details(self, shop: MiraklShop) -> Optional[BankAccountDetails]:
        if not shop.payment_info:
            return None
        fields = self._bank_account_fields(shop.payment_info)
        if not fields or not fields.get("bank_account_number"):
            return None
        country = fields.pop("country")
        currency = self.currency_resolver.resolve(country, shop.currency_iso_code)
        if not currency:
            logger.warning(f"No transfer currency could be resolved for shop {shop.id}")
            return None
        return BankAccountDetails(
            token=shop.additional_field(HW_BANK_ACCOUNT_TOKEN),
            transfer_method_country=country,
            transfer_method_currency=currency,
            **fields,
        )

    def convert(self, shop: MiraklShop) -> Seller:
        kyc_flag = (shop.additional_field(HW_KYC_REQ_PROOF_IDENTITY_BUSINESS) or "").lower()
        return Seller(
            client_user_id=shop.id,
            token=shop.additional_field(HW_USER_TOKEN),
            hyperwallet_program=shop.additional_field(HW_PROGRAM),
            profile_type=ProfileType.BUSINESS if shop.professional else ProfileType.INDIVIDUAL,
            first_name=shop.first_name,
            last_name=shop.last_name,
            business_name=shop.name if shop.professional else None,
            email=shop.email,
            address_line1=shop.street,
            city=shop.city,
            postal_code=shop.zip_code,
            country=shop.country.upper() if shop.country else None,
            currency=shop.currency_iso_code,
            kyc_requested=kyc_flag == "true",
            bank_account_details=self.convert_bank_account_details(shop),
        )


def to_hyperwallet_user(seller: Seller) -> HyperwalletUser:
    return HyperwalletUser(
        token=seller.token,
        client_user_id=seller.client_user_id,
        profile_type=seller.profile_type.value,
        first_name=seller.first_name,
        last_name=seller.last_name,
        business_name=seller.business_name,
        email=seller.email,
        address_line1=seller.address_line1,
        city=seller.city,
        postal_code=seller.postal_code,
        country=seller.country,
    )


def to_hyperwallet_bank_account(seller: Seller) -> Optional[HyperwalletBankAccount]:
    """Payouts payload for the seller's bank account, None without details or user token."""
    details = seller.bank_account_details
    if details is None or not seller.token:
        return None
    return HyperwalletBankAccount(
        token=details.token,
        user_token=seller.token,
        bank_account_type=details.type.value,
        profile_type=seller.profile_type.value,
        transfer_method_country=details.transfer_method_country,
        transfer_method_currency=details.transfer_method_currency,
        bank_account_id=details.bank_account_number,
        bank_id=details.bank_id,
        branch_id=details.branch_id,
        first_name=seller.first_name,
        last_name=seller.last_name,
        business_name=seller.business_name,
    )
