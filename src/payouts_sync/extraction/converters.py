"""Marketplace payload to accounting model conversion."""

from typing import Optional

from ..connectors.base import MiraklInvoice, MiraklShop, HW_BANK_ACCOUNT_TOKEN, HW_PROGRAM
from .models import AccountingDocument, AccountingDocumentType, ShopToken


def convert_invoice(invoice: MiraklInvoice) -> AccountingDocument:
    return AccountingDocument(
        id=invoice.id,
        shop_id=invoice.shop_id,
        document_type=AccountingDocumentType.INVOICE,
        payment_status=invoice.payment_status,
        currency=invoice.currency_iso_code.upper(),
        transferred_amount=invoice.amount_transferred,
        commission_amount=invoice.total_commissions_incl_tax,
        created_at=invoice.date_created,
        due_date=invoice.due_date,
    )


def convert_credit_note(invoice: MiraklInvoice) -> AccountingDocument:
    # Manual credits carry the amount owed to the shop in the charged total
    return AccountingDocument(
        id=invoice.id,
        shop_id=invoice.shop_id,
        document_type=AccountingDocumentType.CREDIT_NOTE,
        payment_status=invoice.payment_status,
        currency=invoice.currency_iso_code.upper(),
        transferred_amount=invoice.total_charged_amount,
        created_at=invoice.date_created,
        due_date=invoice.due_date,
    )


def convert_shop_token(shop: MiraklShop) -> Optional[ShopToken]:
    """Return the shop's payout routing, or None when token or program is missing."""
    token = shop.additional_field(HW_BANK_ACCOUNT_TOKEN)
    program = shop.additional_field(HW_PROGRAM)
    if not token or not program:
        return None
    return ShopToken(shop_id=shop.id, destination_token=token, program=program)
