"""Shared test fixtures and configuration."""

import os
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

# Set up test environment variables before importing modules
os.environ.setdefault("PAYOUTS_SYNC_API_KEY", "test_api_key_12345")
os.environ.setdefault("PAYOUTS_SYNC_CONNECTOR", "simulator")

from payouts_sync.config import Settings
from payouts_sync.connectors import (
    MiraklAdditionalField,
    MiraklInvoice,
    MiraklShop,
    SimulatorConfig,
    SimulatorMarketplaceConnector,
    SimulatorPayoutsConnector,
    HW_BANK_ACCOUNT_TOKEN,
    HW_PROGRAM,
    HW_USER_TOKEN,
)
from payouts_sync.extraction import AccountingDocumentType
from payouts_sync.notifications import Notifier

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class RecordingNotifier(Notifier):
    """Keeps alerts in memory instead of sending them."""

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    def _deliver(self, subject: str, body: str) -> None:
        self.sent.append((subject, body))

    @property
    def subjects(self) -> List[str]:
        return [subject for subject, _ in self.sent]


def make_invoice(
    invoice_id: str,
    shop_id: Optional[str],
    document_type: AccountingDocumentType = AccountingDocumentType.INVOICE,
    amount: str = "100.00",
    created: datetime = NOW - timedelta(hours=1),
) -> MiraklInvoice:
    return MiraklInvoice(
        id=invoice_id,
        shop_id=shop_id,
        type=document_type.value,
        currency_iso_code="EUR",
        amount_transferred=Decimal(amount),
        total_commissions_incl_tax=Decimal("5.00"),
        total_charged_amount=Decimal(amount),
        date_created=created,
    )


def make_shop(
    shop_id: str,
    bank_token: Optional[str] = None,
    program: Optional[str] = "DEFAULT",
    user_token: Optional[str] = None,
    payment_info: Optional[Dict] = None,
    extra_fields: Optional[Dict[str, str]] = None,
    **kwargs,
) -> MiraklShop:
    fields = {}
    if bank_token:
        fields[HW_BANK_ACCOUNT_TOKEN] = bank_token
    if program:
        fields[HW_PROGRAM] = program
    if user_token:
        fields[HW_USER_TOKEN] = user_token
    fields.update(extra_fields or {})
    values = {
        "name": f"Shop {shop_id}",
        "email": f"shop{shop_id}@example.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "country": "FR",
        "currency_iso_code": "EUR",
        "last_updated_date": NOW - timedelta(minutes=5),
    }
    values.update(kwargs)
    return MiraklShop(
        id=shop_id,
        payment_info=payment_info,
        additional_fields=[MiraklAdditionalField(code=code, value=value) for code, value in fields.items()],
        **values,
    )


IBAN_PAYMENT_INFO = {"@type": "IBAN", "iban": "FR7630006000011234567890189", "bic": "AGRIFRPP"}


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def settings():
    return Settings(
        connector="simulator",
        retry_attempts=2,
        retry_delay_seconds=0,
        currency_priority="USD",
        api_key="test_api_key_12345",
    )


@pytest.fixture
def marketplace():
    return SimulatorMarketplaceConnector()


@pytest.fixture
def payouts():
    return SimulatorPayoutsConnector()


@pytest.fixture
def simulator_config():
    return SimulatorConfig()
