"""Upstream connectors: marketplace (Mirakl) and payouts provider (Hyperwallet)."""

from typing import Tuple

from ..config import Settings
from .base import (
    ConnectorError,
    MiraklApiError,
    HyperwalletApiError,
    MarketplaceConnector,
    PayoutsConnector,
    MiraklAdditionalField,
    MiraklInvoice,
    MiraklShop,
    MiraklShopDocument,
    ShopUpdate,
    Page,
    InvoiceListRequest,
    HyperwalletBankAccount,
    HyperwalletUser,
    HyperwalletPayment,
    HyperwalletVerificationDocument,
    HW_PROGRAM,
    HW_BANK_ACCOUNT_TOKEN,
    HW_USER_TOKEN,
    HW_KYC_REQ_PROOF_IDENTITY_BUSINESS,
    MIRAKL_MAX_RESULTS_PER_PAGE,
)
from .mirakl_connector import MiraklConnector
from .hyperwallet_connector import HyperwalletConnector
from .simulator_connector import (
    SimulatorConfig,
    SimulatorMarketplaceConnector,
    SimulatorPayoutsConnector,
)


def get_connectors(settings: Settings) -> Tuple[MarketplaceConnector, PayoutsConnector]:
    """Build the connector pair selected by ``settings.connector``.

    Raises:
        ValueError: If the connector kind is not supported.
    """
    kind = settings.connector.lower()
    if kind == "mirakl":
        marketplace = MiraklConnector(
            base_url=settings.mirakl_base_url,
            api_key=settings.mirakl_api_key,
            timeout=settings.request_timeout_seconds,
        )
        payouts = HyperwalletConnector(
            programs=settings.hyperwallet_programs,
            base_url=settings.hyperwallet_base_url,
            username=settings.hyperwallet_username,
            password=settings.hyperwallet_password,
            timeout=settings.request_timeout_seconds,
        )
        return marketplace, payouts
    if kind == "simulator":
        if settings.simulator_fixture_path:
            marketplace = SimulatorMarketplaceConnector.from_fixture(settings.simulator_fixture_path)
        else:
            marketplace = SimulatorMarketplaceConnector()
        return marketplace, SimulatorPayoutsConnector()
    raise ValueError(f"Unsupported connector: {settings.connector}")


__all__ = [
    # Errors
    "ConnectorError",
    "MiraklApiError",
    "HyperwalletApiError",
    # Interfaces
    "MarketplaceConnector",
    "PayoutsConnector",
    # Marketplace models
    "MiraklAdditionalField",
    "MiraklInvoice",
    "MiraklShop",
    "MiraklShopDocument",
    "ShopUpdate",
    "Page",
    "InvoiceListRequest",
    # Payouts models
    "HyperwalletBankAccount",
    "HyperwalletUser",
    "HyperwalletPayment",
    "HyperwalletVerificationDocument",
    # Field codes and limits
    "HW_PROGRAM",
    "HW_BANK_ACCOUNT_TOKEN",
    "HW_USER_TOKEN",
    "HW_KYC_REQ_PROOF_IDENTITY_BUSINESS",
    "MIRAKL_MAX_RESULTS_PER_PAGE",
    # Connectors
    "MiraklConnector",
    "HyperwalletConnector",
    "SimulatorConfig",
    "SimulatorMarketplaceConnector",
    "SimulatorPayoutsConnector",
    "get_connectors",
]
