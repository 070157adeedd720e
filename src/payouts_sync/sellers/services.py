"""Seller extraction and marketplace write-back."""

import logging
from datetime import datetime
from typing import List, Optional

from ..connectors.base import (
    MarketplaceConnector,
    MiraklAdditionalField,
    MiraklApiError,
    MiraklShop,
    PayoutsConnector,
    ConnectorError,
    ShopUpdate,
    HW_BANK_ACCOUNT_TOKEN,
    HW_USER_TOKEN,
    MIRAKL_MAX_RESULTS_PER_PAGE,
)
from ..extraction.pagination import fetch_all_pages
from ..notifications import Notifier, ERROR_MESSAGE_PREFIX
from .converters import SellerConverter
from .models import Seller

logger = logging.getLogger(__name__)


class ShopTokenWriter:
    """Writes payouts tokens back onto the marketplace shop.

    Failures are logged and alerted, never raised: the payouts side already
    holds the object and the next run will see the missing token again.
    """

    def __init__(self, connector: MarketplaceConnector, notifier: Notifier):
        self.connector = connector
        self.notifier = notifier

    def _update_field(self, shop_id: str, code: str, value: str, label: str) -> bool:
        update = ShopUpdate(
            shop_id=shop_id,
            additional_fields=[MiraklAdditionalField(code=code, value=value)],
        )
        logger.info(f"Updating {label} for shop [{shop_id}]")
        try:
            self.connector.update_shops([update])
        except MiraklApiError as e:
            logger.error(f"Something went wrong updating information of shop [{shop_id}]")
            self.notifier.send_plain_text(
                f"Issue detected updating {label} in Mirakl",
                f"{ERROR_MESSAGE_PREFIX}Something went wrong updating {label} of shop [{shop_id}]\n{e.describe()}",
            )
            return False
        logger.info(f"{label.capitalize()} updated for shop [{shop_id}]")
        return True

    def update_bank_account_token(self, seller: Seller, bank_account_token: str) -> bool:
        return self._update_field(seller.client_user_id, HW_BANK_ACCOUNT_TOKEN, bank_account_token, "bank token")

    def update_user_token(self, seller: Seller, user_token: str) -> bool:
        return self._update_field(seller.client_user_id, HW_USER_TOKEN, user_token, "user token")

    def update_field(self, shop_id: str, code: str, value: str) -> bool:
        return self._update_field(shop_id, code, value, code)


class SellerExtractService:
    def __init__(self, connector: MarketplaceConnector, converter: SellerConverter):
        self.connector = connector
        self.converter = converter

    def fetch_shops(self, delta: Optional[datetime]) -> List[MiraklShop]:
        def fetch_page(offset: int):
            return self.connector.list_shops(delta, MIRAKL_MAX_RESULTS_PER_PAGE, offset)

        shops = fetch_all_pages(fetch_page, page_size=MIRAKL_MAX_RESULTS_PER_PAGE)
        logger.info(f"Fetched {len(shops)} shops updated since {delta}")
        return shops

    def extract_sellers(self, delta: Optional[datetime]) -> List[Seller]:
        """Sellers for every shop updated since ``delta``.

        Shops without a payouts program cannot be routed and are skipped.
        """
        sellers = []
        skipped = []
        for shop in self.fetch_shops(delta):
            seller = self.converter.convert(shop)
            if not seller.hyperwallet_program:
                skipped.append(shop.id)
                continue
            sellers.append(seller)
        if skipped:
            logger.warning(f"Shops [{','.join(skipped)}] skipped because they are lacking hw-program")
        return sellers

    def extract_sellers_with_bank_accounts(self, delta: Optional[datetime]) -> List[Seller]:
        """Sellers updated since ``delta`` that carry bank account details."""
        sellers = []
        without_details = []
        for seller in self.extract_sellers(delta):
            if seller.bank_account_details is None:
                without_details.append(seller.client_user_id)
                continue
            sellers.append(seller)
        if without_details:
            logger.warning(
                f"Shops [{','.join(without_details)}] skipped because they have no bank account details"
            )
        return sellers


class TokenSynchronizationService:
    """Recovers user tokens that exist on the payouts side but not on the shop."""

    def __init__(self, payouts: PayoutsConnector, writer: ShopTokenWriter):
        self.payouts = payouts
        self.writer = writer

    def synchronize_token(self, seller: Seller) -> Seller:
        if seller.token or not seller.hyperwallet_program:
            return seller
        try:
            user = self.payouts.find_user(seller.hyperwallet_program, seller.client_user_id)
        except ConnectorError as e:
            logger.warning(f"Could not look up payouts user for shop [{seller.client_user_id}]: {e}")
            return seller
        if user is None or not user.token:
            return seller
        logger.info(f"Recovered user token for shop [{seller.client_user_id}]")
        self.writer.update_user_token(seller, user.token)
        return seller.model_copy(update={"token": user.token})
