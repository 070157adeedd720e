"""Resolve marketplace shops to payout destination tokens."""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Set

from ..connectors.base import MarketplaceConnector, MiraklApiError, MiraklShop, MIRAKL_MAX_RESULTS_PER_PAGE
from ..notifications import Notifier
from .converters import convert_shop_token
from .models import AccountingDocument, ShopToken, ShopTokenResolution
from .pagination import partition

logger = logging.getLogger(__name__)


class ShopTokenResolver:
    """Maps the shops behind a set of documents to (destination token, program)."""

    def __init__(
        self,
        connector: MarketplaceConnector,
        notifier: Notifier,
        batch_size: int = MIRAKL_MAX_RESULTS_PER_PAGE,
        shop_converter: Callable[[MiraklShop], Optional[ShopToken]] = convert_shop_token,
    ):
        """Initialize the resolver.

        Args:
            connector: Marketplace connector used for shop lookups.
            notifier: Alert channel for failed lookups.
            batch_size: Maximum shop ids per lookup call.
            shop_converter: Turns a shop into its ShopToken, or None if unmappable.
        """
        self.connector = connector
        self.notifier = notifier
        self.batch_size = batch_size
        self.shop_converter = shop_converter

    def _lookup_batch(self, shop_ids: List[str]) -> Optional[List[MiraklShop]]:
        """Fetch one batch of shops; None signals the call failed."""
        if not shop_ids:
            return []
        try:
            return self.connector.get_shops(set(shop_ids), paginate=False)
        except MiraklApiError as e:
            joined = ",".join(sorted(shop_ids))
            message = f"Something went wrong getting information of shops [{joined}]\n{e.describe()}"
            logger.error(message)
            self.notifier.send_plain_text("Issue detected getting shops in Mirakl", message)
            return None

    def get_shops(self, shop_ids: Iterable[str]) -> ShopTokenResolution:
        """Look up shops batch by batch; a failed batch contributes nothing."""
        tokens: Dict[str, ShopToken] = {}
        failed: Set[str] = set()
        for batch in partition(shop_ids, self.batch_size):
            shops = self._lookup_batch(batch)
            if shops is None:
                failed.update(batch)
                continue
            for shop in shops:
                shop_token = self.shop_converter(shop)
                if shop_token is None:
                    continue
                # Keep the first value for duplicated shops
                tokens.setdefault(shop_token.shop_id, shop_token)
        return ShopTokenResolution(tokens=tokens, failed_shop_ids=failed)

    def resolve(self, documents: Iterable[AccountingDocument]) -> ShopTokenResolution:
        documents = list(documents)
        shop_ids = sorted({doc.shop_id for doc in documents if doc.shop_id is not None})
        if not shop_ids:
            return ShopTokenResolution()
        logger.info(
            f"Retrieving information of shops [{','.join(shop_ids)}] for documents "
            f"[{','.join(doc.id for doc in documents)}]"
        )
        return self.get_shops(shop_ids)
