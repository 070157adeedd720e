"""Join extracted documents with resolved shop tokens."""

import logging
from typing import List, Tuple

from .models import AccountingDocument, ShopTokenResolution

logger = logging.getLogger(__name__)


class TokenReconciler:
    """Splits documents into mappable and unmappable by their shop's token.

    Pure: no state is kept between calls, so the same inputs always give the
    same output.
    """

    def reconcile(
        self,
        documents: List[AccountingDocument],
        resolution: ShopTokenResolution,
    ) -> Tuple[List[AccountingDocument], List[AccountingDocument]]:
        """Attach destination token and program to every mappable document.

        Args:
            documents: Extracted documents, without tokens.
            resolution: Shop to token mapping for this run.

        Returns:
            Tuple of (mapped documents, skipped documents). Mapped documents
            are new copies; all fields other than token and program are kept.
        """
        mapped: List[AccountingDocument] = []
        skipped: List[AccountingDocument] = []
        seen = set()

        for document in documents:
            if document.id in seen:
                continue
            seen.add(document.id)

            shop_token = resolution.tokens.get(document.shop_id) if document.shop_id else None
            if shop_token is None:
                skipped.append(document)
                continue
            mapped.append(document.model_copy(update={
                "destination_token": shop_token.destination_token,
                "hyperwallet_program": shop_token.program,
            }))

        lookup_failed = [d.id for d in skipped if d.shop_id in resolution.failed_shop_ids]
        lacking_token = [d.id for d in skipped if d.shop_id not in resolution.failed_shop_ids]
        if lacking_token:
            logger.warning(
                f"Documents with ids [{','.join(lacking_token)}] should be skipped because "
                f"are lacking hw-program or bank account token"
            )
        if lookup_failed:
            logger.warning(
                f"Documents with ids [{','.join(lookup_failed)}] should be skipped because "
                f"their shop information could not be retrieved"
            )

        return mapped, skipped
