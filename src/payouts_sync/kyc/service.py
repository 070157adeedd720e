"""Push seller KYC documents from the marketplace to the payouts provider."""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..connectors.base import (
    ConnectorError,
    HyperwalletVerificationDocument,
    MarketplaceConnector,
    MiraklApiError,
    MiraklShop,
    MiraklShopDocument,
    PayoutsConnector,
    HW_KYC_REQ_PROOF_IDENTITY_BUSINESS,
    HW_PROGRAM,
    HW_USER_TOKEN,
    MIRAKL_MAX_RESULTS_PER_PAGE,
)
from ..extraction.pagination import partition
from ..notifications import Notifier, ERROR_MESSAGE_PREFIX
from ..sellers.services import SellerExtractService, ShopTokenWriter
from .models import (
    KycSellerDocuments,
    ProofOfBusinessType,
    ProofOfIdentityType,
    HW_PROOF_OF_BUSINESS_TYPE,
    HW_PROOF_OF_IDENTITY_TYPE,
)

logger = logging.getLogger(__name__)


def _enum_or_none(enum_cls, value: Optional[str]):
    try:
        return enum_cls(value.upper()) if value else None
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} value {value!r}")
        return None


class KycDocumentService:
    """Finds sellers flagged for verification and uploads their proofs."""

    def __init__(
        self,
        connector: MarketplaceConnector,
        payouts: PayoutsConnector,
        seller_extract: SellerExtractService,
        writer: ShopTokenWriter,
        notifier: Notifier,
        batch_size: int = MIRAKL_MAX_RESULTS_PER_PAGE,
    ):
        self.connector = connector
        self.payouts = payouts
        self.seller_extract = seller_extract
        self.writer = writer
        self.notifier = notifier
        self.batch_size = batch_size

    def _to_kyc_seller(self, shop: MiraklShop) -> Optional[KycSellerDocuments]:
        if (shop.additional_field(HW_KYC_REQ_PROOF_IDENTITY_BUSINESS) or "").lower() != "true":
            return None
        user_token = shop.additional_field(HW_USER_TOKEN)
        program = shop.additional_field(HW_PROGRAM)
        if not user_token or not program:
            logger.warning(f"Shop [{shop.id}] requests KYC but has no user token or program yet")
            return None
        return KycSellerDocuments(
            client_user_id=shop.id,
            user_token=user_token,
            hyperwallet_program=program,
            professional=shop.professional,
            country=shop.country,
            proof_of_identity=_enum_or_none(ProofOfIdentityType, shop.additional_field(HW_PROOF_OF_IDENTITY_TYPE)),
            proof_of_business=_enum_or_none(ProofOfBusinessType, shop.additional_field(HW_PROOF_OF_BUSINESS_TYPE)),
        )

    def _documents_by_shop(self, shop_ids: List[str]) -> Dict[str, List[MiraklShopDocument]]:
        documents: Dict[str, List[MiraklShopDocument]] = {}
        for batch in partition(shop_ids, self.batch_size):
            try:
                found = self.connector.get_shop_documents(set(batch))
            except MiraklApiError as e:
                message = f"Something went wrong getting documents of shops [{','.join(sorted(batch))}]\n{e.describe()}"
                logger.error(message)
                self.notifier.send_plain_text("Issue detected getting documents from Mirakl", message)
                continue
            for document in found:
                documents.setdefault(document.shop_id, []).append(document)
        return documents

    def extract_pending(self, delta: Optional[datetime]) -> List[KycSellerDocuments]:
        """Flagged sellers updated since ``delta`` that have every required document."""
        candidates = [
            seller for seller in (self._to_kyc_seller(shop) for shop in self.seller_extract.fetch_shops(delta))
            if seller is not None
        ]
        if not candidates:
            return []
        documents = self._documents_by_shop([c.client_user_id for c in candidates])
        ready = []
        for candidate in candidates:
            candidate = candidate.model_copy(update={"documents": documents.get(candidate.client_user_id, [])})
            if not candidate.has_all_documents():
                logger.info(f"Shop [{candidate.client_user_id}] is missing KYC documents, skipping")
                continue
            ready.append(candidate)
        logger.info(f"{len(ready)} of {len(candidates)} flagged sellers have their KYC documents")
        return ready

    def _verification_documents(self, seller: KycSellerDocuments) -> List[HyperwalletVerificationDocument]:
        category = "BUSINESS" if seller.professional else "IDENTIFICATION"
        kind = seller.proof_of_business if seller.professional else seller.proof_of_identity
        files = {}
        for document in seller.documents:
            if document.type in seller.expected_document_codes():
                files[document.file_name] = self.connector.download_shop_document(document.id)
        return [HyperwalletVerificationDocument(
            category=category,
            type=kind.value if kind else category,
            country=seller.country,
            upload_files=files,
        )]

    def push(self, seller: KycSellerDocuments) -> bool:
        """Upload the seller's documents and clear the verification flag.

        Returns:
            True when the documents were accepted.
        """
        shop_id = seller.client_user_id
        try:
            documents = self._verification_documents(seller)
            self.payouts.upload_documents(seller.hyperwallet_program, seller.user_token, documents)
        except ConnectorError as e:
            message = f"Something went wrong pushing KYC documents of shop [{shop_id}]\n{e.describe()}"
            logger.error(message)
            self.notifier.send_plain_text(
                "Issue detected pushing documents to Hyperwallet", ERROR_MESSAGE_PREFIX + message
            )
            return False
        logger.info(f"KYC documents pushed for shop [{shop_id}]")
        self.writer.update_field(shop_id, HW_KYC_REQ_PROOF_IDENTITY_BUSINESS, "false")
        return True

    def push_pending_documents(self, delta: Optional[datetime]) -> Dict[str, int]:
        pushed = failed = 0
        for seller in self.extract_pending(delta):
            if self.push(seller):
                pushed += 1
            else:
                failed += 1
        return {"pushed": pushed, "failed": failed}
