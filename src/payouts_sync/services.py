"""Payment service that pays out reconciled accounting documents."""

import logging
from decimal import Decimal
from typing import Optional

from .connectors.base import HyperwalletPayment, PayoutsConnector
from .extraction.models import AccountingDocument
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


class AccountingPaymentService:
    """Service class turning accounting documents into payouts payments."""

    def __init__(self, payouts: PayoutsConnector, retry_policy: Optional[RetryPolicy] = None):
        """Initialize the service.

        Args:
            payouts: Payouts provider connector.
            retry_policy: Policy for the payment call; a single attempt by default.
        """
        self.payouts = payouts
        self.retry_policy = retry_policy or RetryPolicy(attempts=1, delay_seconds=0)

    def build_payment(self, document: AccountingDocument) -> HyperwalletPayment:
        """Map a reconciled document to a payment request.

        Raises:
            ValueError: If the document has no destination token.
        """
        if not document.destination_token:
            raise ValueError(f"Document {document.id} has no destination token")
        return HyperwalletPayment(
            client_payment_id=document.id,
            amount=document.transferred_amount,
            currency=document.currency,
            destination_token=document.destination_token,
        )

    def pay(self, document: AccountingDocument) -> Optional[HyperwalletPayment]:
        """Create the payment for a document.

        The document id is the client payment id, so the provider rejects a
        second payment for the same document.

        Args:
            document: A document returned by the extraction service.

        Returns:
            The created payment, or None when there is nothing to pay.

        Raises:
            ConnectorError: If the provider rejects the payment.
            ValueError: If the document is not reconciled.
        """
        if document.transferred_amount <= Decimal("0"):
            logger.info(f"Document {document.id} has nothing to transfer, skipping payment")
            return None
        if not document.hyperwallet_program:
            raise ValueError(f"Document {document.id} has no payouts program")

        payment = self.build_payment(document)
        created = self.retry_policy.call(self.payouts.create_payment, document.hyperwallet_program, payment)
        logger.info(
            f"Payment {created.token} created for document {document.id}: "
            f"{created.amount} {created.currency}"
        )
        return created
