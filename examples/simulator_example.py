"""
Run every synchronization job once against the in-memory simulators.

No Mirakl or Hyperwallet credentials are needed: the marketplace holds one
seller with an IBAN and one invoice, and the payouts side starts empty.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from payouts_sync.config import Settings
from payouts_sync.connectors import (
    HW_PROGRAM,
    MiraklAdditionalField,
    MiraklInvoice,
    MiraklShop,
    SimulatorMarketplaceConnector,
    SimulatorPayoutsConnector,
)
from payouts_sync.jobs import JobReportGenerator, build_jobs


def run():
    now = datetime.now(timezone.utc)
    marketplace = SimulatorMarketplaceConnector(
        shops=[
            MiraklShop(
                id="2001",
                name="Example Shop",
                email="seller@example.com",
                first_name="Ada",
                last_name="Martin",
                country="FR",
                currency_iso_code="EUR",
                payment_info={
                    "@type": "IBAN",
                    "iban": "FR1420041010050500013M02606",
                    "bic": "AGRIFRPP",
                },
                additional_fields=[MiraklAdditionalField(code=HW_PROGRAM, value="DEFAULT")],
            )
        ],
        invoices=[
            MiraklInvoice(
                id="90001",
                shop_id="2001",
                type="AUTO_INVOICE",
                currency_iso_code="EUR",
                amount_transferred=Decimal("120.50"),
                date_created=now - timedelta(minutes=5),
            )
        ],
    )
    payouts = SimulatorPayoutsConnector()
    jobs = build_jobs(Settings(connector="simulator", retry_delay_seconds=0), marketplace, payouts)

    # sellers first so the invoice has a destination token to pay to
    for name in ("sellers", "bank-accounts", "invoices"):
        result = jobs[name].run(now - timedelta(hours=1))
        print(JobReportGenerator(result).to_summary_text())

    print(f"Payments created: {[p.client_payment_id for p in payouts.payments.values()]}")


if __name__ == "__main__":
    run()
