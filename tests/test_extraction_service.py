"""Tests for the accounting-document extraction pipeline."""

import pytest
from datetime import timedelta
from decimal import Decimal

from payouts_sync.connectors import MiraklApiError, SimulatorConfig, SimulatorMarketplaceConnector
from payouts_sync.extraction import (
    AccountingDocumentExtractService,
    AccountingDocumentType,
    CREDIT_NOTES,
    INVOICES,
    ShopTokenResolver,
    build_list_request,
    convert_credit_note,
    convert_invoice,
)

from conftest import NOW, make_invoice, make_shop


def build_service(connector, notifier, kind=INVOICES, **kwargs):
    return AccountingDocumentExtractService(
        connector, kind, ShopTokenResolver(connector, notifier), clock=lambda: NOW, **kwargs
    )


class TestConverters:
    """Tests for document conversion."""

    def test_invoice_amounts(self):
        document = convert_invoice(make_invoice("1", "10", amount="80.50"))
        assert document.document_type == AccountingDocumentType.INVOICE
        assert document.transferred_amount == Decimal("80.50")
        assert document.commission_amount == Decimal("5.00")
        assert document.destination_token is None

    def test_credit_note_uses_charged_amount(self):
        raw = make_invoice("2", "10", AccountingDocumentType.CREDIT_NOTE, amount="12.00")
        document = convert_credit_note(raw)
        assert document.document_type == AccountingDocumentType.CREDIT_NOTE
        assert document.transferred_amount == Decimal("12.00")

    def test_list_request_filters(self):
        request = build_list_request(AccountingDocumentType.CREDIT_NOTE, NOW)
        assert request.type == "MANUAL_CREDIT"
        assert request.payment_status == "PENDING"
        assert request.state == "COMPLETE"
        assert request.max == 100
        assert request.start_date == NOW


class TestExtractAccountingDocuments:
    """Tests for delta extraction."""

    def test_documents_are_mapped_and_unmappable_dropped(self, notifier):
        connector = SimulatorMarketplaceConnector(
            invoices=[make_invoice("1", "10"), make_invoice("2", "20"), make_invoice("3", "10")],
            shops=[make_shop("10", bank_token="trm-10"), make_shop("20")],
        )
        service = build_service(connector, notifier)

        documents = service.extract_accounting_documents(NOW - timedelta(days=1))

        assert [d.id for d in documents] == ["1", "3"]
        assert all(d.destination_token == "trm-10" for d in documents)
        assert all(d.hyperwallet_program == "DEFAULT" for d in documents)

    def test_report_counts_fetched_and_skipped(self, notifier):
        connector = SimulatorMarketplaceConnector(
            invoices=[make_invoice("1", "10"), make_invoice("2", "20")],
            shops=[make_shop("10", bank_token="trm-10")],
        )
        report = build_service(connector, notifier).extract(NOW - timedelta(days=1))
        assert report.total_fetched == 2
        assert report.skipped_document_ids == ["2"]

    def test_delta_filters_older_documents(self, notifier):
        connector = SimulatorMarketplaceConnector(
            invoices=[
                make_invoice("old", "10", created=NOW - timedelta(days=3)),
                make_invoice("new", "10", created=NOW - timedelta(minutes=5)),
            ],
            shops=[make_shop("10", bank_token="trm-10")],
        )
        documents = build_service(connector, notifier).extract_accounting_documents(NOW - timedelta(hours=1))
        assert [d.id for d in documents] == ["new"]

    def test_only_requested_type_is_fetched(self, notifier):
        connector = SimulatorMarketplaceConnector(
            invoices=[
                make_invoice("1", "10"),
                make_invoice("2", "10", AccountingDocumentType.CREDIT_NOTE),
            ],
            shops=[make_shop("10", bank_token="trm-10")],
        )
        documents = build_service(connector, notifier, kind=CREDIT_NOTES).extract_accounting_documents(None)
        assert [d.id for d in documents] == ["2"]
        assert documents[0].document_type == AccountingDocumentType.CREDIT_NOTE

    def test_pages_through_listing(self, notifier):
        connector = SimulatorMarketplaceConnector(
            invoices=[make_invoice(str(i), "10") for i in range(230)],
            shops=[make_shop("10", bank_token="trm-10")],
        )
        documents = build_service(connector, notifier).extract_accounting_documents(None)
        assert len(documents) == 230
        assert [r.offset for r in connector.invoice_requests] == [0, 100, 200]

    def test_empty_listing_makes_no_shop_lookup(self, notifier):
        connector = SimulatorMarketplaceConnector()
        assert build_service(connector, notifier).extract_accounting_documents(None) == []
        assert connector.shop_lookups == []

    def test_listing_failure_propagates(self, notifier):
        connector = SimulatorMarketplaceConnector(config=SimulatorConfig(fail_invoice_listing=True))
        with pytest.raises(MiraklApiError):
            build_service(connector, notifier).extract_accounting_documents(None)

    def test_failed_shop_lookup_drops_documents_and_alerts(self, notifier):
        connector = SimulatorMarketplaceConnector(
            invoices=[make_invoice("1", "10")],
            shops=[make_shop("10", bank_token="trm-10")],
            config=SimulatorConfig(failing_shop_ids={"10"}),
        )
        report = build_service(connector, notifier).extract(None)
        assert report.documents == []
        assert report.skipped_document_ids == ["1"]
        assert notifier.subjects == ["Issue detected getting shops in Mirakl"]


class TestExtractByIds:
    """Tests for by-id extraction."""

    def test_window_is_configured_days_back(self, notifier):
        service = build_service(SimulatorMarketplaceConnector(), notifier, search_by_id_max_days=30)
        assert service.by_id_window_start() == NOW - timedelta(days=30)

    def test_returns_only_requested_ids_within_window(self, notifier):
        connector = SimulatorMarketplaceConnector(
            invoices=[
                make_invoice("1", "10"),
                make_invoice("2", "10"),
                make_invoice("3", "10", created=NOW - timedelta(days=400)),
            ],
            shops=[make_shop("10", bank_token="trm-10")],
        )
        service = build_service(connector, notifier)
        documents = service.extract_accounting_documents_by_ids(["2", "3"])

        assert [d.id for d in documents] == ["2"]
        assert documents[0].destination_token == "trm-10"
        assert connector.invoice_requests[0].start_date == NOW - timedelta(days=180)

    def test_by_id_results_are_reconciled(self, notifier):
        connector = SimulatorMarketplaceConnector(
            invoices=[make_invoice("1", "10"), make_invoice("2", "20")],
            shops=[make_shop("10", bank_token="trm-10"), make_shop("20")],
        )
        report = build_service(connector, notifier).extract_by_ids(["1", "2"])
        assert [d.id for d in report.documents] == ["1"]
        assert report.skipped_document_ids == ["2"]
