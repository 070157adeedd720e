"""Tests for seller conversion, extraction and token write-back."""

import logging
from unittest.mock import MagicMock

from payouts_sync.connectors import (
    HyperwalletApiError,
    HyperwalletUser,
    SimulatorConfig,
    SimulatorMarketplaceConnector,
    SimulatorPayoutsConnector,
    HW_BANK_ACCOUNT_TOKEN,
    HW_KYC_REQ_PROOF_IDENTITY_BUSINESS,
    HW_USER_TOKEN,
)
from payouts_sync.notifications import ERROR_MESSAGE_PREFIX
from payouts_sync.sellers import (
    BankAccountType,
    CurrencyResolutionConfig,
    CurrencyResolver,
    ProfileType,
    SellerConverter,
    SellerExtractService,
    ShopTokenWriter,
    TokenSynchronizationService,
    to_hyperwallet_bank_account,
    to_hyperwallet_user,
)

from conftest import IBAN_PAYMENT_INFO, make_shop


def converter(priority="USD"):
    return SellerConverter(CurrencyResolver(CurrencyResolutionConfig.parse(priority)))


class TestSellerConverter:
    """Tests for shop to seller conversion."""

    def test_individual_seller(self):
        shop = make_shop("1", user_token="usr-1", payment_info=IBAN_PAYMENT_INFO)
        seller = converter().convert(shop)

        assert seller.client_user_id == "1"
        assert seller.token == "usr-1"
        assert seller.hyperwallet_program == "DEFAULT"
        assert seller.profile_type == ProfileType.INDIVIDUAL
        assert seller.business_name is None
        assert seller.kyc_requested is False

    def test_professional_seller_uses_shop_name(self):
        seller = converter().convert(make_shop("2", professional=True, name="ACME"))
        assert seller.profile_type == ProfileType.BUSINESS
        assert seller.business_name == "ACME"

    def test_kyc_flag(self):
        shop = make_shop("3", extra_fields={HW_KYC_REQ_PROOF_IDENTITY_BUSINESS: "true"})
        assert converter().convert(shop).kyc_requested is True

    def test_iban_details_take_country_from_iban(self):
        shop = make_shop("1", payment_info=IBAN_PAYMENT_INFO, bank_token="trm-1")
        details = converter().convert(shop).bank_account_details

        assert details.type == BankAccountType.IBAN
        assert details.transfer_method_country == "FR"
        assert details.transfer_method_currency == "EUR"
        assert details.bank_id == "AGRIFRPP"
        assert details.token == "trm-1"

    def test_aba_details(self):
        info = {"@type": "ABA", "bank_account_number": "123456", "routing_number": "026009593"}
        details = converter().convert(make_shop("1", payment_info=info, currency_iso_code="USD")).bank_account_details
        assert details.transfer_method_country == "US"
        assert details.transfer_method_currency == "USD"
        assert details.bank_id == "026009593"

    def test_canadian_details_resolve_currency_by_priority(self):
        info = {
            "@type": "CANADIAN",
            "bank_account_number": "1234567",
            "institution_number": "001",
            "transit_number": "12345",
        }
        shop = make_shop("1", payment_info=info, currency_iso_code="EUR")
        details = converter("USD;CA:CAD").convert(shop).bank_account_details
        assert details.transfer_method_country == "CA"
        assert details.transfer_method_currency == "CAD"
        assert details.branch_id == "12345"

    def test_unsupported_type_has_no_details(self):
        shop = make_shop("1", payment_info={"@type": "CHEQUE"})
        assert converter().convert(shop).bank_account_details is None

    def test_null_type_has_no_details(self):
        shop = make_shop("1", payment_info={"@type": None, "iban": "FR7630006000011234567890189"})
        seller = converter().convert(shop)
        assert seller.client_user_id == "1"
        assert seller.bank_account_details is None

    def test_no_payment_info(self):
        assert converter().convert(make_shop("1")).bank_account_details is None

    def test_payloads(self):
        seller = converter().convert(make_shop("1", user_token="usr-1", payment_info=IBAN_PAYMENT_INFO))
        user = to_hyperwallet_user(seller)
        account = to_hyperwallet_bank_account(seller)

        assert user.client_user_id == "1"
        assert user.token == "usr-1"
        assert account.user_token == "usr-1"
        assert account.bank_account_id == IBAN_PAYMENT_INFO["iban"]
        assert account.token is None

    def test_no_bank_payload_without_user_token(self):
        seller = converter().convert(make_shop("1", payment_info=IBAN_PAYMENT_INFO))
        assert to_hyperwallet_bank_account(seller) is None


class TestSellerExtractService:
    """Tests for seller extraction."""

    def test_skips_shops_without_program(self):
        connector = SimulatorMarketplaceConnector(shops=[make_shop("1"), make_shop("2", program=None)])
        sellers = SellerExtractService(connector, converter()).extract_sellers(None)
        assert [s.client_user_id for s in sellers] == ["1"]

    def test_pages_through_shops(self):
        connector = SimulatorMarketplaceConnector(shops=[make_shop(str(i)) for i in range(120)])
        assert len(SellerExtractService(connector, converter()).extract_sellers(None)) == 120

    def test_bank_account_extraction_skips_sellers_without_details(self, caplog):
        connector = SimulatorMarketplaceConnector(shops=[
            make_shop("1", payment_info=IBAN_PAYMENT_INFO),
            make_shop("2"),
            make_shop("3", payment_info={"@type": None}),
        ])
        with caplog.at_level(logging.WARNING):
            sellers = SellerExtractService(connector, converter()).extract_sellers_with_bank_accounts(None)

        assert [s.client_user_id for s in sellers] == ["1"]
        warnings = [r.getMessage() for r in caplog.records if "no bank account details" in r.getMessage()]
        assert warnings == ["Shops [2,3] skipped because they have no bank account details"]


class TestShopTokenWriter:
    """Tests for writing tokens back to the marketplace."""

    def test_bank_token_written(self, notifier):
        connector = SimulatorMarketplaceConnector(shops=[make_shop("1")])
        seller = converter().convert(connector.shops["1"])

        assert ShopTokenWriter(connector, notifier).update_bank_account_token(seller, "trm-9") is True
        assert connector.shops["1"].additional_field(HW_BANK_ACCOUNT_TOKEN) == "trm-9"

    def test_update_failure_alerts_and_returns_false(self, notifier):
        connector = SimulatorMarketplaceConnector(
            shops=[make_shop("1")], config=SimulatorConfig(failing_update_shop_ids={"1"})
        )
        seller = converter().convert(connector.shops["1"])

        assert ShopTokenWriter(connector, notifier).update_user_token(seller, "usr-9") is False
        subject, body = notifier.sent[0]
        assert subject == "Issue detected updating user token in Mirakl"
        assert body.startswith(ERROR_MESSAGE_PREFIX)


class TestTokenSynchronizationService:
    """Tests for recovering user tokens."""

    def test_recovers_existing_user_token(self, notifier):
        connector = SimulatorMarketplaceConnector(shops=[make_shop("1")])
        payouts = SimulatorPayoutsConnector()
        existing = payouts.create_user("DEFAULT", HyperwalletUser(client_user_id="1", profile_type="INDIVIDUAL"))
        seller = converter().convert(connector.shops["1"])

        synced = TokenSynchronizationService(payouts, ShopTokenWriter(connector, notifier)).synchronize_token(seller)

        assert synced.token == existing.token
        assert connector.shops["1"].additional_field(HW_USER_TOKEN) == existing.token

    def test_seller_with_token_untouched(self, notifier):
        payouts = MagicMock()
        seller = converter().convert(make_shop("1", user_token="usr-1"))
        service = TokenSynchronizationService(payouts, MagicMock())
        assert service.synchronize_token(seller) is seller
        payouts.find_user.assert_not_called()

    def test_lookup_failure_keeps_seller(self, notifier):
        payouts = MagicMock()
        payouts.find_user.side_effect = HyperwalletApiError("down", status_code=503)
        seller = converter().convert(make_shop("1"))
        assert TokenSynchronizationService(payouts, MagicMock()).synchronize_token(seller) is seller
