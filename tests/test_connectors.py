"""Tests for the Mirakl and Hyperwallet REST connectors."""

import json
import pytest
import requests
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

from payouts_sync.connectors import (
    HyperwalletApiError,
    HyperwalletBankAccount,
    HyperwalletConnector,
    HyperwalletPayment,
    HyperwalletUser,
    HyperwalletVerificationDocument,
    InvoiceListRequest,
    MiraklAdditionalField,
    MiraklApiError,
    MiraklConnector,
    ShopUpdate,
)
from payouts_sync.extraction import ShopTokenResolver
from payouts_sync.retry import RetryPolicy
from payouts_sync.sellers import (
    CreateUserStrategy,
    CurrencyResolutionConfig,
    CurrencyResolver,
    SellerConverter,
)

from conftest import RecordingNotifier, make_shop


def response(status_code=200, payload=None, content=None):
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = payload or {}
    mock.text = json.dumps(payload or {})
    mock.content = content if content is not None else mock.text.encode()
    return mock


def unreadable_response(status_code=200):
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    mock.text = "<html>oops</html>"
    mock.content = mock.text.encode()
    return mock


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def mirakl(session):
    return MiraklConnector(base_url="https://mirakl.example.com/", api_key="op-key", session=session)


@pytest.fixture
def hyperwallet(session):
    return HyperwalletConnector(
        programs={"DEFAULT": "prg-1"},
        base_url="https://hw.example.com",
        username="user",
        password="pass",
        session=session,
    )


class TestMiraklConnector:
    """Tests for the operator API mapping."""

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("MIRAKL_API_KEY", raising=False)
        with pytest.raises(ValueError):
            MiraklConnector(base_url="https://mirakl.example.com")

    def test_sets_authorization_header(self, mirakl, session):
        session.headers.update.assert_called_with({"Authorization": "op-key", "Accept": "application/json"})

    def test_get_invoices(self, mirakl, session):
        session.request.return_value = response(payload={
            "total_count": 1,
            "invoices": [{
                "invoice_id": 2001,
                "shop_id": 10,
                "type": "AUTO_INVOICE",
                "currency_iso_code": "EUR",
                "date_created": "2024-05-01T10:00:00Z",
                "summary": {"amount_transferred": "90.5", "total_commissions_incl_tax": "9.5"},
            }],
        })
        request = InvoiceListRequest(
            start_date=datetime(2024, 5, 1, tzinfo=timezone.utc), type="AUTO_INVOICE", offset=100
        )

        page = mirakl.get_invoices(request)

        method, url = session.request.call_args[0]
        params = session.request.call_args[1]["params"]
        assert (method, url) == ("GET", "https://mirakl.example.com/api/invoices")
        assert params["offset"] == 100
        assert params["start_date"] == "2024-05-01T00:00:00Z"
        assert page.total_count == 1
        invoice = page.items[0]
        assert invoice.id == "2001"
        assert invoice.shop_id == "10"
        assert invoice.amount_transferred == Decimal("90.5")

    def test_get_shops(self, mirakl, session):
        session.request.return_value = response(payload={"shops": [{
            "shop_id": 10,
            "shop_name": "Shop",
            "is_professional": True,
            "contact_informations": {"email": "s@example.com", "country": "FR"},
            "shop_additional_fields": [{"code": "hw-program", "value": "DEFAULT"}],
        }]})

        shops = mirakl.get_shops({"20", "10"})

        params = session.request.call_args[1]["params"]
        assert params == {"shop_ids": "10,20", "paginate": "false"}
        assert shops[0].id == "10"
        assert shops[0].professional is True
        assert shops[0].additional_field("hw-program") == "DEFAULT"

    def test_update_shops(self, mirakl, session):
        session.request.return_value = response()
        mirakl.update_shops([ShopUpdate(
            shop_id="10", additional_fields=[MiraklAdditionalField(code="hw-user-token", value="usr-1")]
        )])
        method, url = session.request.call_args[0]
        body = session.request.call_args[1]["json"]
        assert method == "PUT"
        assert body["shops"][0]["shop_id"] == 10
        assert body["shops"][0]["shop_additional_fields"] == [{"code": "hw-user-token", "value": "usr-1"}]

    def test_http_error_becomes_api_error(self, mirakl, session):
        session.request.return_value = response(status_code=500, payload={"message": "boom"})
        with pytest.raises(MiraklApiError) as exc_info:
            mirakl.get_shops({"1"})
        assert exc_info.value.status_code == 500
        assert "boom" in exc_info.value.response_body

    def test_transport_error_becomes_api_error(self, mirakl, session):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(MiraklApiError):
            mirakl.get_shops({"1"})

    def test_documents(self, mirakl, session):
        session.request.side_effect = [
            response(payload={"shop_documents": [
                {"id": 5, "shop_id": 10, "type": "hw-ind-proof-identity-front", "file_name": "p.png"},
            ]}),
            response(content=b"bytes"),
        ]
        documents = mirakl.get_shop_documents({"10"})
        assert documents[0].id == "5"
        assert mirakl.download_shop_document("5") == b"bytes"

    def test_unreadable_body_becomes_api_error(self, mirakl, session):
        session.request.return_value = unreadable_response()
        with pytest.raises(MiraklApiError) as exc_info:
            mirakl.get_shops({"1"})
        assert exc_info.value.status_code == 200
        assert "<html>" in exc_info.value.response_body

    def test_unreadable_batch_is_isolated(self, mirakl, session):
        session.request.side_effect = [
            unreadable_response(),
            response(payload={"shops": [{
                "shop_id": 2,
                "shop_additional_fields": [
                    {"code": "hw-bankaccount-token", "value": "trm-2"},
                    {"code": "hw-program", "value": "DEFAULT"},
                ],
            }]}),
        ]
        notifier = RecordingNotifier()

        resolution = ShopTokenResolver(mirakl, notifier, batch_size=1).get_shops(["1", "2"])

        assert resolution.failed_shop_ids == {"1"}
        assert set(resolution.tokens) == {"2"}
        assert notifier.subjects == ["Issue detected getting shops in Mirakl"]


class TestHyperwalletConnector:
    """Tests for the REST v4 mapping."""

    def test_requires_credentials(self, monkeypatch):
        monkeypatch.delenv("HYPERWALLET_USERNAME", raising=False)
        monkeypatch.delenv("HYPERWALLET_PASSWORD", raising=False)
        with pytest.raises(ValueError):
            HyperwalletConnector(programs={})

    def test_unknown_program(self, hyperwallet):
        with pytest.raises(HyperwalletApiError):
            hyperwallet.program_token("UK")

    def test_create_user(self, hyperwallet, session):
        session.request.return_value = response(payload={
            "token": "usr-1", "clientUserId": "10", "programToken": "prg-1", "profileType": "INDIVIDUAL",
        })
        user = hyperwallet.create_user(
            "DEFAULT", HyperwalletUser(client_user_id="10", profile_type="INDIVIDUAL", email="a@example.com")
        )
        method, url = session.request.call_args[0]
        body = session.request.call_args[1]["json"]
        assert (method, url) == ("POST", "https://hw.example.com/rest/v4/users")
        assert body["programToken"] == "prg-1"
        assert body["email"] == "a@example.com"
        assert "firstName" not in body
        assert user.token == "usr-1"

    def test_create_bank_account(self, hyperwallet, session):
        session.request.return_value = response(payload={"token": "trm-1"})
        account = HyperwalletBankAccount(
            user_token="usr-1",
            transfer_method_country="FR",
            transfer_method_currency="EUR",
            bank_account_id="FR76",
        )
        created = hyperwallet.create_bank_account("DEFAULT", account)
        assert session.request.call_args[0][1] == "https://hw.example.com/rest/v4/users/usr-1/bank-accounts"
        assert created.token == "trm-1"

    def test_update_bank_account_requires_token(self, hyperwallet):
        account = HyperwalletBankAccount(
            user_token="usr-1", transfer_method_country="FR", transfer_method_currency="EUR", bank_account_id="FR76",
        )
        with pytest.raises(HyperwalletApiError):
            hyperwallet.update_bank_account("DEFAULT", account)

    def test_find_user_empty_listing(self, hyperwallet, session):
        session.request.return_value = response(status_code=204, content=b"")
        assert hyperwallet.find_user("DEFAULT", "10") is None
        params = session.request.call_args[1]["params"]
        assert params == {"clientUserId": "10", "programToken": "prg-1"}

    def test_find_user(self, hyperwallet, session):
        session.request.return_value = response(payload={"data": [{"token": "usr-1", "clientUserId": "10"}]})
        assert hyperwallet.find_user("DEFAULT", "10").token == "usr-1"

    def test_create_payment(self, hyperwallet, session):
        session.request.return_value = response(payload={"token": "pmt-1"})
        payment = hyperwallet.create_payment("DEFAULT", HyperwalletPayment(
            client_payment_id="2001", amount=Decimal("90.50"), currency="EUR", destination_token="trm-1",
        ))
        body = session.request.call_args[1]["json"]
        assert body["clientPaymentId"] == "2001"
        assert body["amount"] == "90.50"
        assert body["programToken"] == "prg-1"
        assert payment.token == "pmt-1"

    def test_upload_documents_multipart(self, hyperwallet, session):
        session.request.return_value = response()
        hyperwallet.upload_documents("DEFAULT", "usr-1", [HyperwalletVerificationDocument(
            category="IDENTIFICATION", type="PASSPORT", country="FR", upload_files={"passport.png": b"img"},
        )])
        kwargs = session.request.call_args[1]
        assert kwargs["files"] == {"passport.png": ("passport.png", b"img")}
        data = json.loads(kwargs["data"]["data"])
        assert data["documents"][0]["type"] == "PASSPORT"

    def test_error_response(self, hyperwallet, session):
        session.request.return_value = response(status_code=400, payload={"errors": []})
        with pytest.raises(HyperwalletApiError) as exc_info:
            hyperwallet.create_payment("DEFAULT", HyperwalletPayment(
                client_payment_id="1", amount=Decimal("1"), currency="EUR", destination_token="trm-1",
            ))
        assert exc_info.value.status_code == 400

    def test_unreadable_body_becomes_api_error(self, hyperwallet, session):
        session.request.return_value = unreadable_response()
        with pytest.raises(HyperwalletApiError) as exc_info:
            hyperwallet.find_user("DEFAULT", "10")
        assert "<html>" in exc_info.value.response_body

    def test_unreadable_body_is_retried_then_alerted(self, hyperwallet, session):
        session.request.return_value = unreadable_response()
        notifier = RecordingNotifier()
        seller = SellerConverter(CurrencyResolver(CurrencyResolutionConfig.parse("USD"))).convert(make_shop("10"))
        strategy = CreateUserStrategy(
            hyperwallet, MagicMock(), notifier, RetryPolicy(attempts=2, delay_seconds=0)
        )

        assert strategy.execute(seller) is None
        assert session.request.call_count == 2
        assert notifier.subjects == ["Issue detected when trying to create user in Hyperwallet"]
