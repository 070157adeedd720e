"""Mirakl operator REST connector."""

import os
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

import requests

from .base import (
    MarketplaceConnector,
    MiraklAdditionalField,
    MiraklApiError,
    MiraklInvoice,
    MiraklShop,
    MiraklShopDocument,
    InvoiceListRequest,
    Page,
    ShopUpdate,
)

logger = logging.getLogger(__name__)


def _format_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


class MiraklConnector(MarketplaceConnector):
    """
    Thin wrapper over the operator endpoints the jobs use:
    IV01 (invoices), S20 (shops), S07 (shop update), S30/S31 (shop documents).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the Mirakl connector.

        Args:
            base_url: Operator API root. Falls back to MIRAKL_BASE_URL env var.
            api_key: Operator API key. Falls back to MIRAKL_API_KEY env var.
            timeout: Per-request timeout in seconds.
            session: Optional pre-built requests session (mainly for tests).

        Raises:
            ValueError: If no API key is provided or found.
        """
        self._base_url = (base_url or os.getenv("MIRAKL_BASE_URL", "")).rstrip("/")
        self._api_key = api_key or os.getenv("MIRAKL_API_KEY")
        if not self._api_key:
            raise ValueError(
                "MIRAKL_API_KEY must be provided either as argument or environment variable"
            )
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": self._api_key,
            "Accept": "application/json",
        })

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Failed to reach Mirakl at {path}: {type(e).__name__}")
            raise MiraklApiError(f"Failed to connect to Mirakl API: {e}") from e
        if response.status_code >= 400:
            logger.error(f"Mirakl {method} {path} returned {response.status_code}")
            raise MiraklApiError(
                f"Mirakl API error on {method} {path}",
                status_code=response.status_code,
                response_body=response.text,
            )
        return response

    def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        response = self._request("GET", path, params=params)
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Mirakl GET {path} returned a non-JSON body")
            raise MiraklApiError(
                f"Mirakl API returned an unreadable response on GET {path}",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    def _convert_invoice(self, raw: Dict[str, Any]) -> MiraklInvoice:
        summary = raw.get("summary") or {}
        shop_id = raw.get("shop_id")
        return MiraklInvoice(
            id=str(raw["invoice_id"]),
            shop_id=str(shop_id) if shop_id is not None else None,
            type=raw["type"],
            payment_status=raw.get("payment_status", "PENDING"),
            state=raw.get("state", "COMPLETE"),
            currency_iso_code=raw["currency_iso_code"],
            amount_transferred=summary.get("amount_transferred", 0),
            total_commissions_incl_tax=summary.get("total_commissions_incl_tax", 0),
            total_charged_amount=raw.get("total_charged_amount", 0),
            date_created=raw["date_created"],
            due_date=raw.get("due_date"),
        )

    def _convert_shop(self, raw: Dict[str, Any]) -> MiraklShop:
        contact = raw.get("contact_informations") or {}
        return MiraklShop(
            id=str(raw["shop_id"]),
            name=raw.get("shop_name"),
            professional=bool(raw.get("is_professional", False)),
            email=contact.get("email"),
            first_name=contact.get("firstname"),
            last_name=contact.get("lastname"),
            street=contact.get("street1"),
            city=contact.get("city"),
            zip_code=contact.get("zip_code"),
            country=contact.get("country"),
            currency_iso_code=raw.get("currency_iso_code"),
            payment_info=raw.get("payment_info"),
            additional_fields=[
                MiraklAdditionalField(code=f["code"], value=f.get("value"))
                for f in raw.get("shop_additional_fields", [])
            ],
            last_updated_date=raw.get("last_updated_date"),
        )

    def get_invoices(self, request: InvoiceListRequest) -> Page:
        params: Dict[str, Any] = {
            "payment_status": request.payment_status,
            "state": request.state,
            "type": request.type,
            "max": request.max,
            "offset": request.offset,
        }
        if request.start_date:
            params["start_date"] = _format_date(request.start_date)
        data = self._get_json("/api/invoices", params)
        return Page(
            items=[self._convert_invoice(raw) for raw in data.get("invoices", [])],
            total_count=data.get("total_count", 0),
        )

    def get_shops(self, shop_ids: Set[str], paginate: bool = False) -> List[MiraklShop]:
        params = {
            "shop_ids": ",".join(sorted(shop_ids)),
            "paginate": str(paginate).lower(),
        }
        data = self._get_json("/api/shops", params)
        return [self._convert_shop(raw) for raw in data.get("shops", [])]

    def list_shops(self, updated_since: Optional[datetime], page_size: int, offset: int) -> Page:
        params: Dict[str, Any] = {"paginate": "true", "max": page_size, "offset": offset}
        if updated_since:
            params["updated_since"] = _format_date(updated_since)
        data = self._get_json("/api/shops", params)
        return Page(
            items=[self._convert_shop(raw) for raw in data.get("shops", [])],
            total_count=data.get("total_count", 0),
        )

    def update_shops(self, updates: List[ShopUpdate]) -> None:
        body = {
            "shops": [
                {
                    "shop_id": int(update.shop_id) if update.shop_id.isdigit() else update.shop_id,
                    "shop_additional_fields": [
                        {"code": f.code, "value": f.value} for f in update.additional_fields
                    ],
                }
                for update in updates
            ]
        }
        self._request("PUT", "/api/shops", json=body)

    def get_shop_documents(self, shop_ids: Set[str]) -> List[MiraklShopDocument]:
        data = self._get_json("/api/shops/documents", {"shop_ids": ",".join(sorted(shop_ids))})
        return [
            MiraklShopDocument(
                id=str(raw["id"]),
                shop_id=str(raw["shop_id"]),
                type=raw["type"],
                file_name=raw["file_name"],
            )
            for raw in data.get("shop_documents", [])
        ]

    def download_shop_document(self, document_id: str) -> bytes:
        response = self._request(
            "GET", "/api/shops/documents/download", params={"document_ids": document_id}
        )
        return response.content

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True, "provider": "mirakl", "base_url": self._base_url}
