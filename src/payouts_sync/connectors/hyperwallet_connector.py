"""Hyperwallet REST v4 connector."""

import json
import os
import logging
from typing import Any, Dict, List, Optional

import requests

from .base import (
    PayoutsConnector,
    HyperwalletApiError,
    HyperwalletBankAccount,
    HyperwalletPayment,
    HyperwalletUser,
    HyperwalletVerificationDocument,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/rest/v4"


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


class HyperwalletConnector(PayoutsConnector):
    """
    Hyperwallet connector using plain REST calls. Program names coming from
    the marketplace (``hw-program``) are resolved to program tokens through
    the registry handed in at construction.
    """

    def __init__(
        self,
        programs: Dict[str, str],
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the Hyperwallet connector.

        Args:
            programs: Program name to program token registry.
            base_url: API root. Falls back to HYPERWALLET_BASE_URL env var.
            username: API username. Falls back to HYPERWALLET_USERNAME env var.
            password: API password. Falls back to HYPERWALLET_PASSWORD env var.
            timeout: Per-request timeout in seconds.
            session: Optional pre-built requests session.

        Raises:
            ValueError: If credentials are missing.
        """
        self._programs = dict(programs)
        self._base_url = (base_url or os.getenv("HYPERWALLET_BASE_URL", "")).rstrip("/")
        username = username or os.getenv("HYPERWALLET_USERNAME")
        password = password or os.getenv("HYPERWALLET_PASSWORD")
        if not username or not password:
            raise ValueError(
                "HYPERWALLET_USERNAME and HYPERWALLET_PASSWORD must be provided"
            )
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.auth = (username, password)
        self._session.headers.update({"Accept": "application/json"})

    def program_token(self, program: str) -> str:
        """Resolve a program name to its token.

        Raises:
            HyperwalletApiError: If the program is not configured.
        """
        token = self._programs.get(program)
        if not token:
            raise HyperwalletApiError(f"No Hyperwallet program token configured for '{program}'")
        return token

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self._base_url}{API_PREFIX}{path}"
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Failed to reach Hyperwallet at {path}: {type(e).__name__}")
            raise HyperwalletApiError(f"Failed to connect to Hyperwallet API: {e}") from e
        if response.status_code >= 400:
            logger.error(f"Hyperwallet {method} {path} returned {response.status_code}")
            raise HyperwalletApiError(
                f"Hyperwallet API error on {method} {path}",
                status_code=response.status_code,
                response_body=response.text,
            )
        return response

    def _json(self, response: requests.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Hyperwallet returned a non-JSON body ({response.status_code})")
            raise HyperwalletApiError(
                "Hyperwallet API returned an unreadable response",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    def _bank_account_payload(self, bank_account: HyperwalletBankAccount) -> Dict[str, Any]:
        return _drop_none({
            "type": bank_account.type,
            "profileType": bank_account.profile_type,
            "transferMethodCountry": bank_account.transfer_method_country,
            "transferMethodCurrency": bank_account.transfer_method_currency,
            "bankAccountId": bank_account.bank_account_id,
            "bankId": bank_account.bank_id,
            "branchId": bank_account.branch_id,
            "firstName": bank_account.first_name,
            "lastName": bank_account.last_name,
            "businessName": bank_account.business_name,
        })

    def _to_bank_account(self, data: Dict[str, Any], sent: HyperwalletBankAccount) -> HyperwalletBankAccount:
        return sent.model_copy(update={
            "token": data.get("token", sent.token),
            "transfer_method_currency": data.get("transferMethodCurrency", sent.transfer_method_currency),
        })

    def _user_payload(self, program: str, user: HyperwalletUser) -> Dict[str, Any]:
        return _drop_none({
            "clientUserId": user.client_user_id,
            "programToken": self.program_token(program),
            "profileType": user.profile_type,
            "firstName": user.first_name,
            "lastName": user.last_name,
            "businessName": user.business_name,
            "email": user.email,
            "addressLine1": user.address_line1,
            "city": user.city,
            "postalCode": user.postal_code,
            "country": user.country,
        })

    def _to_user(self, data: Dict[str, Any], program_token: Optional[str] = None) -> HyperwalletUser:
        return HyperwalletUser(
            token=data.get("token"),
            client_user_id=data["clientUserId"],
            program_token=data.get("programToken", program_token),
            profile_type=data.get("profileType", "INDIVIDUAL"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            business_name=data.get("businessName"),
            email=data.get("email"),
            address_line1=data.get("addressLine1"),
            city=data.get("city"),
            postal_code=data.get("postalCode"),
            country=data.get("country"),
        )

    def create_bank_account(self, program: str, bank_account: HyperwalletBankAccount) -> HyperwalletBankAccount:
        self.program_token(program)
        response = self._request(
            "POST",
            f"/users/{bank_account.user_token}/bank-accounts",
            json=self._bank_account_payload(bank_account),
        )
        return self._to_bank_account(self._json(response), bank_account)

    def update_bank_account(self, program: str, bank_account: HyperwalletBankAccount) -> HyperwalletBankAccount:
        self.program_token(program)
        if not bank_account.token:
            raise HyperwalletApiError("Cannot update a bank account without token")
        response = self._request(
            "PUT",
            f"/users/{bank_account.user_token}/bank-accounts/{bank_account.token}",
            json=self._bank_account_payload(bank_account),
        )
        return self._to_bank_account(self._json(response), bank_account)

    def create_user(self, program: str, user: HyperwalletUser) -> HyperwalletUser:
        response = self._request("POST", "/users", json=self._user_payload(program, user))
        return self._to_user(self._json(response))

    def update_user(self, program: str, user: HyperwalletUser) -> HyperwalletUser:
        if not user.token:
            raise HyperwalletApiError("Cannot update a user without token")
        response = self._request("PUT", f"/users/{user.token}", json=self._user_payload(program, user))
        return self._to_user(self._json(response))

    def find_user(self, program: str, client_user_id: str) -> Optional[HyperwalletUser]:
        program_token = self.program_token(program)
        response = self._request(
            "GET",
            "/users",
            params={"clientUserId": client_user_id, "programToken": program_token},
        )
        # Empty listings come back as 204 with no body
        if response.status_code == 204 or not response.content:
            return None
        users = self._json(response).get("data", [])
        if not users:
            return None
        return self._to_user(users[0], program_token)

    def create_payment(self, program: str, payment: HyperwalletPayment) -> HyperwalletPayment:
        program_token = self.program_token(program)
        body = {
            "clientPaymentId": payment.client_payment_id,
            "amount": str(payment.amount),
            "currency": payment.currency,
            "destinationToken": payment.destination_token,
            "programToken": program_token,
            "purpose": payment.purpose,
        }
        response = self._request("POST", "/payments", json=body)
        data = self._json(response)
        return payment.model_copy(update={"token": data.get("token"), "program_token": program_token})

    def upload_documents(
        self,
        program: str,
        user_token: str,
        documents: List[HyperwalletVerificationDocument],
    ) -> None:
        self.program_token(program)
        data = {
            "documents": [
                _drop_none({
                    "category": doc.category,
                    "type": doc.type,
                    "country": doc.country,
                    "status": "NEW",
                })
                for doc in documents
            ]
        }
        files = {}
        for doc in documents:
            for field_name, content in doc.upload_files.items():
                files[field_name] = (field_name, content)
        self._request("PUT", f"/users/{user_token}", data={"data": json.dumps(data)}, files=files)
        logger.info(f"Uploaded {len(files)} files for user {user_token}")

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True, "provider": "hyperwallet", "programs": sorted(self._programs)}
