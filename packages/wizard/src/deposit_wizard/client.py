"""httpx client for the deposit API.

Implements ``DepositsServiceProtocol`` against the REST endpoints of the
deposit service. Every failure is converted into ``RemoteServiceError``:
error responses with an ``errors`` list become structured errors, and
network failures or unparseable bodies become unstructured ones.
"""

from typing import Any, Optional

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from deposit_core.exceptions import RemoteServiceError
from deposit_core.models import Account, DealRecord, RatePreview, RemoteFieldError
from deposit_wizard.config import ApiConfig
from deposit_wizard.interfaces.types import (
    CreateDepositResponse,
    DealInquiryRequest,
    DepositPayload,
    RateInquiryRequest,
)

logger = structlog.get_logger()

ACCOUNTS_URL = "accounts"
DEAL_INQUIRY_URL = "deposit-requests/deal-inquiry"
VALIDATE_URL = "deposit-requests/validate"
RATE_INQUIRY_URL = "deposit-requests/rate-inquiry"
CREATE_URL = "deposit-requests"

_accounts_adapter = TypeAdapter(list[Account])
_errors_adapter = TypeAdapter(list[RemoteFieldError])


def parse_error_body(response: httpx.Response) -> list[RemoteFieldError]:
    """Extract the structured ``errors`` list from an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return []
    if not isinstance(body, dict):
        return []
    try:
        return _errors_adapter.validate_python(body.get("errors") or [])
    except ValidationError:
        return []


class DepositsApiClient:
    """Deposit API client over an httpx ``AsyncClient``.

    Args:
        config: Base URL and timeout. Defaults to ``ApiConfig()``.
        client: Pre-built ``AsyncClient`` (e.g. with a mock transport). When
            given, ``config`` is ignored and the caller owns its lifetime.

    Example:
        async with DepositsApiClient(ApiConfig(base_url="https://bank.example/api/v1/")) as api:
            accounts = await api.get_accounts()
    """

    def __init__(
        self,
        config: Optional[ApiConfig] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or ApiConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "DepositsApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, url, json=body)
        except httpx.HTTPError as e:
            logger.warning("deposit_api_unreachable", operation=operation, error=str(e))
            raise RemoteServiceError(
                f"{operation} failed: {e.__class__.__name__}",
                operation=operation,
            ) from e

        if response.is_error:
            errors = parse_error_body(response)
            logger.info(
                "deposit_api_rejected",
                operation=operation,
                status_code=response.status_code,
                error_count=len(errors),
            )
            raise RemoteServiceError(
                f"{operation} rejected with status {response.status_code}",
                operation=operation,
                errors=errors,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteServiceError(
                f"{operation} returned an unreadable body",
                operation=operation,
                status_code=response.status_code,
            ) from e

    def _parse(self, operation: str, parse, data: Any):
        try:
            return parse(data)
        except ValidationError as e:
            logger.warning("deposit_api_bad_response", operation=operation, error=str(e))
            raise RemoteServiceError(
                f"{operation} returned an unexpected response",
                operation=operation,
            ) from e

    async def get_accounts(self) -> list[Account]:
        data = await self._request("get_accounts", "GET", ACCOUNTS_URL)
        return self._parse("get_accounts", _accounts_adapter.validate_python, data or [])

    async def deal_inquiry(self, deal_id: str, customer_key: str) -> DealRecord:
        request = DealInquiryRequest(deal_id=deal_id, customer_key=customer_key)
        data = await self._request(
            "deal_inquiry",
            "POST",
            DEAL_INQUIRY_URL,
            request.model_dump(mode="json", by_alias=True),
        )
        return self._parse("deal_inquiry", DealRecord.model_validate, data)

    async def validate_deposit(self, payload: DepositPayload) -> None:
        await self._request("validate_deposit", "POST", VALIDATE_URL, payload.to_wire())

    async def rate_inquiry(self, request: RateInquiryRequest) -> RatePreview:
        data = await self._request(
            "rate_inquiry",
            "POST",
            RATE_INQUIRY_URL,
            request.model_dump(mode="json", by_alias=True),
        )
        return self._parse("rate_inquiry", RatePreview.model_validate, data)

    async def create_deposit(self, payload: DepositPayload) -> CreateDepositResponse:
        data = await self._request("create_deposit", "POST", CREATE_URL, payload.to_wire())
        return self._parse("create_deposit", CreateDepositResponse.model_validate, data)


__all__ = [
    "DepositsApiClient",
    "parse_error_body",
]
