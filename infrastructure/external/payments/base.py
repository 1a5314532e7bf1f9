"""
Base payment client implementing shared concerns: http, retry, logging,
checkout URLs and failure mapping.

Concrete providers subclass and implement gateway-specific logic. Every
public adapter method converts gateway-side problems into a failed
PaymentResult; only programmer errors (e.g. an order without an id) raise.
"""
from __future__ import annotations

import re
from contextlib import asynccontextmanager
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlparse

import httpx
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.logging_config import get_logger
from core.settings import CheckoutUrls
from application.dtos.payments import PaymentResult
from domain.order.entity import Order
from infrastructure.external.payments.exceptions import (
    PaymentNotConfiguredError,
    PaymentProviderError,
)


logger = get_logger(__name__)

_DEFAULT_CLIENT_URL = "http://localhost:3000"


class BasePaymentClient:
    provider: str = "base"
    # confirmation key -> payment record field, copied on validation
    confirmation_fields: dict[str, str] = {}

    def __init__(
        self,
        *,
        urls: Optional[CheckoutUrls] = None,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._urls = urls or CheckoutUrls()
        self._timeouts_cfg = timeouts or {"connect": 1.0, "read": 3.0, "write": 3.0, "total": 5.0}
        self._retry_cfg = retry or {"max": 0, "base": 0.2}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def get_provider_name(self) -> str:
        return self.provider

    @property
    def configured(self) -> bool:
        return True

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
            timeout=self._timeouts_cfg["total"],
        )

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeouts, transport=self._transport)
        try:
            yield self._client
        finally:
            # Keep open for reuse; explicit aclose() will close.
            ...

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def _retry(self, fn: Callable[[], Awaitable[Any]]):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg["max"]) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg["base"], min=0.1, max=2.0),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await fn()

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Single gateway round-trip; non-2xx becomes PaymentProviderError."""
        async def _do() -> httpx.Response:
            async with self.client() as http:
                return await http.request(method, url, **kwargs)

        try:
            response = await self._retry(_do)
        except httpx.HTTPError as exc:
            raise PaymentProviderError(
                f"{self.provider} gateway unreachable: {exc}",
                provider=self.provider,
            ) from exc

        if response.is_error:
            body = self._body(response)
            raise PaymentProviderError(
                self._error_message(body) or f"{self.provider} gateway returned HTTP {response.status_code}",
                provider=self.provider,
                status_code=response.status_code,
                provider_response=body,
            )
        return response

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _error_message(body: Any) -> Optional[str]:
        if isinstance(body, dict):
            return body.get("message") or body.get("error_description") or body.get("error")
        return None

    def _ensure_configured(self) -> None:
        if not self.configured:
            raise PaymentNotConfiguredError(self.provider)

    # Helpers
    def client_url(self) -> str:
        """Storefront base URL: CLIENT_URL, else VERCEL_URL, else localhost."""
        url = (self._urls.client_url or "").strip()
        if not url:
            vercel = (self._urls.vercel_url or "").strip()
            if vercel:
                url = vercel if vercel.startswith("http") else f"https://{vercel}"
            else:
                url = _DEFAULT_CLIENT_URL
        url = re.sub(r"[\n\r\t]", "", url.strip())
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"
        url = url.rstrip("/")

        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"} or not parsed.hostname:
            raise PaymentProviderError(f"Invalid CLIENT_URL configuration: {url}", provider=self.provider)
        return url

    def order_url(self, order: Order) -> str:
        return f"{self.client_url()}/order/{order.require_id()}"

    @staticmethod
    def _to_minor(amount: Decimal) -> int:
        # Hosted checkout and card gateways expect the smallest currency unit
        return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def _failure(self, exc: Exception, fallback: str) -> PaymentResult:
        if isinstance(exc, (PaymentProviderError, PaymentNotConfiguredError)):
            error, provider_response = exc.message, exc.provider_response
        else:
            error, provider_response = f"{fallback}: {exc}", None
        self._log("payment_provider_failure", error=error)
        return PaymentResult.failure(error, provider_response)

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
