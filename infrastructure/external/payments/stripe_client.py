"""
Stripe hosted Checkout adapter using the official stripe-python SDK.

Notes on SDK usage:
- Module-level resources (``stripe.checkout.Session``, ``stripe.Refund``)
  accept a per-request ``api_key`` so the adapter never mutates
  ``stripe.api_key``.
- SDK calls are blocking; they run in a worker thread via anyio.
- The SDK is optional. Without it, or without a secret key, the adapter
  still registers and every operation reports "stripe not configured".
"""
from __future__ import annotations

from decimal import Decimal
from functools import partial
from typing import Any, Optional

import anyio

from application.dtos.payments import PaymentResult
from core.settings import CheckoutUrls, StripeSettings
from domain.common.exceptions import DomainValidationException
from domain.order.entity import Order
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import (
    PaymentNotConfiguredError,
    PaymentProviderError,
)
from shared.codes.payment_codes import CONFIRMED_STATUS

try:  # optional import to keep repo install-light
    import stripe  # type: ignore
except ImportError:  # pragma: no cover - graceful degradation
    stripe = None  # type: ignore


CHECKOUT_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_dict(obj: Any) -> Any:
    for attr in ("to_dict_recursive", "to_dict"):
        fn = getattr(obj, attr, None)
        if callable(fn):
            return fn()
    if isinstance(obj, dict):
        return dict(obj)
    return {"id": _field(obj, "id")}


class StripeClient(BasePaymentClient):
    provider = "stripe"

    def __init__(
        self,
        config: StripeSettings,
        *,
        urls: Optional[CheckoutUrls] = None,
        sdk: Any = None,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(urls=urls, timeouts=timeouts, retry=retry)
        self._config = config
        self._sdk = sdk if sdk is not None else stripe

    @property
    def configured(self) -> bool:
        return self._sdk is not None and bool(self._config.secret_key)

    async def _call(self, fn, **params) -> Any:
        return await anyio.to_thread.run_sync(partial(fn, api_key=self._config.secret_key, **params))

    def build_session_params(self, order: Order) -> dict[str, Any]:
        order_id = order.require_id()
        order_url = self.order_url(order)
        return {
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self._config.currency,
                        "product_data": {
                            "name": f"Order {order_id}",
                            "description": f"Payment for order {order_id}",
                        },
                        "unit_amount": self._to_minor(order.total_amount),
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": f"{order_url}?success=true&session_id={CHECKOUT_SESSION_PLACEHOLDER}",
            "cancel_url": f"{order_url}?cancelled=true",
            "metadata": {"orderId": order_id},
        }

    async def create_checkout_session(self, order: Order) -> PaymentResult:
        try:
            self._ensure_configured()
            params = self.build_session_params(order)
            session = await self._call(self._sdk.checkout.Session.create, **params)
            session_id = _field(session, "id")
            if not session_id:
                raise PaymentProviderError("stripe session response missing id", provider=self.provider)
        except DomainValidationException:
            raise
        except Exception as exc:
            return self._failure(exc, "Stripe session creation failed")

        self._log("stripe_session_created", order_id=order.id, session_id=session_id)
        return PaymentResult(
            success=True,
            transaction_id=str(session_id),
            session_id=str(session_id),
            redirect_url=_field(session, "url"),
            provider_response=_as_dict(session),
        )

    async def validate_payment(self, order: Order, confirmation: dict[str, Any]) -> bool:
        if not self.configured:
            return False
        supplied = confirmation.get("sessionId") if isinstance(confirmation, dict) else None
        stored = order.payment_result.session_id
        if supplied and stored and supplied != stored:
            self._log("stripe_session_mismatch", order_id=order.id, session_id=supplied)
            return False
        session_id = supplied or stored
        if not isinstance(session_id, str) or not session_id:
            return False
        try:
            session = await self._call(self._sdk.checkout.Session.retrieve, id=session_id)
        except Exception as exc:
            self._log("stripe_validation_failed", order_id=order.id, error=str(exc))
            return False
        metadata = _field(session, "metadata") or {}
        if _field(metadata, "orderId") not in (None, order.id):
            self._log("stripe_session_order_mismatch", order_id=order.id, session_id=session_id)
            return False
        return _field(session, "payment_status") == CONFIRMED_STATUS[self.provider]

    async def refund_payment(self, order: Order, amount: Optional[Decimal] = None) -> PaymentResult:
        try:
            self._ensure_configured()
        except PaymentNotConfiguredError as exc:
            return self._failure(exc, "Stripe refund failed")

        refund_amount = order.refundable_amount(amount)
        try:
            session_id = order.payment_result.session_id
            if not session_id:
                raise PaymentProviderError("No checkout session recorded for refund", provider=self.provider)
            session = await self._call(self._sdk.checkout.Session.retrieve, id=session_id)
            payment_intent = _field(session, "payment_intent")
            if not payment_intent:
                raise PaymentProviderError(
                    "Checkout session has no payment intent",
                    provider=self.provider,
                    provider_response=_as_dict(session),
                )
            refund = await self._call(
                self._sdk.Refund.create,
                payment_intent=payment_intent if isinstance(payment_intent, str) else _field(payment_intent, "id"),
                amount=self._to_minor(refund_amount),
                reason="requested_by_customer",
            )
            refund_id = _field(refund, "id")
            if not refund_id:
                raise PaymentProviderError("stripe refund response missing id", provider=self.provider)
        except Exception as exc:
            return self._failure(exc, "Stripe refund failed")

        self._log("stripe_refund_created", order_id=order.id, refund_id=refund_id, amount=str(refund_amount))
        return PaymentResult(success=True, transaction_id=str(refund_id), provider_response=_as_dict(refund))
