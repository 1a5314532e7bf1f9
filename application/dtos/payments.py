"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.types import condecimal


class PaymentResult(BaseModel):
    """Uniform outcome of every provider call; never persisted verbatim."""

    success: bool
    transaction_id: Optional[str] = None
    provider_response: Any = None
    capture_id: Optional[str] = None
    error: Optional[str] = None
    redirect_url: Optional[str] = None

    # Bank gateway correlation fields (NVP response)
    session_id: Optional[str] = None
    session_version: Optional[str] = None
    success_indicator: Optional[str] = None
    merchant: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def _success_requires_transaction_id(self) -> "PaymentResult":
        if self.success and not self.transaction_id:
            raise ValueError("successful payment result must carry a transaction_id")
        return self

    @classmethod
    def failure(cls, error: str, provider_response: Any = None) -> "PaymentResult":
        return cls(success=False, error=error, provider_response=provider_response)

    def correlation_fields(self) -> dict[str, Any]:
        """Fields merged into the order's payment record on session creation."""
        return {
            "session_id": self.session_id or self.transaction_id,
            "session_version": self.session_version,
            "success_indicator": self.success_indicator,
            "merchant": self.merchant,
            "transaction_id": self.transaction_id,
            "capture_id": self.capture_id,
            "provider_response": self.provider_response,
        }


class PaymentConfirmation(BaseModel):
    """Post-checkout confirmation supplied by the storefront or gateway redirect.

    Each provider reads the keys it understands; unknown keys are kept so the
    raw payload reaches the adapter untouched.
    """

    resultIndicator: Optional[str] = None  # combank
    sessionVersion: Optional[str] = None  # combank
    token: Optional[str] = None  # paypal order id
    sessionId: Optional[str] = None  # stripe checkout session id

    model_config = ConfigDict(extra="allow")


class RefundPaymentRequest(BaseModel):
    amount: Optional[condecimal(gt=0)] = None  # type: ignore[valid-type]


class CheckoutSessionData(BaseModel):
    order_id: str
    provider: str
    transaction_id: Optional[str] = None
    session_id: Optional[str] = None
    session_version: Optional[str] = None
    merchant: Optional[str] = None
    redirect_url: Optional[str] = None


class OrderPaymentStatusData(BaseModel):
    order_id: str
    provider: Optional[str] = None
    status: str
    is_paid: bool
    is_payment_failed: bool
    paid_at: Optional[datetime] = None


class RefundData(BaseModel):
    order_id: str
    provider: str
    amount: Decimal
    transaction_id: Optional[str] = None


class ProvidersData(BaseModel):
    providers: list[str] = Field(default_factory=list)
