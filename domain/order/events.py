"""
Order payment domain events.

Dataclass events record payment lifecycle facts for downstream handling
(e.g., logging, messaging). Domain remains free of infrastructure imports.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid


@dataclass
class OrderPaymentEvent:
    order_id: str
    provider: str
    transaction_id: Optional[str] = None
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class CheckoutSessionCreated(OrderPaymentEvent):
    pass


@dataclass
class PaymentSucceeded(OrderPaymentEvent):
    pass


@dataclass
class PaymentFailed(OrderPaymentEvent):
    pass


@dataclass
class RefundRequested(OrderPaymentEvent):
    amount: str = ""
    succeeded: bool = False
