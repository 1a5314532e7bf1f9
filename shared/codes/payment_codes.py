"""
Payment specific codes and provider confirmation statuses.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_NOT_CONFIGURED = 60001
    PROVIDER_NOT_FOUND = 60002
    SESSION_FAILED = 60003
    REFUND_FAILED = 60004


# Gateway-side value that marks a payment as confirmed, per provider.
# Comparisons are exact (case-sensitive); anything else counts as unconfirmed.
CONFIRMED_STATUS = {
    "combank": "SUCCESS",   # NVP `result` field on session creation
    "paypal": "APPROVED",   # checkout order `status`
    "stripe": "paid",       # checkout session `payment_status`
}
