"""
Exceptions for payment providers mapped to unified BusinessException variants.

Adapters raise these internally and convert them to a failed PaymentResult
before returning, so they never cross the PaymentStrategy boundary.
"""
from __future__ import annotations

from typing import Any, Optional
from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class PaymentProviderError(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int | None = None,
        provider_response: Any = None,
        details: Optional[dict] = None,
    ):
        full_details = {"provider": provider, "status_code": status_code}
        if details:
            full_details.update(details)
        self.provider_response = provider_response
        super().__init__(
            code=PaymentCode.PROVIDER_ERROR,
            message=message,
            error_type="PaymentProviderError",
            details=full_details,
        )


class PaymentNotConfiguredError(BusinessException):
    def __init__(self, provider: str):
        self.provider_response = None
        super().__init__(
            code=PaymentCode.PROVIDER_NOT_CONFIGURED,
            message=f"{provider} not configured",
            error_type="PaymentNotConfigured",
            details={"provider": provider},
        )
