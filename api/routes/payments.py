"""
Payments API routes.

Thin controller over the orchestration service: session creation per
provider, post-redirect validation, refunds and provider enumeration.
Specific routes are declared before the generic ``/{provider}/{order_id}``.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from api.dependencies import get_payment_service
from application.dtos.payments import (
    CheckoutSessionData,
    OrderPaymentStatusData,
    PaymentConfirmation,
    PaymentResult,
    ProvidersData,
    RefundData,
    RefundPaymentRequest,
)
from application.services.payment_service import PaymentOrchestrationService
from core.response import Response, error_response, success_response
from shared.codes.payment_codes import PaymentCode


router = APIRouter(prefix="/payments", tags=["Payments"])

SESSION_FAILED_PREFIX = "error: "


def _failure_details(provider: str, result: PaymentResult) -> dict[str, Any]:
    return {"provider": provider, "provider_response": result.provider_response}


@router.get("/providers", summary="Get available payment providers", response_model=Response[ProvidersData])
async def list_providers(service: PaymentOrchestrationService = Depends(get_payment_service)):
    return success_response(data=ProvidersData(providers=service.available_providers()))


@router.post("/validate/{order_id}", summary="Validate payment for order", response_model=Response[OrderPaymentStatusData])
async def validate_payment(
    order_id: str,
    confirmation: Optional[PaymentConfirmation] = Body(default=None),
    service: PaymentOrchestrationService = Depends(get_payment_service),
):
    payload = confirmation.model_dump(exclude_none=True) if confirmation else {}
    order = await service.validate(order_id, payload)
    data = OrderPaymentStatusData(
        order_id=order.require_id(),
        provider=order.payment_provider,
        status=order.payment_status.value,
        is_paid=order.is_paid,
        is_payment_failed=order.is_payment_failed,
        paid_at=order.paid_at,
    )
    message = "Payment validated" if order.is_paid else "Payment not confirmed"
    return success_response(data=data, message=message)


@router.post("/refund/{order_id}", summary="Process refund for order")
async def refund_payment(
    order_id: str,
    payload: Optional[RefundPaymentRequest] = Body(default=None),
    service: PaymentOrchestrationService = Depends(get_payment_service),
):
    amount = payload.amount if payload else None
    result = await service.refund(order_id, amount)
    if not result.success:
        return error_response(
            code=PaymentCode.REFUND_FAILED,
            message=result.error or "Refund failed",
            error_type="PaymentRefundFailed",
            details={"provider_response": result.provider_response},
        )
    order = await service.get_order(order_id)
    data = RefundData(
        order_id=order_id,
        provider=service.resolve_provider(order).get_provider_name(),
        amount=order.refundable_amount(amount),
        transaction_id=result.transaction_id,
    )
    return success_response(data=data, message="Refund processed")


async def _create_session(service: PaymentOrchestrationService, order_id: str, provider: str):
    result = await service.create_session(order_id, provider)
    if not result.success:
        return error_response(
            code=PaymentCode.SESSION_FAILED,
            message=f"{SESSION_FAILED_PREFIX}{result.error or 'Session creation failed'}",
            error_type="PaymentSessionFailed",
            details=_failure_details(provider, result),
        )
    data = CheckoutSessionData(
        order_id=order_id,
        provider=provider.lower(),
        transaction_id=result.transaction_id,
        session_id=result.session_id or result.transaction_id,
        session_version=result.session_version,
        merchant=result.merchant,
        redirect_url=result.redirect_url,
    )
    return success_response(data=data, message="Session created successfully")


@router.post("/combank/{order_id}", summary="Create Commercial Bank payment session")
async def create_combank_session(
    order_id: str,
    service: PaymentOrchestrationService = Depends(get_payment_service),
):
    return await _create_session(service, order_id, "combank")


@router.post("/{provider}/{order_id}", summary="Create payment session for specified provider")
async def create_payment_session(
    provider: str,
    order_id: str,
    service: PaymentOrchestrationService = Depends(get_payment_service),
):
    return await _create_session(service, order_id, provider)
