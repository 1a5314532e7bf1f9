"""
Application service orchestrating payment use-cases on orders.

This is the only component allowed to mutate an order's payment fields. It
depends on the application PaymentStrategy port and the Unit of Work; the
provider registry is injected from the composition root (API/lifespan),
keeping dependencies one-way.

No per-order locking is applied: concurrent session creation or validation
for the same order is last-write-wins.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, List, Optional

from application.dtos.payments import PaymentResult
from application.ports.payment_gateway import PaymentProviderResolver, PaymentStrategy
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException, OrderNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order
from domain.order.events import (
    CheckoutSessionCreated,
    PaymentFailed,
    PaymentSucceeded,
    RefundRequested,
)


logger = get_logger(__name__)


class PaymentOrchestrationService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        registry: PaymentProviderResolver,
        default_provider: str,
    ) -> None:
        self._uow_factory = uow_factory
        self.registry = registry
        self.default_provider = default_provider
        self.events: List = []

    def available_providers(self) -> list[str]:
        return self.registry.available_providers()

    def resolve_provider(self, order: Order, provider_name: Optional[str] = None) -> PaymentStrategy:
        name = provider_name or order.payment_provider or self.default_provider
        return self.registry.resolve(name)

    @staticmethod
    async def _load(uow: AbstractUnitOfWork, order_id: str) -> Order:
        order = await uow.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    async def get_order(self, order_id: str) -> Order:
        async with self._uow_factory(readonly=True) as uow:
            return await self._load(uow, order_id)

    async def create_session(self, order_id: str, provider_name: Optional[str] = None) -> PaymentResult:
        async with self._uow_factory() as uow:
            order = await self._load(uow, order_id)
            strategy = self.resolve_provider(order, provider_name)
            provider = strategy.get_provider_name()
            logger.info("payment_session_request", order_id=order_id, provider=provider)

            try:
                result = await strategy.create_checkout_session(order)
            except BusinessException:
                raise
            except Exception as exc:
                logger.error("payment_session_adapter_error", order_id=order_id, provider=provider, error=str(exc))
                result = PaymentResult.failure(f"{provider} session creation failed: {exc}")

            if not result.success:
                logger.warning("payment_session_failed", order_id=order_id, provider=provider, error=result.error)
                return result

            order.payment_provider = provider
            order.record_session(**result.correlation_fields())
            await uow.order_repository.update(order)
            self._record(CheckoutSessionCreated(order_id=order_id, provider=provider, transaction_id=result.transaction_id))
            logger.info(
                "payment_session_created",
                order_id=order_id,
                provider=provider,
                transaction_id=result.transaction_id,
            )
            return result

    async def validate(self, order_id: str, confirmation: dict[str, Any]) -> Order:
        """Confirm the payment with the provider the session was opened with.

        Only the confirmation keys the adapter declares in
        ``confirmation_fields`` are copied onto the payment record.
        """
        async with self._uow_factory() as uow:
            order = await self._load(uow, order_id)
            strategy = self.resolve_provider(order)
            provider = strategy.get_provider_name()

            try:
                confirmed = await strategy.validate_payment(order, confirmation)
            except BusinessException:
                raise
            except Exception as exc:
                logger.error("payment_validate_adapter_error", order_id=order_id, provider=provider, error=str(exc))
                confirmed = False

            recorded = getattr(strategy, "confirmation_fields", None) or {}
            order.payment_result.merge(**{field: confirmation.get(key) for key, field in recorded.items()})
            if confirmed is True:
                order.mark_paid()
                event = PaymentSucceeded(order_id=order_id, provider=provider, transaction_id=order.payment_result.transaction_id)
            else:
                order.mark_payment_failed()
                event = PaymentFailed(order_id=order_id, provider=provider, transaction_id=order.payment_result.transaction_id)

            saved = await uow.order_repository.update(order)
            self._record(event)
            logger.info(
                "payment_validated",
                order_id=order_id,
                provider=provider,
                status=saved.payment_status.value,
            )
            return saved

    async def refund(self, order_id: str, amount: Optional[Decimal] = None) -> PaymentResult:
        # Refunds leave is_paid / is_payment_failed untouched and do not save the order.
        async with self._uow_factory(readonly=True) as uow:
            order = await self._load(uow, order_id)
        strategy = self.resolve_provider(order)
        provider = strategy.get_provider_name()
        refund_amount = order.refundable_amount(amount)
        logger.info("payment_refund_request", order_id=order_id, provider=provider, amount=str(refund_amount))

        try:
            result = await strategy.refund_payment(order, refund_amount)
        except BusinessException:
            raise
        except Exception as exc:
            logger.error("payment_refund_adapter_error", order_id=order_id, provider=provider, error=str(exc))
            result = PaymentResult.failure(f"{provider} refund failed: {exc}")

        self._record(
            RefundRequested(
                order_id=order_id,
                provider=provider,
                transaction_id=result.transaction_id,
                amount=str(refund_amount),
                succeeded=result.success,
            )
        )
        logger.info(
            "payment_refund_response",
            order_id=order_id,
            provider=provider,
            success=result.success,
            error=result.error,
        )
        return result

    def _record(self, event) -> None:
        self.events.append(event)
        logger.debug("payment_event", event_type=type(event).__name__, order_id=event.order_id, event_id=event.event_id)

    def clear_events(self) -> List:
        """清空并返回领域事件"""
        events = self.events.copy()
        self.events.clear()
        return events
