"""
API依赖项 - 支付编排服务装配
"""
from fastapi import Depends, Request

from application.services.payment_service import PaymentOrchestrationService
from core.settings import payment_settings
from infrastructure.external.payments import PaymentProviderRegistry, get_payment_registry
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


def get_registry(request: Request) -> PaymentProviderRegistry:
    """优先使用 lifespan 中挂载到 app.state 的注册表"""
    registry = getattr(request.app.state, "payment_registry", None)
    return registry if registry is not None else get_payment_registry()


async def get_payment_service(
    registry: PaymentProviderRegistry = Depends(get_registry),
) -> PaymentOrchestrationService:
    return PaymentOrchestrationService(
        uow_factory=SQLAlchemyUnitOfWork,
        registry=registry,
        default_provider=payment_settings.default_provider,
    )
