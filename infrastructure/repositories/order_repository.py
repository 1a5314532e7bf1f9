"""
订单仓储实现 - 使用SQLAlchemy实现数据访问
"""
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import OrderNotFoundException
from domain.order.entity import Order, OrderPaymentRecord
from domain.order.repository import OrderRepository
from infrastructure.models.order import OrderModel


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):
    """订单仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        """将数据库模型转换为领域实体"""
        return Order(
            id=model.id,
            total_amount=Decimal(str(model.total_amount)),
            payment_provider=model.payment_provider,
            customer_name=model.customer_name,
            customer_email=model.customer_email,
            is_paid=bool(model.is_paid),
            is_payment_failed=bool(model.is_payment_failed),
            paid_at=model.paid_at,
            payment_result=OrderPaymentRecord.from_dict(model.payment_result),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Order) -> OrderModel:
        """将领域实体转换为数据库模型"""
        model = OrderModel(
            id=entity.id or uuid.uuid4().hex,
            total_amount=entity.total_amount,
            payment_provider=entity.payment_provider,
            customer_name=entity.customer_name,
            customer_email=entity.customer_email,
            is_paid=entity.is_paid,
            is_payment_failed=entity.is_payment_failed,
            paid_at=entity.paid_at,
            payment_result=entity.payment_result.to_dict(),
        )
        # 时间戳缺失时交给列默认值
        if entity.created_at is not None:
            model.created_at = entity.created_at
        if entity.updated_at is not None:
            model.updated_at = entity.updated_at
        return model

    async def create(self, order: Order) -> Order:
        """创建订单"""
        db_order = self._to_model(order)
        self.session.add(db_order)
        await self.session.flush()
        await self.session.refresh(db_order)
        logger.info("order_created", order_id=db_order.id, total_amount=str(db_order.total_amount))
        return self._to_entity(db_order)

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        """根据ID获取订单"""
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.id == str(order_id))
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def update(self, order: Order) -> Order:
        """保存订单的支付字段（后写为准，不做并发控制）"""
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.id == order.id)
        )
        db_order = result.scalar_one_or_none()

        if not db_order:
            raise OrderNotFoundException(order.id)

        db_order.payment_provider = order.payment_provider
        db_order.is_paid = order.is_paid
        db_order.is_payment_failed = order.is_payment_failed
        db_order.paid_at = order.paid_at
        db_order.payment_result = order.payment_result.to_dict()
        if order.updated_at is not None:
            db_order.updated_at = order.updated_at

        await self.session.flush()
        await self.session.refresh(db_order)

        logger.info(
            "order_payment_updated",
            order_id=db_order.id,
            is_paid=db_order.is_paid,
            is_payment_failed=db_order.is_payment_failed,
        )
        return self._to_entity(db_order)
