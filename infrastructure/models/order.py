"""
订单数据库模型 - 仅映射支付编排需要的列
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import (
    Boolean, Column, String, Numeric, DateTime, JSON, Index
)
from datetime import datetime, timezone

from .base import Base


class OrderModel(Base):
    """
    订单数据库模型

    这是数据库表的映射，不包含业务逻辑
    所有业务规则都在 domain.order.entity.Order 中
    """
    __tablename__ = "orders"

    # 主键（由订单管理模块生成的字符串ID）
    id = Column(String(64), primary_key=True, index=True)

    # 金额信息（使用 Numeric 存储精确金额）
    total_amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="订单总额")

    # 客户信息（用于网关订单描述）
    customer_name = Column(String(200), nullable=True, comment="客户姓名")
    customer_email = Column(String(255), nullable=True, comment="客户邮箱")

    # 支付渠道与状态
    payment_provider = Column(String(50), nullable=True, index=True, comment="支付渠道: combank/paypal/stripe")
    is_paid = Column(Boolean, nullable=False, default=False, comment="是否已支付")
    is_payment_failed = Column(Boolean, nullable=False, default=False, comment="是否支付失败")
    paid_at = Column(DateTime(timezone=True), nullable=True, comment="支付完成时间")

    # 网关关联字段（session / indicator / capture 等）
    payment_result = Column(JSON, nullable=True, comment="网关关联字段与原始响应")

    # 时间戳
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    __table_args__ = (
        Index("ix_orders_payment_status", "is_paid", "is_payment_failed"),
    )

    def __repr__(self):
        return (
            f"<OrderModel(id='{self.id}', total_amount={self.total_amount}, "
            f"payment_provider='{self.payment_provider}', is_paid={self.is_paid})>"
        )
