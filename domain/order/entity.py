"""
订单领域实体 - 仅包含支付相关字段

订单的其余字段（商品、地址等）归订单管理模块所有，这里不建模。
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from domain.common.exceptions import DomainValidationException


class OrderPaymentStatus(str, Enum):
    """订单支付状态（由 is_paid / is_payment_failed 两个标志推导）"""
    UNPAID = "unpaid"
    PAID = "paid"
    PAYMENT_FAILED = "payment_failed"


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class OrderPaymentRecord:
    """
    网关关联字段 - 跨越会话创建与验证的整个生命周期累积

    与具体支付渠道无关：combank 使用 session_* / success_indicator，
    PayPal 使用 transaction_id / capture_id，Stripe 使用 session_id。
    """

    session_id: Optional[str] = None
    session_version: Optional[str] = None
    success_indicator: Optional[str] = None
    result_indicator: Optional[str] = None
    merchant: Optional[str] = None
    transaction_id: Optional[str] = None
    capture_id: Optional[str] = None
    provider_response: Any = None

    def merge(self, **values: Any) -> None:
        """覆盖式合并：值为 None 的字段不会清空已有值"""
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            if key not in known:
                raise DomainValidationException(f"未知的支付字段: {key}", field=key)
            if value is not None:
                setattr(self, key, value)

    def reset_for_new_session(self) -> None:
        """唯一允许清空字段的操作：新建结账会话"""
        for f in fields(self):
            setattr(self, f.name, None)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "OrderPaymentRecord":
        data = data or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class Order:
    """
    订单聚合根（支付视角）

    业务规则：
    1. 订单总额必须大于0
    2. is_paid 与 is_payment_failed 不能同时为 True
    3. 支付字段只能通过支付编排服务修改
    """

    id: Optional[str]
    total_amount: Decimal
    payment_provider: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    is_paid: bool = False
    is_payment_failed: bool = False
    paid_at: Optional[datetime] = None
    payment_result: OrderPaymentRecord = field(default_factory=OrderPaymentRecord)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """初始化后验证"""
        if not isinstance(self.total_amount, Decimal):
            self.total_amount = Decimal(str(self.total_amount))
        if self.total_amount <= 0:
            raise DomainValidationException(
                f"订单金额必须大于0: {self.total_amount}",
                field="total_amount",
            )
        if self.is_paid and self.is_payment_failed:
            raise DomainValidationException(
                "订单不能同时处于已支付与支付失败状态",
                field="is_paid",
            )
        if self.payment_result is None:
            self.payment_result = OrderPaymentRecord()
        self.paid_at = _ensure_utc(self.paid_at)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    @property
    def payment_status(self) -> OrderPaymentStatus:
        if self.is_paid:
            return OrderPaymentStatus.PAID
        if self.is_payment_failed:
            return OrderPaymentStatus.PAYMENT_FAILED
        return OrderPaymentStatus.UNPAID

    def require_id(self) -> str:
        """网关请求需要订单ID；缺失属于编程错误"""
        if not self.id:
            raise DomainValidationException("订单缺少ID，无法发起支付", field="id")
        return str(self.id)

    def record_session(self, **correlation: Any) -> None:
        """新会话覆盖旧的关联字段（不修改支付标志）"""
        self.payment_result.reset_for_new_session()
        self.payment_result.merge(**correlation)
        self.updated_at = datetime.now(timezone.utc)

    def mark_paid(self) -> None:
        """
        标记已支付

        失败后再次验证成功时允许覆盖（后写为准）。
        """
        self.is_paid = True
        self.is_payment_failed = False
        self.paid_at = datetime.now(timezone.utc)
        self.updated_at = self.paid_at

    def mark_payment_failed(self) -> None:
        """标记支付失败"""
        self.is_paid = False
        self.is_payment_failed = True
        self.updated_at = datetime.now(timezone.utc)

    def refundable_amount(self, amount: Optional[Decimal] = None) -> Decimal:
        """未指定金额时全额退款；金额不超过订单总额"""
        if amount is None:
            return self.total_amount
        amount = Decimal(str(amount))
        if amount <= 0:
            raise DomainValidationException(
                f"退款金额必须大于0: {amount}",
                field="amount",
            )
        return min(amount, self.total_amount)
