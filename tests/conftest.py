"""Pytest bootstrap configuration.

Environment variables are set before any application module is imported so
that settings resolve to an in-memory SQLite database and quiet defaults.
Shared fakes: an in-memory order repository / Unit of Work, and order
factories.
"""
import copy
import os
from decimal import Decimal
from typing import Optional

import pytest

os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_REQUEST_BODY_ENABLE_BY_DEFAULT", "false")

from core.settings import CheckoutUrls, CombankSettings, PayPalSettings, StripeSettings  # noqa: E402
from domain.common.exceptions import OrderNotFoundException  # noqa: E402
from domain.common.unit_of_work import AbstractUnitOfWork  # noqa: E402
from domain.order.entity import Order, OrderPaymentRecord  # noqa: E402
from domain.order.repository import OrderRepository  # noqa: E402


class InMemoryOrderRepository(OrderRepository):
    """Stores deep copies so that unsaved mutations never leak into the store."""

    def __init__(self, orders=()):
        self.orders: dict[str, Order] = {}
        self.update_calls = 0
        for order in orders:
            self.orders[order.id] = copy.deepcopy(order)

    async def create(self, order: Order) -> Order:
        self.orders[order.id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        order = self.orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def update(self, order: Order) -> Order:
        if order.id not in self.orders:
            raise OrderNotFoundException(order.id)
        self.update_calls += 1
        self.orders[order.id] = copy.deepcopy(order)
        return copy.deepcopy(order)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, repository: InMemoryOrderRepository, *, readonly: bool = False):
        super().__init__(readonly=readonly)
        self.order_repository = repository
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1
        self._committed = True

    async def rollback(self) -> None:
        self.rollbacks += 1


@pytest.fixture
def checkout_urls() -> CheckoutUrls:
    return CheckoutUrls(client_url="https://shop.example.com", merchant_name="ABCSCHOOL.lk")


@pytest.fixture
def combank_settings() -> CombankSettings:
    return CombankSettings(
        api_username="merchant.TESTMERCHANT",
        api_password="s3cret",
        merchant_id="TESTMERCHANT",
        api_url="https://gateway.test/api/nvp/version/56",
    )


@pytest.fixture
def paypal_settings() -> PayPalSettings:
    return PayPalSettings(client_id="client-id", client_secret="client-secret", api_url="https://paypal.test")


@pytest.fixture
def stripe_settings() -> StripeSettings:
    return StripeSettings(secret_key="sk_test_123")


@pytest.fixture
def make_order():
    def _make(
        order_id: Optional[str] = "ord_1",
        total: str = "50000",
        provider: Optional[str] = None,
        **record,
    ) -> Order:
        return Order(
            id=order_id,
            total_amount=Decimal(total),
            payment_provider=provider,
            customer_name="Nimal Perera",
            customer_email="nimal@example.com",
            payment_result=OrderPaymentRecord(**record),
        )

    return _make


@pytest.fixture
def order_repository() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def uow_factory(order_repository):
    def _factory(*, readonly: bool = False) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(order_repository, readonly=readonly)

    return _factory
