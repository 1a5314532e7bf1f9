"""
Payment-related settings using pydantic-settings v2 with nested env keys.

This module is isolated so core.config.Settings stays focused on the app.
Adapters never read these globals directly: the registry factory hands each
adapter its own sub-model.
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 3.0
    write: float = 3.0
    total: float = 5.0


class PaymentRetry(BaseModel):
    # Gateway calls are single-attempt by default; a retried session creation
    # or refund can duplicate gateway-side effects (no idempotency keys).
    max: int = 0
    base_backoff: float = 0.2


class CheckoutUrls(BaseModel):
    client_url: Optional[str] = "http://localhost:3000"
    vercel_url: Optional[str] = None
    merchant_name: str = "ABCSCHOOL.lk"


class CombankSettings(BaseModel):
    api_username: Optional[str] = None
    api_password: Optional[str] = None
    merchant_id: Optional[str] = None
    api_url: str = "https://cbcmpgs.gateway.mastercard.com/api/nvp/version/56"
    currency: str = "LKR"

    @property
    def configured(self) -> bool:
        return bool(self.api_username and self.api_password and self.merchant_id and self.api_url)


class PayPalSettings(BaseModel):
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    api_url: str = "https://api-m.sandbox.paypal.com"
    currency: str = "USD"

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


class StripeSettings(BaseModel):
    secret_key: Optional[str] = None
    currency: str = "usd"


class PaymentSettings(BaseSettings):
    default_provider: str = Field(default="combank", validation_alias="PAYMENT__DEFAULT_PROVIDER")
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    checkout: CheckoutUrls = Field(default_factory=CheckoutUrls)

    combank: CombankSettings = Field(default_factory=CombankSettings)
    paypal: PayPalSettings = Field(default_factory=PayPalSettings)
    stripe: StripeSettings = Field(default_factory=StripeSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
