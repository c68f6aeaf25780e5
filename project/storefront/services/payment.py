# storefront/services/payment.py

"""
Клиент платёжного шлюза (Stripe REST API).

Единственный источник правды о том, прошла ли оплата. Ошибки сети и
таймауты не повторяются: они сразу превращаются в UpstreamServiceError,
а клиент может повторить подтверждение (оно идемпотентно).
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

import httpx

from storefront.config import Settings
from storefront.utils.errors import (
    ConfigurationError,
    NotFoundError,
    UpstreamServiceError,
    ValidationError,
)


class IntentStatus(str, Enum):
    CREATED = "created"
    REQUIRES_ACTION = "requires_action"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass(frozen=True)
class PaymentIntent:
    """Созданный в шлюзе платёжный интент."""

    intent_id: str
    client_secret: str
    status: IntentStatus


def to_minor_units(amount: float) -> int:
    """Сумма в центах (наименьшая единица валюты), округление half-up."""
    cents = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def map_intent_status(payload: dict) -> IntentStatus:
    """Сводит статусы Stripe к набору, с которым работает оформление заказа."""
    status = payload.get("status")
    if status == "succeeded":
        return IntentStatus.SUCCEEDED
    if status == "canceled":
        return IntentStatus.CANCELED
    if status == "requires_action":
        return IntentStatus.REQUIRES_ACTION
    if status == "requires_payment_method" and payload.get("last_payment_error"):
        return IntentStatus.FAILED
    return IntentStatus.CREATED


class PaymentGatewayClient:
    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.stripe.com",
        timeout: float = 5.0,
        min_amount: float = 0.5,
        currencies: tuple[str, ...] = ("usd", "eur", "gbp", "inr"),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key
        self.base_url = base_url
        self.timeout = timeout
        self.min_amount = min_amount
        self.currencies = currencies
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentGatewayClient":
        return cls(
            secret_key=settings.STRIPE_SECRET_KEY,
            base_url=settings.STRIPE_API_BASE,
            timeout=settings.PAYMENT_TIMEOUT_SECONDS,
            min_amount=settings.PAYMENT_MIN_AMOUNT,
            currencies=settings.payment_currencies,
        )

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    def ensure_configured(self):
        if not self.configured:
            raise ConfigurationError(
                "Платёжный шлюз не настроен: задайте STRIPE_SECRET_KEY в переменных окружения"
            )

    def get_client(self) -> httpx.AsyncClient:
        self.ensure_configured()
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.secret_key, ""),
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def request(self, method: str, url: str, data: Optional[dict] = None) -> dict:
        client = self.get_client()
        try:
            response = await client.request(method, url, data=data)
        except httpx.TimeoutException as e:
            raise UpstreamServiceError("Платёжный шлюз не ответил вовремя") from e
        except httpx.HTTPError as e:
            raise UpstreamServiceError(f"Платёжный шлюз недоступен: {e}") from e

        if response.status_code >= 500:
            raise UpstreamServiceError(
                "Ошибка платёжного шлюза", {"gatewayStatus": response.status_code}
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamServiceError("Некорректный ответ платёжного шлюза") from e

        if response.status_code >= 400:
            error = payload.get("error") or {}
            message = error.get("message") or "Запрос отклонён платёжным шлюзом"
            if response.status_code == 401:
                raise ConfigurationError("Платёжный шлюз отклонил ключ доступа")
            if response.status_code == 404 or error.get("code") == "resource_missing":
                raise NotFoundError(message)
            raise ValidationError(message, {"code": error.get("code")})

        return payload

    async def create_intent(self, amount: float, currency: str) -> PaymentIntent:
        self.ensure_configured()

        currency = (currency or "").lower()
        if amount is None or amount < self.min_amount:
            raise ValidationError(f"Сумма должна быть не меньше {self.min_amount:.2f}")
        if currency not in self.currencies:
            raise ValidationError(
                "Неподдерживаемая валюта", {"supported": list(self.currencies)}
            )

        payload = await self.request(
            "POST",
            "/v1/payment_intents",
            data={
                "amount": to_minor_units(amount),
                "currency": currency,
                "metadata[integration_check]": "accept_a_payment",
            },
        )
        return PaymentIntent(
            intent_id=payload["id"],
            client_secret=payload["client_secret"],
            status=map_intent_status(payload),
        )

    async def get_intent_status(self, intent_id: str) -> IntentStatus:
        payload = await self.request("GET", f"/v1/payment_intents/{intent_id}")
        return map_intent_status(payload)

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
