import base64
from urllib.parse import parse_qs

import httpx
import pytest

from storefront.services.payment import (
    IntentStatus,
    PaymentGatewayClient,
    map_intent_status,
    to_minor_units,
)
from storefront.utils.errors import (
    ConfigurationError,
    NotFoundError,
    UpstreamServiceError,
    ValidationError,
)


@pytest.fixture
async def gateway(fake_stripe):
    client = PaymentGatewayClient(secret_key="sk_test_abc", transport=httpx.MockTransport(fake_stripe.handle))
    yield client
    await client.aclose()


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"status": "succeeded"}, IntentStatus.SUCCEEDED),
        ({"status": "canceled"}, IntentStatus.CANCELED),
        ({"status": "requires_action"}, IntentStatus.REQUIRES_ACTION),
        ({"status": "requires_payment_method"}, IntentStatus.CREATED),
        ({"status": "requires_payment_method", "last_payment_error": {"code": "card_declined"}}, IntentStatus.FAILED),
        ({"status": "processing"}, IntentStatus.CREATED),
        ({"status": "requires_capture"}, IntentStatus.CREATED),
    ],
)
def test_map_intent_status(payload, expected):
    assert map_intent_status(payload) == expected


@pytest.mark.parametrize("amount, cents", [(0.5, 50), (19.99, 1999), (10.005, 1001), (100, 10000)])
def test_to_minor_units(amount, cents):
    assert to_minor_units(amount) == cents


async def test_create_intent_posts_form_in_cents(gateway, fake_stripe):
    intent = await gateway.create_intent(12.34, "EUR")

    assert intent.intent_id in fake_stripe.intents
    request = fake_stripe.requests[0]
    form = parse_qs(request.content.decode())
    assert form["amount"] == ["1234"]
    assert form["currency"] == ["eur"]
    expected_auth = base64.b64encode(b"sk_test_abc:").decode()
    assert request.headers["Authorization"] == f"Basic {expected_auth}"


async def test_create_intent_rejects_small_amount_and_unknown_currency(gateway, fake_stripe):
    with pytest.raises(ValidationError):
        await gateway.create_intent(0.25, "usd")
    with pytest.raises(ValidationError):
        await gateway.create_intent(5, "btc")
    assert fake_stripe.requests == []


async def test_unconfigured_client_never_calls_gateway(fake_stripe):
    client = PaymentGatewayClient(secret_key="", transport=httpx.MockTransport(fake_stripe.handle))

    with pytest.raises(ConfigurationError):
        await client.get_intent_status("pi_1")
    with pytest.raises(ConfigurationError):
        await client.create_intent(10, "usd")
    assert fake_stripe.requests == []


async def test_get_intent_status(gateway, fake_stripe):
    intent_id = fake_stripe.add_intent("succeeded")

    assert await gateway.get_intent_status(intent_id) == IntentStatus.SUCCEEDED


async def test_missing_intent(gateway):
    with pytest.raises(NotFoundError):
        await gateway.get_intent_status("pi_nope")


async def test_timeout_is_upstream_error(gateway, fake_stripe):
    fake_stripe.error = httpx.ConnectTimeout("timed out")

    with pytest.raises(UpstreamServiceError):
        await gateway.get_intent_status("pi_1")


async def test_gateway_server_error_is_upstream_error(gateway, fake_stripe):
    fake_stripe.status_code = 503

    with pytest.raises(UpstreamServiceError):
        await gateway.get_intent_status("pi_1")


async def test_rejected_key_is_configuration_error(gateway, fake_stripe):
    fake_stripe.status_code = 401

    with pytest.raises(ConfigurationError):
        await gateway.get_intent_status("pi_1")
