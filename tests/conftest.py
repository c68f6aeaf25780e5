import os
import tempfile
import uuid
from urllib.parse import parse_qs

_workdir = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_workdir}/test.db"
os.environ["AUTH_SECRET_KEY"] = "test-secret"
os.environ["AUTH_LOGIN"] = "admin"
os.environ["AUTH_PASSWORD"] = "admin"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["LOG_DIR"] = os.path.join(_workdir, "log")
os.environ["LOG_PRINT"] = "0"

import httpx  # noqa: E402
import pytest  # noqa: E402

from storefront.main import app, lifespan  # noqa: E402
from storefront.models.user import User  # noqa: E402
from storefront.services.payment import PaymentGatewayClient  # noqa: E402
from storefront.utils.database import AsyncSessionLocal, Base, engine, init_db  # noqa: E402
from storefront.utils.log import Log  # noqa: E402
from storefront.utils.security import create_access_token, hash_password  # noqa: E402


class FakeStripe:
    """In-memory stand-in for the Stripe payment intents API."""

    def __init__(self):
        self.intents: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.error: Exception | None = None
        self.status_code: int | None = None

    def add_intent(self, status: str = "succeeded", **extra) -> str:
        intent_id = f"pi_{uuid.uuid4().hex[:16]}"
        self.intents[intent_id] = {
            "id": intent_id,
            "client_secret": f"{intent_id}_secret_x",
            "status": status,
            **extra,
        }
        return intent_id

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.status_code is not None:
            return httpx.Response(self.status_code, json={"error": {"message": "gateway failure"}})

        path = request.url.path
        if request.method == "POST" and path == "/v1/payment_intents":
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            intent_id = self.add_intent(
                status="requires_payment_method",
                amount=int(form["amount"]),
                currency=form["currency"],
            )
            return httpx.Response(200, json=self.intents[intent_id])

        if request.method == "GET" and path.startswith("/v1/payment_intents/"):
            intent_id = path.rsplit("/", 1)[-1]
            if intent_id not in self.intents:
                return httpx.Response(404, json={"error": {
                    "code": "resource_missing",
                    "message": f"No such payment_intent: '{intent_id}'",
                }})
            return httpx.Response(200, json=self.intents[intent_id])

        return httpx.Response(404, json={"error": {"message": "unknown route"}})


@pytest.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await init_db()
    yield
    await engine.dispose()


@pytest.fixture
async def log():
    log = Log()
    yield log
    await log.shutdown()


@pytest.fixture
async def client(database):
    async with lifespan(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


@pytest.fixture
def fake_stripe():
    return FakeStripe()


@pytest.fixture
async def stripe(client, fake_stripe):
    """Point the running app at the fake Stripe API."""
    previous = app.state.payments
    app.state.payments = PaymentGatewayClient(
        secret_key="sk_test_123",
        transport=httpx.MockTransport(fake_stripe.handle),
    )
    await previous.aclose()
    yield fake_stripe


@pytest.fixture
def admin_headers(client):
    token = create_access_token({"sub": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def user_headers(client):
    async with AsyncSessionLocal() as db:
        db.add(User(name="Shopper", login="shopper", password=hash_password("secret"), is_admin=False))
        await db.commit()
    token = create_access_token({"sub": "shopper"})
    return {"Authorization": f"Bearer {token}"}


def order_payload(email="alice@example.com", total=10.0, **overrides):
    payload = {
        "customer": {
            "name": "Alice",
            "email": email,
            "phone": "+1 555 0100",
            "address": "1 Main St",
            "city": "Springfield",
            "country": "US",
        },
        "items": [
            {"productId": "prod-1", "name": "Sign", "price": total, "quantity": 1, "selectedSize": "M"},
        ],
        "total": total,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_order():
    return order_payload
