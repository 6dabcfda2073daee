"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import json
import os
from itertools import count

# Mandatory secret key for settings validation
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "development")
# Process-level engine is never used by tests; keep it off disk
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from application.dtos.payments import CreatePayment, PaymentIntent, QueryPayment, WebhookEvent
from infrastructure.database import build_engine, build_session_factory, create_tables
from infrastructure.external.payments.exceptions import PaymentProviderError
from infrastructure.unit_of_work import sqlalchemy_uow_factory


class StubGateway:
    """In-memory payment gateway: intents live in a dict keyed by id."""

    provider = "stub"

    def __init__(self):
        self._ids = count(1)
        self.statuses: dict[str, str] = {}
        self.created: list[CreatePayment] = []
        self.queried: list[str] = []
        self.fail_create: Exception | None = None
        self.fail_query: set[str] = set()

    async def create_payment(self, req: CreatePayment) -> PaymentIntent:
        self.created.append(req)
        if self.fail_create is not None:
            raise self.fail_create
        intent_id = f"pi_{next(self._ids)}"
        self.statuses[intent_id] = "requires_payment_method"
        return PaymentIntent(
            intent_id=intent_id,
            status="requires_payment_method",
            client_secret=f"{intent_id}_secret_abc",
            provider=self.provider,
            amount_minor=req.amount_minor,
        )

    async def query_payment(self, query: QueryPayment) -> PaymentIntent:
        self.queried.append(query.intent_id)
        if query.intent_id in self.fail_query:
            raise PaymentProviderError("upstream unavailable", provider=self.provider)
        return PaymentIntent(
            intent_id=query.intent_id,
            status=self.statuses.get(query.intent_id, "requires_payment_method"),
            provider=self.provider,
        )

    def parse_webhook(self, headers: dict, body: bytes) -> WebhookEvent:
        payload = json.loads(body)
        return WebhookEvent(
            id=payload.get("id", "evt_test"),
            type=payload["type"],
            provider=self.provider,
            data=payload.get("data", {}),
        )


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def uow_factory(db_engine):
    return sqlalchemy_uow_factory(build_session_factory(db_engine))


@pytest.fixture
def gateway():
    return StubGateway()


@pytest_asyncio.fixture
async def client(uow_factory, gateway):
    from main import app
    from api.dependencies import get_payment_gateway, get_uow_factory

    app.dependency_overrides[get_uow_factory] = lambda: uow_factory
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()
