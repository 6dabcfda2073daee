import pytest
import structlog

from api.middleware import logging as logging_middleware


@pytest.mark.asyncio
async def test_routes_registered():
    # Basic import test to ensure routers load
    from main import app
    routes = {r.path for r in app.routes}
    for path in (
        "/create-payment-intent",
        "/webhook",
        "/admin-api/check-setup",
        "/admin-api/register",
        "/admin-api/login",
        "/admin-api/logout",
        "/admin-api/donations",
        "/admin-api/users",
        "/health",
    ):
        assert path in routes


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}
    assert resp.headers.get("X-Request-ID")


def test_request_id_middleware_wraps_logging():
    from main import app
    from api.middleware import LoggingMiddleware, RequestIDMiddleware

    # user_middleware 按从外到内排列
    order = [m.cls for m in app.user_middleware]
    assert order.index(RequestIDMiddleware) < order.index(LoggingMiddleware)


class _RecordingLogger:
    def __init__(self):
        self.records = []

    def _record(self, event, **kwargs):
        self.records.append((event, structlog.contextvars.get_contextvars()))

    info = warning = error = _record


@pytest.mark.asyncio
async def test_request_logs_carry_request_id(client, monkeypatch):
    recorder = _RecordingLogger()
    monkeypatch.setattr(logging_middleware, "logger", recorder)

    resp = await client.post("/create-payment-intent", headers={"X-Request-ID": "req-fixed"})

    assert resp.status_code == 400
    events = [event for event, _ in recorder.records]
    assert events == ["request_started", "request_client_error"]
    for _, bound in recorder.records:
        assert bound["request_id"] == "req-fixed"
