import pytest

from app.core.raw_body import RawBodyMiddleware


class RecordingApp:
    """Minimal ASGI app that drains the body and remembers what it saw."""

    def __init__(self):
        self.scope = None
        self.body = None

    async def __call__(self, scope, receive, send):
        self.scope = scope
        chunks = []
        while True:
            message = await receive()
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        self.body = b"".join(chunks)


def _receiver(messages):
    queue = list(messages)

    async def receive():
        return queue.pop(0)

    return receive


async def _noop_send(message):
    pass


@pytest.mark.asyncio
async def test_webhook_path_buffers_chunks_into_state():
    inner = RecordingApp()
    middleware = RawBodyMiddleware(inner)
    scope = {"type": "http", "path": "/api/webhooks/shopify/order/created"}
    receive = _receiver([
        {"type": "http.request", "body": b'{"id":', "more_body": True},
        {"type": "http.request", "body": b' 1}', "more_body": False},
    ])

    await middleware(scope, receive, _noop_send)

    assert inner.scope["state"]["raw_body"] == b'{"id": 1}'
    # Downstream still gets the full body exactly once
    assert inner.body == b'{"id": 1}'


@pytest.mark.asyncio
async def test_other_paths_pass_through_untouched():
    inner = RecordingApp()
    middleware = RawBodyMiddleware(inner)
    scope = {"type": "http", "path": "/api/waitlist"}
    receive = _receiver([{"type": "http.request", "body": b"{}", "more_body": False}])

    await middleware(scope, receive, _noop_send)

    assert "raw_body" not in inner.scope.get("state", {})
    assert inner.body == b"{}"


@pytest.mark.asyncio
async def test_health_path_is_not_captured():
    inner = RecordingApp()
    middleware = RawBodyMiddleware(inner)
    scope = {"type": "http", "path": "/api/webhooks/health"}
    receive = _receiver([{"type": "http.request", "body": b"", "more_body": False}])

    await middleware(scope, receive, _noop_send)

    assert "raw_body" not in inner.scope.get("state", {})


@pytest.mark.asyncio
async def test_client_disconnect_stops_processing():
    inner = RecordingApp()
    middleware = RawBodyMiddleware(inner)
    scope = {"type": "http", "path": "/api/webhooks/shopify/customer/created"}
    receive = _receiver([
        {"type": "http.request", "body": b"{", "more_body": True},
        {"type": "http.disconnect"},
    ])

    await middleware(scope, receive, _noop_send)

    assert inner.scope is None
