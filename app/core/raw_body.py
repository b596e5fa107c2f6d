"""Raw body capture for signed webhook routes.

HMAC verification has to run over the exact bytes on the wire, so for webhook
paths the body is drained here, before FastAPI ever parses it, and parked on
the request state as ``request.state.raw_body``. The buffered bytes are then
replayed to the app as a single ``http.request`` message.
"""
from starlette.types import ASGIApp, Message, Receive, Scope, Send

WEBHOOK_PATH_PREFIX = "/api/webhooks/shopify"


class RawBodyMiddleware:
    def __init__(self, app: ASGIApp, path_prefix: str = WEBHOOK_PATH_PREFIX):
        self.app = app
        self.path_prefix = path_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not scope.get("path", "").startswith(self.path_prefix):
            await self.app(scope, receive, send)
            return

        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                # Client went away mid-body; nothing to verify
                return
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)
        raw_body = b"".join(chunks)

        scope.setdefault("state", {})["raw_body"] = raw_body

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": raw_body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)
