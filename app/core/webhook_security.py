"""Shopify webhook signature verification.

Security contract:
- The MAC is HMAC-SHA256(secret, raw body bytes), base64-encoded, exactly as
  Shopify computes it for the X-Shopify-Hmac-SHA256 header
- Comparison is constant time: both sides are first reduced to fixed-length
  SHA-256 digests and then compared with hmac.compare_digest, so neither the
  position of the first mismatch nor a length mismatch changes the timing
- Missing secret -> ConfigurationError (500), never a client fault
- Missing / invalid signature -> AuthenticationError (401), audited
- The body is only parsed after the MAC matched; undecodable bytes at that
  point -> MalformedPayloadError (400)
"""
import base64
import hashlib
import hmac
import json
import logging
from typing import Optional, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConfigurationError, MalformedPayloadError
from app.utils.audit import audit

logger = logging.getLogger(__name__)

SHOPIFY_HMAC_HEADER = "X-Shopify-Hmac-SHA256"
SHOPIFY_TOPIC_HEADER = "X-Shopify-Topic"

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def compute_shopify_hmac(raw_body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def constant_time_equals(expected: str, supplied: str) -> bool:
    """Compare two strings in time independent of their content and length."""
    expected_digest = hashlib.sha256(expected.encode("utf-8")).digest()
    supplied_digest = hashlib.sha256(supplied.encode("utf-8")).digest()
    return hmac.compare_digest(expected_digest, supplied_digest)


def check_signature(raw_body: bytes, signature: Optional[str], secret: Optional[str]) -> None:
    """Raise unless ``signature`` is the Shopify MAC of ``raw_body`` under ``secret``."""
    if not secret:
        logger.error("SHOPIFY_WEBHOOK_SECRET is not configured")
        raise ConfigurationError("Webhook secret not configured")

    if not signature:
        raise AuthenticationError(
            "Unauthorized: Missing HMAC header",
            reason=AuthenticationError.MISSING_SIGNATURE,
        )

    computed = compute_shopify_hmac(raw_body, secret)
    if not constant_time_equals(computed, signature.strip()):
        raise AuthenticationError(
            "Unauthorized: Invalid HMAC",
            reason=AuthenticationError.INVALID_SIGNATURE,
        )


def parse_payload(raw_body: bytes, model: Type[PayloadT]) -> PayloadT:
    """Decode verified bytes into ``model``; only call after check_signature."""
    try:
        data = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedPayloadError("Bad request: Invalid webhook payload", details=[str(e)])
    if not isinstance(data, dict):
        raise MalformedPayloadError("Bad request: Webhook payload must be a JSON object")
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise MalformedPayloadError("Bad request: Invalid webhook payload", details=details)


def verify_shopify_webhook(
    raw_body: bytes,
    signature: Optional[str],
    secret: Optional[str],
    model: Type[PayloadT],
) -> PayloadT:
    check_signature(raw_body, signature, secret)
    return parse_payload(raw_body, model)


def shopify_webhook(model: Type[PayloadT]):
    """Dependency factory: verify the current request and return its typed payload.

    Relies on RawBodyMiddleware having stored the wire bytes on request.state.
    On success request.state.webhook_verified / webhook_payload are set.
    """
    async def dependency(request: Request) -> PayloadT:
        raw_body = getattr(request.state, "raw_body", None)
        if raw_body is None:
            # Route mounted outside the capture prefix; body has not been parsed yet
            raw_body = await request.body()

        topic = request.headers.get(SHOPIFY_TOPIC_HEADER)
        try:
            payload = verify_shopify_webhook(
                raw_body,
                request.headers.get(SHOPIFY_HMAC_HEADER),
                settings.SHOPIFY_WEBHOOK_SECRET,
                model,
            )
        except AuthenticationError as e:
            audit(
                "webhook_auth_failed",
                reason=e.reason,
                path=request.url.path,
                topic=topic,
                client=request.client.host if request.client else None,
            )
            raise
        except ConfigurationError:
            audit("webhook_secret_missing", path=request.url.path)
            raise

        request.state.webhook_verified = True
        request.state.webhook_payload = payload
        logger.info("Shopify webhook verified: %s", request.url.path)
        return payload

    return dependency
