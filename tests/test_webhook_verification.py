"""Tests for Shopify webhook signature verification (no HTTP)."""
import base64
import hashlib
import hmac
from unittest.mock import patch

import pytest

from app.core import webhook_security
from app.core.exceptions import AuthenticationError, ConfigurationError, MalformedPayloadError
from app.core.webhook_security import (
    check_signature,
    compute_shopify_hmac,
    constant_time_equals,
    verify_shopify_webhook,
)
from app.schemas.webhook import ShopifyOrder

SECRET = "shopify-test-secret"


def _sign(body: bytes, secret: str = SECRET) -> str:
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


class TestComputeHmac:
    def test_matches_reference_hmac(self):
        body = b'{"id": 123, "email": "a@x.com"}'
        assert compute_shopify_hmac(body, SECRET) == _sign(body)

    def test_depends_on_exact_bytes(self):
        # Same JSON document, different whitespace -> different MAC
        assert compute_shopify_hmac(b'{"id":1}', SECRET) != compute_shopify_hmac(b'{"id": 1}', SECRET)

    def test_deterministic(self):
        body = b"payload"
        assert compute_shopify_hmac(body, SECRET) == compute_shopify_hmac(body, SECRET)


class TestCheckSignature:
    @pytest.mark.parametrize("body", [b"", b"{}", b'{"id": 1}', bytes(range(256))])
    def test_valid_signature_accepted(self, body):
        check_signature(body, _sign(body), SECRET)

    def test_tampered_body_rejected(self):
        sig = _sign(b'{"id": 123}')
        with pytest.raises(AuthenticationError) as exc:
            check_signature(b'{"id": 456}', sig, SECRET)
        assert exc.value.reason == AuthenticationError.INVALID_SIGNATURE

    def test_wrong_secret_rejected(self):
        body = b'{"id": 123}'
        with pytest.raises(AuthenticationError):
            check_signature(body, _sign(body, "other-secret"), SECRET)

    def test_garbage_signature_rejected(self):
        with pytest.raises(AuthenticationError):
            check_signature(b"body", "not-base64-at-all", SECRET)

    def test_truncated_signature_rejected(self):
        body = b"body"
        with pytest.raises(AuthenticationError):
            check_signature(body, _sign(body)[:-4], SECRET)

    def test_missing_signature(self):
        with pytest.raises(AuthenticationError) as exc:
            check_signature(b"body", None, SECRET)
        assert exc.value.reason == AuthenticationError.MISSING_SIGNATURE
        assert exc.value.status_code == 401

    def test_empty_signature_is_missing(self):
        with pytest.raises(AuthenticationError) as exc:
            check_signature(b"body", "", SECRET)
        assert exc.value.reason == AuthenticationError.MISSING_SIGNATURE

    @pytest.mark.parametrize("secret", [None, ""])
    def test_missing_secret_is_configuration_error(self, secret):
        # Checked before the signature so a misconfigured server never reports 401
        with pytest.raises(ConfigurationError) as exc:
            check_signature(b"body", None, secret)
        assert exc.value.status_code == 500
        assert SECRET not in exc.value.message

    def test_uses_constant_time_comparator(self):
        body = b"body"
        with patch.object(webhook_security.hmac, "compare_digest", wraps=hmac.compare_digest) as spy:
            check_signature(body, _sign(body), SECRET)
        spy.assert_called_once()
        expected, supplied = spy.call_args.args
        # Fixed-length digests are compared, never the raw strings
        assert len(expected) == len(supplied) == hashlib.sha256().digest_size


class TestConstantTimeEquals:
    def test_equal(self):
        assert constant_time_equals("abc", "abc") is True

    def test_different_lengths(self):
        assert constant_time_equals("abc", "abcd") is False

    def test_non_ascii_supplied_value(self):
        assert constant_time_equals("abc", "abç") is False


class TestVerifyShopifyWebhook:
    def test_returns_typed_payload(self):
        body = b'{"id": 1001, "email": " Buyer@Example.COM ", "customer": {"id": 7, "email": "Buyer@Example.com"}}'
        order = verify_shopify_webhook(body, _sign(body), SECRET, ShopifyOrder)
        assert isinstance(order, ShopifyOrder)
        assert order.id == 1001
        assert order.customer_email == "buyer@example.com"

    def test_malformed_json_after_valid_signature(self):
        body = b'{"id": 1001,'
        with pytest.raises(MalformedPayloadError) as exc:
            verify_shopify_webhook(body, _sign(body), SECRET, ShopifyOrder)
        assert exc.value.status_code == 400

    def test_non_object_json_is_malformed(self):
        body = b"[1, 2, 3]"
        with pytest.raises(MalformedPayloadError):
            verify_shopify_webhook(body, _sign(body), SECRET, ShopifyOrder)

    def test_invalid_utf8_is_malformed(self):
        body = b"\xff\xfe{}"
        with pytest.raises(MalformedPayloadError):
            verify_shopify_webhook(body, _sign(body), SECRET, ShopifyOrder)

    def test_wrong_shape_is_malformed(self):
        body = b'{"line_items": "not-a-list"}'
        with pytest.raises(MalformedPayloadError) as exc:
            verify_shopify_webhook(body, _sign(body), SECRET, ShopifyOrder)
        assert exc.value.details

    def test_malformed_body_with_bad_signature_is_auth_error(self):
        # Parsing is never attempted before authentication succeeds
        with pytest.raises(AuthenticationError):
            verify_shopify_webhook(b"{not json", "bogus", SECRET, ShopifyOrder)
