"""Webhook signature verification and event parsing.

Verification runs against the raw request bytes; the JSON is only parsed once
the signature has been accepted.
"""

import hashlib
import hmac
import time

import stripe
from pydantic import ValidationError

from billpay.services.billing.schemas import WebhookEvent

SIGNATURE_HEADER = "stripe-signature"


def signature_header(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a `Stripe-Signature` value (HMAC-SHA256 over `"{t}.{body}"`)."""

    ts = timestamp if timestamp is not None else int(time.time())
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


class WebhookVerificationError(Exception):
    """Signature header missing or not matching the raw body."""


class MalformedEventError(Exception):
    """Body is not a well-formed provider event."""


def verify_signature(payload: bytes, signature: str | None, secret: str, tolerance: int | None = None) -> None:
    """Raise `WebhookVerificationError` unless `signature` signs `payload`."""

    if not signature:
        raise WebhookVerificationError("missing signature header")
    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"),
            signature,
            secret,
            tolerance if tolerance is not None else stripe.Webhook.DEFAULT_TOLERANCE,
        )
    except (stripe.SignatureVerificationError, UnicodeDecodeError) as exc:
        raise WebhookVerificationError(str(exc)) from exc


def parse_event(payload: bytes, signature: str | None, secret: str | None) -> WebhookEvent:
    """Verify (when a secret is configured) and parse one webhook body."""

    if secret:
        verify_signature(payload, signature, secret)
    try:
        return WebhookEvent.model_validate_json(payload)
    except ValidationError as exc:
        raise MalformedEventError(f"invalid event payload: {exc.error_count()} error(s)") from exc
