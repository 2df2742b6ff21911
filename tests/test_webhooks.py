"""Webhook ingestion: signature checks, parsing and event dispatch."""

import json

from billpay.services.billing.gateway import GatewayError, GatewayErrorKind
from billpay.services.billing.webhooks import verify_signature


def _event(event_type: str, obj: dict | None = None) -> bytes:
    return json.dumps({"id": "evt_1", "type": event_type, "data": {"object": obj or {}}}).encode("utf-8")


ATTACHED = {
    "id": "pm_1",
    "customer": "cus_123",
    "billing_details": {"email": "a@b.com"},
}


def test_bad_signature_rejected_without_dispatch(signed_client, gateway, sign):
    """A mismatching signature yields 400 and no customer update."""

    payload = _event("payment_method.attached", ATTACHED)
    resp = signed_client.post(
        "/webhook",
        content=payload,
        headers={"Stripe-Signature": sign(payload, "whsec_other")},
    )
    assert resp.status_code == 400
    assert gateway.calls == []


def test_missing_signature_rejected_when_secret_configured(signed_client, gateway):
    resp = signed_client.post("/webhook", content=_event("payment_method.attached", ATTACHED))
    assert resp.status_code == 400
    assert gateway.calls == []


def test_body_tampered_after_signing_rejected(signed_client, gateway, sign, webhook_secret):
    payload = _event("payment_method.attached", ATTACHED)
    header = sign(payload, webhook_secret)
    tampered = payload.replace(b"a@b.com", b"x@y.com")
    resp = signed_client.post("/webhook", content=tampered, headers={"Stripe-Signature": header})
    assert resp.status_code == 400
    assert gateway.customer_updates == []


def test_stale_signature_rejected(signed_client, gateway, sign, webhook_secret):
    payload = _event("setup_intent.succeeded", {"id": "seti_1"})
    header = sign(payload, webhook_secret, timestamp=1_000_000)
    resp = signed_client.post("/webhook", content=payload, headers={"Stripe-Signature": header})
    assert resp.status_code == 400


def test_valid_signature_dispatches(signed_client, gateway, sign, webhook_secret):
    """A correctly signed payment_method.attached updates the customer."""

    payload = _event("payment_method.attached", ATTACHED)
    resp = signed_client.post(
        "/webhook",
        content=payload,
        headers={"Stripe-Signature": sign(payload, webhook_secret)},
    )
    assert resp.status_code == 200
    assert resp.json() == {"received": True}
    assert gateway.customer_updates == [("cus_123", "a@b.com")]


def test_unsigned_event_dispatched_by_type(client, gateway):
    """Without a secret the body is trusted and dispatched on its type."""

    resp = client.post("/webhook", content=_event("payment_method.attached", ATTACHED))
    assert resp.status_code == 200
    assert gateway.customer_updates == [("cus_123", "a@b.com")]


def test_setup_intent_succeeded_does_not_touch_customers(client, gateway):
    resp = client.post("/webhook", content=_event("setup_intent.succeeded", {"id": "seti_1"}))
    assert resp.status_code == 200
    assert gateway.calls == []


def test_setup_intent_created_and_failed_only_logged(client, gateway):
    for event_type in ("setup_intent.created", "setup_intent.setup_failed"):
        resp = client.post("/webhook", content=_event(event_type, {"id": "seti_1"}))
        assert resp.status_code == 200
    assert gateway.calls == []


def test_unknown_event_acknowledged_and_ignored(client, gateway):
    resp = client.post("/webhook", content=_event("invoice.paid", {"id": "in_1"}))
    assert resp.status_code == 200
    assert gateway.calls == []


def test_attached_without_email_skips_update(client, gateway):
    obj = {"id": "pm_1", "customer": "cus_123", "billing_details": {"email": None}}
    resp = client.post("/webhook", content=_event("payment_method.attached", obj))
    assert resp.status_code == 200
    assert gateway.customer_updates == []


def test_gateway_failure_during_dispatch_still_acknowledged(client, gateway):
    """Provider errors inside a handler never turn into a non-200 reply."""

    gateway.fail("customers.update", GatewayError(GatewayErrorKind.UPSTREAM, "boom", "customers.update"))
    resp = client.post("/webhook", content=_event("payment_method.attached", ATTACHED))
    assert resp.status_code == 200
    assert gateway.operations() == ["customers.update"]


def test_malformed_body_rejected(client, gateway):
    assert client.post("/webhook", content=b"not json").status_code == 400
    assert client.post("/webhook", content=b'{"data": {}}').status_code == 400
    assert gateway.calls == []


def test_event_without_data_is_dispatched(client, gateway):
    """A typed body with no `data` is acknowledged, not rejected."""

    resp = client.post("/webhook", content=b'{"type": "setup_intent.succeeded"}')
    assert resp.status_code == 200
    assert gateway.calls == []


def test_unknown_types_share_one_metric_series(client):
    """Caller-chosen event types collapse into the `unrecognized` label."""

    for n in range(5):
        assert client.post("/webhook", content=_event(f"junk.{n}")).status_code == 200
    text = client.get("/metrics").text
    assert 'event_type="unrecognized"' in text
    assert 'event_type="junk.' not in text


def test_generated_signature_verifies(sign, webhook_secret):
    payload = _event("setup_intent.created", {"id": "seti_1"})
    verify_signature(payload, sign(payload, webhook_secret), webhook_secret)
