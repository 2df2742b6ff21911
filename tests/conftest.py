"""Shared fixtures: an in-memory gateway and an app built around it."""

import pytest
from fastapi.testclient import TestClient

from billpay.common.config import BillingSettings
from billpay.services.billing.api import create_app
from billpay.services.billing.gateway import GatewayError
from billpay.services.billing.webhooks import signature_header

WEBHOOK_SECRET = "whsec_test_secret"


class FakeGateway:
    """Records every provider call and returns canned provider objects."""

    def __init__(self, payment_methods: list[dict] | None = None) -> None:
        self.payment_methods = (
            payment_methods if payment_methods is not None else [{"id": "pm_card_1", "type": "card"}]
        )
        self.failures: dict[str, GatewayError] = {}
        self.calls: list[tuple] = []
        self.invoice_items: list[tuple] = []
        self.customer_updates: list[tuple[str, str]] = []
        self.customers_created: list[dict] = []

    def fail(self, operation: str, error: GatewayError) -> None:
        self.failures[operation] = error

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self.failures:
            raise self.failures[operation]

    async def list_card_payment_methods(self, customer_id):
        self._record("payment_methods.list", customer_id)
        return list(self.payment_methods)

    async def create_invoice_item(self, customer_id, item):
        self._record("invoice_items.create", customer_id, item)
        self.invoice_items.append((customer_id, item))
        return {"id": f"ii_{len(self.invoice_items)}", "customer": customer_id}

    async def create_invoice(self, customer_id):
        self._record("invoices.create", customer_id)
        return {"id": "in_1", "customer": customer_id, "status": "draft"}

    async def finalize_invoice(self, invoice_id):
        self._record("invoices.finalize", invoice_id)
        return {"id": invoice_id, "status": "open"}

    async def pay_invoice(self, invoice_id, payment_method_id):
        self._record("invoices.pay", invoice_id, payment_method_id)
        return {"id": invoice_id, "status": "paid", "payment_method": payment_method_id}

    async def create_customer(self, name, email, description):
        self._record("customers.create", name, email, description)
        customer = {"id": f"cus_{len(self.customers_created) + 1}", "name": name, "email": email}
        self.customers_created.append(customer)
        return customer

    async def create_setup_intent(self, customer_id):
        self._record("setup_intents.create", customer_id)
        return {"id": "seti_1", "object": "setup_intent", "customer": customer_id}

    async def update_customer_email(self, customer_id, email):
        self._record("customers.update", customer_id, email)
        self.customer_updates.append((customer_id, email))
        return {"id": customer_id, "email": email}

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> BillingSettings:
        values = {
            "static_dir": str(tmp_path),
            "stripe_publishable_key": "pk_test_123",
            "stripe_webhook_secret": None,
        }
        values.update(overrides)
        return BillingSettings(_env_file=None, **values)

    return _make


@pytest.fixture
def client(make_settings, gateway):
    with TestClient(create_app(make_settings(), gateway)) as test_client:
        yield test_client


@pytest.fixture
def signed_client(make_settings, gateway):
    with TestClient(create_app(make_settings(stripe_webhook_secret=WEBHOOK_SECRET), gateway)) as test_client:
        yield test_client


@pytest.fixture
def sign():
    return signature_header


@pytest.fixture
def webhook_secret():
    return WEBHOOK_SECRET
