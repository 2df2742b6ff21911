"""Async wrapper around the Stripe client.

Every provider call goes through `StripeGateway._call`, which records latency
and outcome metrics and converts SDK exceptions into `GatewayError`.
"""

from enum import Enum
from time import perf_counter
from typing import Any

import stripe

from billpay.common.logging import logger
from billpay.common.metrics import gateway_latency_seconds, gateway_requests_total
from billpay.services.billing.schemas import LineItem


class GatewayErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"


class GatewayError(Exception):
    """Provider call failed; `kind` says whether the resource was missing."""

    def __init__(self, kind: GatewayErrorKind, message: str, operation: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.operation = operation


def classify_error(exc: stripe.StripeError) -> GatewayErrorKind:
    """Treat unknown-object errors as NOT_FOUND, everything else as UPSTREAM."""

    if isinstance(exc, stripe.InvalidRequestError):
        if exc.http_status == 404 or exc.code == "resource_missing":
            return GatewayErrorKind.NOT_FOUND
    return GatewayErrorKind.UPSTREAM


def _to_dict(obj: Any) -> dict[str, Any]:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeGateway:
    """Payment operations used by the billing service.

    The wrapped `stripe.StripeClient` is built once per process and handed in
    explicitly, so tests can pass any object exposing the same `v1` services.
    """

    def __init__(self, client, service_name: str = "billing") -> None:
        self.client = client
        self.service_name = service_name

    @classmethod
    def from_settings(cls, settings) -> "StripeGateway":
        client = stripe.StripeClient(
            api_key=settings.stripe_secret_key,
            stripe_version=settings.stripe_api_version,
            max_network_retries=settings.stripe_max_network_retries,
            http_client=stripe.HTTPXClient(),
        )
        return cls(client, service_name=settings.service_name)

    async def _call(self, operation: str, func, *args, **kwargs):
        start = perf_counter()
        try:
            result = await func(*args, **kwargs)
        except stripe.StripeError as exc:
            kind = classify_error(exc)
            gateway_requests_total.labels(
                service=self.service_name,
                operation=operation,
                outcome=kind.value,
            ).inc()
            logger.warning(
                "gateway_call_failed operation=%s kind=%s status=%s error=%s",
                operation,
                kind.value,
                exc.http_status,
                exc.user_message or str(exc),
            )
            raise GatewayError(kind, exc.user_message or str(exc), operation) from exc
        finally:
            gateway_latency_seconds.labels(service=self.service_name, operation=operation).observe(
                max(0.0, perf_counter() - start)
            )
        gateway_requests_total.labels(service=self.service_name, operation=operation, outcome="success").inc()
        return result

    async def list_card_payment_methods(self, customer_id: str) -> list[dict[str, Any]]:
        result = await self._call(
            "payment_methods.list",
            self.client.v1.payment_methods.list_async,
            params={"customer": customer_id, "type": "card"},
        )
        return [_to_dict(pm) for pm in result.data]

    async def create_invoice_item(self, customer_id: str, item: LineItem) -> dict[str, Any]:
        item_obj = await self._call(
            "invoice_items.create",
            self.client.v1.invoice_items.create_async,
            params={
                "customer": customer_id,
                "unit_amount": item.unit_amount,
                "quantity": item.quantity,
                "description": item.description,
                "currency": item.currency,
            },
        )
        return _to_dict(item_obj)

    async def create_invoice(self, customer_id: str) -> dict[str, Any]:
        invoice = await self._call(
            "invoices.create",
            self.client.v1.invoices.create_async,
            params={"customer": customer_id},
        )
        return _to_dict(invoice)

    async def finalize_invoice(self, invoice_id: str) -> dict[str, Any]:
        invoice = await self._call(
            "invoices.finalize",
            self.client.v1.invoices.finalize_invoice_async,
            invoice_id,
        )
        return _to_dict(invoice)

    async def pay_invoice(self, invoice_id: str, payment_method_id: str) -> dict[str, Any]:
        invoice = await self._call(
            "invoices.pay",
            self.client.v1.invoices.pay_async,
            invoice_id,
            params={"payment_method": payment_method_id},
        )
        return _to_dict(invoice)

    async def create_customer(self, name: str, email: str, description: str) -> dict[str, Any]:
        customer = await self._call(
            "customers.create",
            self.client.v1.customers.create_async,
            params={"name": name, "email": email, "description": description},
        )
        return _to_dict(customer)

    async def create_setup_intent(self, customer_id: str) -> dict[str, Any]:
        intent = await self._call(
            "setup_intents.create",
            self.client.v1.setup_intents.create_async,
            params={"customer": customer_id},
        )
        return _to_dict(intent)

    async def update_customer_email(self, customer_id: str, email: str) -> dict[str, Any]:
        customer = await self._call(
            "customers.update",
            self.client.v1.customers.update_async,
            customer_id,
            params={"email": email},
        )
        return _to_dict(customer)
