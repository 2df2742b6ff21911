"""Billing flows on top of the payment gateway.

Invoice assembly is a fixed sequence of provider calls (items, create,
finalize, pay). It is not atomic: a failure partway leaves whatever was already
created on the provider side, and nothing is rolled back.
"""

from billpay.common.logging import customer_id_ctx, event_id_ctx, logger
from billpay.common.metrics import invoices_paid_total, webhook_events_total
from billpay.services.billing.gateway import GatewayError, GatewayErrorKind
from billpay.services.billing.results import NotFound, Result, Success, UpstreamFailure
from billpay.services.billing.schemas import (
    DEFAULT_LINE_ITEMS,
    EventKind,
    LineItem,
    SetupIntentRequest,
    WebhookEvent,
)


def _failure(exc: GatewayError) -> Result:
    if exc.kind == GatewayErrorKind.NOT_FOUND:
        return NotFound(str(exc))
    return UpstreamFailure(str(exc), operation=exc.operation)


class BillingService:
    """Creates invoices and setup intents, and reacts to webhook events."""

    def __init__(
        self,
        gateway,
        service_name: str = "billing",
        line_items: tuple[LineItem, ...] = DEFAULT_LINE_ITEMS,
        customer_defaults: SetupIntentRequest | None = None,
    ) -> None:
        self.gateway = gateway
        self.service_name = service_name
        self.line_items = line_items
        self.customer_defaults = customer_defaults or SetupIntentRequest(
            name="Test Customer",
            email="customer@example.com",
            description="Test customer",
        )
        self._event_handlers = {
            EventKind.SETUP_INTENT_CREATED: self._on_setup_intent_created,
            EventKind.SETUP_INTENT_SETUP_FAILED: self._on_setup_intent_failed,
            EventKind.SETUP_INTENT_SUCCEEDED: self._on_setup_intent_succeeded,
            EventKind.PAYMENT_METHOD_ATTACHED: self._on_payment_method_attached,
        }

    async def create_invoice(self, customer_id: str) -> Result:
        """Bill the fixed line items to `customer_id` and pay with its first card."""

        token = customer_id_ctx.set(customer_id)
        step = "payment_methods.list"
        try:
            methods = await self.gateway.list_card_payment_methods(customer_id)
            if not methods:
                logger.warning("invoice_aborted reason=no_card_payment_method customer_id=%s", customer_id)
                return NotFound(f"customer {customer_id} has no card payment method")
            payment_method_id = methods[0]["id"]

            step = "invoice_items.create"
            for item in self.line_items:
                await self.gateway.create_invoice_item(customer_id, item)

            step = "invoices.create"
            invoice = await self.gateway.create_invoice(customer_id)
            step = "invoices.finalize"
            finalized = await self.gateway.finalize_invoice(invoice["id"])
            step = "invoices.pay"
            paid = await self.gateway.pay_invoice(finalized["id"], payment_method_id)
        except GatewayError as exc:
            logger.error("invoice_failed customer_id=%s step=%s error=%s", customer_id, step, exc)
            return _failure(exc)
        finally:
            customer_id_ctx.reset(token)

        invoices_paid_total.labels(service=self.service_name).inc()
        logger.info(
            "invoice_paid customer_id=%s invoice_id=%s status=%s",
            customer_id,
            paid.get("id"),
            paid.get("status"),
        )
        return Success(paid)

    async def create_setup_intent(self, req: SetupIntentRequest | None = None) -> Result:
        """Create a new customer and a setup intent bound to it."""

        req = req or SetupIntentRequest()
        defaults = self.customer_defaults
        try:
            customer = await self.gateway.create_customer(
                name=req.name or defaults.name,
                email=req.email or defaults.email,
                description=req.description or defaults.description,
            )
            intent = await self.gateway.create_setup_intent(customer["id"])
        except GatewayError as exc:
            logger.error("setup_intent_failed error=%s", exc)
            return _failure(exc)
        logger.info("setup_intent_created customer_id=%s setup_intent_id=%s", customer["id"], intent.get("id"))
        return Success(intent)

    async def handle_event(self, event: WebhookEvent) -> str:
        """Dispatch one verified event; returns the outcome label.

        Never raises for provider failures: the webhook is acknowledged either
        way.
        """

        token = event_id_ctx.set(event.id or "")
        try:
            kind = event.kind
            handler = self._event_handlers.get(kind) if kind is not None else None
            if handler is None:
                logger.info("webhook_ignored type=%s", event.type)
                outcome = "ignored"
            else:
                try:
                    await handler(event.data.object)
                    outcome = "handled"
                except GatewayError as exc:
                    logger.error("webhook_handler_failed type=%s error=%s", event.type, exc)
                    outcome = "failed"
        finally:
            event_id_ctx.reset(token)
        # Label values stay within EventKind plus "unrecognized".
        webhook_events_total.labels(
            service=self.service_name,
            event_type=kind.value if kind is not None else "unrecognized",
            outcome=outcome,
        ).inc()
        return outcome

    async def _on_setup_intent_created(self, obj: dict) -> None:
        logger.info("setup_intent_created setup_intent_id=%s", obj.get("id"))

    async def _on_setup_intent_failed(self, obj: dict) -> None:
        logger.info("setup_intent_setup_failed setup_intent_id=%s", obj.get("id"))

    async def _on_setup_intent_succeeded(self, obj: dict) -> None:
        logger.info("setup_intent_succeeded setup_intent_id=%s", obj.get("id"))

    async def _on_payment_method_attached(self, obj: dict) -> None:
        customer_id = obj.get("customer")
        logger.info("payment_method_attached payment_method_id=%s customer_id=%s", obj.get("id"), customer_id)
        email = (obj.get("billing_details") or {}).get("email")
        if not customer_id or not email:
            logger.info("customer_update_skipped customer_id=%s reason=no_billing_email", customer_id)
            return
        await self.gateway.update_customer_email(customer_id, email)
        logger.info("customer_updated customer_id=%s", customer_id)
