"""HTTP surface of the billing service.

`create_app` wires one `BillingService` (and the gateway it wraps) into the
route table; nothing is read from module globals at request time.
"""

from pathlib import Path
from time import perf_counter
from uuid import uuid4

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from billpay.common.config import BillingSettings
from billpay.common.logging import logger, trace_id_ctx
from billpay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
    webhook_events_total,
)
from billpay.services.billing.results import NotFound, Result, Success, UpstreamFailure
from billpay.services.billing.schemas import InvoiceResponse, PublicKeyResponse, SetupIntentRequest
from billpay.services.billing.service import BillingService
from billpay.services.billing.webhooks import (
    SIGNATURE_HEADER,
    MalformedEventError,
    WebhookVerificationError,
    parse_event,
)


def unwrap(result: Result):
    """Return the success value or raise the matching HTTP error."""

    if isinstance(result, Success):
        return result.value
    if isinstance(result, NotFound):
        raise HTTPException(status_code=404, detail="customer or payment method not found")
    if isinstance(result, UpstreamFailure):
        raise HTTPException(status_code=502, detail="payment provider request failed")
    raise TypeError(f"unexpected result type: {type(result).__name__}")


def create_app(settings: BillingSettings, gateway) -> FastAPI:
    """Build the FastAPI app around an already-constructed gateway."""

    service = BillingService(
        gateway,
        service_name=settings.service_name,
        customer_defaults=SetupIntentRequest(
            name=settings.default_customer_name,
            email=settings.default_customer_email,
            description=settings.default_customer_description,
        ),
    )
    static_dir = Path(settings.static_dir)
    app = FastAPI(title="Billpay Billing Service")
    app.state.service = service

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Record request count and latency, and bind a trace id."""

        start = perf_counter()
        # Fixed label for anything no explicit route claims (static files, 404s).
        route = "unmatched"
        method = request.method
        status_code = 500
        token = trace_id_ctx.set(request.headers.get("x-correlation-id") or str(uuid4()))
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            return response
        finally:
            trace_id_ctx.reset(token)
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=settings.service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=settings.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()

    @app.get("/")
    def index():
        """Serve the front-end entry page."""

        page = static_dir / "index.html"
        if not page.is_file():
            raise HTTPException(status_code=404, detail="index.html not found")
        return FileResponse(page)

    @app.get("/public-key", response_model=PublicKeyResponse)
    def public_key():
        return PublicKeyResponse(publicKey=settings.stripe_publishable_key)

    @app.post("/create-invoice/{customer_id}", response_model=InvoiceResponse)
    async def create_invoice(customer_id: str):
        """Invoice the fixed line items and pay with the customer's first card."""

        paid = unwrap(await service.create_invoice(customer_id))
        return InvoiceResponse(invoice=paid)

    @app.post("/create-setup-intent")
    async def create_setup_intent(req: SetupIntentRequest | None = Body(default=None)):
        """Create a fresh customer plus a setup intent for saving a card."""

        return unwrap(await service.create_setup_intent(req))

    @app.post("/webhook")
    async def webhook(request: Request):
        """Verify and dispatch one provider event.

        400 only when the signature or body is rejected; 200 otherwise, whatever
        the handler did with the event.
        """

        payload = await request.body()
        try:
            event = parse_event(payload, request.headers.get(SIGNATURE_HEADER), settings.stripe_webhook_secret)
        except WebhookVerificationError as exc:
            logger.warning("webhook signature verification failed: %s", exc)
            webhook_events_total.labels(service=settings.service_name, event_type="", outcome="rejected").inc()
            raise HTTPException(status_code=400, detail="invalid signature") from exc
        except MalformedEventError as exc:
            logger.warning("webhook payload rejected: %s", exc)
            webhook_events_total.labels(service=settings.service_name, event_type="", outcome="rejected").inc()
            raise HTTPException(status_code=400, detail="invalid payload") from exc

        logger.info("webhook_received type=%s event_id=%s", event.type, event.id)
        await service.handle_event(event)
        return {"received": True}

    @app.get("/health")
    def health():
        """Container health probe endpoint."""

        return {"ok": True}

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    # Mounted last so the explicit routes above take precedence.
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir), name="static")
    else:
        logger.warning("static directory missing path=%s", static_dir)

    return app
