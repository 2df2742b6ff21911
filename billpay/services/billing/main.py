"""Process entrypoint: logging, tracing, the Stripe client and the app.

Run with `uvicorn billpay.services.billing.main:app` or the `billpay-server`
script.
"""

import uvicorn

from billpay.common.config import settings
from billpay.common.logging import configure_logging
from billpay.common.startup import log_startup_config
from billpay.common.tracing import instrument_app, setup_tracing
from billpay.services.billing.api import create_app
from billpay.services.billing.gateway import StripeGateway

configure_logging()
tracing_enabled = setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
log_startup_config(
    settings,
    [
        "service_name",
        "static_dir",
        "stripe_api_version",
        "stripe_secret_key",
        "stripe_publishable_key",
        "stripe_webhook_secret",
        "otel_exporter_otlp_endpoint",
    ],
)
gateway = StripeGateway.from_settings(settings)
app = create_app(settings, gateway)
if tracing_enabled:
    instrument_app(app)


def run() -> None:
    """Serve the app on the configured host/port."""

    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
