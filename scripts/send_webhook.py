"""Post a webhook event to a running billing service.

Useful for exercising event dispatch locally without the provider CLI. When a
signing secret is given the body is signed the same way the provider does.
"""

import argparse
import json
from pathlib import Path

import httpx

from billpay.services.billing.webhooks import signature_header


def send(url: str, payload: dict, secret: str | None) -> httpx.Response:
    """Serialize once and post the exact signed bytes."""

    body = json.dumps(payload).encode("utf-8")
    headers = {"content-type": "application/json"}
    if secret:
        headers["stripe-signature"] = signature_header(body, secret)
    return httpx.post(url, content=body, headers=headers, timeout=10.0)


def main() -> None:
    """Parse CLI args and post one event."""

    parser = argparse.ArgumentParser(description="Send a webhook event to the billing service.")
    parser.add_argument("--url", default="http://localhost:4242/webhook")
    parser.add_argument("--type", dest="event_type", default=None, help="Event type for a minimal generated event")
    parser.add_argument("--object", dest="object_json", default="{}", help="Inline JSON for data.object")
    parser.add_argument("--file", dest="json_file", default=None, help="Path to a full event JSON file")
    parser.add_argument("--secret", default=None, help="Webhook signing secret")
    args = parser.parse_args()

    if bool(args.event_type) == bool(args.json_file):
        raise SystemExit("Provide exactly one of --type or --file")

    if args.json_file:
        payload = json.loads(Path(args.json_file).read_text())
    else:
        payload = {"type": args.event_type, "data": {"object": json.loads(args.object_json)}}

    resp = send(args.url, payload, args.secret)
    print(f"status={resp.status_code} body={resp.text}")


if __name__ == "__main__":
    main()
