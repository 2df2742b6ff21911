"""Request/response schemas and value types for billing endpoints."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class LineItem:
    """One invoice line, amounts in minor currency units."""

    unit_amount: int
    quantity: int
    description: str
    currency: str = "usd"


# Fixed demo charges added to every invoice, in creation order.
DEFAULT_LINE_ITEMS: tuple[LineItem, ...] = (
    LineItem(unit_amount=50, quantity=10, description="Extra Orders"),
    LineItem(unit_amount=5, quantity=100, description="Extra Items"),
    LineItem(unit_amount=30, quantity=2, description="Extra Bandwidth"),
    LineItem(unit_amount=200, quantity=5, description="Extra Api Calls"),
    LineItem(unit_amount=1, quantity=0, description="Flat fee"),
)


class EventKind(str, Enum):
    """Webhook event types this service acts on."""

    SETUP_INTENT_CREATED = "setup_intent.created"
    SETUP_INTENT_SETUP_FAILED = "setup_intent.setup_failed"
    SETUP_INTENT_SUCCEEDED = "setup_intent.succeeded"
    PAYMENT_METHOD_ATTACHED = "payment_method.attached"


class EventData(BaseModel):
    object: dict[str, Any] = Field(default_factory=dict)


class WebhookEvent(BaseModel):
    """Provider event payload: a `type` tag plus the affected object."""

    id: str | None = None
    type: str = Field(min_length=1)
    data: EventData = Field(default_factory=EventData)

    @property
    def kind(self) -> EventKind | None:
        try:
            return EventKind(self.type)
        except ValueError:
            return None


class SetupIntentRequest(BaseModel):
    """Optional customer details for `POST /create-setup-intent`."""

    name: str | None = None
    email: str | None = None
    description: str | None = None


class PublicKeyResponse(BaseModel):
    publicKey: str


class InvoiceResponse(BaseModel):
    """Wrapper around the paid invoice object returned by the provider."""

    invoice: dict[str, Any]
