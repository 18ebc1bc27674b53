from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import stripe

from app_errors import PaymentProviderError
from app_logging import get_logger

logger = get_logger("payment_gateway")


class SignatureError(Exception):
    """Webhook payload could not be authenticated or parsed."""


class MissingSignatureError(SignatureError):
    """Webhook request carried no Stripe-Signature header."""


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


@dataclass(frozen=True)
class SessionSnapshot:
    id: str
    status: Optional[str]
    payment_status: Optional[str]
    metadata: Dict[str, str] = field(default_factory=dict)
    customer_email: Optional[str] = None
    amount_total: Optional[int] = None
    payment_intent: Optional[str] = None


@dataclass(frozen=True)
class WebhookEvent:
    type: str
    object: Dict[str, Any] = field(default_factory=dict)

    @property
    def metadata(self) -> Dict[str, str]:
        return self.object.get("metadata") or {}


class PaymentGateway(Protocol):
    def create_session(
        self,
        amount_minor_units: int,
        product_name: str,
        description: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        ...

    def verify_webhook_signature(self, payload: bytes, signature: str) -> WebhookEvent:
        ...

    def retrieve_session(self, session_id: str) -> SessionSnapshot:
        ...


def _plain(obj) -> Dict[str, Any]:
    """StripeObject (or dict) -> plain dict. StripeObject is not a dict subclass."""
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    return dict(obj.to_dict())


def _field(obj, name: str, default=None):
    if obj is None:
        return default
    if isinstance(obj, dict):
        value = obj.get(name)
    else:
        value = getattr(obj, name, None)
    return default if value is None else value


class StripeGateway:
    """
    Stripe Checkout behind the PaymentGateway interface.
    One instance per process, created at bootstrap around an explicit StripeClient.
    """

    def __init__(self, client: "stripe.StripeClient", webhook_secret: Optional[str], currency: str = "usd"):
        self.client = client
        self.webhook_secret = webhook_secret
        self.currency = currency

    @classmethod
    def from_settings(cls, settings) -> "StripeGateway":
        return cls(
            stripe.StripeClient(settings.stripe_api_key or ""),
            settings.stripe_webhook_secret,
            settings.payment_currency,
        )

    def create_session(
        self,
        amount_minor_units: int,
        product_name: str,
        description: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        params = {
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": product_name[:250], "description": description},
                        # Stripe expects unit_amount in the smallest currency unit
                        "unit_amount": amount_minor_units,
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        try:
            session = self.client.checkout.sessions.create(params=params)
        except stripe.StripeError as e:
            logger.error("checkout_session_create_failed", error=str(e))
            raise PaymentProviderError("Failed to create checkout session") from e
        logger.info("checkout_session_created", session_id=session.id, amount=amount_minor_units)
        return CheckoutSession(id=session.id, url=session.url)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> WebhookEvent:
        if not self.webhook_secret:
            # never accept unsigned events
            raise SignatureError("Webhook secret is not configured")
        try:
            event = self.client.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise SignatureError(str(e)) from e
        except ValueError as e:
            # payload is not valid JSON
            raise SignatureError(str(e)) from e
        obj = _plain(event.data.object)
        obj["metadata"] = _plain(obj.get("metadata"))
        return WebhookEvent(type=event.type, object=obj)

    def retrieve_session(self, session_id: str) -> SessionSnapshot:
        logger.info("checkout_session_retrieve", session_id=session_id)
        try:
            session = self.client.checkout.sessions.retrieve(session_id)
        except stripe.StripeError as e:
            logger.error("checkout_session_retrieve_failed", session_id=session_id, error=str(e))
            raise PaymentProviderError("Failed to retrieve checkout session") from e

        details = _field(session, "customer_details")
        payment_intent = _field(session, "payment_intent")
        if payment_intent is not None and not isinstance(payment_intent, str):
            payment_intent = _field(payment_intent, "id")
        return SessionSnapshot(
            id=session.id,
            status=_field(session, "status"),
            payment_status=_field(session, "payment_status"),
            metadata={k: str(v) for k, v in _plain(_field(session, "metadata")).items()},
            customer_email=_field(details, "email") if details else None,
            amount_total=_field(session, "amount_total"),
            payment_intent=payment_intent,
        )
