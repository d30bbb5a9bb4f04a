"""
Stripe Signature Verification

Checks the Stripe-Signature header against the untouched request body
before anything is parsed or dispatched.
"""

import hashlib
import hmac
import time

import orjson
import stripe
import structlog

from billhook.core.exceptions import VerificationError
from billhook.core.models import BillingEvent

logger = structlog.get_logger()

DEFAULT_TOLERANCE = 300  # seconds


def sign_payload(raw_body: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header for a payload, for local testing."""
    if timestamp is None:
        timestamp = int(time.time())
    signed_payload = f"{timestamp}.".encode("utf-8") + raw_body
    signature = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


class SignatureVerifier:
    """Validates webhook deliveries with the endpoint signing secret."""

    def __init__(self, secret: str, tolerance: int = DEFAULT_TOLERANCE):
        self.secret = secret
        self.tolerance = tolerance

    def verify(self, raw_body: bytes | None, signature: str | None) -> BillingEvent:
        """
        Verify and parse a delivery.

        Args:
            raw_body: Request body exactly as received
            signature: Value of the Stripe-Signature header

        Returns:
            The parsed event

        Raises:
            VerificationError: Missing input, bad signature, stale timestamp
                or a body that is not an event object
        """
        if not raw_body or not signature:
            raise VerificationError("Missing raw body or signature")

        if not self.secret:
            raise VerificationError("Webhook signing secret is not configured")

        try:
            payload = raw_body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise VerificationError("Body is not valid UTF-8") from e

        try:
            stripe.WebhookSignature.verify_header(
                payload,
                signature,
                self.secret,
                self.tolerance,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature")
            raise VerificationError("Invalid signature") from e

        try:
            data = orjson.loads(raw_body)
        except orjson.JSONDecodeError as e:
            raise VerificationError("Body is not valid JSON") from e

        if not isinstance(data, dict) or not isinstance(data.get("type"), str):
            raise VerificationError("Body is not a Stripe event")

        event_data = data.get("data") or {}
        event_object = event_data.get("object") if isinstance(event_data, dict) else None
        if not isinstance(event_object, dict):
            raise VerificationError("Event object is malformed")

        return BillingEvent(id=data.get("id"), type=data["type"], object=event_object)
