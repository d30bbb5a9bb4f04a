"""
Webhook Routes

Handle incoming webhooks from Stripe.
"""

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import ORJSONResponse
import structlog

from billhook.core.models import WebhookEnvelope
from billhook.webhooks import WebhookDispatcher

router = APIRouter()
logger = structlog.get_logger()


def get_dispatcher(request: Request) -> WebhookDispatcher:
    """Dispatcher created during application startup."""
    return request.app.state.dispatcher


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
):
    """Handle Stripe webhook events."""
    # The body must reach the verifier byte-for-byte.
    payload = await request.body()

    result = await dispatcher.handle(
        WebhookEnvelope(raw_body=payload, signature=stripe_signature)
    )

    if not result.received:
        return ORJSONResponse(
            status_code=400,
            content=result.model_dump(mode="json", include={"received", "error"}),
        )

    logger.info(
        "Stripe webhook processed",
        event_type=result.event_type,
        handled=result.handled,
    )
    return {"received": True}
