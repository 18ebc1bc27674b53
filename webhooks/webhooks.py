from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.deps import get_lifecycle
from app_logging import get_logger
from booking_lifecycle import BookingLifecycle
from payments.gateway import MissingSignatureError, SignatureError

router = APIRouter(prefix="/api/payment", tags=["payment"])

logger = get_logger("webhooks")


@router.post("/webhook")
async def stripe_webhook(request: Request, lifecycle: BookingLifecycle = Depends(get_lifecycle)):
    """
    Stripe event receiver. Public, and reads the raw body: the signature is
    computed over the exact bytes Stripe sent.

    200 for every verified event, matched to a booking or not, so Stripe stops
    redelivering. 400 for a missing or bad signature. Processing failures after
    verification propagate as 5xx and Stripe retries them.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        lifecycle.handle_webhook(payload, signature)
    except MissingSignatureError:
        logger.warning("webhook_signature_missing")
        return JSONResponse(status_code=400, content={"message": "Stripe signature missing"})
    except SignatureError as e:
        logger.warning("webhook_signature_invalid", error=str(e))
        return JSONResponse(status_code=400, content={"message": "Webhook error"})

    return {"received": True}
