from fastapi import APIRouter, Depends, Request

from api.deps import get_lifecycle, require_principal
from api.frontend_url import resolve_frontend_url
from booking_lifecycle import BookingLifecycle
from booking_schemas import CheckoutOut, PaymentStatusOut, SessionStatusOut

router = APIRouter(prefix="/api/payment", tags=["payment"])


@router.post("/checkout/{booking_id}", response_model=CheckoutOut, dependencies=[Depends(require_principal)])
def create_checkout(booking_id: str, request: Request, lifecycle: BookingLifecycle = Depends(get_lifecycle)):
    """Returns the hosted checkout URL; the frontend redirects the customer there."""
    frontend_url = resolve_frontend_url(request, request.app.state.settings.frontend_url)
    return lifecycle.initiate_checkout(booking_id, frontend_url)


@router.get("/status/{booking_id}", response_model=PaymentStatusOut)
def verify_payment_status(booking_id: str, lifecycle: BookingLifecycle = Depends(get_lifecycle)):
    return lifecycle.verify_payment_status(booking_id)


@router.get("/session/{session_id}", response_model=SessionStatusOut)
def check_session_status(session_id: str, lifecycle: BookingLifecycle = Depends(get_lifecycle)):
    return lifecycle.check_session_status(session_id)
