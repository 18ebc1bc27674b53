from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy.orm import Session

from app_errors import AlreadyPaidError, ForbiddenError, NotFoundError, ValidationError
from app_logging import get_logger
from booking_schemas import (
    BookingCreate,
    BookingOut,
    CheckoutOut,
    HotelBookingOut,
    PaymentStatusOut,
    Requester,
    SessionBooking,
    SessionStatusOut,
    UserBookingOut,
)
from identity_gate import Principal
from payments.gateway import MissingSignatureError, PaymentGateway, WebhookEvent
from persistence import crud
from persistence.models import BookingModel, PaymentStatus, canonical_id

logger = get_logger("booking_lifecycle")

CHECKOUT_COMPLETED = "checkout.session.completed"
CHECKOUT_EXPIRED = "checkout.session.expired"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"


def nights_between(check_in: datetime, check_out: datetime) -> int:
    """Whole nights, at least one (same-day stays are charged one night)."""
    return max(1, (check_out - check_in).days)


def price_for_stay(price_per_night: float, check_in: datetime, check_out: datetime) -> int:
    """Total in minor currency units (cents), rounded half up."""
    total = Decimal(str(price_per_night)) * nights_between(check_in, check_out) * 100
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _booking_id(booking_id: str) -> str:
    canonical = canonical_id(booking_id)
    if canonical is None:
        raise ValidationError("Invalid booking ID format", bookingId=booking_id)
    return canonical


class BookingLifecycle:
    """
    Booking creation, checkout and payment reconciliation.

    A booking is created PENDING and moves to PAID exactly once, either when the
    provider's webhook reports a completed checkout session, or when a direct
    session poll sees the session paid. Both paths apply the same idempotent update,
    so they may race safely. Nothing ever moves a booking back to PENDING.
    """

    def __init__(self, db: Session, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway

    # --- creation & reads ---

    def create_booking(self, data: BookingCreate, principal: Principal) -> BookingModel:
        # The owner is always the authenticated principal, never a client-supplied id
        hotel_id = canonical_id(data.hotel_id)
        if hotel_id is None:
            raise ValidationError("Invalid hotel ID")
        if crud.get_hotel_by_id(self.db, hotel_id) is None:
            raise NotFoundError("Hotel not found")

        booking = crud.create_booking(
            self.db,
            hotel_id=hotel_id,
            user_id=principal.user_id,
            check_in=data.check_in,
            check_out=data.check_out,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            phone_number=data.phone_number,
            room_number=data.room_number,
            payment_method=data.payment_method,
        )
        logger.info("booking_created", booking_id=booking.id, hotel_id=hotel_id, user_id=principal.user_id)
        return booking

    def list_bookings(self) -> List[BookingOut]:
        return [BookingOut.model_validate(b) for b in crud.list_bookings(self.db)]

    def list_bookings_for_hotel(self, hotel_id: str) -> List[HotelBookingOut]:
        """Bookings of one hotel, each joined to the requester's shadow user record (if any)."""
        bookings = crud.list_bookings_for_hotel(self.db, canonical_id(hotel_id) or hotel_id)
        users = crud.get_users_by_ids(self.db, {b.user_id for b in bookings})
        out = []
        for booking in bookings:
            row = HotelBookingOut.model_validate(booking)
            user = users.get(booking.user_id)
            if user is not None:
                row.user = Requester.model_validate(user)
            out.append(row)
        return out

    def list_bookings_for_user(self, principal: Principal, user_id: Optional[str] = None) -> List[UserBookingOut]:
        """Bookings of one user (default: the caller), each joined to its hotel's name."""
        user_id = user_id or principal.user_id
        if user_id != principal.user_id and not principal.is_admin:
            raise ForbiddenError("Not allowed to read another user's bookings")

        bookings = crud.list_bookings_for_user(self.db, user_id)
        hotels = crud.get_hotels_by_ids(self.db, {b.hotel_id for b in bookings})
        out = []
        for booking in bookings:
            row = UserBookingOut.model_validate(booking)
            hotel = hotels.get(booking.hotel_id)
            row.hotel_name = hotel.name if hotel is not None else None
            out.append(row)
        return out

    # --- checkout ---

    def initiate_checkout(self, booking_id: str, frontend_url: str) -> CheckoutOut:
        booking_id = _booking_id(booking_id)
        booking = crud.get_booking_by_id(self.db, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        if booking.payment_status == PaymentStatus.PAID:
            raise AlreadyPaidError("Booking is already paid")

        hotel = crud.get_hotel_by_id(self.db, booking.hotel_id)
        if hotel is None:
            raise NotFoundError("Hotel not found")

        amount = price_for_stay(hotel.price, booking.check_in, booking.check_out)

        # embed ids in metadata so the webhook can find the booking again
        metadata = {
            "bookingId": booking.id,
            "hotelId": booking.hotel_id,
            "userId": booking.user_id,
        }
        success_url = (
            f"{frontend_url}/verify-payment?session_id={{CHECKOUT_SESSION_ID}}&bookingId={booking.id}"
        )
        cancel_url = f"{frontend_url}/hotels/{hotel.id}?paymentCancelled=true&bookingId={booking.id}"

        session = self.gateway.create_session(
            amount,
            f"Booking for {hotel.name}",
            f"Check-in: {booking.check_in.date().isoformat()} - Check-out: {booking.check_out.date().isoformat()}",
            metadata,
            success_url,
            cancel_url,
        )
        logger.info("checkout_initiated", booking_id=booking.id, session_id=session.id, amount=amount)
        return CheckoutOut(session_id=session.id, session_url=session.url)

    # --- reconciliation ---

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify and apply one provider event. Raises SignatureError when the event
        cannot be authenticated; in that case nothing is written.
        Once verified, every event is accepted, matched to a booking or not.
        """
        if not signature:
            raise MissingSignatureError("Stripe signature missing")
        event = self.gateway.verify_webhook_signature(payload, signature)
        logger.info("webhook_received", event_type=event.type)

        if event.type == CHECKOUT_COMPLETED:
            booking_id = event.metadata.get("bookingId")
            if not booking_id:
                logger.error("webhook_missing_booking_id", session_id=event.object.get("id"))
            else:
                self._mark_paid(booking_id, source="webhook")
        elif event.type == CHECKOUT_EXPIRED:
            # abandoned checkout: booking stays PENDING and can be checked out again
            logger.info("checkout_expired", booking_id=event.metadata.get("bookingId"))
        elif event.type == PAYMENT_INTENT_SUCCEEDED:
            # duplicate of checkout.session.completed for Checkout payments
            logger.info("payment_intent_succeeded", payment_intent=event.object.get("id"))
        else:
            logger.info("webhook_unhandled", event_type=event.type)
        return event

    def verify_payment_status(self, booking_id: str) -> PaymentStatusOut:
        """Locally reconciled status only; may lag the provider until the webhook lands."""
        booking_id = _booking_id(booking_id)
        booking = crud.get_booking_by_id(self.db, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found", bookingId=booking_id)
        return PaymentStatusOut(
            payment_status=booking.payment_status,
            booking_id=booking.id,
            check_in=booking.check_in,
            check_out=booking.check_out,
            first_name=booking.first_name,
            last_name=booking.last_name,
        )

    def check_session_status(self, session_id: str) -> SessionStatusOut:
        """
        Poll the provider for a session. Closes the window where the customer is
        back from the hosted page before the webhook has arrived.
        """
        snapshot = self.gateway.retrieve_session(session_id)
        out = SessionStatusOut(
            stripe_session_status=snapshot.status,
            stripe_payment_status=snapshot.payment_status,
            customer_email=snapshot.customer_email,
        )

        raw_booking_id = snapshot.metadata.get("bookingId")
        if not raw_booking_id:
            out.message = "No booking ID in metadata"
            return out

        out.booking_id = raw_booking_id
        booking_id = canonical_id(raw_booking_id)
        if booking_id is not None and snapshot.payment_status == "paid":
            self._mark_paid(booking_id, source="session_poll")

        booking = crud.get_booking_by_id(self.db, booking_id) if booking_id else None
        if booking is None:
            out.message = "Booking not found"
            return out

        hotel = crud.get_hotel_by_id(self.db, booking.hotel_id)
        out.booking = SessionBooking(
            id=booking.id,
            check_in=booking.check_in,
            check_out=booking.check_out,
            first_name=booking.first_name,
            last_name=booking.last_name,
            room_number=booking.room_number,
            payment_status=booking.payment_status,
            hotel_name=hotel.name if hotel is not None else "Hotel Booking",
        )
        return out

    def _mark_paid(self, booking_id: str, source: str) -> bool:
        canonical = canonical_id(booking_id)
        updated = canonical is not None and crud.mark_booking_paid(self.db, canonical)
        if updated:
            logger.info("booking_marked_paid", booking_id=booking_id, source=source)
        else:
            logger.error("booking_not_found_for_payment", booking_id=booking_id, source=source)
        return updated
