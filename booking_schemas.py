from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator, model_validator
from pydantic.alias_generators import to_camel

from persistence.models import PaymentMethod, PaymentStatus


class CamelModel(BaseModel):
    # JSON on the wire is camelCase (hotelId, checkIn, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# --- hotels ---

class HotelIn(CamelModel):
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    rating: Optional[float] = Field(default=None, ge=1, le=5)
    reviews: Optional[int] = Field(default=None, ge=0)
    image: str
    price: float = Field(gt=0)   # per night, major currency unit
    description: str


class HotelOut(HotelIn):
    id: str


class HotelMatch(CamelModel):
    hotel: HotelOut
    confidence: float


class PromptIn(CamelModel):
    prompt: str = Field(min_length=1)


# --- users ---

class UserIn(CamelModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)


class UserOut(UserIn):
    id: str


# --- bookings ---

class BookingCreate(CamelModel):
    hotel_id: str
    check_in: datetime
    check_out: datetime
    first_name: str
    last_name: str
    email: str
    phone_number: str
    room_number: StrictInt = Field(gt=0)
    payment_method: PaymentMethod = PaymentMethod.CARD

    @field_validator("check_in", "check_out")
    @classmethod
    def _to_naive_utc(cls, value: datetime) -> datetime:
        return _naive_utc(value)

    @model_validator(mode="after")
    def _check_out_not_before_check_in(self):
        if self.check_out < self.check_in:
            raise ValueError("checkOut must not be before checkIn")
        return self


class BookingOut(CamelModel):
    id: str
    hotel_id: str
    user_id: str
    check_in: datetime
    check_out: datetime
    first_name: str
    last_name: str
    email: str
    phone_number: str
    room_number: int
    payment_status: PaymentStatus
    payment_method: PaymentMethod


class Requester(CamelModel):
    id: str
    name: str
    email: str


class HotelBookingOut(BookingOut):
    user: Optional[Requester] = None


class UserBookingOut(BookingOut):
    hotel_name: Optional[str] = None


# --- payments ---

class CheckoutOut(CamelModel):
    session_id: str
    session_url: str


class PaymentStatusOut(CamelModel):
    payment_status: PaymentStatus
    booking_id: str
    check_in: datetime
    check_out: datetime
    first_name: str
    last_name: str


class SessionBooking(CamelModel):
    id: str
    check_in: datetime
    check_out: datetime
    first_name: str
    last_name: str
    room_number: int
    payment_status: PaymentStatus
    hotel_name: str


class SessionStatusOut(CamelModel):
    success: bool = True
    message: Optional[str] = None
    booking_id: Optional[str] = None
    booking: Optional[SessionBooking] = None
    stripe_session_status: Optional[str] = None
    stripe_payment_status: Optional[str] = None
    customer_email: Optional[str] = None


class WebhookAck(CamelModel):
    received: bool = True
