import enum
import uuid
from typing import Optional

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Enum

from .db import Base


def new_id() -> str:
    return str(uuid.uuid4())


def canonical_id(value) -> Optional[str]:
    """Canonical form of a record id, or None when `value` is not a well-formed id."""
    if not value or not isinstance(value, str):
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class PaymentMethod(str, enum.Enum):
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"


class HotelModel(Base):
    __tablename__ = "hotels"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False, index=True)
    rating = Column(Float, nullable=True)
    reviews = Column(Integer, nullable=True)
    image = Column(String(1024), nullable=False)
    price = Column(Float, nullable=False)
    description = Column(Text, nullable=False)


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)
    # reference by id; hotels can be deleted while bookings remain
    hotel_id = Column(String(36), nullable=False, index=True)
    # identity provider's user id, not a key into users
    user_id = Column(String(255), nullable=False, index=True)
    check_in = Column(DateTime, nullable=False)
    check_out = Column(DateTime, nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(64), nullable=False)
    room_number = Column(Integer, nullable=False)
    payment_status = Column(
        Enum(PaymentStatus, native_enum=False, length=16),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_method = Column(
        Enum(PaymentMethod, native_enum=False, length=16),
        nullable=False,
        default=PaymentMethod.CARD,
    )


class UserModel(Base):
    """Shadow copy of an identity provider user, keyed by the provider's user id."""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
