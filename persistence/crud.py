from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from .models import BookingModel, HotelModel, PaymentMethod, PaymentStatus, UserModel


def _escape_like(value: str) -> str:
    # user text is matched literally inside LIKE patterns
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# --- hotels ---

def create_hotel(db: Session, **fields) -> HotelModel:
    hotel = HotelModel(**fields)
    db.add(hotel)
    db.commit()
    return hotel


def get_hotel_by_id(db: Session, hotel_id: str) -> Optional[HotelModel]:
    return db.get(HotelModel, hotel_id)


def get_hotels_by_ids(db: Session, hotel_ids: Iterable[str]) -> Dict[str, HotelModel]:
    ids = set(hotel_ids)
    if not ids:
        return {}
    rows = db.execute(select(HotelModel).where(HotelModel.id.in_(ids))).scalars()
    return {hotel.id: hotel for hotel in rows}


def list_hotels(db: Session) -> List[HotelModel]:
    return list(db.execute(select(HotelModel)).scalars())


def filter_hotels(
    db: Session,
    locations: Sequence[str] = (),
    price_order: Optional[str] = None,
) -> List[HotelModel]:
    """
    Hotels whose location contains any of `locations` (case-insensitive),
    optionally ordered by price ('asc' or 'desc').
    """
    stmt = select(HotelModel)
    if locations:
        stmt = stmt.where(
            or_(*[HotelModel.location.ilike(f"%{_escape_like(loc)}%", escape="\\") for loc in locations])
        )
    if price_order == "asc":
        stmt = stmt.order_by(HotelModel.price.asc())
    elif price_order == "desc":
        stmt = stmt.order_by(HotelModel.price.desc())
    return list(db.execute(stmt).scalars())


def replace_hotel(db: Session, hotel: HotelModel, **fields) -> HotelModel:
    for key, value in fields.items():
        setattr(hotel, key, value)
    db.add(hotel)
    db.commit()
    return hotel


def delete_hotel(db: Session, hotel_id: str) -> bool:
    hotel = db.get(HotelModel, hotel_id)
    if hotel is None:
        return False
    db.delete(hotel)
    db.commit()
    return True


# --- bookings ---

def create_booking(db: Session, **fields) -> BookingModel:
    booking = BookingModel(
        payment_status=PaymentStatus.PENDING,
        **fields,
    )
    db.add(booking)
    db.commit()
    return booking


def get_booking_by_id(db: Session, booking_id: str) -> Optional[BookingModel]:
    return db.get(BookingModel, booking_id)


def list_bookings(db: Session) -> List[BookingModel]:
    return list(db.execute(select(BookingModel)).scalars())


def list_bookings_for_hotel(db: Session, hotel_id: str) -> List[BookingModel]:
    stmt = select(BookingModel).where(BookingModel.hotel_id == hotel_id)
    return list(db.execute(stmt).scalars())


def list_bookings_for_user(db: Session, user_id: str) -> List[BookingModel]:
    stmt = select(BookingModel).where(BookingModel.user_id == user_id)
    return list(db.execute(stmt).scalars())


def mark_booking_paid(db: Session, booking_id: str) -> bool:
    """
    Set PAID/CARD on a booking. A single UPDATE to a fixed target value, so
    concurrent or repeated calls converge on the same row state.
    Returns False when no booking has that id.
    """
    result = db.execute(
        update(BookingModel)
        .where(BookingModel.id == booking_id)
        .values(payment_status=PaymentStatus.PAID, payment_method=PaymentMethod.CARD)
        .execution_options(synchronize_session="fetch")
    )
    db.commit()
    return result.rowcount > 0


# --- users ---

def upsert_user(db: Session, user_id: str, name: str, email: str) -> UserModel:
    user = db.get(UserModel, user_id)
    if user is None:
        user = UserModel(id=user_id, name=name, email=email)
    else:
        user.name = name
        user.email = email
    db.add(user)
    db.commit()
    return user


def get_users_by_ids(db: Session, user_ids: Iterable[str]) -> Dict[str, UserModel]:
    ids = set(user_ids)
    if not ids:
        return {}
    rows = db.execute(select(UserModel).where(UserModel.id.in_(ids))).scalars()
    return {user.id: user for user in rows}
