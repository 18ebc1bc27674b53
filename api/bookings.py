from typing import List, Optional

from fastapi import APIRouter, Depends, Response

from api.deps import get_lifecycle, require_principal
from booking_lifecycle import BookingLifecycle
from booking_schemas import BookingCreate, BookingOut, HotelBookingOut, UserBookingOut
from identity_gate import Principal

router = APIRouter(prefix="/api/bookings", tags=["bookings"], dependencies=[Depends(require_principal)])


@router.post("", status_code=201)
def create_booking(
    data: BookingCreate,
    principal: Principal = Depends(require_principal),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    lifecycle.create_booking(data, principal)
    return Response(status_code=201)


@router.get("", response_model=List[BookingOut])
def get_all_bookings(lifecycle: BookingLifecycle = Depends(get_lifecycle)):
    return lifecycle.list_bookings()


@router.get("/hotels/{hotel_id}", response_model=List[HotelBookingOut])
def get_all_bookings_for_hotel(hotel_id: str, lifecycle: BookingLifecycle = Depends(get_lifecycle)):
    return lifecycle.list_bookings_for_hotel(hotel_id)


@router.get("/user", response_model=List[UserBookingOut])
@router.get("/user/{user_id}", response_model=List[UserBookingOut])
def get_bookings_for_user(
    user_id: Optional[str] = None,
    principal: Principal = Depends(require_principal),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    return lifecycle.list_bookings_for_user(principal, user_id)
