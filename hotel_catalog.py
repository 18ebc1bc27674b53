from typing import List, Optional

from sqlalchemy.orm import Session

from app_errors import NotFoundError, SearchUnavailableError, ValidationError
from app_logging import get_logger
from booking_schemas import HotelIn
from hotel_search import HotelSearch
from persistence import crud
from persistence.models import HotelModel, canonical_id

logger = get_logger("hotel_catalog")


def _hotel_id(hotel_id: str) -> str:
    canonical = canonical_id(hotel_id)
    if canonical is None:
        raise ValidationError("Invalid hotel ID")
    return canonical


def list_hotels(db: Session) -> List[HotelModel]:
    return crud.list_hotels(db)


def get_hotel(db: Session, hotel_id: str) -> HotelModel:
    hotel = crud.get_hotel_by_id(db, _hotel_id(hotel_id))
    if hotel is None:
        raise NotFoundError("Hotel not found")
    return hotel


def create_hotel(db: Session, data: HotelIn) -> HotelModel:
    hotel = crud.create_hotel(db, **data.model_dump())
    logger.info("hotel_created", hotel_id=hotel.id)
    return hotel


def replace_hotel(db: Session, hotel_id: str, data: HotelIn) -> HotelModel:
    """Full replace: optional fields left out of `data` are cleared."""
    hotel = get_hotel(db, hotel_id)
    return crud.replace_hotel(db, hotel, **data.model_dump())


def delete_hotel(db: Session, hotel_id: str) -> None:
    deleted = crud.delete_hotel(db, _hotel_id(hotel_id))
    logger.info("hotel_deleted", hotel_id=hotel_id, existed=deleted)


def filter_hotels(
    db: Session,
    location: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> List[HotelModel]:
    """
    location: one location or a comma-separated list of alternatives; "All" disables the filter.
    sort_by: only "price" is supported, with sort_order "asc" or "desc". Anything else is unsorted.
    """
    locations = []
    if location and location != "All":
        locations = [part.strip() for part in location.split(",") if part.strip()]

    price_order = None
    if sort_by == "price" and sort_order in ("asc", "desc"):
        price_order = sort_order

    hotels = crud.filter_hotels(db, locations, price_order)
    logger.info("hotels_filtered", locations=locations, price_order=price_order, count=len(hotels))
    return hotels


# --- search / chat ---

def _require_search(search: Optional[HotelSearch]) -> HotelSearch:
    if search is None:
        raise SearchUnavailableError("Search is not configured")
    return search


def index_catalog(db: Session, search: Optional[HotelSearch]) -> int:
    return _require_search(search).index_hotels(crud.list_hotels(db))


def search_hotels(db: Session, search: Optional[HotelSearch], query: Optional[str], limit: int = 4):
    """
    [(hotel, confidence)] for a free-text query. An empty query returns every
    hotel with confidence 1. Matches whose hotel no longer exists are dropped.
    """
    if not query or not query.strip():
        return [(hotel, 1.0) for hotel in crud.list_hotels(db)]

    matches = _require_search(search).search(query, k=limit)
    hotels = crud.get_hotels_by_ids(db, [hotel_id for hotel_id, _ in matches])
    return [(hotels[hotel_id], score) for hotel_id, score in matches if hotel_id in hotels]


def chat(search: Optional[HotelSearch], prompt: str) -> str:
    return _require_search(search).chat(prompt)
