from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

import hotel_catalog
from api.deps import get_db, get_search, require_admin
from booking_schemas import HotelIn, HotelMatch, HotelOut, PromptIn

router = APIRouter(prefix="/api/hotels", tags=["hotels"])


@router.get("", response_model=List[HotelOut])
def get_all_hotels(db: Session = Depends(get_db)):
    return hotel_catalog.list_hotels(db)


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_hotel(data: HotelIn, db: Session = Depends(get_db)):
    hotel_catalog.create_hotel(db, data)
    return Response(status_code=201)


# Fixed paths must be declared before /{hotel_id}

@router.get("/filter", response_model=List[HotelOut])
def get_filtered_sorted_hotels(
    location: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: Session = Depends(get_db),
):
    return hotel_catalog.filter_hotels(db, location, sort_by, sort_order)


@router.post("/embeddings/create", dependencies=[Depends(require_admin)])
def create_embeddings(db: Session = Depends(get_db), search=Depends(get_search)):
    count = hotel_catalog.index_catalog(db, search)
    return {"message": "Embeddings created successfully", "count": count}


@router.get("/search/retrieve", response_model=List[HotelMatch])
def retrieve(query: Optional[str] = None, db: Session = Depends(get_db), search=Depends(get_search)):
    return [
        HotelMatch(hotel=HotelOut.model_validate(hotel), confidence=score)
        for hotel, score in hotel_catalog.search_hotels(db, search, query)
    ]


@router.post("/llm")
def generate_response(data: PromptIn, search=Depends(get_search)):
    content = hotel_catalog.chat(search, data.prompt)
    return {"message": {"role": "assistant", "content": content}}


@router.get("/{hotel_id}", response_model=HotelOut)
def get_hotel_by_id(hotel_id: str, db: Session = Depends(get_db)):
    return hotel_catalog.get_hotel(db, hotel_id)


@router.put("/{hotel_id}", dependencies=[Depends(require_admin)])
def update_hotel(hotel_id: str, data: HotelIn, db: Session = Depends(get_db)):
    hotel_catalog.replace_hotel(db, hotel_id, data)
    return Response(status_code=200)


@router.delete("/{hotel_id}", dependencies=[Depends(require_admin)])
def delete_hotel(hotel_id: str, db: Session = Depends(get_db)):
    hotel_catalog.delete_hotel(db, hotel_id)
    return Response(status_code=200)
