from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.deps import get_db, require_principal
from booking_schemas import UserIn, UserOut
from identity_gate import Principal
from persistence import crud

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserOut, status_code=201)
def create_user(data: UserIn, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    # identity lives with the identity provider; this is only a display copy
    return crud.upsert_user(db, principal.user_id, data.name, data.email)
