from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app_errors import ForbiddenError, UnauthorizedError
from booking_lifecycle import BookingLifecycle
from identity_gate import Principal


def get_db(request: Request):
    """
    One session per request. Writes are committed by the crud functions, inside
    the request, so a failed commit surfaces as an error response; teardown here
    runs after the response and only rolls back and closes.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_principal(request: Request) -> Optional[Principal]:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return request.app.state.identity_gate.authenticate(token.strip())


def require_principal(principal: Optional[Principal] = Depends(get_principal)) -> Principal:
    if principal is None:
        raise UnauthorizedError("Unauthorized")
    return principal


def require_admin(principal: Principal = Depends(require_principal)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")
    return principal


def get_lifecycle(request: Request, db: Session = Depends(get_db)) -> BookingLifecycle:
    return BookingLifecycle(db, request.app.state.gateway)


def get_search(request: Request):
    return request.app.state.search
