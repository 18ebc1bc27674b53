import time
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from api import bookings, checkout, hotels, users
from app_config import Settings
from app_errors import AppError
from app_logging import get_logger
from hotel_search import HotelSearch
from identity_gate import IdentityGate
from payments.gateway import PaymentGateway
from webhooks import webhooks

logger = get_logger("server")


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def create_app(
    settings: Settings,
    *,
    session_factory: sessionmaker,
    gateway: PaymentGateway,
    identity_gate: IdentityGate,
    search: Optional[HotelSearch] = None,
) -> FastAPI:
    """Build the HTTP app around adapters created by the caller."""
    app = FastAPI(title="Hotel Booking API", version="1.0.0")
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.gateway = gateway
    app.state.identity_gate = identity_gate
    app.state.search = search

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid4())
        start = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration, 2),
            request_id=request_id,
        )
        return response

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message, **exc.extra})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})

    app.include_router(hotels.router)
    app.include_router(bookings.router)
    app.include_router(checkout.router)
    app.include_router(webhooks.router)
    app.include_router(users.router)
    return app
