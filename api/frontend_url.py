from urllib.parse import urlsplit

from fastapi import Request

from app_logging import get_logger

logger = get_logger("frontend_url")


def resolve_frontend_url(request: Request, fallback: str) -> str:
    """
    Base URL of the frontend that made this request, so checkout redirects go
    back to the same deployment. Checked in order: Origin, Referer,
    X-Forwarded-Host (+ X-Forwarded-Proto, default https), then `fallback`.
    """
    origin = request.headers.get("origin")
    if origin:
        return origin.rstrip("/")

    referer = request.headers.get("referer")
    if referer:
        parts = urlsplit(referer)
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{parts.netloc}"
        logger.warning("invalid_referer", referer=referer)

    forwarded_host = request.headers.get("x-forwarded-host")
    if forwarded_host:
        proto = request.headers.get("x-forwarded-proto") or "https"
        return f"{proto}://{forwarded_host}"

    return fallback.rstrip("/")
