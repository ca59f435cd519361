"""Translate domain errors into HTTP responses."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from marketplace.core.errors import BookingConflict, ReservationEngineError


def to_http_exception(exc: ValueError) -> HTTPException:
    """Map a service-layer ``ValueError`` onto an ``HTTPException``.

    Engine errors keep their own status code and expose ``reason`` so clients
    can branch without parsing messages.
    """
    if not isinstance(exc, ReservationEngineError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    detail: dict[str, Any] = {"message": str(exc), "reason": exc.reason}
    if isinstance(exc, BookingConflict):
        detail["remaining"] = exc.remaining
        detail["capacity"] = exc.capacity
    return HTTPException(status_code=exc.status_code, detail=detail)


__all__ = ["to_http_exception"]
