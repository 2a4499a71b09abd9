"""Excepciones de dominio y handlers JSON para FastAPI"""
from typing import Any, Dict, Optional
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


class ReservationAPIError(Exception):
    """Error base: se renderiza como {success: false, error, code, ...}"""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"success": False, "error": self.message, "code": self.code}
        body.update(self.details)
        return body


class ValidationError(ReservationAPIError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(ReservationAPIError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(ReservationAPIError):
    status_code = 409
    code = "CONFLICT"


class DocumentIOError(ReservationAPIError):
    status_code = 500
    code = "DOCUMENT_IO_ERROR"


class PaymentProviderError(ReservationAPIError):
    status_code = 502
    code = "PAYMENT_PROVIDER_ERROR"


def reservation_api_error_handler(request: Request, exc: ReservationAPIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} en {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Cuerpos que no son JSON (o no son un objeto) llegan aquí antes de la validación propia"""
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "El cuerpo de la solicitud debe ser un objeto JSON válido",
            "code": "INVALID_JSON",
            "details": [
                {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
                for err in exc.errors()
            ],
        },
    )


def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Error no controlado en {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Error interno del servidor", "code": "INTERNAL_ERROR"},
    )
