"""
Rate limiting por cliente con slowapi.

El contador vive en memoria del proceso salvo que RATE_LIMIT_STORAGE_URI
apunte a un backend compartido (ej. redis://).
"""
import logging

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)


def client_key(request: Request) -> str:
    """IP del cliente; detrás de un proxy de confianza se usa el primer X-Forwarded-For"""
    if settings.RATE_LIMIT_TRUST_PROXY:
        forwarded = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return get_remote_address(request)


limiter = Limiter(
    key_func=client_key,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    headers_enabled=False,  # Las rutas devuelven dicts, no Response
    enabled=settings.RATE_LIMIT_ENABLED,
)

# Límites por tipo de operación
RATE_LIMITS = {
    "reservation": settings.RATE_LIMIT_RESERVATIONS,
    # Cada intento de pago queda registrado aunque sea rechazado
    "payment": settings.RATE_LIMIT_PAYMENTS,
}


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    logger.warning(f"Rate limit excedido por {client_key(request)} en {request.url.path} ({exc.detail})")
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "Demasiadas solicitudes. Por favor espera antes de intentar nuevamente.",
            "code": "RATE_LIMIT_EXCEEDED",
            "limit": exc.detail,
        },
        headers={"Retry-After": "60"},
    )
