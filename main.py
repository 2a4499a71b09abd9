"""API de reservas de tickets de bus - Punto de entrada de la aplicación"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse
import logging
import os
import time
from contextlib import asynccontextmanager

import psutil

from app.core.config import settings
from shared.database.connection import init_db, close_db
from shared.utils.errors import (
    ReservationAPIError,
    reservation_api_error_handler,
    request_validation_error_handler,
    unhandled_error_handler,
)
from shared.utils.rate_limiter import limiter, rate_limit_exceeded_handler
from services.payments.services.payment_processor import build_payment_processor

# Configurar logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "bus-reservations-api"
STARTED_AT = time.time()

AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /health",
    "GET /routes",
    "POST /tickets",
    "GET /tickets",
    "GET /tickets/:id",
    "PATCH /tickets/:id",
    "POST /process-payment",
    "GET /payment-status/:payment_id",
    "GET /payments",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events de la aplicación"""
    logger.info("Iniciando aplicación...")
    await init_db()
    # Sin credencial para el gateway real el arranque falla aquí
    app.state.payment_processor = build_payment_processor(settings)
    logger.info(f"Aplicación iniciada (procesador de pagos: {app.state.payment_processor.name})")
    yield
    logger.info("Cerrando aplicación...")
    await close_db()
    logger.info("Aplicación cerrada")


app = FastAPI(
    title="API de Reservas de Buses",
    description="Backend para consulta de rutas, reservas de pasajes y pagos",
    version="1.0.0",
    lifespan=lifespan
)

if settings.APP_ENV == "development":
    logger.info("Modo desarrollo: CORS configurado para permitir todos los orígenes")
    allow_origins = ["*"]
    allow_credentials = False  # No se puede usar credentials con allow_origins=["*"]
else:
    allow_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]
    allow_credentials = True
    logger.info(f"CORS origins configurados: {allow_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(ReservationAPIError, reservation_api_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Rutas inexistentes responden con el directorio de endpoints"""
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Endpoint no encontrado",
                "code": "ENDPOINT_NOT_FOUND",
                "path": request.url.path,
                "availableEndpoints": AVAILABLE_ENDPOINTS,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


# Incluir routers de cada servicio
from services.route_catalog.routes.routes import router as routes_router
from services.reservations.routes.tickets import router as tickets_router
from services.payments.routes.payments import router as payments_router

app.include_router(routes_router, tags=["routes"])
app.include_router(tickets_router, tags=["tickets"])
app.include_router(payments_router, tags=["payments"])


@app.get("/")
async def root():
    return {
        "message": "🚍 API de Rutas de Buses funcionando",
        "service": SERVICE_NAME,
        "version": app.version,
        "endpoints": AVAILABLE_ENDPOINTS,
    }


@app.get("/health")
async def health():
    """Health check: uptime, memoria del proceso y configuración presente"""
    memory = psutil.Process(os.getpid()).memory_info()
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "uptime_seconds": round(time.time() - STARTED_AT, 3),
        "memory": {"rss_bytes": memory.rss, "vms_bytes": memory.vms},
        "config": {
            "environment": settings.APP_ENV,
            "payment_provider": settings.PAYMENT_PROVIDER,
            "payment_provider_token": bool(settings.PAYMENT_PROVIDER_TOKEN),
            "data_dir": os.path.isdir(settings.DATA_DIR),
            "rate_limit_enabled": settings.RATE_LIMIT_ENABLED,
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.APP_ENV == "development"
    )
