from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.config import Settings, get_settings

from .clock import Clock, utc_now
from .endpoints import health_router, sensor_data_router
from .handlers import IngestionHandler, QueryHandler, SummaryHandler
from .schemas import ErrorResponse, ValidationErrorResponse
from .storage import StorageGateway

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 10 * 1024 * 1024

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}

# Prefijos de loc que FastAPI antepone a cada error
_LOC_SOURCES = ("body", "query", "path", "header")


def _violation_path(loc) -> str:
    parts = list(loc)
    if parts and parts[0] in _LOC_SOURCES:
        parts = parts[1:]
    return ".".join(str(p) for p in parts)


def create_app(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[StorageGateway] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Arma la app con sus handlers.

    Args:
        settings: Configuración; se lee del entorno si no se provee
        storage: Gateway ya construido (tests); por defecto uno nuevo desde settings
        clock: Reloj usado para server_timestamp/created_at

    Returns:
        FastAPI app. La conexión a la BD se abre en el lifespan.
    """
    if storage is None:
        storage = StorageGateway(settings or get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        storage.connect()
        logger.info("CragCrowd API ready")
        try:
            yield
        finally:
            storage.close()

    app = FastAPI(title="CragCrowd API", version="1.0.0", lifespan=lifespan)

    app.state.storage = storage
    app.state.started_at = time.monotonic()
    app.state.ingestion_handler = IngestionHandler(storage, clock=clock)
    app.state.query_handler = QueryHandler(storage)
    app.state.summary_handler = SummaryHandler(storage)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
            response = JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content=ErrorResponse(error="Request body too large").model_dump(),
            )
        else:
            response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"path": _violation_path(err.get("loc", ())), "message": str(err.get("msg", "Invalid value"))}
            for err in exc.errors()
        ]
        logger.warning(
            "[VALIDATION] Malformed request %s %s fields=%s",
            request.method,
            request.url.path,
            [d["path"] for d in details],
        )
        body = ValidationErrorResponse(details=details)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Método no soportado cuenta como ruta inexistente
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return JSONResponse(status_code=404, content={"error": "Route not found"})
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail)).model_dump(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error in %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Internal server error").model_dump(),
            # ServerErrorMiddleware queda fuera del middleware http
            headers=SECURITY_HEADERS,
        )

    app.include_router(health_router)
    app.include_router(sensor_data_router)
    return app


app = create_app()
