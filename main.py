"""
TravelHub - Application Entry Point
====================================
FastAPI app initialization, middleware, exception handlers and router
registration.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from config.database import Base, engine
from common.exceptions import TravelHubError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

access_logger = logging.getLogger("travelhub.access")
error_logger = logging.getLogger("travelhub.errors")


# ==========================================
# Import ALL models so Base.metadata sees them
# ==========================================
from modules.user.models import User  # noqa: F401
from modules.catalog.models import (  # noqa: F401
    Product, FlightDetails, HotelDetails, TransportDetails, ExcursionDetails,
)
from modules.package.models import Package, PackageProduct  # noqa: F401
from modules.cart.models import Cart, CartItem  # noqa: F401

# ==========================================
# Import routers
# ==========================================
from modules.auth.routes import router as auth_router
from modules.catalog.routes import router as catalog_router
from modules.package.routes import router as package_router
from modules.cart.routes import router as cart_router
from modules.admin.routes import router as admin_router


# ==========================================
# Exception handlers
# ==========================================

async def business_error_handler(request: Request, exc: TravelHubError):
    """Typed service failures -> mapped status + message."""
    return JSONResponse(
        {"status": "error", "message": exc.message},
        status_code=exc.status_code,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies / params -> 400."""
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        {"status": "error", "message": "Invalid input data", "errors": errors},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"status": "error", "message": exc.detail},
        status_code=exc.status_code,
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    """Anything unexpected: log it, never leak it."""
    error_logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"status": "error", "message": "Internal server error"},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# ==========================================
# Middleware: Access Log
# ==========================================

_SKIP_PATHS = ("/health", "/favicon.ico")


async def access_log_middleware(request: Request, call_next):
    """One log line per request: method, path, status, duration, caller."""
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path not in _SKIP_PATHS:
        elapsed_ms = (time.perf_counter() - start) * 1000
        access_logger.info(
            "%s %s -> %d (%.1f ms) user=%s",
            request.method, request.url.path, response.status_code, elapsed_ms,
            getattr(request.state, "subject_id", None) or "-",
        )
    return response


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    yield


# ==========================================
# Create App
# ==========================================

def create_app() -> FastAPI:
    app = FastAPI(
        title="TravelHub",
        description="Travel catalog, packages and shopping cart API",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(access_log_middleware)

    app.add_exception_handler(TravelHubError, business_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(package_router)
    app.include_router(cart_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
