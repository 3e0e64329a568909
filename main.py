"""
Microgreens Hub - Main Application

FastAPI application entry point.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import structlog
from datetime import datetime

from config import settings

# Configure structured logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

from routes import (  # noqa: E402
    orders_router,
    varieties_router,
    delivery_modes_router,
    harvest_router,
    sowing_router,
    seed_inventory_router,
    purchase_orders_router,
    logs_router,
    reports_router,
    forecast_router,
    data_router,
)
from services import get_farm_store  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup: Load saved farm data
    Shutdown: Log only (every change is saved as it happens)
    """
    # Startup
    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.debug
    )

    store_status = get_farm_store().status()
    if store_status["last_error"]:
        logger.error(
            "farm_data_load_failed",
            data_file=store_status["data_file"],
            error=store_status["last_error"]
        )
    else:
        logger.info(
            "farm_data_loaded",
            data_file=store_status["data_file"],
            orders=store_status["orders"],
            varieties=store_status["varieties"]
        )

    if not settings.forecast_configured:
        logger.info("forecast_disabled_no_api_key")

    yield

    # Shutdown
    logger.info("application_shutting_down")


# Create FastAPI app
app = FastAPI(
    title="Microgreens Hub",
    description="Orders, harvests, sowing plans and seed stock for a microgreens farm",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Basic health status and data file state. "degraded" when the last
        save or load failed; the API keeps working from memory.
    """
    storage = get_farm_store().status()

    return {
        "status": "degraded" if storage["last_error"] else "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
        "storage": storage,
        "forecast_configured": settings.forecast_configured,
    }


@app.get("/")
async def root():
    """
    Root endpoint.

    Returns:
        API information and available endpoints
    """
    return {
        "name": "Microgreens Hub API",
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
        "health": "/health",
        "endpoints": {
            "orders": "/api/orders",
            "varieties": "/api/varieties",
            "delivery_modes": "/api/delivery-modes",
            "harvest": "/api/harvest",
            "sowing": "/api/sowing",
            "seed_inventory": "/api/seed-inventory",
            "purchase_orders": "/api/purchase-orders",
            "logs": "/api/logs",
            "reports": "/api/reports",
            "forecast": "/api/forecast",
            "data": "/api/data"
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler.

    Catches unhandled exceptions and returns the standard error format.
    """
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.utcnow().isoformat()
            }
        }
    )


# ===================
# INCLUDE ROUTERS
# ===================

app.include_router(orders_router, prefix="/api/orders", tags=["Orders"])
app.include_router(varieties_router, prefix="/api/varieties", tags=["Varieties"])
app.include_router(delivery_modes_router, prefix="/api/delivery-modes", tags=["Delivery Modes"])
app.include_router(harvest_router, prefix="/api/harvest", tags=["Harvest"])
app.include_router(sowing_router, prefix="/api/sowing", tags=["Sowing"])
app.include_router(seed_inventory_router, prefix="/api/seed-inventory", tags=["Seed Inventory"])
app.include_router(purchase_orders_router, prefix="/api/purchase-orders", tags=["Purchase Orders"])
app.include_router(logs_router, prefix="/api/logs", tags=["Logs"])
app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])
app.include_router(forecast_router, prefix="/api/forecast", tags=["Forecast"])
app.include_router(data_router, prefix="/api/data", tags=["Data"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
