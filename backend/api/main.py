"""
FlowStock API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("FlowStock API starting up", version=settings.app_version, env=settings.app_env)
    yield
    logger.info("FlowStock API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Multi-channel inventory reconciliation from marketplace CSV exports",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and register routers
from api.v1.routers import (
    inventory,
    notifications,
    products,
    sellers,
    settings as settings_router,
    suppliers,
    uploads,
)

app.include_router(uploads.router)
app.include_router(inventory.router)
app.include_router(products.router)
app.include_router(settings_router.router)
app.include_router(suppliers.router)
app.include_router(sellers.router)
app.include_router(notifications.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers."""
    return {"status": "healthy", "version": settings.app_version}
