# storefront/main.py
# Storefront API - catalog, product import, orders, cart
from __future__ import annotations
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.settings import settings
from storefront.database import Database
from storefront.errors import WorkflowError
from storefront.routers.products import router as products_router
from storefront.routers.imports import router as imports_router
from storefront.routers.orders import router as orders_router
from storefront.routers.shopping import router as shopping_router

# ---------------------------------------------------------
# Logging setup
# ---------------------------------------------------------
from storefront.logging_setup import setup_logging
setup_logging(settings)

logger = logging.getLogger("storefront")

APP_VERSION = "1.0.0"


# ---------------------------------------------------------
# Lifespan: Database init/cleanup
# ---------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    database = Database.from_settings(settings)
    app.state.database = database
    try:
        await database.create_all()
        logger.info("database ready (%s)", database.dialect_name)
    except Exception as e:
        # keep serving; /health reports the database as disconnected
        logger.error("database initialization failed: %s", e)
    yield
    await database.dispose()
    logger.info("database disconnected")


# ---------------------------------------------------------
# FastAPI app + CORS
# ---------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    version=APP_VERSION,
    description="E-commerce backend - catalog import, orders, cart",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(products_router)
app.include_router(imports_router)
app.include_router(orders_router)
app.include_router(shopping_router)


# ---------------------------------------------------------
# Endpoints
# ---------------------------------------------------------
@app.get("/health")
async def health(request: Request):
    """Health check endpoint with database status."""
    result = {
        "status": "ok",
        "version": APP_VERSION,
        "import_failure_policy": settings.IMPORT_FAILURE_POLICY,
    }
    db_health = await request.app.state.database.check_health()
    result["database"] = db_health
    if db_health.get("status") != "healthy":
        result["status"] = "degraded"
    return result
