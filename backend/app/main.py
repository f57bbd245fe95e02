"""FastAPI application for the PropertyHub listing API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from propertyhub.aggregation import PropertyAggregator
from propertyhub.config import config
from propertyhub.storage import InMemoryLookasideCache
from propertyhub.stores import InMemoryPropertyStore, StoreError, StoreUnavailableError

from .constants import MSG_STORE_ERROR, MSG_STORE_UNAVAILABLE
from .db import PostgresPropertyStore, close_pool, init_pool
from .routers import properties
from .routers.properties import error_response

logging.basicConfig(
    level=config.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup/shutdown: DB pool, store and shared cache."""
    if config.database_url:
        pool = await init_pool(config.database_url)
        store = PostgresPropertyStore(pool)
        logger.info("Database connected")
    else:
        logger.warning("PROPERTYHUB_DATABASE_URL not set, serving an empty in-memory store")
        store = InMemoryPropertyStore()

    # One process-wide cache shared by every request
    app.state.aggregator = PropertyAggregator(store, cache=InMemoryLookasideCache())

    yield

    await close_pool()


app = FastAPI(
    title="PropertyHub API",
    description="Real estate listings with batched owner, image and sale-history lookups",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS for frontend
allowed_origins = [
    "http://localhost:3000",  # Next.js dev
    "http://127.0.0.1:3000",
]
if config.frontend_url:
    allowed_origins.append(config.frontend_url.rstrip("/"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"{request.url.path}: {exc}")
    return error_response(503, MSG_STORE_UNAVAILABLE, [exc.message])


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"{request.url.path}: {exc}")
    return error_response(500, MSG_STORE_ERROR, [exc.message])


app.include_router(properties.router, prefix="/api/properties", tags=["Properties"])


@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "name": "PropertyHub API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health(request: Request):
    """Health check endpoint."""
    result = {"status": "healthy"}
    aggregator = getattr(request.app.state, "aggregator", None)
    if aggregator is not None:
        store = aggregator.store
        result["store"] = store.name
        result["store_available"] = store.is_available()
        cache = aggregator.cache
        if isinstance(cache, InMemoryLookasideCache):
            result["cache"] = cache.get_stats()
    return result
