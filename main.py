import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.database.connection import create_tables, get_redis
from src.routes.search import get_search_engine, router as search_router
from src.search.config import SearchConfig

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

app = FastAPI(
    title="Purchase Order Search API",
    version=API_VERSION,
    description="Full-text search, relevance ranking and saved filters for purchase orders"
)

allowed_origins = ["http://localhost:3000"]
if os.getenv("FRONTEND_URL"):
    allowed_origins.append(os.getenv("FRONTEND_URL"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Prepare the configured store and build the search index"""
    logger.info(f"Search store backend: {SearchConfig.STORE_BACKEND}")
    try:
        if SearchConfig.STORE_BACKEND == "sql":
            create_tables()

        engine = get_search_engine()
        stats = engine.rebuild_index()
        logger.info(
            f"Search index ready: {stats.token_count} terms over "
            f"{stats.indexed_records} orders ({stats.failed_records} skipped)"
        )
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise


app.include_router(search_router)


@app.get("/")
def root():
    return {
        "message": "Purchase Order Search API",
        "version": API_VERSION,
        "status": "running"
    }


@app.get("/health")
def health_check():
    """Health check endpoint for monitoring"""
    index = get_search_engine().index

    return {
        "status": "healthy",
        "redis": "connected" if get_redis() else "disconnected",
        "store_backend": SearchConfig.STORE_BACKEND,
        "index": index.stats(),
        "version": API_VERSION
    }
