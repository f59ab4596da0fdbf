"""Fund Search Service API - Main Application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.funds import router as funds_router
from app.core.config import get_settings
from app.core.database import AsyncSessionLocal
from app.core.elasticsearch import close_elasticsearch_client, get_elasticsearch_client
from app.services.fund_repository import FundRepository, create_tables
from app.services.ingestion.ingest_funds import FundIngester
from app.services.search.elasticsearch_backend import ElasticsearchSearchBackend

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

settings = get_settings()


async def initialize_data(load_seed: bool = True) -> None:
    """
    Prepare the stores once per process start.

    Tables and the mapped search index are always created; the seed
    spreadsheet is loaded only when ``load_seed`` is set.
    """
    await create_tables()
    search_backend = ElasticsearchSearchBackend(get_elasticsearch_client())
    if not load_seed:
        await search_backend.initialize_index()
        return

    async with AsyncSessionLocal() as session:
        ingester = FundIngester(FundRepository(session), search_backend)
        await ingester.load_seed_data(settings.seed_data_path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await initialize_data(load_seed=settings.seed_on_startup)
    yield
    await close_elasticsearch_client()


app = FastAPI(
    title="Fund Search Service API",
    description="API for fund report ingestion and fund search",
    version="0.1.0",
    lifespan=lifespan,
)

# Register routers
app.include_router(funds_router)


@app.get("/")
def read_root():
    """Root endpoint with API info."""
    return {
        "message": "Welcome to Fund Search Service API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
