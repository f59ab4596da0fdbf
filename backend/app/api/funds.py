"""Fund API endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.elasticsearch import get_elasticsearch_client
from app.core.errors import (
    FundSearchError,
    InvalidInput,
    InvalidSearchRequest,
    PrimaryStoreWriteFailed,
    SearchExecutionFailed,
)
from app.models.fund import FundDocument, IngestionResult, ResyncResult, SearchRequest
from app.services.fund_repository import FundRepository
from app.services.fund_search_service import FundSearchService
from app.services.ingestion.ingest_funds import FundIngester
from app.services.search.backend import SearchBackend
from app.services.search.cache import get_search_cache
from app.services.search.elasticsearch_backend import ElasticsearchSearchBackend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/funds", tags=["funds"])

# Upload and resync both write to the stores; run them one at a time
_ingestion_lock = asyncio.Lock()


def get_search_backend() -> SearchBackend:
    """Dependency for the search backend."""
    return ElasticsearchSearchBackend(get_elasticsearch_client())


@router.post("/search", response_model=list[FundDocument])
async def search_funds(
    request: SearchRequest,
    search_backend: SearchBackend = Depends(get_search_backend),
) -> list[FundDocument]:
    """Search funds with filtering, sorting and pagination."""
    service = FundSearchService(search_backend, cache=get_search_cache())
    
    try:
        return await service.search_funds(request)
    except InvalidSearchRequest as e:
        raise HTTPException(status_code=400, detail=e.message)
    except SearchExecutionFailed as e:
        raise HTTPException(status_code=502, detail=e.message)


@router.post("/upload", response_model=IngestionResult)
async def upload_funds(
    file: UploadFile = File(..., description="Fund returns report (.xlsx)"),
    db: AsyncSession = Depends(get_db),
    search_backend: SearchBackend = Depends(get_search_backend),
) -> IngestionResult:
    """
    Import fund data from an uploaded spreadsheet.
    
    Rows are upserted into the database and mirrored into the search index.
    Cached search results are left untouched; call /sync or /cache/clear.
    """
    data = await file.read()
    ingester = FundIngester(FundRepository(db), search_backend)
    
    async with _ingestion_lock:
        try:
            return await ingester.ingest(data)
        except InvalidInput as e:
            raise HTTPException(status_code=400, detail=e.message)
        except PrimaryStoreWriteFailed as e:
            raise HTTPException(
                status_code=500,
                detail=f"{e.message} (records saved before failure: {e.accepted_count})",
            )


@router.post("/sync", response_model=ResyncResult)
async def sync_index(
    db: AsyncSession = Depends(get_db),
    search_backend: SearchBackend = Depends(get_search_backend),
) -> ResyncResult:
    """Re-index the full database into Elasticsearch and clear the search cache."""
    ingester = FundIngester(FundRepository(db), search_backend)
    
    async with _ingestion_lock:
        try:
            result = await ingester.resync_index()
        except FundSearchError as e:
            logger.error(f"Full resync failed: {e.message}")
            raise HTTPException(status_code=502, detail=e.message)
    
    get_search_cache().clear()
    logger.info("Search cache cleared after full resync")
    return result


@router.post("/cache/clear")
async def clear_cache() -> dict:
    """Clear all cached search results."""
    get_search_cache().clear()
    return {"message": "Cache cleared successfully."}
