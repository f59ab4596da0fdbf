"""Fund search execution against the search index."""

import logging

from app.core.errors import InvalidSearchRequest, SearchExecutionFailed
from app.models.fund import FundDocument, SearchRequest
from app.services.search.backend import SearchBackend
from app.services.search.cache import SearchResultCache
from app.services.search.query_builder import QueryBuilder

logger = logging.getLogger(__name__)


class FundSearchService:
    """Builds queries from search requests and executes them."""
    
    def __init__(
        self,
        search_backend: SearchBackend,
        query_builder: QueryBuilder | None = None,
        cache: SearchResultCache | None = None,
    ):
        self.search_backend = search_backend
        self.query_builder = query_builder or QueryBuilder()
        self.cache = cache
    
    async def search_funds(self, request: SearchRequest | None) -> list[FundDocument]:
        """
        Search funds matching the request's filters, sorting and pagination.
        
        Args:
            request: Structured search request
            
        Returns:
            Matching documents in engine order; empty list when nothing matches
            
        Raises:
            InvalidSearchRequest: If the request is None or malformed
            SearchExecutionFailed: If the search engine fails
        """
        if request is None:
            raise InvalidSearchRequest("Search request cannot be null.")
        
        query = self.query_builder.build(request)
        
        if self.cache is not None:
            cached = self.cache.get(request)
            if cached is not None:
                logger.debug("Search served from cache")
                return cached
        
        try:
            sources = await self.search_backend.search(query)
            results = [FundDocument.model_validate(source) for source in sources]
        except Exception as e:
            logger.error(f"Elasticsearch search operation failed: {e}", exc_info=True)
            raise SearchExecutionFailed("Failed to execute search operation") from e
        
        if results:
            logger.info(f"Search completed successfully. Found {len(results)} funds.")
        else:
            logger.info("Search completed. No funds found matching the criteria.")
        
        if self.cache is not None:
            self.cache.put(request, results)
        
        return results
