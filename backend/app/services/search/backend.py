"""
Abstract base class for search backends.

The search index is a derived projection of the primary store; this
abstraction keeps the pipeline and search service independent of the engine.
"""

from abc import ABC, abstractmethod

from app.models.fund import FundDocument
from app.services.search.query_builder import SearchQuery


class SearchBackend(ABC):
    """Abstract base class for search backends."""
    
    @abstractmethod
    async def search(self, query: SearchQuery) -> list[dict]:
        """
        Execute a built query.
        
        Args:
            query: Query produced by QueryBuilder
            
        Returns:
            Document sources of the hits, in engine ranking/sort order
        """
        pass
    
    @abstractmethod
    async def bulk_index_funds(self, documents: list[FundDocument]) -> None:
        """
        Upsert multiple fund documents keyed by fund_code.
        
        Args:
            documents: Documents to index
            
        Raises:
            IndexWriteFailed: If the batch cannot be written
        """
        pass
    
    @abstractmethod
    async def initialize_index(self) -> None:
        """Initialize/create the search index if it doesn't exist."""
        pass
    
    @abstractmethod
    async def close(self) -> None:
        """Release the underlying client."""
        pass
