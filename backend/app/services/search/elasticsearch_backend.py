"""
Elasticsearch search backend implementation.

Implements the SearchBackend interface: index mapping, bulk upserts keyed by
fund code, and execution of queries built by QueryBuilder.
"""

import logging

from elasticsearch import AsyncElasticsearch
from elasticsearch.helpers import async_bulk

from app.core.config import get_settings
from app.core.errors import IndexWriteFailed
from app.models.fund import FundDocument, RETURN_FIELDS, RETURN_SCALE
from app.services.search.backend import SearchBackend
from app.services.search.query_builder import SearchQuery

logger = logging.getLogger(__name__)

settings = get_settings()

FUND_INDEX_MAPPING = {
    "mappings": {
        "properties": {
            "fund_code": {"type": "keyword"},
            "fund_name": {
                "type": "text",
                "analyzer": "standard",
                "fields": {
                    "keyword": {"type": "keyword"}  # For sorting
                }
            },
            "umbrella_type": {"type": "keyword"},  # Exact and wildcard (contains) matching
            **{
                name: {"type": "scaled_float", "scaling_factor": 10 ** RETURN_SCALE}
                for name in RETURN_FIELDS
            },
        }
    },
    "settings": {
        "number_of_shards": 1,
        "number_of_replicas": 0,  # Single node setup
    }
}


class ElasticsearchSearchBackend(SearchBackend):
    """Elasticsearch implementation of SearchBackend."""
    
    def __init__(self, client: AsyncElasticsearch | None = None, index_name: str | None = None):
        """
        Initialize Elasticsearch backend.
        
        Args:
            client: Optional Elasticsearch client (creates new one if not provided)
            index_name: Optional index name (defaults to settings)
        """
        self.client = client or AsyncElasticsearch(
            hosts=[settings.elasticsearch_url],
            request_timeout=30,
        )
        self.index_name = index_name or settings.elasticsearch_index_funds
    
    async def initialize_index(self) -> None:
        """Create the funds index with proper mapping if it doesn't exist."""
        try:
            exists = await self.client.indices.exists(index=self.index_name)
            if not exists:
                await self.client.indices.create(
                    index=self.index_name,
                    mappings=FUND_INDEX_MAPPING["mappings"],
                    settings=FUND_INDEX_MAPPING["settings"],
                )
                logger.info(f"Created Elasticsearch index '{self.index_name}'")
        except Exception as e:
            logger.error(f"Failed to initialize index '{self.index_name}': {e}")
            raise IndexWriteFailed(
                f"Failed to initialize index '{self.index_name}': {e}",
                batch_size=0,
            ) from e
    
    async def search(self, query: SearchQuery) -> list[dict]:
        """Execute a built query and return hit sources in ranking order."""
        body = query.to_elasticsearch()
        logger.debug(f"Executing Elasticsearch query on '{self.index_name}': {body}")
        
        response = await self.client.search(index=self.index_name, body=body)
        
        hits = response["hits"]["hits"]
        return [hit["_source"] for hit in hits]
    
    async def bulk_index_funds(self, documents: list[FundDocument]) -> None:
        """Bulk upsert fund documents, using fund_code as the document id."""
        if not documents:
            return
        
        actions = [
            {
                "_index": self.index_name,
                "_id": document.fund_code,
                "_source": document.to_index_source(),
            }
            for document in documents
        ]
        
        try:
            await async_bulk(self.client, actions)
        except Exception as e:
            raise IndexWriteFailed(
                f"Failed to index batch of {len(documents)} documents: {e}",
                batch_size=len(documents),
            ) from e
    
    async def close(self) -> None:
        """Close the Elasticsearch client."""
        await self.client.close()
