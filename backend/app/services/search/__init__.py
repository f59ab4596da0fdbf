"""Search service modules."""

from app.services.search.backend import SearchBackend
from app.services.search.elasticsearch_backend import ElasticsearchSearchBackend
from app.services.search.query_builder import QueryBuilder, SearchQuery

__all__ = ["SearchBackend", "ElasticsearchSearchBackend", "QueryBuilder", "SearchQuery"]
