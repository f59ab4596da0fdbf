"""
Builds search-engine queries from structured search requests.

Criteria are kept as an ordered tuple of small value objects that are AND-ed
together; each knows how to render its own Elasticsearch clause. Building is
pure: no I/O and the request is never modified.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from app.core.config import get_settings
from app.core.errors import InvalidSearchRequest
from app.models.fund import SearchRequest, RETURN_FIELDS

# Document fields accepted as sort properties, mapped to their sortable field
SORTABLE_FIELDS = {
    "fund_code": "fund_code",
    "fund_name": "fund_name.keyword",  # Text fields sort on the keyword sub-field
    "umbrella_type": "umbrella_type",
    **{name: name for name in RETURN_FIELDS},
}

WILDCARD_SPECIAL_CHARS = ("\\", "*", "?")


def escape_wildcard(value: str) -> str:
    """Escape wildcard metacharacters so user input matches literally."""
    for char in WILDCARD_SPECIAL_CHARS:
        value = value.replace(char, f"\\{char}")
    return value


def _is_present(value: str | None) -> bool:
    return value is not None and bool(value.strip())


@dataclass(frozen=True)
class MatchAll:
    def to_dsl(self) -> dict[str, Any]:
        return {"match_all": {}}


@dataclass(frozen=True)
class Term:
    """Exact match on a keyword field."""
    field: str
    value: str
    
    def to_dsl(self) -> dict[str, Any]:
        return {"term": {self.field: {"value": self.value}}}


@dataclass(frozen=True)
class Match:
    """Analyzed (tokenized) text match."""
    field: str
    text: str
    
    def to_dsl(self) -> dict[str, Any]:
        return {"match": {self.field: {"query": self.text}}}


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match on a keyword field."""
    field: str
    text: str
    
    def to_dsl(self) -> dict[str, Any]:
        return {
            "wildcard": {
                self.field: {
                    "value": f"*{escape_wildcard(self.text)}*",
                    "case_insensitive": True,
                }
            }
        }


@dataclass(frozen=True)
class Exists:
    field: str
    
    def to_dsl(self) -> dict[str, Any]:
        return {"exists": {"field": self.field}}


@dataclass(frozen=True)
class Range:
    """Inclusive bound; operator is "gte" or "lte"."""
    field: str
    operator: str
    value: Decimal
    
    def to_dsl(self) -> dict[str, Any]:
        return {"range": {self.field: {self.operator: float(self.value)}}}


Criterion = MatchAll | Term | Match | Contains | Exists | Range


@dataclass(frozen=True)
class SortOrder:
    field: str
    direction: str  # "asc" or "desc"
    
    def to_dsl(self) -> dict[str, Any]:
        return {self.field: {"order": self.direction, "missing": "_last"}}


@dataclass(frozen=True)
class SearchQuery:
    """Engine-neutral query value: criteria, paging window and optional sort."""
    criteria: tuple[Criterion, ...]
    offset: int
    limit: int
    sort: SortOrder | None = None
    
    def to_elasticsearch(self) -> dict[str, Any]:
        """Render the request body for the Elasticsearch search API."""
        body: dict[str, Any] = {
            "query": {"bool": {"must": [criterion.to_dsl() for criterion in self.criteria]}},
            "from": self.offset,
            "size": self.limit,
        }
        if self.sort:
            body["sort"] = [self.sort.to_dsl()]
        return body


class QueryBuilder:
    """Converts a SearchRequest into a SearchQuery."""
    
    def __init__(self, default_page_size: int | None = None, max_page_size: int | None = None):
        settings = get_settings()
        self.default_page_size = default_page_size or settings.search_default_page_size
        self.max_page_size = max_page_size or settings.search_max_page_size
    
    def build(self, request: SearchRequest | None) -> SearchQuery:
        """
        Build the query for a request.
        
        Raises:
            InvalidSearchRequest: If the request is None, the page size is out of
                range or the sort property is not a document field
        """
        if request is None:
            raise InvalidSearchRequest("Search request cannot be null.")
        
        page, size = self._build_page(request)
        return SearchQuery(
            criteria=tuple(self._build_criteria(request)),
            offset=page * size,
            limit=size,
            sort=self._build_sort(request),
        )
    
    def _build_criteria(self, request: SearchRequest) -> list[Criterion]:
        criteria: list[Criterion] = [MatchAll()]
        f = request.filter
        if f is None:
            return criteria
        
        if _is_present(f.fund_code):
            criteria.append(Term("fund_code", f.fund_code.strip()))
        
        if _is_present(f.fund_name):
            criteria.append(Match("fund_name", f.fund_name.strip()))
        
        if _is_present(f.umbrella_type):
            criteria.append(Contains("umbrella_type", f.umbrella_type.strip()))
        
        # Range is null-safe: funds that never reported the metric are excluded
        if f.min_return_1_year is not None or f.max_return_1_year is not None:
            criteria.append(Exists("return_1_year"))
            if f.min_return_1_year is not None:
                criteria.append(Range("return_1_year", "gte", f.min_return_1_year))
            if f.max_return_1_year is not None:
                criteria.append(Range("return_1_year", "lte", f.max_return_1_year))
        
        return criteria
    
    def _build_page(self, request: SearchRequest) -> tuple[int, int]:
        pagination = request.pagination
        if pagination is None:
            return 0, self.default_page_size
        
        size = pagination.page_size
        if size < 1 or size > self.max_page_size:
            raise InvalidSearchRequest(
                f"page_size must be between 1 and {self.max_page_size}, got {size}"
            )
        return max(0, pagination.page_number - 1), size
    
    def _build_sort(self, request: SearchRequest) -> SortOrder | None:
        sorting = request.sorting
        if sorting is None or not _is_present(sorting.property):
            return None
        
        prop = sorting.property.strip()
        if prop not in SORTABLE_FIELDS:
            raise InvalidSearchRequest(f"Unsupported sort property: {prop}")
        
        direction = "desc" if (sorting.direction or "").strip().upper() == "DESC" else "asc"
        return SortOrder(SORTABLE_FIELDS[prop], direction)
