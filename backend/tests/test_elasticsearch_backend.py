"""Unit tests for ElasticsearchSearchBackend."""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

from app.core.errors import IndexWriteFailed
from app.models.fund import FundDocument, SearchFilter, SearchRequest
from app.services.search.elasticsearch_backend import ElasticsearchSearchBackend, FUND_INDEX_MAPPING
from app.services.search.query_builder import QueryBuilder


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.search = AsyncMock()
    client.indices.exists = AsyncMock()
    client.indices.create = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def backend(mock_client):
    return ElasticsearchSearchBackend(mock_client, index_name="fund-test")


class TestInitializeIndex:
    
    @pytest.mark.asyncio
    async def test_creates_index_when_missing(self, backend, mock_client):
        mock_client.indices.exists.return_value = False
        
        await backend.initialize_index()
        
        kwargs = mock_client.indices.create.call_args.kwargs
        assert kwargs["index"] == "fund-test"
        properties = kwargs["mappings"]["properties"]
        assert properties["fund_code"] == {"type": "keyword"}
        assert properties["umbrella_type"] == {"type": "keyword"}
        assert properties["fund_name"]["type"] == "text"
        assert properties["return_1_year"] == {"type": "scaled_float", "scaling_factor": 10000}
    
    @pytest.mark.asyncio
    async def test_existing_index_untouched(self, backend, mock_client):
        mock_client.indices.exists.return_value = True
        
        await backend.initialize_index()
        
        mock_client.indices.create.assert_not_awaited()
    
    @pytest.mark.asyncio
    async def test_create_failure_raises_index_write_failed(self, backend, mock_client):
        mock_client.indices.exists.return_value = False
        mock_client.indices.create.side_effect = ConnectionError("cluster unreachable")
        
        with pytest.raises(IndexWriteFailed, match="cluster unreachable"):
            await backend.initialize_index()
    
    @pytest.mark.asyncio
    async def test_exists_failure_raises_index_write_failed(self, backend, mock_client):
        mock_client.indices.exists.side_effect = RuntimeError("timeout")
        
        with pytest.raises(IndexWriteFailed):
            await backend.initialize_index()
        mock_client.indices.create.assert_not_awaited()


def test_mapping_covers_every_return_field():
    properties = FUND_INDEX_MAPPING["mappings"]["properties"]
    scaled = [name for name, spec in properties.items() if spec.get("type") == "scaled_float"]
    assert len(scaled) == 7


class TestSearch:
    
    @pytest.mark.asyncio
    async def test_sends_built_query_and_returns_sources(self, backend, mock_client):
        mock_client.search.return_value = {
            "hits": {"total": {"value": 2}, "hits": [
                {"_id": "B", "_source": {"fund_code": "B"}},
                {"_id": "A", "_source": {"fund_code": "A"}},
            ]}
        }
        query = QueryBuilder(10, 100).build(
            SearchRequest(filter=SearchFilter(min_return_1_year=Decimal("50")))
        )
        
        sources = await backend.search(query)
        
        assert sources == [{"fund_code": "B"}, {"fund_code": "A"}]
        kwargs = mock_client.search.call_args.kwargs
        assert kwargs["index"] == "fund-test"
        assert kwargs["body"] == query.to_elasticsearch()
    
    @pytest.mark.asyncio
    async def test_no_hits(self, backend, mock_client):
        mock_client.search.return_value = {"hits": {"total": {"value": 0}, "hits": []}}
        
        assert await backend.search(QueryBuilder(10, 100).build(SearchRequest())) == []
    
    @pytest.mark.asyncio
    async def test_engine_errors_propagate(self, backend, mock_client):
        mock_client.search.side_effect = ConnectionError("refused")
        
        with pytest.raises(ConnectionError):
            await backend.search(QueryBuilder(10, 100).build(SearchRequest()))


class TestBulkIndex:
    
    @pytest.mark.asyncio
    async def test_documents_keyed_by_fund_code(self, backend):
        documents = [
            FundDocument(fund_code="DLZ", fund_name="Deniz", return_1_year=Decimal("157.8626")),
            FundDocument(fund_code="UHS"),
        ]
        
        with patch(
            "app.services.search.elasticsearch_backend.async_bulk", new_callable=AsyncMock
        ) as bulk:
            await backend.bulk_index_funds(documents)
        
        actions = bulk.call_args.args[1]
        assert [a["_id"] for a in actions] == ["DLZ", "UHS"]
        assert all(a["_index"] == "fund-test" for a in actions)
        assert actions[0]["_source"]["return_1_year"] == 157.8626
        assert actions[1]["_source"]["return_1_year"] is None
    
    @pytest.mark.asyncio
    async def test_empty_batch_skipped(self, backend):
        with patch(
            "app.services.search.elasticsearch_backend.async_bulk", new_callable=AsyncMock
        ) as bulk:
            await backend.bulk_index_funds([])
        
        bulk.assert_not_awaited()
    
    @pytest.mark.asyncio
    async def test_bulk_failure_raises_index_write_failed(self, backend):
        with patch(
            "app.services.search.elasticsearch_backend.async_bulk",
            new_callable=AsyncMock,
            side_effect=RuntimeError("cluster unavailable"),
        ):
            with pytest.raises(IndexWriteFailed) as exc_info:
                await backend.bulk_index_funds([FundDocument(fund_code="A")])
        
        assert exc_info.value.batch_size == 1
