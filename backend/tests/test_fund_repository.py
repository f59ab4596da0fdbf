"""Unit tests for FundRepository."""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.fund import FundRecord
from app.models.fund_orm import Fund
from app.services.fund_repository import FundRepository, dedupe_by_fund_code


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def repository(mock_db):
    return FundRepository(mock_db)


def test_dedupe_keeps_last_value_in_first_position():
    records = [
        FundRecord(fund_code="A", fund_name="old"),
        FundRecord(fund_code="B"),
        FundRecord(fund_code="A", fund_name="new"),
    ]
    
    result = dedupe_by_fund_code(records)
    
    assert [r.fund_code for r in result] == ["A", "B"]
    assert result[0].fund_name == "new"


class TestSaveAll:
    """Tests for save_all upserts."""
    
    @pytest.mark.asyncio
    async def test_upserts_and_commits(self, repository, mock_db):
        records = [FundRecord(fund_code="DLZ", return_1_year=Decimal("157.8626"))]
        
        saved = await repository.save_all(records)
        
        assert saved == records
        mock_db.execute.assert_awaited_once()
        mock_db.commit.assert_awaited_once()
        
        stmt = mock_db.execute.call_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "INSERT INTO funds" in sql
        assert "ON CONFLICT (fund_code) DO UPDATE" in sql
        assert "return_1_year = excluded.return_1_year" in sql
    
    @pytest.mark.asyncio
    async def test_same_code_twice_stored_once_with_later_value(self, repository, mock_db):
        saved = await repository.save_all([
            FundRecord(fund_code="A", return_1_year=Decimal("1")),
            FundRecord(fund_code="A", return_1_year=Decimal("2")),
        ])
        
        assert len(saved) == 1
        assert saved[0].return_1_year == Decimal("2.0000")
    
    @pytest.mark.asyncio
    async def test_empty_batch_is_noop(self, repository, mock_db):
        assert await repository.save_all([]) == []
        mock_db.execute.assert_not_awaited()
    
    @pytest.mark.asyncio
    async def test_failure_rolls_back_and_propagates(self, repository, mock_db):
        mock_db.execute.side_effect = RuntimeError("connection lost")
        
        with pytest.raises(RuntimeError):
            await repository.save_all([FundRecord(fund_code="A")])
        
        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()


class TestFindAll:
    
    @pytest.mark.asyncio
    async def test_maps_rows_to_records(self, repository, mock_db):
        fund = Fund(
            fund_code="DLZ",
            fund_name="Deniz",
            umbrella_type="Serbest Şemsiye Fonu",
            return_1_year=Decimal("157.8626"),
        )
        result = MagicMock()
        result.scalars.return_value.all.return_value = [fund]
        mock_db.execute.return_value = result
        
        records = await repository.find_all()
        
        assert records == [FundRecord(
            fund_code="DLZ",
            fund_name="Deniz",
            umbrella_type="Serbest Şemsiye Fonu",
            return_1_year=Decimal("157.8626"),
        )]
    
    @pytest.mark.asyncio
    async def test_count(self, repository, mock_db):
        result = MagicMock()
        result.scalar_one.return_value = 42
        mock_db.execute.return_value = result
        
        assert await repository.count() == 42
