"""Primary store access for fund records (PostgreSQL via SQLAlchemy)."""

import logging

from sqlalchemy import select, func
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import Base, async_engine
from app.models.fund import FundRecord, RETURN_FIELDS
from app.models.fund_orm import Fund

logger = logging.getLogger(__name__)

UPDATABLE_COLUMNS = ("fund_name", "umbrella_type", *RETURN_FIELDS)


def dedupe_by_fund_code(records: list[FundRecord]) -> list[FundRecord]:
    """
    Collapse repeated fund codes, keeping the last occurrence.
    
    PostgreSQL rejects an ON CONFLICT statement that touches the same row twice,
    so a batch must hold each code once. Order of first appearance is kept.
    """
    latest: dict[str, FundRecord] = {}
    for record in records:
        latest[record.fund_code] = record
    return list(latest.values())


class FundRepository:
    """Keyed upsert store for fund records."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def save_all(self, records: list[FundRecord]) -> list[FundRecord]:
        """
        Upsert a batch of records keyed by fund_code and commit it.
        
        Returns:
            The records as saved (one per distinct fund code)
        """
        batch = dedupe_by_fund_code(records)
        if not batch:
            return []
        
        stmt = insert(Fund).values([record.model_dump() for record in batch])
        stmt = stmt.on_conflict_do_update(
            index_elements=["fund_code"],
            set_={column: getattr(stmt.excluded, column) for column in UPDATABLE_COLUMNS},
        )
        
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        
        return batch
    
    async def find_all(self) -> list[FundRecord]:
        """Read every stored fund, ordered by fund code."""
        result = await self.db.execute(select(Fund).order_by(Fund.fund_code))
        return [FundRecord.model_validate(fund) for fund in result.scalars().all()]
    
    async def count(self) -> int:
        """Get total number of stored funds."""
        result = await self.db.execute(select(func.count()).select_from(Fund))
        return result.scalar_one()


async def create_tables() -> None:
    """Create the funds table if it doesn't exist."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")
