"""
Fund Spreadsheet Ingestion

Parses a fund returns report (.xlsx), upserts the valid rows into the primary
store and mirrors each committed batch into the search index.

Usage:
    python -m app.services.ingestion.ingest_funds path/to/funds.xlsx

Environment variables required:
    DATABASE_URL: PostgreSQL connection string
    ELASTICSEARCH_URL: Elasticsearch endpoint
"""

import argparse
import asyncio
import logging
import time
from pathlib import Path
from typing import BinaryIO

from app.core.config import get_settings
from app.core.database import AsyncSessionLocal
from app.core.elasticsearch import close_elasticsearch_client, get_elasticsearch_client
from app.core.errors import InvalidInput, PrimaryStoreReadFailed, PrimaryStoreWriteFailed
from app.models.fund import FundDocument, FundRecord, IngestionResult, ResyncResult
from app.services.fund_repository import FundRepository, create_tables
from app.services.ingestion.excel_reader import read_fund_sheet
from app.services.search.backend import SearchBackend
from app.services.search.elasticsearch_backend import ElasticsearchSearchBackend

logger = logging.getLogger(__name__)


def chunked(records: list[FundRecord], size: int) -> list[list[FundRecord]]:
    """Split records into consecutive batches of at most ``size``."""
    return [records[i:i + size] for i in range(0, len(records), size)]


class FundIngester:
    """
    Ingests fund spreadsheets into the primary store and the search index.
    
    Batches run strictly in order. A primary-store failure aborts the
    ingestion (earlier batches stay committed); an index failure is logged and
    the primary store stays ahead of the index until the next resync.
    """
    
    def __init__(
        self,
        repository: FundRepository,
        search_backend: SearchBackend,
        batch_size: int | None = None,
        data_start_row: int | None = None,
    ):
        settings = get_settings()
        self.repository = repository
        self.search_backend = search_backend
        self.batch_size = batch_size or settings.ingestion_batch_size
        self.data_start_row = (
            data_start_row if data_start_row is not None else settings.ingestion_data_start_row
        )
    
    async def ingest(self, source: bytes | BinaryIO) -> IngestionResult:
        """
        Parse a spreadsheet and dual-write its valid rows.
        
        Args:
            source: Workbook bytes or a readable binary stream
            
        Returns:
            IngestionResult with accepted/skipped/indexed counts
            
        Raises:
            InvalidInput: If the source is empty or unreadable (nothing written)
            PrimaryStoreWriteFailed: If a batch cannot be saved
        """
        if source is not None and not isinstance(source, (bytes, bytearray)):
            source = source.read()
        if not source:
            raise InvalidInput("Uploaded file is empty.")
        
        parsed = read_fund_sheet(source, data_start_row=self.data_start_row)
        result = IngestionResult(skipped=len(parsed.skipped))
        
        if not parsed.records:
            logger.warning("No valid fund data found in the Excel file.")
            return result
        
        return await self.save_and_sync(parsed.records, result)
    
    async def save_and_sync(
        self,
        records: list[FundRecord],
        result: IngestionResult | None = None,
    ) -> IngestionResult:
        """Write records batch by batch: primary store first, then the index."""
        result = result or IngestionResult()
        start_time = time.time()
        batches = chunked(records, self.batch_size)
        logger.info(f"Starting batch processing for {len(records)} records ({len(batches)} batches)...")
        
        for batch_number, batch in enumerate(batches, 1):
            # 1. Primary store (source of truth)
            try:
                saved = await self.repository.save_all(batch)
            except Exception as e:
                logger.error(
                    f"Primary store write failed on batch {batch_number}/{len(batches)}; "
                    f"{result.accepted} records committed before failure: {e}"
                )
                raise PrimaryStoreWriteFailed(
                    f"Failed to save batch {batch_number} of {len(batches)}: {e}",
                    accepted_count=result.accepted,
                    batch_number=batch_number,
                ) from e
            
            result.accepted += len(saved)
            result.batches += 1
            
            # 2. Search index (derived projection, best effort)
            documents = [FundDocument.from_record(record) for record in saved]
            try:
                await self.search_backend.bulk_index_funds(documents)
            except Exception as e:
                result.failed_index_batches += 1
                logger.error(
                    f"Failed to sync batch to Elasticsearch. Count: {len(documents)}. Error: {e}"
                )
                continue
            
            result.indexed += len(documents)
            logger.info(f"Elasticsearch: Synced batch of {len(documents)} documents.")
        
        duration = time.time() - start_time
        logger.info(
            f"Batch processing completed in {duration:.1f}s: "
            f"{result.accepted} saved, {result.indexed} indexed, "
            f"{result.failed_index_batches} index batch failures"
        )
        return result
    
    async def resync_index(self) -> ResyncResult:
        """
        Re-project the whole primary store into the search index.
        
        Index failures propagate; cached search results are not cleared here.

        Raises:
            IndexWriteFailed: If the index cannot be created or written
            PrimaryStoreReadFailed: If the primary store cannot be read
        """
        await self.search_backend.initialize_index()

        try:
            records = await self.repository.find_all()
        except Exception as e:
            logger.error(f"Failed to read funds from the primary store: {e}")
            raise PrimaryStoreReadFailed(f"Failed to read funds for re-index: {e}") from e
        result = ResyncResult()
        if not records:
            logger.warning("No funds found in database; nothing to re-index")
            return result
        
        for batch in chunked(records, self.batch_size):
            documents = [FundDocument.from_record(record) for record in batch]
            await self.search_backend.bulk_index_funds(documents)
            result.indexed += len(documents)
            result.batches += 1
            logger.info(f"Indexed batch: {result.indexed}/{len(records)} funds")
        
        logger.info(f"Full resync completed: {result.indexed} funds indexed")
        return result
    
    async def load_seed_data(self, path: str | Path) -> IngestionResult:
        """
        Load the startup seed spreadsheet if present.
        
        A missing file is not an error: the service starts with an empty store.
        The index is created with its mapping either way, so later uploads
        never fall back to a dynamically mapped index.
        """
        await self.search_backend.initialize_index()

        path = Path(path)
        if not path.is_file():
            logger.warning(f"Startup data file ({path}) not found. System starting with empty DB.")
            return IngestionResult()

        logger.info(f"Loading startup data from {path}...")
        return await self.ingest(path.read_bytes())


async def run(path: Path) -> IngestionResult:
    """Ingest one spreadsheet using the configured database and index."""
    await create_tables()
    search_backend = ElasticsearchSearchBackend(get_elasticsearch_client())
    
    try:
        await search_backend.initialize_index()
        async with AsyncSessionLocal() as session:
            ingester = FundIngester(FundRepository(session), search_backend)
            return await ingester.ingest(path.read_bytes())
    finally:
        await close_elasticsearch_client()


def main():
    """Entry point for ingestion script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
    
    parser = argparse.ArgumentParser(description="Ingest a fund returns spreadsheet")
    parser.add_argument("path", type=Path, help="Path to the .xlsx report")
    args = parser.parse_args()
    
    result = asyncio.run(run(args.path))
    
    logger.info("=" * 60)
    logger.info("INGESTION COMPLETE")
    logger.info(f"  Accepted: {result.accepted}")
    logger.info(f"  Skipped rows: {result.skipped}")
    logger.info(f"  Indexed: {result.indexed}")
    logger.info(f"  Failed index batches: {result.failed_index_batches}")
    logger.info("=" * 60)
    return result


if __name__ == "__main__":
    main()
