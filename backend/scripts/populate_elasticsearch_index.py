"""
Populate Elasticsearch index from the funds stored in the database.

Runs a full resync: every stored fund is re-projected into the search index.
It's useful for:
- Initial index population
- Recovering after failed index writes during ingestion
- Re-indexing after mapping changes

Usage:
    python backend/scripts/populate_elasticsearch_index.py [--batch-size N] [--dry-run]
    
Options:
    --batch-size N  Number of funds to index per batch (default: from settings)
    --dry-run       Count stored funds without touching the index
"""

import sys
import argparse
import logging
import time
import asyncio

sys.path.insert(0, '.')

from app.core.database import AsyncSessionLocal
from app.core.elasticsearch import close_elasticsearch_client, get_elasticsearch_client
from app.services.fund_repository import FundRepository
from app.services.ingestion.ingest_funds import FundIngester
from app.services.search.elasticsearch_backend import ElasticsearchSearchBackend

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def populate_index(dry_run: bool = False, batch_size: int | None = None) -> dict:
    """Re-index all stored funds into Elasticsearch."""
    stats = {
        "total_funds": 0,
        "indexed": 0,
        "start_time": time.time(),
    }
    
    search_backend = ElasticsearchSearchBackend(get_elasticsearch_client())
    
    try:
        async with AsyncSessionLocal() as session:
            repository = FundRepository(session)
            stats["total_funds"] = await repository.count()
            logger.info(f"Found {stats['total_funds']} fund(s) in database")
            
            if dry_run:
                logger.info("DRY RUN MODE - No data will be indexed")
                return stats
            
            ingester = FundIngester(repository, search_backend, batch_size=batch_size)
            result = await ingester.resync_index()
            stats["indexed"] = result.indexed
    finally:
        await close_elasticsearch_client()
    
    stats["duration_seconds"] = time.time() - stats["start_time"]
    return stats


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Populate Elasticsearch index from existing database funds"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Number of funds to index per batch"
    )
    
    args = parser.parse_args()
    
    logger.info("=" * 80)
    logger.info("ELASTICSEARCH INDEX POPULATION")
    logger.info("=" * 80)
    
    stats = asyncio.run(populate_index(dry_run=args.dry_run, batch_size=args.batch_size))
    
    if not args.dry_run:
        logger.info("=" * 80)
        logger.info("SUMMARY")
        logger.info("=" * 80)
        logger.info(f"Total funds: {stats['total_funds']}")
        logger.info(f"Indexed: {stats['indexed']}")
        logger.info(f"Duration: {stats['duration_seconds']:.1f}s")
        logger.info("=" * 80)


if __name__ == "__main__":
    main()
