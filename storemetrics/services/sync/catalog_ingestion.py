import logging
from datetime import datetime
from typing import Optional

from storemetrics.core.config import get_settings
from storemetrics.core.exceptions import FeedError
from storemetrics.crud.sync_repository import SyncRepository
from storemetrics.schemas.store import StoreData
from storemetrics.schemas.sync import IngestionResult, ProductData
from storemetrics.services.platform_connector import EcommercePlatformConnector
from storemetrics.services.sync.pagination import iterate_pages

logger = logging.getLogger(__name__)


class CatalogIngestionEngine:
    """Upserts a store's products and their variants by platform id."""

    def __init__(
        self,
        repository: SyncRepository,
        connector: EcommercePlatformConnector,
        page_size: Optional[int] = None,
    ):
        self.repository = repository
        self.connector = connector
        self.page_size = page_size or get_settings().SYNC_PAGE_SIZE

    async def ingest(self, store: StoreData, since: Optional[datetime], until: datetime) -> IngestionResult:
        result = IngestionResult()

        async def fetch(cursor: Optional[str]):
            return await self.connector.fetch_products_page(
                store.access_token,
                store.shop_domain,
                limit=self.page_size,
                updated_at_min=since,
                updated_at_max=until,
                cursor=cursor,
            )

        try:
            async for page in iterate_pages(fetch, self.page_size):
                result.pages += 1
                for raw_product in page.items:
                    result.fetched += 1
                    try:
                        product = ProductData(**await self.connector.map_product_to_db_model(raw_product))
                    except (ValueError, KeyError, TypeError) as e:
                        logger.error(f"Error processing product {raw_product.get('id')} for store {store.id}: {e}", exc_info=True)
                        continue
                    await self.repository.upsert_product(store.id, product)
                    result.upserted += 1
                await self.repository.commit()
        except FeedError as e:
            logger.error(f"Product feed failed for store {store.id} at cursor {e.cursor}: {e}", exc_info=True)
            raise

        logger.info(f"Upserted {result.upserted} products for store {store.id}")
        return result
