import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from storemetrics.core.config import get_settings
from storemetrics.core.exceptions import FeedError
from storemetrics.crud.sync_repository import SyncRepository
from storemetrics.schemas.store import StoreData
from storemetrics.schemas.sync import IngestionResult, LineItemData, OrderData
from storemetrics.services.platform_connector import EcommercePlatformConnector
from storemetrics.services.sync.pagination import iterate_pages

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def cogs_ratio_for(store: StoreData) -> Decimal:
    if store.cogs_ratio is not None:
        return Decimal(str(store.cogs_ratio))
    return Decimal(str(get_settings().DEFAULT_COGS_RATIO))


def build_order(order_fields: Dict, ratio: Decimal) -> OrderData:
    """
    Attach the derived cost figures to a mapped order.

    Order: cogs = (paid - tax) * ratio, gross_profit = paid - cogs.
    Line item: product_cost = paid * ratio, pre-tax profit = paid * (1 - ratio).
    """
    fields = dict(order_fields)
    line_items = []
    for item in fields.pop('line_items', []):
        paid = item['paid']
        line_items.append(LineItemData(
            **item,
            product_cost=(paid * ratio).quantize(CENT),
            pre_tax_gross_profit=(paid * (1 - ratio)).quantize(CENT),
            pre_tax_gross_margin=((1 - ratio) * 100).quantize(CENT),
        ))

    cogs = ((fields['paid'] - fields['tax']) * ratio).quantize(CENT)
    return OrderData(
        **fields,
        cogs=cogs,
        gross_profit=fields['paid'] - cogs,
        line_items=line_items,
    )


class OrderIngestionEngine:
    """Pages through a store's orders and writes each platform order exactly once."""

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
        ratio = cogs_ratio_for(store)
        currency_known = store.currency is not None
        requested_cursor: Optional[str] = None

        async def fetch(cursor: Optional[str]):
            nonlocal requested_cursor
            requested_cursor = cursor
            return await self.connector.fetch_orders_page(
                store.access_token,
                store.shop_domain,
                limit=self.page_size,
                created_at_min=since,
                created_at_max=until,
                cursor=cursor,
            )

        try:
            async for page in iterate_pages(fetch, self.page_size):
                result.pages += 1
                for raw_order in page.items:
                    result.fetched += 1
                    try:
                        order = build_order(await self.connector.map_order_to_db_model(raw_order), ratio)
                    except (ValueError, KeyError, TypeError) as e:
                        logger.error(f"Error processing order {raw_order.get('id')} for store {store.id}: {e}", exc_info=True)
                        continue

                    if order.platform_customer_id:
                        result.customer_ids.add(order.platform_customer_id)

                    if not currency_known and order.currency:
                        await self.repository.set_currency_if_missing(store.id, order.currency)
                        currency_known = True

                    if await self.repository.insert_order(store.id, order):
                        result.created += 1
                        result.created_orders.append(order)
                    if result.watermark is None or order.ordered_at > result.watermark:
                        result.watermark = order.ordered_at

                await self.repository.commit()
                logger.info(f"Committed order page {result.pages} for store {store.id} ({len(page.items)} orders)")
        except FeedError as e:
            logger.error(
                f"Order feed failed for store {store.id} at cursor {e.cursor or requested_cursor}; "
                f"orders committed up to {result.watermark}: {e}",
                exc_info=True,
            )
            raise

        logger.info(f"Fetched {result.fetched} orders for store {store.id}, created {result.created}")
        return result
