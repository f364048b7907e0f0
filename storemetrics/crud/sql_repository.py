import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, update, func
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from storemetrics.crud.sync_repository import SyncRepository
from storemetrics.db.models import (
    CustomerOrderHistory,
    LineItem,
    Metric,
    Order,
    Product,
    ProductVariant,
    Store,
)
from storemetrics.schemas.metrics import MetricData
from storemetrics.schemas.store import StoreData
from storemetrics.schemas.sync import OrderData, ProductData

logger = logging.getLogger(__name__)

# asyncpg caps a statement at 32767 bind parameters
INSERT_BATCH_SIZE = 1000


def _batches(rows: List[dict], size: int = INSERT_BATCH_SIZE):
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


class SqlSyncRepository(SyncRepository):
    """SyncRepository backed by an AsyncSession on PostgreSQL."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_store(self, store_id: UUID) -> Optional[StoreData]:
        result = await self.db.execute(select(Store).where(Store.id == store_id))
        store = result.scalars().first()
        if not store:
            return None
        return StoreData.model_validate(store)

    async def try_acquire_sync_lock(self, store_id: UUID) -> bool:
        result = await self.db.execute(
            update(Store)
            .where(Store.id == store_id, Store.syncing.is_(False))
            .values(syncing=True)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def release_sync_lock(self, store_id: UUID) -> None:
        await self.db.execute(update(Store).where(Store.id == store_id).values(syncing=False))
        await self.db.commit()

    async def set_last_sync(self, store_id: UUID, synced_at: datetime) -> None:
        await self.db.execute(update(Store).where(Store.id == store_id).values(last_sync_at=synced_at))

    async def set_currency_if_missing(self, store_id: UUID, currency: str) -> None:
        await self.db.execute(
            update(Store)
            .where(Store.id == store_id, Store.currency.is_(None))
            .values(currency=currency)
        )

    async def list_syncable_store_ids(self) -> List[UUID]:
        result = await self.db.execute(
            select(Store.id).where(
                Store.is_active.is_(True),
                Store.shop_domain != "",
                Store._access_token != "",
            )
        )
        return list(result.scalars().all())

    async def purge_store_data(self, store_id: UUID) -> None:
        await self.db.execute(delete(Metric).where(Metric.store_id == store_id))
        await self.db.execute(delete(CustomerOrderHistory).where(CustomerOrderHistory.store_id == store_id))
        # line_items and product_variants go with their parents (ON DELETE CASCADE)
        await self.db.execute(delete(Order).where(Order.store_id == store_id))
        await self.db.execute(delete(Product).where(Product.store_id == store_id))
        await self.db.execute(
            update(Store)
            .where(Store.id == store_id)
            .values({
                Store.shop_domain: "",
                Store._access_token: "",
                Store.last_sync_at: None,
                Store.currency: None,
            })
        )

    async def insert_order(self, store_id: UUID, order: OrderData) -> bool:
        order_data = order.model_dump(exclude={'line_items'})
        order_data['store_id'] = store_id

        stmt = insert(Order).values(**order_data)
        stmt = stmt.on_conflict_do_nothing(
            index_elements=[Order.store_id, Order.platform_order_id]
        ).returning(Order.id)
        result = await self.db.execute(stmt)
        order_id = result.scalar_one_or_none()
        if order_id is None:
            return False

        line_items = [dict(item.model_dump(), order_id=order_id) for item in order.line_items]
        for batch in _batches(line_items):
            line_item_stmt = insert(LineItem).values(batch)
            line_item_stmt = line_item_stmt.on_conflict_do_nothing(
                index_elements=[LineItem.order_id, LineItem.platform_line_item_id]
            )
            await self.db.execute(line_item_stmt)
        return True

    async def upsert_product(self, store_id: UUID, product: ProductData) -> None:
        product_data = product.model_dump(exclude={'variants'})
        product_data['store_id'] = store_id

        stmt = insert(Product).values(**product_data)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Product.store_id, Product.platform_product_id],
            set_=dict(product_data, synced_at=func.now()),
        ).returning(Product.id)
        result = await self.db.execute(stmt)
        product_id = result.scalar_one()

        for variant in product.variants:
            variant_data = variant.model_dump()
            variant_data['product_id'] = product_id
            variant_stmt = insert(ProductVariant).values(**variant_data)
            variant_stmt = variant_stmt.on_conflict_do_update(
                index_elements=[ProductVariant.product_id, ProductVariant.platform_variant_id],
                set_=dict(variant_data, synced_at=func.now()),
            )
            await self.db.execute(variant_stmt)

    async def list_orders(
        self,
        store_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[OrderData]:
        stmt = select(Order).where(Order.store_id == store_id)
        if start is not None:
            stmt = stmt.where(Order.ordered_at >= start)
        if end is not None:
            stmt = stmt.where(Order.ordered_at <= end)
        stmt = stmt.order_by(Order.ordered_at, Order.platform_order_id)
        result = await self.db.execute(stmt)
        return [OrderData.model_validate(order) for order in result.scalars().all()]

    async def get_product_titles(self, store_id: UUID, platform_product_ids: Iterable[str]) -> Dict[str, str]:
        ids = [product_id for product_id in platform_product_ids if product_id]
        if not ids:
            return {}
        result = await self.db.execute(
            select(Product.platform_product_id, Product.title).where(
                Product.store_id == store_id,
                Product.platform_product_id.in_(ids),
            )
        )
        return {platform_product_id: title for platform_product_id, title in result.all()}

    async def load_customer_history(
        self,
        store_id: UUID,
        customer_ids: Optional[Iterable[str]] = None,
    ) -> Dict[str, List[datetime]]:
        stmt = select(CustomerOrderHistory).where(CustomerOrderHistory.store_id == store_id)
        if customer_ids is not None:
            ids = list(customer_ids)
            if not ids:
                return {}
            stmt = stmt.where(CustomerOrderHistory.platform_customer_id.in_(ids))
        result = await self.db.execute(stmt)
        return {
            row.platform_customer_id: list(row.order_dates or [])
            for row in result.scalars().all()
        }

    async def list_customer_order_dates(self, store_id: UUID, customer_ids: Iterable[str]) -> Dict[str, List[datetime]]:
        ids = [customer_id for customer_id in customer_ids if customer_id]
        if not ids:
            return {}
        result = await self.db.execute(
            select(Order.platform_customer_id, Order.ordered_at)
            .where(
                Order.store_id == store_id,
                Order.platform_customer_id.in_(ids),
            )
            .order_by(Order.ordered_at, Order.platform_order_id)
        )
        dates: Dict[str, List[datetime]] = {}
        for customer_id, ordered_at in result.all():
            dates.setdefault(customer_id, []).append(ordered_at)
        return dates

    async def replace_customer_history(self, store_id: UUID, history: Dict[str, List[datetime]]) -> None:
        await self.db.execute(delete(CustomerOrderHistory).where(CustomerOrderHistory.store_id == store_id))
        rows = [
            {'store_id': store_id, 'platform_customer_id': customer_id, 'order_dates': dates}
            for customer_id, dates in history.items()
        ]
        for batch in _batches(rows):
            await self.db.execute(insert(CustomerOrderHistory).values(batch))

    async def save_customer_history(self, store_id: UUID, history: Dict[str, List[datetime]]) -> None:
        rows = [
            {'store_id': store_id, 'platform_customer_id': customer_id, 'order_dates': dates}
            for customer_id, dates in history.items()
        ]
        for batch in _batches(rows):
            stmt = insert(CustomerOrderHistory).values(batch)
            stmt = stmt.on_conflict_do_update(
                index_elements=[CustomerOrderHistory.store_id, CustomerOrderHistory.platform_customer_id],
                set_={'order_dates': stmt.excluded.order_dates, 'updated_at': func.now()},
            )
            await self.db.execute(stmt)

    async def delete_metrics(self, store_id: UUID, start_date: date, end_date: date) -> int:
        result = await self.db.execute(
            delete(Metric).where(
                Metric.store_id == store_id,
                Metric.date >= start_date,
                Metric.date <= end_date,
            )
        )
        return result.rowcount

    async def upsert_metrics(self, store_id: UUID, metrics: List[MetricData]) -> int:
        rows = [
            {
                'id': uuid4(),
                'store_id': store_id,
                'date': metric.date,
                'metric_type': metric.metric_type,
                'value': metric.value,
                'description': metric.description,
            }
            for metric in metrics
        ]
        for batch in _batches(rows):
            stmt = insert(Metric).values(batch)
            stmt = stmt.on_conflict_do_update(
                constraint='uq_store_date_metric_type',
                set_={
                    'value': stmt.excluded.value,
                    'description': stmt.excluded.description,
                    'updated_at': func.now(),
                },
            )
            await self.db.execute(stmt)
        return len(rows)

    async def list_metrics(self, store_id: UUID, start_date: date, end_date: date) -> List[MetricData]:
        result = await self.db.execute(
            select(Metric)
            .where(
                Metric.store_id == store_id,
                Metric.date >= start_date,
                Metric.date <= end_date,
            )
            .order_by(Metric.date)
        )
        return [MetricData.model_validate(metric) for metric in result.scalars().all()]

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
