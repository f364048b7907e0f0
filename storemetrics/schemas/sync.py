from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Set

from pydantic import BaseModel, Field


class LineItemData(BaseModel):
    platform_line_item_id: str
    platform_product_id: str = ""
    platform_variant_id: str = ""
    title: str
    quantity: int
    paid: Decimal
    discount: Decimal = Decimal("0")
    product_cost: Decimal = Decimal("0")
    pre_tax_gross_profit: Decimal = Decimal("0")
    pre_tax_gross_margin: Decimal = Decimal("0")

    model_config = {"from_attributes": True}


class OrderData(BaseModel):
    """A normalized order with its derived financials."""
    platform_order_id: str
    order_number: str
    source: Optional[str] = None
    ordered_at: datetime
    customer_name: str = "Unknown"
    platform_customer_id: str = ""
    fulfillment_status: str = "Unfulfilled"
    currency: Optional[str] = None
    paid: Decimal
    tax: Decimal = Decimal("0")
    shipping_paid: Decimal = Decimal("0")
    shipping_country: str = "N/A"
    shipping_region: str = "N/A"
    discount: Decimal = Decimal("0")
    cogs: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    line_items: List[LineItemData] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @property
    def net_sale(self) -> Decimal:
        return self.paid - self.tax

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.line_items)

    @property
    def purchase_revenue(self) -> Decimal:
        return sum((item.paid for item in self.line_items), Decimal("0"))


class VariantData(BaseModel):
    platform_variant_id: str
    title: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[Decimal] = None
    inventory_quantity: int = 0
    platform_created_at: Optional[datetime] = None
    platform_updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProductData(BaseModel):
    platform_product_id: str
    title: str
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    platform_created_at: Optional[datetime] = None
    platform_updated_at: Optional[datetime] = None
    variants: List[VariantData] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class IngestionResult(BaseModel):
    fetched: int = 0
    # Rows inserted for the first time (orders)
    created: int = 0
    # Rows inserted or updated (products)
    upserted: int = 0
    pages: int = 0
    # Latest ordered_at among committed orders
    watermark: Optional[datetime] = None
    created_orders: List[OrderData] = Field(default_factory=list)
    # Customers of every order in the window, whether it was new or already stored
    customer_ids: Set[str] = Field(default_factory=set)


class SyncResult(BaseModel):
    store_id: str
    mode: str
    window_start: datetime
    window_end: datetime
    products_fetched: int = 0
    orders_fetched: int = 0
    orders_created: int = 0
    customers_indexed: int = 0
    metric_cells_written: int = 0
    duration: timedelta = timedelta(0)
