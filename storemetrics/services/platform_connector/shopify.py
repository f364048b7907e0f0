import asyncio
import logging
import socket
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from functools import wraps
from typing import Dict, Optional, Any
from urllib.error import URLError
from urllib.parse import urlparse, parse_qs

import shopify
from pyactiveresource.connection import Error as ResourceError
from shopify.collection import PaginatedCollection

from .base import EcommercePlatformConnector, FeedPage
from storemetrics.core.config import get_settings
from storemetrics.core.exceptions import FeedError

logger = logging.getLogger(__name__)


def _status_code(error: Exception) -> Optional[int]:
    response = getattr(error, 'response', None)
    code = getattr(response, 'code', None)
    if code is None:
        code = getattr(error, 'code', None)
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def _is_retryable(error: Exception) -> bool:
    """Rate limits, server errors and network failures are worth another attempt."""
    status = _status_code(error)
    if status is not None:
        return status == 429 or status >= 500
    # No HTTP status: pyactiveresource wraps URLError this way, or a raw socket failure
    return isinstance(error, (ResourceError, URLError, socket.timeout, TimeoutError, ConnectionError))


# Define a retry decorator for rate limiting
def retry_on_rate_limit(max_retries: Optional[int] = None, delay: Optional[float] = None):
    """
    Retry a feed call with exponential backoff.

    Waits `delay`, `2 * delay`, `4 * delay`, ... between attempts and gives up
    after `max_retries` retries. Errors that are not retryable (bad token,
    missing shop, malformed request) fail on the first attempt. Every failure
    leaves the decorator as a FeedError carrying the cursor that was requested.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            settings = get_settings()
            retries_allowed = settings.FEED_MAX_RETRIES if max_retries is None else max_retries
            base_delay = settings.FEED_RETRY_BASE_DELAY if delay is None else delay
            cursor = kwargs.get('cursor')
            retries = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except FeedError:
                    raise
                except (ResourceError, URLError, socket.timeout, TimeoutError, ConnectionError) as e:
                    status = _status_code(e)
                    if not _is_retryable(e):
                        raise FeedError(f"Shopify API request failed: {e}", cursor=cursor, status_code=status) from e
                    if retries >= retries_allowed:
                        raise FeedError(
                            f"Shopify API request failed after {retries_allowed} retries: {e}",
                            cursor=cursor,
                            status_code=status,
                        ) from e
                    wait = base_delay * (2 ** retries)
                    retries += 1
                    logger.warning(f"Shopify request failed ({status or e}). Retrying in {wait} seconds... ({retries}/{retries_allowed})")
                    await asyncio.sleep(wait)
                except Exception as e:
                    raise FeedError(f"An unexpected error occurred during Shopify API call: {e}", cursor=cursor) from e
        return wrapper
    return decorator


class ShopifyConnector(EcommercePlatformConnector):
    """Shopify platform connector implementation."""

    def __init__(self, api_version: Optional[str] = None):
        self.api_version = api_version or get_settings().SHOPIFY_API_VERSION

    async def get_platform_name(self) -> str:
        return "shopify"

    def _find_page(self, resource_class, access_token: str, shop_domain: str, params: Dict) -> FeedPage:
        # ShopifyResource keeps the active session on the class, so one store per process at a time.
        with shopify.Session.temp(shop_domain, self.api_version, access_token):
            resources: PaginatedCollection = resource_class.find(**params)
            items = [resource.to_dict() for resource in resources]
            next_cursor = None
            if resources.has_next_page():
                next_cursor = self._page_info_from_url(resources.next_page_url)
        return FeedPage(items=items, next_cursor=next_cursor)

    @staticmethod
    def _page_info_from_url(url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        values = parse_qs(urlparse(url).query).get('page_info')
        return values[0] if values else None

    @retry_on_rate_limit()
    async def fetch_orders_page(
        self,
        access_token: str,
        shop_domain: str,
        limit: int,
        created_at_min: Optional[datetime] = None,
        created_at_max: Optional[datetime] = None,
        cursor: Optional[str] = None,
    ) -> FeedPage:
        params: Dict[str, Any] = {'limit': min(limit, 250)}  # Shopify max limit is 250
        if cursor:
            # page_info requests only accept limit alongside the cursor
            params['page_info'] = cursor
        else:
            params['status'] = 'any'
            params['order'] = 'created_at asc'
            if created_at_min:
                params['created_at_min'] = created_at_min.isoformat()
            if created_at_max:
                params['created_at_max'] = created_at_max.isoformat()
        logger.debug(f"Fetching orders for {shop_domain} with params {params}")
        return self._find_page(shopify.Order, access_token, shop_domain, params)

    @retry_on_rate_limit()
    async def fetch_products_page(
        self,
        access_token: str,
        shop_domain: str,
        limit: int,
        updated_at_min: Optional[datetime] = None,
        updated_at_max: Optional[datetime] = None,
        cursor: Optional[str] = None,
    ) -> FeedPage:
        params: Dict[str, Any] = {'limit': min(limit, 250)}
        if cursor:
            params['page_info'] = cursor
        else:
            if updated_at_min:
                params['updated_at_min'] = updated_at_min.isoformat()
            if updated_at_max:
                params['updated_at_max'] = updated_at_max.isoformat()
        logger.debug(f"Fetching products for {shop_domain} with params {params}")
        return self._find_page(shopify.Product, access_token, shop_domain, params)

    def _parse_datetime(self, value: Optional[str]) -> Optional[datetime]:
        """Safely parse ISO 8601 datetime strings from Shopify."""
        if not value:
            return None
        try:
            # Handle potential timezone offsets like -04:00 or Z
            dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
            # Ensure datetime is timezone-aware (UTC)
            if dt.tzinfo is None:
                return dt.replace(tzinfo=timezone.utc)
            return dt.astimezone(timezone.utc)
        except (ValueError, TypeError):
            logger.warning(f"Could not parse datetime value: {value}")
            return None

    def _safe_decimal(self, value: Any) -> Decimal:
        """Safely convert value to Decimal, defaulting to 0.00."""
        if value is None or value == '':
            return Decimal('0.00')
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            logger.warning(f"Could not convert value to Decimal: {value}")
            return Decimal('0.00')

    @staticmethod
    def _shop_money(price_set: Optional[Dict]) -> Dict:
        return (price_set or {}).get('shop_money') or {}

    async def map_order_to_db_model(self, platform_order_data: Dict) -> Dict:
        """Transform Shopify order data into our field names (derived financials are added by the caller)."""
        ordered_at = self._parse_datetime(platform_order_data.get('created_at'))
        if ordered_at is None:
            raise ValueError(f"Order {platform_order_data.get('id')} has no usable created_at")

        customer = platform_order_data.get('customer') or {}
        if customer:
            customer_name = f"{customer.get('first_name') or ''} {customer.get('last_name') or ''}".strip() or 'Unknown'
        else:
            customer_name = 'Unknown'
        shipping_address = platform_order_data.get('shipping_address') or {}
        currency = (
            self._shop_money(platform_order_data.get('current_total_price_set')).get('currency_code')
            or platform_order_data.get('currency')
        )

        return {
            'platform_order_id': str(platform_order_data.get('id')),
            'order_number': str(platform_order_data.get('order_number') or platform_order_data.get('id')),
            'source': platform_order_data.get('source_name'),
            'ordered_at': ordered_at,
            'customer_name': customer_name,
            'platform_customer_id': str(customer['id']) if customer.get('id') is not None else '',
            'fulfillment_status': platform_order_data.get('fulfillment_status') or 'Unfulfilled',
            'currency': currency,
            'paid': self._safe_decimal(platform_order_data.get('total_price')),
            'tax': self._safe_decimal(platform_order_data.get('total_tax')),
            'shipping_paid': self._safe_decimal(
                self._shop_money(platform_order_data.get('total_shipping_price_set')).get('amount')
            ),
            'shipping_country': shipping_address.get('country') or 'N/A',
            'shipping_region': shipping_address.get('province_code') or 'N/A',
            'discount': self._safe_decimal(platform_order_data.get('total_discounts')),
            'line_items': [
                await self.map_line_item_to_db_model(item)
                for item in platform_order_data.get('line_items') or []
            ],
        }

    async def map_line_item_to_db_model(self, platform_line_item_data: Dict) -> Dict:
        """Transform Shopify line item data; `paid` is unit price times quantity."""
        quantity = int(platform_line_item_data.get('quantity') or 0)
        price = self._safe_decimal(platform_line_item_data.get('price'))
        product_id = platform_line_item_data.get('product_id')
        variant_id = platform_line_item_data.get('variant_id')
        return {
            'platform_line_item_id': str(platform_line_item_data.get('id')),
            'platform_product_id': str(product_id) if product_id else '',
            'platform_variant_id': str(variant_id) if variant_id else '',
            'title': platform_line_item_data.get('variant_title') or platform_line_item_data.get('title') or '',
            'quantity': quantity,
            'paid': price * quantity,
            'discount': self._safe_decimal(platform_line_item_data.get('total_discount')),
        }

    async def map_product_to_db_model(self, platform_product_data: Dict) -> Dict:
        """Transform Shopify product data into our field names."""
        return {
            'platform_product_id': str(platform_product_data.get('id')),
            'title': platform_product_data.get('title') or '',
            'vendor': platform_product_data.get('vendor'),
            'product_type': platform_product_data.get('product_type'),
            'platform_created_at': self._parse_datetime(platform_product_data.get('created_at')),
            'platform_updated_at': self._parse_datetime(platform_product_data.get('updated_at')),
            'variants': [
                await self.map_product_variant_to_db_model(variant)
                for variant in platform_product_data.get('variants') or []
            ],
        }

    async def map_product_variant_to_db_model(self, platform_variant_data: Dict) -> Dict:
        return {
            'platform_variant_id': str(platform_variant_data.get('id')),
            'title': platform_variant_data.get('title'),
            'sku': platform_variant_data.get('sku'),
            'price': self._safe_decimal(platform_variant_data.get('price')),
            'inventory_quantity': int(platform_variant_data.get('inventory_quantity') or 0),
            'platform_created_at': self._parse_datetime(platform_variant_data.get('created_at')),
            'platform_updated_at': self._parse_datetime(platform_variant_data.get('updated_at')),
        }
