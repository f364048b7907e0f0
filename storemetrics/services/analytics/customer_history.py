from bisect import insort
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from storemetrics.schemas.sync import OrderData


class CustomerHistoryIndex:
    """Ascending purchase dates per customer of one store.

    Orders without a customer id (guest checkouts) are never indexed.
    """

    def __init__(self, history: Optional[Dict[str, List[datetime]]] = None):
        self._dates: Dict[str, List[datetime]] = {
            customer_id: sorted(dates)
            for customer_id, dates in (history or {}).items()
            if customer_id and dates
        }

    @classmethod
    def rebuild(cls, orders: Iterable[OrderData]) -> "CustomerHistoryIndex":
        """Build the index from a store's complete order set."""
        index = cls()
        index.extend(orders)
        return index

    def extend(self, orders: Iterable[OrderData]) -> Set[str]:
        """Merge new orders into the index. Returns the customer ids that changed."""
        touched: Set[str] = set()
        for order in orders:
            customer_id = order.platform_customer_id
            if not customer_id:
                continue
            insort(self._dates.setdefault(customer_id, []), order.ordered_at)
            touched.add(customer_id)
        return touched

    def first_purchase(self, customer_id: str) -> Optional[datetime]:
        dates = self._dates.get(customer_id)
        return dates[0] if dates else None

    def order_dates(self, customer_id: str) -> List[datetime]:
        return list(self._dates.get(customer_id, []))

    def to_dict(self, customer_ids: Optional[Iterable[str]] = None) -> Dict[str, List[datetime]]:
        if customer_ids is None:
            return {customer_id: list(dates) for customer_id, dates in self._dates.items()}
        return {
            customer_id: list(self._dates[customer_id])
            for customer_id in customer_ids
            if customer_id in self._dates
        }

    def __contains__(self, customer_id: str) -> bool:
        return customer_id in self._dates

    def __len__(self) -> int:
        return len(self._dates)
