from .store import Store
from .line_item import LineItem
from .order import Order
from .product import Product
from .product_variant import ProductVariant
from .customer_order_history import CustomerOrderHistory
from .metric import Metric

__all__ = [
    'Store',
    'LineItem',
    'Order',
    'Product',
    'ProductVariant',
    'CustomerOrderHistory',
    'Metric',
]
