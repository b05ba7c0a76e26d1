"""Data models."""

from .order import LimitOrder, MarketOrder, OrderResponse, OrderSide, TimeInForce
from .product import Currency, Product, ProductBook
from .trade import Trade

__all__ = [
    "Currency",
    "LimitOrder",
    "MarketOrder",
    "OrderResponse",
    "OrderSide",
    "Product",
    "ProductBook",
    "TimeInForce",
    "Trade",
]
