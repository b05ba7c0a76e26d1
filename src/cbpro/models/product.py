"""Product, order book and currency models."""

from dataclasses import dataclass, field
from typing import Literal

BookLevel = Literal[1, 2, 3]


@dataclass
class Product:
    """Represents a trading pair (e.g., "BTC-USD")."""

    product_id: str
    base_currency: str
    quote_currency: str
    quote_increment: str  # Minimum price increment as string
    base_increment: str  # Minimum size increment as string
    display_name: str = ""
    min_market_funds: str | None = None
    status: str = "online"
    status_message: str = ""
    post_only: bool = False
    limit_only: bool = False
    cancel_only: bool = False
    trading_disabled: bool = False

    @classmethod
    def from_api(cls, data: dict) -> "Product":
        """Create Product from API response."""
        return cls(
            product_id=data["id"],
            base_currency=data["base_currency"],
            quote_currency=data["quote_currency"],
            quote_increment=str(data.get("quote_increment", "0.01")),
            base_increment=str(data.get("base_increment", "0.00000001")),
            display_name=data.get("display_name") or data["id"].replace("-", "/"),
            min_market_funds=data.get("min_market_funds"),
            status=data.get("status", "online"),
            status_message=data.get("status_message") or "",
            post_only=bool(data.get("post_only", False)),
            limit_only=bool(data.get("limit_only", False)),
            cancel_only=bool(data.get("cancel_only", False)),
            trading_disabled=bool(data.get("trading_disabled", False)),
        )

    @classmethod
    def list_from_api(cls, data: list) -> list["Product"]:
        return [cls.from_api(item) for item in data]


@dataclass
class ProductBook:
    """
    Order book snapshot as returned by /products/{id}/book.

    Levels are kept exactly as sent: [price, size, num_orders] for levels 1
    and 2, [price, size, order_id] for level 3.
    """

    sequence: int
    bids: list[list[str]] = field(default_factory=list)
    asks: list[list[str]] = field(default_factory=list)
    auction_mode: bool = False
    time: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> "ProductBook":
        """Create ProductBook from API response."""
        return cls(
            sequence=int(data["sequence"]),
            bids=[list(map(str, level)) for level in data.get("bids", [])],
            asks=[list(map(str, level)) for level in data.get("asks", [])],
            auction_mode=bool(data.get("auction_mode", False)),
            time=data.get("time"),
        )

    @property
    def best_bid(self) -> str | None:
        return self.bids[0][0] if self.bids else None

    @property
    def best_ask(self) -> str | None:
        return self.asks[0][0] if self.asks else None


@dataclass
class Currency:
    """Represents a currency known to the exchange."""

    currency_id: str
    name: str
    min_size: str
    status: str = "online"
    max_precision: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> "Currency":
        """Create Currency from API response."""
        return cls(
            currency_id=data["id"],
            name=data.get("name", data["id"]),
            min_size=str(data.get("min_size", "0")),
            status=data.get("status", "online"),
            max_precision=data.get("max_precision"),
        )

    @classmethod
    def list_from_api(cls, data: list) -> list["Currency"]:
        return [cls.from_api(item) for item in data]
