"""Trade model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from ..utils.timing import parse_iso_timestamp


@dataclass
class Trade:
    """Represents a public trade (match) on a product."""

    product_id: str
    trade_id: int
    price: str
    size: str
    side: Literal["buy", "sell"]  # Maker order side
    time: datetime | None

    @classmethod
    def from_api(cls, product_id: str, data: dict) -> "Trade":
        """Create Trade from API response."""
        return cls(
            product_id=product_id,
            trade_id=int(data["trade_id"]),
            price=str(data["price"]),
            size=str(data["size"]),
            side=data["side"],
            time=parse_iso_timestamp(data.get("time")),
        )

    def __repr__(self) -> str:
        return f"Trade({self.product_id}, {self.side}, price={self.price}, size={self.size}, id={self.trade_id})"
