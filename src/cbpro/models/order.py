"""Order request and response models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from ..errors import OrderError
from ..utils.timing import parse_iso_timestamp

OrderSide = Literal["buy", "sell"]
OrderType = Literal["limit", "market"]
TimeInForce = Literal["GTC", "GTT", "IOC", "FOK"]
CancelAfter = Literal["min", "hour", "day"]
SelfTradePrevention = Literal["dc", "co", "cn", "cb"]


@dataclass(frozen=True)
class LimitOrder:
    """A limit order to be placed through POST /orders."""

    product_id: str
    side: OrderSide
    price: str
    size: str
    time_in_force: TimeInForce = "GTC"
    cancel_after: CancelAfter | None = None
    post_only: bool = False
    client_oid: str | None = None
    stp: SelfTradePrevention | None = None

    def __post_init__(self):
        if self.post_only and self.time_in_force in ("IOC", "FOK"):
            raise OrderError("Post only cannot be applied to IOC or FOK time in force")
        if self.time_in_force == "GTT" and self.cancel_after is None:
            raise OrderError("GTT time in force requires cancel_after")
        if self.cancel_after is not None and self.time_in_force != "GTT":
            raise OrderError("cancel_after is only valid with GTT time in force")

    def to_api_payload(self) -> dict:
        """Convert to API payload."""
        payload = {
            "type": "limit",
            "product_id": self.product_id,
            "side": self.side,
            "price": self.price,
            "size": self.size,
            "time_in_force": self.time_in_force,
            "post_only": self.post_only,
        }

        if self.cancel_after is not None:
            payload["cancel_after"] = self.cancel_after

        if self.client_oid:
            payload["client_oid"] = self.client_oid

        if self.stp:
            payload["stp"] = self.stp

        return payload


@dataclass(frozen=True)
class MarketOrder:
    """A market order sized either in base currency (size) or quote currency (funds)."""

    product_id: str
    side: OrderSide
    size: str | None = None
    funds: str | None = None
    client_oid: str | None = None
    stp: SelfTradePrevention | None = None

    def __post_init__(self):
        if (self.size is None) == (self.funds is None):
            raise OrderError("Market orders require exactly one of size or funds")

    def to_api_payload(self) -> dict:
        """Convert to API payload."""
        payload = {
            "type": "market",
            "product_id": self.product_id,
            "side": self.side,
        }

        if self.size is not None:
            payload["size"] = self.size
        else:
            payload["funds"] = self.funds

        if self.client_oid:
            payload["client_oid"] = self.client_oid

        if self.stp:
            payload["stp"] = self.stp

        return payload


@dataclass
class OrderResponse:
    """Order as reported by the exchange."""

    order_id: str
    product_id: str
    side: OrderSide
    order_type: OrderType
    status: str
    size: str | None = None
    price: str | None = None
    funds: str | None = None
    time_in_force: str | None = None
    post_only: bool = False
    filled_size: str = "0"
    fill_fees: str = "0"
    executed_value: str = "0"
    settled: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict) -> "OrderResponse":
        """Create OrderResponse from API response."""
        return cls(
            order_id=data["id"],
            product_id=data["product_id"],
            side=data["side"],
            order_type=data["type"],
            status=data.get("status", "pending"),
            size=data.get("size"),
            price=data.get("price"),
            funds=data.get("funds") or data.get("specified_funds"),
            time_in_force=data.get("time_in_force"),
            post_only=bool(data.get("post_only", False)),
            filled_size=str(data.get("filled_size", "0")),
            fill_fees=str(data.get("fill_fees", "0")),
            executed_value=str(data.get("executed_value", "0")),
            settled=bool(data.get("settled", False)),
            created_at=parse_iso_timestamp(data.get("created_at")),
        )

    @property
    def is_open(self) -> bool:
        return self.status in ("open", "pending", "active")

    def __str__(self) -> str:
        price_str = self.price if self.price is not None else "MARKET"
        return (
            f"Order[{self.status.upper()}]: "
            f"{self.side.upper()} {self.size or self.funds} {self.product_id} @ {price_str} "
            f"(type={self.order_type}, filled={self.filled_size}, id={self.order_id})"
        )
