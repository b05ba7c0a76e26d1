"""WebSocket subscription payloads."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import BuildError
from ..utils.logger import logger
from .auth import Credentials, sign_websocket_auth


class Channel(str, Enum):
    """Feed channels (see https://docs.cloud.coinbase.com/exchange/docs/websocket-channels)."""

    HEARTBEAT = "heartbeat"
    STATUS = "status"
    TICKER = "ticker"
    LEVEL2 = "level2"
    MATCHES = "matches"
    FULL = "full"
    USER = "user"


# Channels that are not scoped to products
PRODUCTLESS_CHANNELS = {Channel.STATUS}

# Channels the exchange only serves to authenticated subscribers
AUTHENTICATED_CHANNELS = {Channel.USER}


@dataclass(frozen=True)
class ChannelSubscription:
    """One channel entry of a subscribe message."""

    name: Channel
    product_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        if self.name in PRODUCTLESS_CHANNELS:
            return {"name": self.name.value}
        return {"name": self.name.value, "product_ids": list(self.product_ids)}


@dataclass(frozen=True)
class SubscriptionMessage:
    """Finalized subscribe (or unsubscribe) message."""

    channels: tuple[ChannelSubscription, ...]
    type: str = "subscribe"
    auth: tuple[tuple[str, str], ...] = ()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth)

    def as_unsubscribe(self) -> "SubscriptionMessage":
        """Same channels with type "unsubscribe" (no auth fields needed)."""
        return SubscriptionMessage(channels=self.channels, type="unsubscribe")

    def to_dict(self) -> dict[str, Any]:
        message: dict[str, Any] = {
            "type": self.type,
            "channels": [channel.to_dict() for channel in self.channels],
        }
        message.update(dict(self.auth))
        return message

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class SubscriptionBuilder:
    """
    Accumulates channel/product subscriptions and builds a subscribe message.

    Adding the same channel and product twice yields a single entry. Channels
    appear in the order they were first requested, as do product ids.

    The builder is one-shot: after ``build()`` it is consumed and any further
    use raises ``BuildError``.

    Example:
        message = (
            SubscriptionBuilder()
            .subscribe_to_heartbeat("ETH-USD")
            .subscribe_to_level2("ETH-USD")
            .build()
        )
    """

    def __init__(self):
        self._channels: dict[Channel, dict[str, None]] = {}
        self._credentials: Credentials | None = None
        self._consumed = False

    def _check_not_consumed(self) -> None:
        if self._consumed:
            raise BuildError(
                BuildError.CONSUMED, "SubscriptionBuilder was already built"
            )

    def subscribe(self, channel: Channel | str, *product_ids: str) -> "SubscriptionBuilder":
        """Generic form: add one or more products to a channel."""
        self._check_not_consumed()
        try:
            channel = Channel(channel)
        except ValueError as e:
            raise BuildError(BuildError.INVALID, f"Unknown channel: {channel}") from e

        if channel in PRODUCTLESS_CHANNELS and product_ids:
            raise BuildError(
                BuildError.INVALID, f"Channel {channel.value} does not take product ids"
            )
        if channel not in PRODUCTLESS_CHANNELS and not product_ids:
            raise BuildError(
                BuildError.INVALID, f"Channel {channel.value} requires a product id"
            )

        products = self._channels.setdefault(channel, {})
        for product_id in product_ids:
            products[product_id] = None
        return self

    def subscribe_to_heartbeat(self, product_id: str) -> "SubscriptionBuilder":
        return self.subscribe(Channel.HEARTBEAT, product_id)

    def subscribe_to_status(self) -> "SubscriptionBuilder":
        return self.subscribe(Channel.STATUS)

    def subscribe_to_ticker(self, product_id: str) -> "SubscriptionBuilder":
        return self.subscribe(Channel.TICKER, product_id)

    def subscribe_to_level2(self, product_id: str) -> "SubscriptionBuilder":
        return self.subscribe(Channel.LEVEL2, product_id)

    def subscribe_to_matches(self, product_id: str) -> "SubscriptionBuilder":
        return self.subscribe(Channel.MATCHES, product_id)

    def subscribe_to_full(self, product_id: str) -> "SubscriptionBuilder":
        return self.subscribe(Channel.FULL, product_id)

    def subscribe_to_user(self, product_id: str) -> "SubscriptionBuilder":
        return self.subscribe(Channel.USER, product_id)

    def authenticate(self, credentials: Credentials) -> "SubscriptionBuilder":
        """Sign the message so authenticated channels are accepted."""
        self._check_not_consumed()
        self._credentials = credentials
        return self

    def build(self) -> SubscriptionMessage:
        """
        Finalize the message and consume the builder.

        Raises:
            BuildError: nothing subscribed, user channel without credentials,
                or the builder was already built
        """
        self._check_not_consumed()

        if not self._channels:
            raise BuildError(BuildError.EMPTY, "No channels subscribed")

        needs_auth = AUTHENTICATED_CHANNELS.intersection(self._channels)
        if needs_auth and self._credentials is None:
            names = ", ".join(sorted(channel.value for channel in needs_auth))
            raise BuildError(
                BuildError.INVALID, f"Channels require authentication: {names}"
            )

        channels = tuple(
            ChannelSubscription(name=channel, product_ids=tuple(products))
            for channel, products in self._channels.items()
        )

        auth: tuple[tuple[str, str], ...] = ()
        if self._credentials is not None:
            auth = tuple(sign_websocket_auth(self._credentials).items())

        self._consumed = True
        self._channels = {}

        logger.debug(f"Built subscription for {[c.name.value for c in channels]}")
        return SubscriptionMessage(channels=channels, auth=auth)
