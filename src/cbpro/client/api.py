"""High level client for the Coinbase Pro REST API and WebSocket feed."""

import copy
from typing import Any

from ..errors import BuildError, ConfigError
from ..models.order import LimitOrder, MarketOrder, OrderResponse
from ..models.product import BookLevel, Currency, Product, ProductBook
from ..models.trade import Trade
from ..utils.config import Config
from ..utils.logger import logger
from .auth import Credentials
from .rate_limit import RateLimiter
from .requests import RequestBuilder, RequestMethod
from .subscription import SubscriptionMessage
from .transport import Decoder, Transport
from .websocket import WebSocketSession


class CBProAPI:
    """
    Async client composed from RequestBuilder, Transport and WebSocketSession.

    Instances are cheap to clone: clones share the HTTP transport, the rate
    limiter and the WebSocket connection.

    Example:
        async with CBProAPI(Credentials.from_config()) as api:
            product = await api.get_product("BTC-USD")
            reply = await api.subscribe_to_websocket(
                SubscriptionBuilder().subscribe_to_heartbeat("BTC-USD").build()
            )
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        transport: Transport | None = None,
        websocket: WebSocketSession | None = None,
        rate_limiter: RateLimiter | None = None,
        rest_url: str | None = None,
        user_agent: str | None = None,
    ):
        self.credentials = credentials
        self.transport = transport or Transport()
        self.websocket = websocket or WebSocketSession()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.rest_url = rest_url or Config.get_rest_url()
        self.user_agent = user_agent or Config.USER_AGENT

    async def __aenter__(self):
        """Context manager entry."""
        await self.transport.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the WebSocket connection and the HTTP session."""
        await self.websocket.close()
        await self.transport.close()

    def clone(self) -> "CBProAPI":
        """Another facade sharing transport, rate limiter and WebSocket connection."""
        other = copy.copy(self)
        other.websocket = self.websocket.clone()
        return other

    def with_credentials(self, credentials: Credentials) -> "CBProAPI":
        """Clone signing with different credentials."""
        other = self.clone()
        other.credentials = credentials
        return other

    # Request plumbing

    def request(self, method: RequestMethod, path: str) -> RequestBuilder:
        """Start a request against the configured REST URL."""
        return (
            RequestBuilder(base_url=self.rest_url, user_agent=self.user_agent)
            .method(method)
            .path(path)
        )

    def signed_request(self, method: RequestMethod, path: str) -> RequestBuilder:
        """Start a request signed with this client's credentials."""
        if self.credentials is None:
            raise ConfigError(f"Credentials are required for {method.value} {path}")
        return self.request(method, path).sign(self.credentials)

    async def execute(self, builder: RequestBuilder, decode: Decoder | None = None) -> Any:
        """Wait for a rate limit slot, then build, sign and send the request."""
        async with self.rate_limiter:
            return await self.transport.exec(builder.build(), decode)

    async def execute_paginated(
        self, builder: RequestBuilder, decode: Decoder | None = None
    ) -> list:
        """Like execute, but takes a rate limit slot for every page."""
        return await self.transport.exec_paginated(
            builder, decode, before_page=self.rate_limiter.wait
        )

    # Public endpoints

    async def get_all_products(self) -> list[Product]:
        """
        Get list of products.

        Returns:
            List of Product objects
        """
        products = await self.execute(
            self.request(RequestMethod.GET, "/products"), Product.list_from_api
        )
        logger.info(f"Fetched {len(products)} products")
        return products

    async def get_product(self, product_id: str) -> Product:
        """
        Get a single product.

        Args:
            product_id: Product id (e.g., "BTC-USD")

        Returns:
            Product object
        """
        return await self.execute(
            self.request(RequestMethod.GET, f"/products/{product_id}"),
            Product.from_api,
        )

    async def get_product_book(
        self, product_id: str, level: BookLevel | None = None
    ) -> ProductBook:
        """
        Get an order book snapshot.

        Args:
            product_id: Product id
            level: 1 (best bid/ask), 2 (aggregated) or 3 (full, non-aggregated)

        Returns:
            ProductBook with the raw price levels
        """
        builder = self.request(
            RequestMethod.GET, f"/products/{product_id}/book"
        ).try_query("level", level)
        return await self.execute(builder, ProductBook.from_api)

    async def get_trades(self, product_id: str, limit: int | None = None) -> list[Trade]:
        """
        Get recent trades.

        Args:
            product_id: Product id
            limit: Number of trades (exchange default 1000)

        Returns:
            List of Trade objects, newest first
        """
        builder = self.request(
            RequestMethod.GET, f"/products/{product_id}/trades"
        ).try_query("limit", limit)
        return await self.execute(
            builder, lambda data: [Trade.from_api(product_id, item) for item in data]
        )

    async def get_currencies(self) -> list[Currency]:
        return await self.execute(
            self.request(RequestMethod.GET, "/currencies"), Currency.list_from_api
        )

    async def get_currency(self, currency_id: str) -> Currency:
        return await self.execute(
            self.request(RequestMethod.GET, f"/currencies/{currency_id}"),
            Currency.from_api,
        )

    # Private endpoints (accounts)

    async def get_fees(self) -> dict[str, Any]:
        """Get maker/taker fee rates and 30 day volume."""
        return await self.execute(self.signed_request(RequestMethod.GET, "/fees"))

    async def get_accounts(self) -> list[dict[str, Any]]:
        return await self.execute(self.signed_request(RequestMethod.GET, "/accounts"))

    async def get_account(self, account_id: str) -> dict[str, Any]:
        return await self.execute(
            self.signed_request(RequestMethod.GET, f"/accounts/{account_id}")
        )

    async def get_account_holds(self, account_id: str) -> list[dict[str, Any]]:
        return await self.execute_paginated(
            self.signed_request(RequestMethod.GET, f"/accounts/{account_id}/holds")
        )

    async def get_account_ledger(self, account_id: str) -> list[dict[str, Any]]:
        return await self.execute_paginated(
            self.signed_request(RequestMethod.GET, f"/accounts/{account_id}/ledger")
        )

    async def get_account_transfers(self, account_id: str) -> list[dict[str, Any]]:
        """Deposits and withdrawals of one account, across all pages."""
        return await self.execute_paginated(
            self.signed_request(RequestMethod.GET, f"/accounts/{account_id}/transfers")
        )

    async def get_all_wallets(self) -> list[dict[str, Any]]:
        """Coinbase wallets linked to the profile."""
        return await self.execute(
            self.signed_request(RequestMethod.GET, "/coinbase-accounts")
        )

    async def get_conversion(self, conversion_id: str, profile_id: str) -> dict[str, Any]:
        """
        Get a stablecoin conversion.

        Args:
            conversion_id: Conversion id
            profile_id: Profile the conversion belongs to

        Returns:
            Conversion data
        """
        builder = self.signed_request(
            RequestMethod.GET, f"/conversions/{conversion_id}"
        ).query("profile_id", profile_id)
        return await self.execute(builder)

    async def get_fills(
        self,
        order_id: str | None = None,
        product_id: str | None = None,
        profile_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Get fills. The exchange requires order_id or product_id.

        Returns:
            List of fill data across all pages
        """
        if order_id is None and product_id is None:
            raise BuildError(BuildError.INCOMPLETE, "get_fills requires order_id or product_id")

        builder = (
            self.signed_request(RequestMethod.GET, "/fills")
            .try_query("order_id", order_id)
            .try_query("product_id", product_id)
            .try_query("profile_id", profile_id)
        )
        return await self.execute_paginated(builder)

    # Private endpoints (orders)

    async def get_orders(
        self,
        product_id: str | None = None,
        profile_id: str | None = None,
        status: str | None = None,
    ) -> list[OrderResponse]:
        """
        Get orders, open ones by default.

        Returns:
            List of OrderResponse objects across all pages
        """
        builder = (
            self.signed_request(RequestMethod.GET, "/orders")
            .try_query("product_id", product_id)
            .try_query("profile_id", profile_id)
            .try_query("status", status)
        )
        return await self.execute_paginated(builder, OrderResponse.from_api)

    async def create_order(self, order: LimitOrder | MarketOrder) -> OrderResponse:
        """
        Place a new order.

        Args:
            order: LimitOrder or MarketOrder

        Returns:
            OrderResponse as accepted by the exchange
        """
        builder = self.signed_request(RequestMethod.POST, "/orders").body(
            order.to_api_payload()
        )
        response = await self.execute(builder, OrderResponse.from_api)
        logger.info(f"Order placed: {response}")
        return response

    async def get_single_order(self, order_id: str) -> OrderResponse:
        return await self.execute(
            self.signed_request(RequestMethod.GET, f"/orders/{order_id}"),
            OrderResponse.from_api,
        )

    async def cancel_order(self, order_id: str, product_id: str | None = None) -> str:
        """
        Cancel an order.

        Args:
            order_id: Order id to cancel
            product_id: Optional product id (lets the exchange route the cancel faster)

        Returns:
            Id of the cancelled order
        """
        builder = self.signed_request(
            RequestMethod.DELETE, f"/orders/{order_id}"
        ).try_query("product_id", product_id)
        cancelled = await self.execute(builder)
        logger.info(f"Order cancelled: {order_id}")
        return cancelled

    async def cancel_all_orders(self, product_id: str | None = None) -> list[str]:
        """
        Cancel all open orders.

        Args:
            product_id: Optional product id to filter by

        Returns:
            Ids of cancelled orders
        """
        builder = self.signed_request(RequestMethod.DELETE, "/orders").try_query(
            "product_id", product_id
        )
        cancelled = await self.execute(builder)
        logger.info(f"All orders cancelled for product_id={product_id}")
        return cancelled or []

    # WebSocket

    async def subscribe_to_websocket(self, message: SubscriptionMessage) -> str:
        """
        Subscribe on the shared connection, connecting first if needed.

        Returns:
            The first frame received after the subscribe was sent, usually the
            "subscriptions" acknowledgement
        """
        await self.websocket.connect()
        return await self.websocket.subscribe_and_read(message)

    async def read_websocket(self) -> str:
        """Next raw frame from the shared connection."""
        return await self.websocket.read_next()
