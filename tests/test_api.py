"""Tests for the CBProAPI facade."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from cbpro.client.api import CBProAPI
from cbpro.client.auth import Credentials
from cbpro.client.rate_limit import RateLimiter
from cbpro.client.subscription import SubscriptionBuilder
from cbpro.client.transport import Transport
from cbpro.errors import BuildError, ConfigError, ServerError
from cbpro.models.order import LimitOrder, MarketOrder, OrderResponse
from cbpro.models.product import Product, ProductBook
from cbpro.models.trade import Trade

from .fakes import TEST_REST_URL, FakeHTTPSession, FakeResponse, FakeWebSocket, text_frame


def script(http_session: FakeHTTPSession, *responses: FakeResponse) -> None:
    http_session.responses.extend(responses)


class TestPublicEndpoints:
    """Test suite for unauthenticated endpoints."""

    @pytest.mark.asyncio
    async def test_get_product(
        self, api: CBProAPI, http_session: FakeHTTPSession, sample_product: dict
    ):
        script(http_session, FakeResponse(payload=sample_product))

        product = await api.get_product("BTC-USD")

        assert isinstance(product, Product)
        assert product.product_id == "BTC-USD"
        assert product.quote_increment == "0.01"
        call = http_session.calls[0]
        assert call["method"] == "GET"
        assert call["url"] == f"{TEST_REST_URL}/products/BTC-USD"
        assert "CB-ACCESS-SIGN" not in call["headers"]
        assert call["headers"]["User-Agent"]

    @pytest.mark.asyncio
    async def test_get_all_products(
        self, api: CBProAPI, http_session: FakeHTTPSession, sample_product: dict
    ):
        other = dict(sample_product, id="ETH-USD", base_currency="ETH")
        script(http_session, FakeResponse(payload=[sample_product, other]))

        products = await api.get_all_products()

        assert [p.product_id for p in products] == ["BTC-USD", "ETH-USD"]

    @pytest.mark.asyncio
    async def test_get_product_book_level(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(
            http_session,
            FakeResponse(
                payload={
                    "sequence": 13051505638,
                    "bids": [["6247.58", "6.3578146", 2]],
                    "asks": [["6251.52", "2", 1]],
                }
            ),
        )

        book = await api.get_product_book("BTC-USD", level=2)

        assert isinstance(book, ProductBook)
        assert book.best_bid == "6247.58"
        assert http_session.calls[0]["url"] == f"{TEST_REST_URL}/products/BTC-USD/book?level=2"

    @pytest.mark.asyncio
    async def test_get_trades(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(
            http_session,
            FakeResponse(
                payload=[
                    {
                        "time": "2022-03-01T18:03:33.654Z",
                        "trade_id": 74,
                        "price": "10.00000000",
                        "size": "0.01000000",
                        "side": "sell",
                    }
                ]
            ),
        )

        trades = await api.get_trades("BTC-USD", limit=1)

        assert len(trades) == 1
        assert isinstance(trades[0], Trade)
        assert trades[0].product_id == "BTC-USD"
        assert trades[0].trade_id == 74
        assert http_session.calls[0]["url"].endswith("/products/BTC-USD/trades?limit=1")

    @pytest.mark.asyncio
    async def test_get_currencies(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(
            http_session,
            FakeResponse(payload=[{"id": "BTC", "name": "Bitcoin", "min_size": "0.00000001"}]),
        )

        currencies = await api.get_currencies()

        assert currencies[0].currency_id == "BTC"
        assert currencies[0].name == "Bitcoin"

    @pytest.mark.asyncio
    async def test_requests_wait_for_rate_limiter(self, sample_product: dict):
        transport = MagicMock()
        transport.exec = AsyncMock(return_value=Product.from_api(sample_product))
        limiter = MagicMock()
        limiter.__aenter__ = AsyncMock(return_value=limiter)
        limiter.__aexit__ = AsyncMock(return_value=None)
        api = CBProAPI(transport=transport, rate_limiter=limiter, rest_url=TEST_REST_URL)

        await api.get_product("BTC-USD")

        limiter.__aenter__.assert_awaited_once()
        request = transport.exec.await_args.args[0]
        assert request.url == f"{TEST_REST_URL}/products/BTC-USD"

    @pytest.mark.asyncio
    async def test_server_error_propagates(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(http_session, FakeResponse(status=404, payload={"message": "NotFound"}))

        with pytest.raises(ServerError):
            await api.get_product("NOPE-USD")


class TestPrivateEndpoints:
    """Test suite for signed endpoints."""

    @pytest.mark.asyncio
    async def test_signed_headers_present(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(http_session, FakeResponse(payload=[]))

        await api.get_accounts()

        headers = http_session.calls[0]["headers"]
        assert headers["CB-ACCESS-KEY"] == "test-key"
        assert headers["CB-ACCESS-PASSPHRASE"] == "test-pass"
        assert headers["CB-ACCESS-SIGN"]
        assert headers["CB-ACCESS-TIMESTAMP"].isdigit()

    @pytest.mark.asyncio
    async def test_private_call_without_credentials(self, http_session: FakeHTTPSession):
        api = CBProAPI(transport=Transport(session=http_session), rest_url=TEST_REST_URL)

        with pytest.raises(ConfigError):
            await api.get_accounts()
        assert http_session.calls == []

    @pytest.mark.asyncio
    async def test_create_limit_order(
        self, api: CBProAPI, http_session: FakeHTTPSession, sample_order: dict
    ):
        script(http_session, FakeResponse(payload=sample_order))
        order = LimitOrder(
            product_id="ETH-USD", side="sell", price="3115.19", size="0.00500772"
        )

        response = await api.create_order(order)

        assert isinstance(response, OrderResponse)
        assert response.order_id == sample_order["id"]
        call = http_session.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == f"{TEST_REST_URL}/orders"
        assert json.loads(call["data"]) == order.to_api_payload()

    @pytest.mark.asyncio
    async def test_create_market_order_with_funds(
        self, api: CBProAPI, http_session: FakeHTTPSession, sample_order: dict
    ):
        script(http_session, FakeResponse(payload=dict(sample_order, type="market")))

        await api.create_order(MarketOrder(product_id="ETH-USD", side="buy", funds="10"))

        body = json.loads(http_session.calls[0]["data"])
        assert body == {"type": "market", "product_id": "ETH-USD", "side": "buy", "funds": "10"}

    @pytest.mark.asyncio
    async def test_cancel_order(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(http_session, FakeResponse(payload="c714c4f6"))

        cancelled = await api.cancel_order("c714c4f6", product_id="ETH-USD")

        assert cancelled == "c714c4f6"
        call = http_session.calls[0]
        assert call["method"] == "DELETE"
        assert call["url"] == f"{TEST_REST_URL}/orders/c714c4f6?product_id=ETH-USD"

    @pytest.mark.asyncio
    async def test_cancel_all_orders(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(http_session, FakeResponse(payload=["a", "b"]))

        assert await api.cancel_all_orders() == ["a", "b"]
        assert http_session.calls[0]["url"] == f"{TEST_REST_URL}/orders"

    @pytest.mark.asyncio
    async def test_get_fills_requires_filter(self, api: CBProAPI):
        with pytest.raises(BuildError) as exc_info:
            await api.get_fills()
        assert exc_info.value.reason == BuildError.INCOMPLETE

    @pytest.mark.asyncio
    async def test_get_fills_query(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(http_session, FakeResponse(payload=[{"trade_id": 1}]))

        fills = await api.get_fills(product_id="BTC-USD")

        assert fills == [{"trade_id": 1}]
        assert http_session.calls[0]["url"] == f"{TEST_REST_URL}/fills?product_id=BTC-USD"

    @pytest.mark.asyncio
    async def test_get_orders_paginated(
        self, api: CBProAPI, http_session: FakeHTTPSession, sample_order: dict
    ):
        script(http_session, FakeResponse(payload=[sample_order]))

        orders = await api.get_orders(status="open")

        assert len(orders) == 1
        assert orders[0].is_open
        assert http_session.calls[0]["url"] == f"{TEST_REST_URL}/orders?status=open"


class TestAccountEndpoints:
    """Test suite for wallet, transfer and conversion endpoints."""

    @pytest.mark.asyncio
    async def test_get_all_wallets(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(http_session, FakeResponse(payload=[{"id": "w1", "currency": "BTC"}]))

        wallets = await api.get_all_wallets()

        assert wallets == [{"id": "w1", "currency": "BTC"}]
        call = http_session.calls[0]
        assert call["method"] == "GET"
        assert call["url"] == f"{TEST_REST_URL}/coinbase-accounts"
        assert call["headers"]["CB-ACCESS-KEY"] == "test-key"
        assert call["headers"]["CB-ACCESS-SIGN"]

    @pytest.mark.asyncio
    async def test_get_account_transfers(
        self, api: CBProAPI, http_session: FakeHTTPSession
    ):
        script(http_session, FakeResponse(payload=[{"id": "t1", "type": "deposit"}]))

        transfers = await api.get_account_transfers("acct")

        assert transfers == [{"id": "t1", "type": "deposit"}]
        call = http_session.calls[0]
        assert call["url"] == f"{TEST_REST_URL}/accounts/acct/transfers"
        assert call["headers"]["CB-ACCESS-SIGN"]

    @pytest.mark.asyncio
    async def test_get_conversion(self, api: CBProAPI, http_session: FakeHTTPSession):
        script(http_session, FakeResponse(payload={"id": "conv", "amount": "10.00"}))

        conversion = await api.get_conversion("conv", profile_id="prof")

        assert conversion["amount"] == "10.00"
        call = http_session.calls[0]
        assert call["url"] == f"{TEST_REST_URL}/conversions/conv?profile_id=prof"
        assert call["headers"]["CB-ACCESS-PASSPHRASE"] == "test-pass"


class CountingRateLimiter(RateLimiter):
    """RateLimiter that records how many slots were taken."""

    def __init__(self):
        super().__init__(rate_per_second=1000)
        self.waits = 0

    async def wait(self) -> None:
        self.waits += 1
        await super().wait()


class TestRateLimiting:
    """Test suite for request scheduling through the shared limiter."""

    @pytest.mark.asyncio
    async def test_every_page_takes_a_slot(self, http_session: FakeHTTPSession, credentials):
        limiter = CountingRateLimiter()
        api = CBProAPI(
            credentials=credentials,
            transport=Transport(session=http_session),
            rate_limiter=limiter,
            rest_url=TEST_REST_URL,
        )
        full_page = [{"id": str(i)} for i in range(1000)]
        script(
            http_session,
            FakeResponse(payload=full_page, headers={"cb-after": "p2"}),
            FakeResponse(payload=full_page, headers={"cb-after": "p3"}),
            FakeResponse(payload=[{"id": "last"}], headers={"cb-after": "p4"}),
        )

        entries = await api.get_account_ledger("acct")

        assert len(entries) == 2001
        assert len(http_session.calls) == 3
        assert limiter.waits == 3

    @pytest.mark.asyncio
    async def test_single_request_takes_one_slot(
        self, http_session: FakeHTTPSession, credentials
    ):
        limiter = CountingRateLimiter()
        api = CBProAPI(
            credentials=credentials,
            transport=Transport(session=http_session),
            rate_limiter=limiter,
            rest_url=TEST_REST_URL,
        )
        script(http_session, FakeResponse(payload=[]))

        await api.get_accounts()

        assert limiter.waits == 1


class TestCloning:
    """Test suite for facade cloning."""

    def test_clone_shares_components(self, api: CBProAPI):
        clone = api.clone()

        assert clone is not api
        assert clone.transport is api.transport
        assert clone.rate_limiter is api.rate_limiter
        assert clone.websocket is not api.websocket
        assert clone.websocket.shares_connection_with(api.websocket)

    def test_with_credentials(self, api: CBProAPI):
        other = Credentials(api_key="other", api_secret="b3RoZXI=", passphrase="pp")

        clone = api.with_credentials(other)

        assert clone.credentials is other
        assert api.credentials.api_key == "test-key"
        assert clone.transport is api.transport

    @pytest.mark.asyncio
    async def test_close_leaves_borrowed_session(
        self, api: CBProAPI, http_session: FakeHTTPSession
    ):
        await api.websocket.connect()
        await api.close()

        assert not api.websocket.is_connected
        assert not http_session.closed


class TestWebSocket:
    """Test suite for streaming through the facade."""

    @pytest.mark.asyncio
    async def test_subscribe_connects_and_returns_ack(
        self, api: CBProAPI, http_session: FakeHTTPSession, fake_ws: FakeWebSocket
    ):
        ack = {
            "type": "subscriptions",
            "channels": [{"name": "heartbeat", "product_ids": ["ETH-USD"]}],
        }
        fake_ws.feed(text_frame(ack))
        message = SubscriptionBuilder().subscribe_to_heartbeat("ETH-USD").build()

        raw = await api.subscribe_to_websocket(message)

        assert json.loads(raw) == ack
        assert http_session.ws_connect_calls == 1
        assert json.loads(fake_ws.sent[0])["channels"][0]["name"] == "heartbeat"

    @pytest.mark.asyncio
    async def test_read_websocket(self, api: CBProAPI, fake_ws: FakeWebSocket):
        fake_ws.feed(text_frame({"type": "subscriptions", "channels": []}))
        fake_ws.feed(text_frame({"type": "heartbeat", "sequence": 90}))
        await api.subscribe_to_websocket(
            SubscriptionBuilder().subscribe_to_heartbeat("ETH-USD").build()
        )

        raw = await api.clone().read_websocket()

        assert json.loads(raw)["sequence"] == 90
