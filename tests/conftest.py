"""Pytest configuration and shared fixtures."""

import os

import pytest

from cbpro.client.api import CBProAPI
from cbpro.client.auth import Credentials
from cbpro.client.rate_limit import RateLimiter
from cbpro.client.transport import Transport
from cbpro.client.websocket import WebSocketSession

from .fakes import (
    TEST_REST_URL,
    TEST_SECRET,
    TEST_WS_URL,
    FakeHTTPSession,
    FakeWebSocket,
)


@pytest.fixture
def credentials() -> Credentials:
    """Test credentials with a known secret."""
    return Credentials(api_key="test-key", api_secret=TEST_SECRET, passphrase="test-pass")


@pytest.fixture
def fake_ws() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def http_session(fake_ws: FakeWebSocket) -> FakeHTTPSession:
    return FakeHTTPSession(websocket=fake_ws)


@pytest.fixture
def ws_session(http_session: FakeHTTPSession) -> WebSocketSession:
    """WebSocket session backed by a fake socket."""
    return WebSocketSession(url=TEST_WS_URL, session=http_session)


@pytest.fixture
def api(http_session: FakeHTTPSession, ws_session: WebSocketSession, credentials) -> CBProAPI:
    """Facade wired to fake HTTP and WebSocket sessions."""
    return CBProAPI(
        credentials=credentials,
        transport=Transport(session=http_session),
        websocket=ws_session,
        rate_limiter=RateLimiter(rate_per_second=1000),
        rest_url=TEST_REST_URL,
    )


@pytest.fixture
def skip_if_no_live():
    """Skip test unless live exchange tests are enabled."""
    if os.getenv("CBPRO_LIVE_TESTS") != "1":
        pytest.skip("Live tests disabled (set CBPRO_LIVE_TESTS=1)")


@pytest.fixture
def sample_product() -> dict:
    """Sample /products/{id} response."""
    return {
        "id": "BTC-USD",
        "base_currency": "BTC",
        "quote_currency": "USD",
        "quote_increment": "0.01",
        "base_increment": "0.00000001",
        "display_name": "BTC/USD",
        "min_market_funds": "1",
        "margin_enabled": False,
        "post_only": False,
        "limit_only": False,
        "cancel_only": False,
        "status": "online",
        "status_message": "",
        "trading_disabled": False,
        "fx_stablecoin": False,
        "auction_mode": False,
    }


@pytest.fixture
def sample_order() -> dict:
    """Sample order response."""
    return {
        "id": "c714c4f6-1296-4451-89ca-040b3cfa8631",
        "price": "3115.19000000",
        "size": "0.00500772",
        "product_id": "ETH-USD",
        "profile_id": "c37debbf-a41c-496e-a8b9-a85e6d3ef4ff",
        "side": "sell",
        "type": "limit",
        "time_in_force": "GTC",
        "post_only": False,
        "created_at": "2022-03-01T17:50:06.65121Z",
        "fill_fees": "0.0000000000000000",
        "filled_size": "0.00000000",
        "executed_value": "0.0000000000000000",
        "status": "open",
        "settled": False,
    }


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "live: mark test as requiring live connection")
    config.addinivalue_line(
        "markers", "credentials: mark test as requiring API credentials"
    )


def pytest_collection_modifyitems(config, items):
    """Add 'live' marker to tests in integration_live module."""
    for item in items:
        if "integration_live" in item.nodeid:
            item.add_marker(pytest.mark.live)
