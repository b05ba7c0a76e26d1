"""
Async Coinbase Pro REST and WebSocket client.
"""

from .client import (
    CBProAPI,
    Credentials,
    RequestBuilder,
    RequestMethod,
    SubscriptionBuilder,
    WebSocketSession,
    sign,
)
from .utils.config import Config

__version__ = "0.1.0"

__all__ = [
    "CBProAPI",
    "Config",
    "Credentials",
    "RequestBuilder",
    "RequestMethod",
    "SubscriptionBuilder",
    "WebSocketSession",
    "sign",
]
