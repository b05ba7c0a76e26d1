"""Client modules for REST and WebSocket communication."""

from .api import CBProAPI
from .auth import Credentials, sign, sign_websocket_auth
from .rate_limit import RateLimiter
from .requests import RequestBuilder, RequestMethod, SignedRequest
from .subscription import Channel, SubscriptionBuilder, SubscriptionMessage
from .transport import RawResponse, Transport
from .websocket import WebSocketSession

__all__ = [
    "CBProAPI",
    "Channel",
    "Credentials",
    "RateLimiter",
    "RawResponse",
    "RequestBuilder",
    "RequestMethod",
    "SignedRequest",
    "SubscriptionBuilder",
    "SubscriptionMessage",
    "Transport",
    "WebSocketSession",
    "sign",
    "sign_websocket_auth",
]
