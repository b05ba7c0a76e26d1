"""Exception hierarchy for the Coinbase Pro client.

Everything raised by this package derives from :class:`CBProError`, so callers
can catch the whole family at once or pick the precise failure:

- ``ConfigError``: bad credentials or configuration. Fix the input.
- ``BuildError``: a builder was used incorrectly (missing fields, empty or
  already-consumed subscription builder).
- ``SignatureError``: HMAC computation failed.
- ``OrderError``: an order was constructed with incompatible options.
- ``TransportError`` and subclasses: REST round-trip failures.
- ``WebSocketError`` and subclasses: streaming failures. These leave the
  session in a state the caller must explicitly reconnect from.
"""

from typing import Any


class CBProError(Exception):
    """Base class for all client errors."""


class ConfigError(CBProError):
    """Invalid or missing credentials/configuration."""


class BuildError(CBProError):
    """A request or subscription builder is in an invalid state."""

    INCOMPLETE = "incomplete"
    EMPTY = "empty"
    CONSUMED = "consumed"
    INVALID = "invalid"

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class SignatureError(CBProError):
    """HMAC signature could not be computed."""


class OrderError(CBProError):
    """Order options are mutually incompatible."""


class TransportError(CBProError):
    """HTTP request failed before a usable response was received."""


class ServerError(TransportError):
    """The exchange answered with an error message."""

    def __init__(self, status: int, message: str):
        super().__init__(f"Error from Coinbase Pro server ({status}): {message}")
        self.status = status
        self.message = message


class DecodeError(TransportError):
    """Response body could not be parsed into the requested type."""

    def __init__(self, message: str, body: Any = None):
        super().__init__(message)
        self.body = body


class WebSocketError(CBProError):
    """Base class for streaming failures."""


class ConnectionFailedError(WebSocketError):
    """TLS, DNS or handshake failure while connecting."""


class SendError(WebSocketError):
    """A frame could not be sent."""


class ReadError(WebSocketError):
    """Protocol-level failure while reading a frame."""


class NotConnectedError(SendError, ReadError):
    """Operation attempted on a session that was never connected or was closed."""


class ConnectionClosedError(WebSocketError):
    """The peer closed the connection."""

    def __init__(self, message: str = "WebSocket closed by peer", code: int | None = None):
        super().__init__(message)
        self.code = code
