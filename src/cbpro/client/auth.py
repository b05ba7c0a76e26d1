"""Authentication and signing utilities for the Coinbase Pro API."""

import base64
import binascii
import hashlib
import hmac
from dataclasses import dataclass, field

from ..errors import ConfigError, SignatureError
from ..utils.config import Config
from ..utils.timing import get_timestamp_seconds

# Path the exchange verifies websocket auth fields against
WEBSOCKET_AUTH_PATH = "/users/self/verify"


@dataclass(frozen=True)
class Credentials:
    """API key data used to sign requests."""

    api_key: str
    api_secret: str = field(repr=False)  # base64 encoded
    passphrase: str = field(repr=False)

    @classmethod
    def from_config(cls) -> "Credentials | None":
        """Build credentials from environment configuration, if all parts are set."""
        if not Config.validate():
            return None
        return cls(
            api_key=Config.API_KEY,
            api_secret=Config.API_SECRET,
            passphrase=Config.API_PASSPHRASE,
        )


def decode_secret(secret: str) -> bytes:
    """Decode a base64 API secret, raising ConfigError when it is not valid base64."""
    try:
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigError(f"Invalid API secret, expected base64: {e}") from e


def sign(
    secret: str,
    timestamp: int,
    method: str,
    path: str,
    body: str = "",
) -> str:
    """
    Sign a request using HMAC-SHA256.

    The prehash string is timestamp + method + path + body, where path already
    includes any query string. The exchange recomputes the same digest and
    rejects the request on mismatch.

    Args:
        secret: Base64 encoded API secret
        timestamp: Unix timestamp in seconds
        method: HTTP method (GET, POST, DELETE)
        path: Request path (e.g., "/orders?product_id=BTC-USD")
        body: Request body as JSON string, empty when absent

    Returns:
        Base64 encoded signature
    """
    key = decode_secret(secret)

    # Example: "1700000000GET/products"
    message = f"{timestamp}{method}{path}{body or ''}"

    try:
        digest = hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()
    except (TypeError, ValueError) as e:
        raise SignatureError(f"Failed to compute signature: {e}") from e

    return base64.b64encode(digest).decode("ascii")


def get_auth_headers(
    credentials: Credentials, signature: str, timestamp: int
) -> dict[str, str]:
    """
    Get authentication headers for REST API requests.

    Args:
        credentials: API key data
        signature: Base64 HMAC-SHA256 signature
        timestamp: Unix timestamp in seconds

    Returns:
        Dictionary of headers
    """
    return {
        "CB-ACCESS-KEY": credentials.api_key,
        "CB-ACCESS-SIGN": signature,
        "CB-ACCESS-TIMESTAMP": str(timestamp),
        "CB-ACCESS-PASSPHRASE": credentials.passphrase,
    }


def sign_websocket_auth(
    credentials: Credentials, timestamp: int | None = None
) -> dict[str, str]:
    """
    Build the auth fields carried by an authenticated subscribe message.

    Signature = HMAC-SHA256 of timestamp + 'GET' + '/users/self/verify'

    Args:
        credentials: API key data
        timestamp: Unix timestamp in seconds (auto-generated if None)

    Returns:
        Dict with key, sign, timestamp and passphrase fields
    """
    if timestamp is None:
        timestamp = get_timestamp_seconds()

    signature = sign(credentials.api_secret, timestamp, "GET", WEBSOCKET_AUTH_PATH)

    return {
        "key": credentials.api_key,
        "sign": signature,
        "timestamp": str(timestamp),
        "passphrase": credentials.passphrase,
    }
