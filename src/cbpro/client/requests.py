"""Low level request construction and signing.

``RequestBuilder`` is the lowest level API for talking to the REST endpoints:
it accumulates method, path, query parameters, body and credentials, and
``build()`` turns them into an immutable ``SignedRequest``. Nothing here
touches the network; ``Transport`` sends what the builder produced.

Example:
    request = (
        RequestBuilder()
        .method(RequestMethod.GET)
        .path("/fills")
        .query("product_id", "BTC-USD")
        .sign(credentials)
        .build()
    )
"""

import copy
import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
from urllib.parse import quote

from ..errors import BuildError
from ..utils.config import Config
from ..utils.logger import logger
from ..utils.timing import get_timestamp_seconds
from .auth import Credentials, get_auth_headers, sign


class RequestMethod(str, Enum):
    """HTTP methods used by the exchange API."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class SignedRequest:
    """A fully specified outbound request. Signed last, never modified afterwards."""

    method: RequestMethod
    url: str
    path: str  # path + query string, exactly as signed
    body: str | None
    headers: Mapping[str, str]
    timestamp: int | None = None
    signature: str | None = None
    query: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def is_signed(self) -> bool:
        return self.signature is not None


def build_query_string(params: list[tuple[str, str]]) -> str:
    """Build the query string that is both signed and sent ("?a=1&b=2").

    Values are percent-encoded here so the HTTP client sends exactly the
    signed text.
    """
    if not params:
        return ""
    return "?" + "&".join(f"{k}={quote(str(v), safe='')}" for k, v in params)


class RequestBuilder:
    """Fluent builder for REST requests."""

    def __init__(self, base_url: str | None = None, user_agent: str | None = None):
        self._base_url = (base_url or Config.get_rest_url()).rstrip("/")
        self._user_agent = user_agent or Config.USER_AGENT
        self._method: RequestMethod | None = None
        self._path: str | None = None
        self._query: list[tuple[str, str]] = []
        self._body: str | None = None
        self._credentials: Credentials | None = None

    def method(self, method: RequestMethod | str) -> "RequestBuilder":
        if isinstance(method, RequestMethod):
            self._method = method
            return self
        try:
            self._method = RequestMethod(method.upper())
        except ValueError as e:
            raise BuildError(BuildError.INVALID, f"Unsupported HTTP method: {method}") from e
        return self

    def path(self, path: str) -> "RequestBuilder":
        """Set the endpoint path relative to the base URL (e.g., "/products")."""
        self._path = path if path.startswith("/") else f"/{path}"
        return self

    def base_url(self, url: str) -> "RequestBuilder":
        self._base_url = url.rstrip("/")
        return self

    def user_agent(self, user_agent: str) -> "RequestBuilder":
        self._user_agent = user_agent
        return self

    def query(self, key: str, value: Any) -> "RequestBuilder":
        self._query.append((key, str(value)))
        return self

    def try_query(self, key: str, value: Any | None) -> "RequestBuilder":
        """Add a query parameter only when a value is given."""
        if value is not None:
            self.query(key, value)
        return self

    def body(self, payload: Any) -> "RequestBuilder":
        """Serialize payload to JSON now, so the signed body is the sent body."""
        try:
            self._body = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise BuildError(BuildError.INVALID, f"Could not serialize body: {e}") from e
        return self

    def sign(self, credentials: Credentials) -> "RequestBuilder":
        self._credentials = credentials
        return self

    def copy(self) -> "RequestBuilder":
        """Independent copy, e.g. to add a pagination cursor per page."""
        clone = copy.copy(self)
        clone._query = list(self._query)
        return clone

    def build(self) -> SignedRequest:
        """
        Produce an immutable request, signed at the current timestamp.

        Raises:
            BuildError: method or path was not set
            ConfigError: credentials carry an invalid secret
        """
        if self._method is None or self._path is None:
            missing = [
                name
                for name, value in (("method", self._method), ("path", self._path))
                if value is None
            ]
            raise BuildError(
                BuildError.INCOMPLETE, f"Request is missing: {', '.join(missing)}"
            )

        request_path = self._path + build_query_string(self._query)
        headers = {
            "User-Agent": self._user_agent,
            "Content-Type": "application/json",
        }

        timestamp = None
        signature = None
        if self._credentials is not None:
            timestamp = get_timestamp_seconds()
            signature = sign(
                self._credentials.api_secret,
                timestamp,
                self._method.value,
                request_path,
                self._body or "",
            )
            headers.update(get_auth_headers(self._credentials, signature, timestamp))

        logger.debug(
            f"Built request {self._method.value} {request_path} signed={signature is not None}"
        )

        return SignedRequest(
            method=self._method,
            url=f"{self._base_url}{request_path}",
            path=request_path,
            body=self._body,
            headers=MappingProxyType(headers),
            timestamp=timestamp,
            signature=signature,
            query=tuple(self._query),
        )
