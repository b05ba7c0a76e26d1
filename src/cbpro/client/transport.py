"""HTTP transport for built requests."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Mapping, TypeVar

import aiohttp

from ..errors import DecodeError, ServerError, TransportError
from ..utils.config import Config
from ..utils.logger import logger
from .requests import RequestBuilder, SignedRequest

T = TypeVar("T")

# Decode capability: turns parsed JSON into the caller's type
Decoder = Callable[[Any], T]


@dataclass(frozen=True)
class RawResponse:
    """Undecoded HTTP response."""

    status: int
    headers: Mapping[str, str]  # lower-cased names
    text: str

    def json(self) -> Any:
        if not self.text and self.status < 400:
            return None
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as e:
            if self.status >= 400:
                logger.error(
                    f"REST API error: {self.status} - Non-JSON response: {self.text[:200]}"
                )
                raise ServerError(self.status, self.text[:100]) from e
            raise DecodeError(f"Response is not JSON: {e}", body=self.text) from e


class Transport:
    """Async HTTP executor for SignedRequest objects."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        timeout: float = Config.REST_TIMEOUT,
    ):
        self.session = session
        self.timeout = timeout
        self._owns_session = session is None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self) -> None:
        """Create aiohttp session."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
            logger.info("REST transport session opened")

    async def close(self) -> None:
        """Close aiohttp session if this transport created it."""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
            logger.info("REST transport session closed")

    async def execute(self, request: SignedRequest) -> RawResponse:
        """
        Send a built request and return the raw response.

        Raises:
            TransportError: On connection, timeout or protocol failure
        """
        if self.session is None or self.session.closed:
            await self.connect()

        logger.debug(
            f"REST request -> method: {request.method.value} url: {request.url} body: {request.body}"
        )

        try:
            async with self.session.request(
                method=request.method.value,
                url=request.url,
                data=request.body,
                headers=dict(request.headers),
            ) as response:
                text = await response.text()
                return RawResponse(
                    status=response.status,
                    headers={k.lower(): v for k, v in response.headers.items()},
                    text=text,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"REST request failed: {request.method.value} {request.url} - {e}")
            raise TransportError(
                f"{request.method.value} {request.path} failed: {e}"
            ) from e

    async def exec(
        self, request: SignedRequest, decode: Decoder[T] | None = None
    ) -> T | Any:
        """
        Execute a request and decode its JSON body.

        Args:
            request: Built request
            decode: Optional callable applied to the parsed JSON

        Returns:
            Decoded response, or the parsed JSON when no decoder is given

        Raises:
            ServerError: The exchange returned an error message
            DecodeError: Body could not be parsed or decoded
        """
        response = await self.execute(request)
        return self._decode(response, decode)

    async def exec_paginated(
        self,
        builder: RequestBuilder,
        decode: Decoder[T] | None = None,
        page_len: int = Config.PAGE_LENGTH,
        before_page: Callable[[], Awaitable[None]] | None = None,
    ) -> list[T | Any]:
        """
        Execute a list endpoint, following the cb-after cursor until exhausted.

        Each page is built and signed separately so every page carries a fresh
        timestamp. before_page, when given, is awaited ahead of every page
        request (e.g. a rate limiter's wait).
        """
        items: list[Any] = []
        after: str | None = None

        while True:
            if before_page is not None:
                await before_page()
            page_builder = builder.copy().try_query("after", after)
            response = await self.execute(page_builder.build())
            page = self._check(response)

            if not isinstance(page, list):
                raise DecodeError("Expected a list response", body=page)

            if decode is not None:
                page = [self._apply(decode, item) for item in page]
            items.extend(page)

            after = response.headers.get("cb-after")
            if len(page) != page_len or not after:
                break

        logger.debug(f"Fetched {len(items)} items over paginated request")
        return items

    def _check(self, response: RawResponse) -> Any:
        data = response.json()

        if response.status >= 400:
            message = (
                data.get("message", "Unknown error")
                if isinstance(data, dict)
                else str(data)
            )
            logger.error(f"REST API error: {response.status} - {message}")
            raise ServerError(response.status, message)

        return data

    def _decode(self, response: RawResponse, decode: Decoder[T] | None) -> T | Any:
        data = self._check(response)
        if decode is None:
            return data
        return self._apply(decode, data)

    @staticmethod
    def _apply(decode: Decoder[T], data: Any) -> T:
        # A bare {"message": ...} where a typed value was expected is a server error
        if isinstance(data, dict) and set(data) == {"message"}:
            raise ServerError(200, str(data["message"]))
        try:
            return decode(data)
        except (KeyError, ValueError, TypeError) as e:
            raise DecodeError(f"Failed to decode response: {e}", body=data) from e
