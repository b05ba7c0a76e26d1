"""WebSocket session for the Coinbase Pro feed.

A ``WebSocketSession`` is a handle to one shared connection. ``clone()``
returns another handle to the same connection, so every holder sends and
reads on one socket. Each discrete send or receive runs under a single
``asyncio.Lock``: frames are never interleaved, sends go out in call order,
and frames are handed back in arrival order. A reader that is cancelled while
waiting releases the lock on the way out.

There is no reconnection logic here. A closed or broken connection surfaces
as an exception from the call that hit it; call ``connect()`` again to
resume.
"""

import asyncio

import aiohttp

from ..errors import (
    ConnectionClosedError,
    ConnectionFailedError,
    NotConnectedError,
    ReadError,
    SendError,
)
from ..utils.config import Config
from ..utils.logger import logger
from .subscription import SubscriptionMessage


class _Connection:
    """State shared by every clone of a session."""

    def __init__(self, url: str, session: aiohttp.ClientSession | None):
        self.url = url
        self.session = session
        self.owns_session = session is None
        self.ws: aiohttp.ClientWebSocketResponse | None = None
        self.lock = asyncio.Lock()


class WebSocketSession:
    """Async WebSocket session, shareable across tasks via clone()."""

    def __init__(
        self,
        url: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self._conn = _Connection(url or Config.get_ws_url(), session)

    def clone(self) -> "WebSocketSession":
        """Another handle on the same underlying connection."""
        other = WebSocketSession.__new__(WebSocketSession)
        other._conn = self._conn
        return other

    def shares_connection_with(self, other: "WebSocketSession") -> bool:
        return self._conn is other._conn

    @property
    def url(self) -> str:
        return self._conn.url

    @property
    def is_connected(self) -> bool:
        """Check if WebSocket is connected."""
        return self._conn.ws is not None and not self._conn.ws.closed

    async def connect(self) -> None:
        """
        Open the connection. Does nothing if already connected.

        Raises:
            ConnectionFailedError: DNS, TLS or handshake failure
        """
        async with self._conn.lock:
            if self.is_connected:
                logger.debug("WebSocket already connected")
                return

            conn = self._conn
            if conn.session is None or conn.session.closed:
                conn.session = aiohttp.ClientSession()
                conn.owns_session = True

            logger.info(f"Connecting to WebSocket: {conn.url}")
            try:
                conn.ws = await conn.session.ws_connect(conn.url)
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                logger.error(f"WebSocket connection failed: {e}")
                conn.ws = None
                if conn.owns_session:
                    await conn.session.close()
                    conn.session = None
                raise ConnectionFailedError(
                    f"Could not connect to {conn.url}: {e}"
                ) from e

            logger.info("WebSocket connected")

    async def close(self) -> None:
        """Close the socket, and the HTTP session if this session created it."""
        conn = self._conn
        ws, conn.ws = conn.ws, None

        if ws is not None and not ws.closed:
            await ws.close()

        if conn.owns_session and conn.session is not None and not conn.session.closed:
            await conn.session.close()
            conn.session = None

        logger.info("WebSocket disconnected")

    async def subscribe(self, message: SubscriptionMessage) -> None:
        """
        Send a subscribe message as one text frame.

        Raises:
            NotConnectedError: connect() was not called, or the session was closed
            SendError: the connection is broken
        """
        async with self._conn.lock:
            await self._send(message)
        logger.info(f"Subscribed to channels: {[c.name.value for c in message.channels]}")

    async def unsubscribe(self, message: SubscriptionMessage) -> None:
        """Send the unsubscribe form of a message."""
        async with self._conn.lock:
            await self._send(message.as_unsubscribe())
        logger.info(
            f"Unsubscribed from channels: {[c.name.value for c in message.channels]}"
        )

    async def read_next(self) -> str:
        """
        Wait for the next inbound frame and return it undecoded.

        Raises:
            NotConnectedError: connect() was not called, or the session was closed
            ConnectionClosedError: the peer closed the connection
            ReadError: error frame or unexpected frame type
        """
        async with self._conn.lock:
            return await self._receive()

    async def subscribe_and_read(self, message: SubscriptionMessage) -> str:
        """Send a subscribe message and read the reply without releasing the lock."""
        async with self._conn.lock:
            await self._send(message)
            return await self._receive()

    async def _send(self, message: SubscriptionMessage) -> None:
        ws = self._conn.ws
        if ws is None:
            raise NotConnectedError("WebSocket is not connected")
        if ws.closed:
            raise SendError("Cannot send message: WebSocket is closed")

        payload = message.to_json()
        logger.debug(f"WS SEND -> {payload}")
        try:
            await ws.send_str(payload)
        except (aiohttp.ClientError, ConnectionError) as e:
            logger.error(f"WebSocket send failed: {e}")
            raise SendError(f"Failed to send {message.type} message: {e}") from e

    async def _receive(self) -> str:
        ws = self._conn.ws
        if ws is None:
            raise NotConnectedError("WebSocket is not connected")

        msg = await ws.receive()

        if msg.type == aiohttp.WSMsgType.TEXT:
            logger.debug(f"WS RECV <- {msg.data}")
            return msg.data

        if msg.type == aiohttp.WSMsgType.BINARY:
            try:
                return msg.data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ReadError(f"Binary frame is not UTF-8: {e}") from e

        if msg.type in (
            aiohttp.WSMsgType.CLOSE,
            aiohttp.WSMsgType.CLOSING,
            aiohttp.WSMsgType.CLOSED,
        ):
            logger.warning("WebSocket closed by server")
            self._conn.ws = None
            raise ConnectionClosedError(code=ws.close_code)

        if msg.type == aiohttp.WSMsgType.ERROR:
            logger.error(f"WebSocket error: {ws.exception()}")
            raise ReadError(f"WebSocket error frame: {ws.exception()}")

        raise ReadError(f"Unexpected WebSocket frame type: {msg.type!r}")
