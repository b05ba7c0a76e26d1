"""
Demo script for the Coinbase Pro client.

This example demonstrates:
- Fetching a product and its level 1 order book over REST
- Subscribing to heartbeat and ticker channels on the shared WebSocket
- Reading raw frames and decoding them as JSON

Configuration:
Set CBPRO_ENVIRONMENT=live in your .env file to use the production feed.
"""

import asyncio
import json
import sys

from cbpro import CBProAPI, SubscriptionBuilder
from cbpro.errors import CBProError
from cbpro.utils.logger import logger


async def main(product_id: str, frames: int) -> None:
    async with CBProAPI() as api:
        product = await api.get_product(product_id)
        book = await api.get_product_book(product_id, level=1)
        logger.info(
            f"{product.display_name}: bid={book.best_bid} ask={book.best_ask} status={product.status}"
        )

        message = (
            SubscriptionBuilder()
            .subscribe_to_heartbeat(product_id)
            .subscribe_to_ticker(product_id)
            .build()
        )
        ack = await api.subscribe_to_websocket(message)
        logger.info(f"Subscribed: {ack}")

        for _ in range(frames):
            data = json.loads(await api.read_websocket())
            if data.get("type") == "ticker":
                logger.info(f"Ticker {data['product_id']}: {data['price']}")
            else:
                logger.info(f"{data.get('type')}: {data}")


if __name__ == "__main__":
    # Usage:
    #    python examples/stream_heartbeat.py ETH-USD 20
    pid = sys.argv[1] if len(sys.argv) > 1 else "BTC-USD"
    count = int(sys.argv[2]) if len(sys.argv) > 2 else 10

    try:
        asyncio.run(main(pid, count))
    except CBProError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
