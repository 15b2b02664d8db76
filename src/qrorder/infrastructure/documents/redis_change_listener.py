from __future__ import annotations

import asyncio
import logging

from redis import asyncio as redis_asyncio

from qrorder.infrastructure.cache.redis_client import create_async_client, redis_configured
from qrorder.infrastructure.documents.change_feed import ChangeFeed
from qrorder.infrastructure.documents.redis_publisher import CHANNEL_PREFIX

logger = logging.getLogger(__name__)

CHANNEL_PATTERN = f"{CHANNEL_PREFIX}*"


def _decode_value(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def topic_from_channel(channel: str) -> str | None:
    if not channel.startswith(CHANNEL_PREFIX):
        return None
    return channel[len(CHANNEL_PREFIX):] or None


async def start_change_fanout(feed: ChangeFeed) -> None:
    if not redis_configured():
        logger.warning("change_fanout_not_started", extra={"reason": "REDIS_URL missing"})
        return

    backoff_seconds = 1.0
    while True:
        client: redis_asyncio.Redis | None = None
        pubsub: redis_asyncio.client.PubSub | None = None
        try:
            client = create_async_client()
            pubsub = client.pubsub()
            await pubsub.psubscribe(CHANNEL_PATTERN)
            logger.info("change_fanout_subscribed", extra={"pattern": CHANNEL_PATTERN})
            backoff_seconds = 1.0

            while True:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message is None:
                    await asyncio.sleep(0.05)
                    continue

                channel = _decode_value(message.get("channel"))
                topic = topic_from_channel(channel) if channel else None
                if topic is None:
                    logger.warning("change_fanout_invalid_channel", extra={"channel": channel})
                    continue

                # listeners read the store synchronously, keep them off the loop
                await asyncio.to_thread(feed.notify, topic)
        except asyncio.CancelledError:
            logger.info("change_fanout_cancelled")
            raise
        except Exception:
            logger.exception(
                "change_fanout_error",
                extra={"backoff_seconds": backoff_seconds},
            )
            await asyncio.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, 5.0)
        finally:
            if pubsub is not None:
                await pubsub.aclose()
            if client is not None:
                await client.aclose()
