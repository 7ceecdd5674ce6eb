"""
Listener Module
===============

Entry point of the ingest pipeline. A Listener turns incoming posts into
RawEvents on the intake relay; TelegramListener feeds it from a channel
via Bot API long polling.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from post_catalog.core.schema import RawEvent
from post_catalog.ingestion.relay import Relay

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class Listener:
    """Accepts raw posts and emits them as events without blocking."""

    def __init__(self, relay: Relay[RawEvent]) -> None:
        self.relay = relay
        self.accepted = 0
        self.skipped = 0
        self._stopping = asyncio.Event()

    def submit(self, text: str, url: str | None, origin_id: int) -> bool:
        """
        Emit one post as a RawEvent.

        Empty posts are skipped. A full relay drops the event. Nothing is
        accepted once stop() has been called.

        Returns:
            True if the event was enqueued.
        """
        if self._stopping.is_set():
            logger.info("Listener stopped, rejecting message")
            return False

        if not text:
            self.skipped += 1
            logger.info("Skipping empty message")
            return False

        event = RawEvent(text=text, url=url or "", origin_id=origin_id)
        if not self.relay.try_send(event):
            return False

        self.accepted += 1
        logger.info(f"Message sent to parser:\n{text}")
        return True

    async def run(self) -> None:
        """Produce events until stopped. Push-only listeners have no loop."""

    def stop(self) -> None:
        """Stop taking new input."""
        self._stopping.set()

    def stats(self) -> dict[str, int]:
        return {"accepted": self.accepted, "skipped": self.skipped}


def extract_url(entities: list[dict[str, Any]] | None) -> str:
    """Return the URL of the first text_link entity, or an empty string."""
    for entity in entities or []:
        if entity.get("type") == "text_link" and entity.get("url"):
            return entity["url"]
    return ""


class TelegramListener(Listener):
    """
    Long-polls getUpdates for channel posts from a single channel.

    Posts from other chats are logged and ignored.
    """

    def __init__(
        self,
        relay: Relay[RawEvent],
        token: str,
        channel_id: int,
        client: httpx.AsyncClient | None = None,
        poll_timeout: int = 60,
        error_pause: float = 5.0,
    ) -> None:
        if not token or channel_id == 0:
            raise ValueError("token and channel_id are required")
        super().__init__(relay)
        self.channel_id = channel_id
        self.poll_timeout = poll_timeout
        self.error_pause = error_pause
        self.offset = 0
        self._base_url = f"{TELEGRAM_API_URL}/bot{token}"
        self._client = client
        self._owns_client = client is None

    async def get_updates(self) -> list[dict[str, Any]]:
        """Fetch the next batch of updates and advance the offset."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.poll_timeout + 10)

        response = await self._client.get(
            f"{self._base_url}/getUpdates",
            params={
                "offset": self.offset,
                "timeout": self.poll_timeout,
                "allowed_updates": '["channel_post"]',
            },
        )
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as e:
            raise httpx.DecodingError(f"getUpdates returned invalid JSON: {e}", request=response.request) from e
        if not isinstance(payload, dict):
            raise httpx.DecodingError("getUpdates returned an unexpected payload", request=response.request)
        if not payload.get("ok"):
            raise httpx.HTTPError(f"getUpdates failed: {payload.get('description', 'unknown error')}")

        updates = payload.get("result") or []
        if not isinstance(updates, list):
            raise httpx.DecodingError("getUpdates result is not a list", request=response.request)

        # Updates without an integer id cannot move the offset
        update_ids = [u.get("update_id") for u in updates if isinstance(u, dict)]
        update_ids = [i for i in update_ids if isinstance(i, int)]
        if update_ids:
            self.offset = max(update_ids) + 1
        return [u for u in updates if isinstance(u, dict)]

    def handle_update(self, update: dict[str, Any]) -> bool:
        """
        Submit a channel post update.

        Returns:
            True if an event was enqueued.
        """
        post = update.get("channel_post")
        if post is None:
            return False

        chat_id = post.get("chat", {}).get("id")
        if chat_id != self.channel_id:
            logger.warning(f"Received message from unexpected channel: {chat_id}")
            return False

        text = post.get("text", "")
        url = extract_url(post.get("entities"))
        return self.submit(text, url, chat_id)

    async def run(self) -> None:
        """Poll until stop() is called."""
        logger.info(f"Listening for messages from channel {self.channel_id}")
        try:
            while not self._stopping.is_set():
                try:
                    updates = await self.get_updates()
                except httpx.HTTPError as e:
                    logger.error(f"Failed to fetch updates: {e}")
                    await self._pause()
                    continue

                for update in updates:
                    try:
                        self.handle_update(update)
                    except Exception:
                        logger.exception(f"Skipping malformed update: {update!r}")
        finally:
            if self._owns_client and self._client is not None:
                await self._client.aclose()
                self._client = None
            logger.info("Listener stopped")

    async def _pause(self) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), self.error_pause)
        except TimeoutError:
            pass
