"""
Ingest Pipeline Module
======================

Wires the three ingest stages together:

    Listener -> [intake relay] -> ParserStage -> [record relay] -> PersisterStage

Each stage runs as its own asyncio task. Hops are bounded and drop on
full; per-item failures are logged and the item is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from post_catalog.core.errors import ParseError, StoreError
from post_catalog.core.schema import RawEvent, Record
from post_catalog.db.repositories import DEFAULT_WRITE_TIMEOUT, PostStore
from post_catalog.ingestion.listener import Listener
from post_catalog.ingestion.parser import parse
from post_catalog.ingestion.relay import DEFAULT_CAPACITY, Relay

logger = logging.getLogger(__name__)


class ParserStage:
    """Parses raw events into records."""

    def __init__(self, inbox: Relay[RawEvent], outbox: Relay[Record]) -> None:
        self.inbox = inbox
        self.outbox = outbox
        self.processed = 0
        self.rejected = 0

    def process(self, event: RawEvent) -> Record | None:
        """Parse one event and forward the record; None if rejected or dropped."""
        try:
            record = parse(event)
        except ParseError as e:
            self.rejected += 1
            logger.warning(f"Skipping message due to processing error: {e}")
            return None

        self.processed += 1
        if not self.outbox.try_send(record):
            return None

        logger.info(f"Processed message: {record!r}")
        return record

    async def run(self) -> None:
        logger.info("Parser started")
        while True:
            event = await self.inbox.receive()
            try:
                self.process(event)
            except Exception:
                self.rejected += 1
                logger.exception("Skipping message due to unexpected error")
            finally:
                self.inbox.task_done()

    def stats(self) -> dict[str, int]:
        return {"processed": self.processed, "rejected": self.rejected}


class PersisterStage:
    """Writes records to the store."""

    def __init__(
        self,
        inbox: Relay[Record],
        store: PostStore,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    ) -> None:
        self.inbox = inbox
        self.store = store
        self.write_timeout = write_timeout
        self.saved = 0
        self.failed = 0

    async def process(self, record: Record) -> bool:
        """Save one record; failures are logged, never retried."""
        try:
            await self.store.asave(record, self.write_timeout)
        except StoreError as e:
            self.failed += 1
            logger.error(f"Failed to save message {record.name}: {e}")
            return False

        self.saved += 1
        logger.info(f"Saved message: {record.name}")
        return True

    async def run(self) -> None:
        logger.info("Persister started, listening for processed messages")
        while True:
            record = await self.inbox.receive()
            try:
                await self.process(record)
            except Exception:
                self.failed += 1
                logger.exception(f"Unexpected error saving message {record.name}")
            finally:
                self.inbox.task_done()

    def stats(self) -> dict[str, int]:
        return {"saved": self.saved, "failed": self.failed}


class IngestPipeline:
    """
    Owns the relays, the stages and an optional listener.

    Shutdown is cooperative: the listener stops first, then the stage
    tasks are cancelled. Items still queued may be lost.
    """

    def __init__(
        self,
        store: PostStore,
        capacity: int = DEFAULT_CAPACITY,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    ) -> None:
        self.intake: Relay[RawEvent] = Relay("intake", capacity)
        self.records: Relay[Record] = Relay("records", capacity)
        self.parser = ParserStage(self.intake, self.records)
        self.persister = PersisterStage(self.records, store, write_timeout)
        self.listener: Listener = Listener(self.intake)
        self._tasks: list[asyncio.Task[None]] = []

    def attach_listener(self, listener: Listener) -> None:
        """Replace the default push-only listener; must share the intake relay."""
        if listener.relay is not self.intake:
            raise ValueError("listener must send to the pipeline intake relay")
        self.listener = listener

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        """Spawn one task per stage."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self.persister.run(), name="persister"),
            asyncio.create_task(self.parser.run(), name="parser"),
            asyncio.create_task(self.listener.run(), name="listener"),
        ]
        logger.info("Ingest pipeline started")

    async def stop(self) -> None:
        """Stop intake, then cancel the stages."""
        self.listener.stop()
        for task in reversed(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Ingest pipeline stopped")

    async def drain(self) -> None:
        """Wait until every queued item has been parsed and persisted or dropped."""
        await self.intake.join()
        await self.records.join()

    def stats(self) -> dict[str, Any]:
        return {
            "listener": self.listener.stats(),
            "intake": self.intake.stats(),
            "parser": self.parser.stats(),
            "records": self.records.stats(),
            "persister": self.persister.stats(),
        }
