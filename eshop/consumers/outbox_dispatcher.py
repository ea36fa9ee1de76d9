import asyncio
import logging
from datetime import timedelta
from typing import List, Optional

from tortoise.transactions import in_transaction

from eshop.consumers.subscriptions import build_event_bus
from eshop.core.config import (
    OUTBOX_BATCH_SIZE,
    OUTBOX_MAX_ATTEMPTS,
    OUTBOX_POLL_INTERVAL,
    OUTBOX_RETENTION_DAYS,
)
from eshop.core.db import close_db, init_db
from eshop.core.exceptions import EventDeserializationError, UnknownEventTypeError
from eshop.core.logging import setup_logging
from eshop.events.bus import EventBus
from eshop.events.outbox_utility import get_pending_messages, mark_processed, record_failure
from eshop.events.registry import EventRegistry, default_registry
from eshop.models.outbox import OutboxMessage
from eshop.services.basket_service import close_basket_repository
from eshop.services.outbox_service import purge_processed_messages

log = logging.getLogger(__name__)

SAVED_FIELDS = ["processed_on", "attempts", "last_error", "failed_on"]


class OutboxDispatcher:
    """
    Background loop that publishes pending outbox messages to the event bus.

    Delivery is at-least-once: a crash after publish but before the batch is
    saved republishes the message on the next cycle, so consumers must be
    idempotent. A message that keeps failing is dead-lettered after
    ``max_attempts`` and no longer blocks the queue.
    """

    def __init__(
        self,
        bus: EventBus,
        registry: EventRegistry = default_registry,
        poll_interval: float = OUTBOX_POLL_INTERVAL,
        batch_size: int = OUTBOX_BATCH_SIZE,
        max_attempts: int = OUTBOX_MAX_ATTEMPTS,
        retention_days: int = OUTBOX_RETENTION_DAYS,
    ):
        self.bus = bus
        self.registry = registry
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.retention_days = retention_days
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    def _fail(self, message: OutboxMessage, error: Exception) -> None:
        if record_failure(message, error, self.max_attempts):
            log.error(
                f"Outbox message {message.id} ({message.type}) dead-lettered after "
                f"{message.attempts} attempt(s): {message.last_error}"
            )

    async def process_pending(self, stop_event: Optional[asyncio.Event] = None) -> int:
        """
        Runs one dispatch cycle. Returns the number of messages published.

        Per-message failures are recorded on the message and never stop the
        cycle. All updates of the cycle are saved in one transaction.
        """
        messages = await get_pending_messages(self.batch_size)
        if not messages:
            return 0

        touched: List[OutboxMessage] = []
        published = 0

        for message in messages:
            if stop_event is not None and stop_event.is_set():
                log.info("Dispatcher stopping mid-cycle; remaining messages stay pending.")
                break
            touched.append(message)

            try:
                event = self.registry.deserialize(message.type, message.content)
            except UnknownEventTypeError as e:
                log.warning(f"Could not resolve type: {message.type} (message {message.id}).")
                self._fail(message, e)
                continue
            except EventDeserializationError as e:
                log.warning(f"Could not deserialize message {message.id} for type {message.type}: {e}. Content: {message.content}")
                self._fail(message, e)
                continue

            try:
                await self.bus.publish(event)
            except Exception as e:
                log.warning(f"Publishing outbox message {message.id} ({message.type}) failed: {e}")
                self._fail(message, e)
                continue

            mark_processed(message)
            published += 1
            log.info(f"Successfully processed outbox message with ID: {message.id}")

        await self._save(touched)
        return published

    async def _save(self, messages: List[OutboxMessage]) -> None:
        if not messages:
            return
        async with in_transaction() as conn:
            for message in messages:
                await message.save(update_fields=SAVED_FIELDS, using_db=conn)

    async def purge_expired(self) -> int:
        if self.retention_days <= 0:
            return 0
        return await purge_processed_messages(timedelta(days=self.retention_days))

    async def run(self, stop_event: Optional[asyncio.Event] = None):
        """Main loop: dispatch, purge, sleep. Exits when stop_event is set."""
        stop_event = stop_event or asyncio.Event()
        log.info(f"--- Outbox Dispatcher Started (interval {self.poll_interval}s) ---")

        while not stop_event.is_set():
            try:
                await self.process_pending(stop_event)
                await self.purge_expired()
            except Exception:
                log.exception("Error processing outbox messages")

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

        log.info("--- Outbox Dispatcher Stopped ---")

    def start(self) -> asyncio.Task:
        """Runs the loop as a background task of the current event loop."""
        if self._task is None or self._task.done():
            self._stop_event = asyncio.Event()
            self._task = asyncio.create_task(self.run(self._stop_event), name="outbox-dispatcher")
        return self._task

    async def stop(self, timeout: float = 30):
        """Signals the loop to stop and waits for the current cycle to finish."""
        if self._task is None:
            return
        self._stop_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=timeout)
        except asyncio.TimeoutError:
            log.warning("Outbox dispatcher did not stop in time; task cancelled.")
        self._task = None


async def start_outbox_dispatcher():
    """Entry point for running the dispatcher as its own process."""
    setup_logging()
    await init_db()
    dispatcher = OutboxDispatcher(build_event_bus())
    try:
        await dispatcher.run()
    finally:
        await close_basket_repository()
        await close_db()


if __name__ == "__main__":
    try:
        asyncio.run(start_outbox_dispatcher())
    except KeyboardInterrupt:
        log.info("Dispatcher service stopped.")
