"""In-process publish/subscribe event bus.

Dispatch contract:
- handlers run synchronously, in registration order, in the publisher's context
- the subscriber list is snapshotted when `publish` is called, so re-entrant
  publishes and (un)subscriptions made by a handler only affect later dispatches
- a failing handler is logged and never stops the remaining handlers
- a handler that returns an awaitable is *not* awaited ("fire, don't wait"): the
  awaitable is scheduled on the running event loop and tracked until it
  finishes. `await bus.drain()` is the explicit completion signal for callers
  that need sequencing.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DOCUMENT_CREATED = "document.created"
DOCUMENT_MODIFIED = "document.modified"
DOCUMENT_STATUS_CHANGED = "document.statusChanged"
WORKFLOW_CREATED = "workflow.created"
WORKFLOW_STEP_UPDATED = "workflow.stepUpdated"
WORKFLOW_STEP_CHANGED = "workflow.stepChanged"

EventHandler = Callable[[Any], object]


@dataclass(frozen=True, slots=True)
class Subscription:
    id: str
    topic: str
    handler: EventHandler


class EventBus:
    """Named topics, many subscribers per topic, synchronous in-order dispatch."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._pending: set[asyncio.Future[Any]] = set()

    def subscribe(
        self, topic: str, handler: EventHandler, subscription_id: str | None = None
    ) -> str:
        """Register `handler` for `topic` and return the subscription id."""

        sub_id = subscription_id or f"{topic}-{uuid.uuid4().hex[:12]}"
        self._subscriptions.setdefault(topic, []).append(
            Subscription(id=sub_id, topic=topic, handler=handler)
        )
        logger.debug("Subscribed", extra={"topic": topic, "subscription_id": sub_id})
        return sub_id

    def unsubscribe(self, topic: str, subscription_id: str) -> bool:
        subs = self._subscriptions.get(topic)
        if not subs:
            return False
        for idx, sub in enumerate(subs):
            if sub.id == subscription_id:
                del subs[idx]
                return True
        return False

    def off(self, topic: str, handler: EventHandler) -> bool:
        """Remove the first subscription of `handler` on `topic`."""

        subs = self._subscriptions.get(topic)
        if not subs:
            return False
        for idx, sub in enumerate(subs):
            if sub.handler == handler:
                del subs[idx]
                return True
        return False

    def unsubscribe_all(self, topic: str) -> None:
        self._subscriptions.pop(topic, None)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscriptions.get(topic, ()))

    def has_subscribers(self, topic: str) -> bool:
        return self.subscriber_count(topic) > 0

    def clear(self) -> None:
        self._subscriptions.clear()

    @property
    def pending_tasks(self) -> int:
        return sum(1 for task in self._pending if not task.done())

    def publish(self, topic: str, payload: Any) -> None:
        subs = list(self._subscriptions.get(topic, ()))
        logger.debug("Publishing event", extra={"topic": topic, "subscribers": len(subs)})

        for sub in subs:
            try:
                result = sub.handler(payload)
            except Exception:
                logger.exception(
                    "Event handler failed",
                    extra={"topic": topic, "subscription_id": sub.id},
                )
                continue

            if inspect.isawaitable(result):
                self._schedule(sub, result)

    async def drain(self) -> None:
        """Wait until every scheduled async handler (including ones they schedule) finished."""

        while True:
            pending = [task for task in self._pending if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _schedule(self, sub: Subscription, awaitable: Awaitable[Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.error(
                "Async event handler needs a running event loop; dropped",
                extra={"topic": sub.topic, "subscription_id": sub.id},
            )
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)

        def _done(finished: asyncio.Future[Any]) -> None:
            self._pending.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                logger.error(
                    "Async event handler failed",
                    exc_info=exc,
                    extra={"topic": sub.topic, "subscription_id": sub.id},
                )

        task.add_done_callback(_done)
