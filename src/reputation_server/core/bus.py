"""
Standing Event Bus

Every fact the reputation service wants other components to know about
(a faction was created, a standing changed, a notice is ready) is emitted on
a :class:`StandingBus`.  Display layers, chat bridges and tests subscribe to
it instead of being called directly.

=============================================================================
PRINCIPLES
=============================================================================

1. THE BUS RECORDS FACTS
   - Events are past tense: "reputation:changed" means it already changed.

2. EVENTS ARE IMMUTABLE
   - Handlers receive frozen events; they cannot modify them.

3. EMIT IS SYNCHRONOUS
   - Sequence assignment and log commit happen inside emit().
   - Sync handlers run inline; async handlers are scheduled afterwards.

4. ONE BUS PER OWNER
   - There is no module-level instance.  Whoever builds the service owns its
     bus; two services never share history by accident.

=============================================================================
USAGE
=============================================================================

    bus = StandingBus()

    def on_change(event):
        print(event.detail["faction_id"], event.detail["new_value"])

    unsubscribe = bus.on("reputation:changed", on_change)
    bus.emit("reputation:changed", {"faction_id": "abc", "new_value": 2})
    unsubscribe()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# TYPE ALIASES
# =============================================================================

SyncHandler = Callable[["StandingEvent"], None]
AsyncHandler = Callable[["StandingEvent"], Coroutine[Any, Any, None]]
EventHandler = SyncHandler | AsyncHandler
Unsubscribe = Callable[[], None]

DEFAULT_LOG_SIZE = 1000


# =============================================================================
# EVENT
# =============================================================================


@dataclass(frozen=True)
class EventMetadata:
    """
    Metadata attached to every event.

    Attributes:
        timestamp: Unix epoch milliseconds (UTC). For display only.
        source: Component that emitted the event.
        sequence: Per-bus monotonically increasing integer. The only
                  reliable ordering.
    """

    timestamp: int
    source: str
    sequence: int

    @staticmethod
    def create(source: str, sequence: int) -> EventMetadata:
        now_ms = int(datetime.now(UTC).timestamp() * 1000)
        return EventMetadata(timestamp=now_ms, source=source, sequence=sequence)


@dataclass(frozen=True)
class StandingEvent:
    """
    A single event on the bus.

    Attributes:
        type: "domain:action" string, see :class:`~reputation_server.core.events.Events`.
        detail: Event payload. Treat as read-only.
        meta: Metadata assigned by the bus on emit.
    """

    type: str
    detail: dict = field(default_factory=dict)
    meta: EventMetadata | None = None

    def __str__(self) -> str:
        if self.meta:
            return (
                f"StandingEvent(type='{self.type}', "
                f"source='{self.meta.source}', "
                f"seq={self.meta.sequence})"
            )
        return f"StandingEvent(type='{self.type}')"


# =============================================================================
# BUS
# =============================================================================


class StandingBus:
    """
    Instance-owned publish/subscribe bus with a bounded event log.

    Not thread-safe: the service runs on a single asyncio loop.

    Key Methods:
    - emit(): Record an event and notify handlers.
    - on(): Subscribe (returns an unsubscribe function).
    - once(): Subscribe for a single event.
    - wait_for(): Await the next event of a type.
    - get_event_log(): Recent history, oldest first.
    """

    def __init__(self, *, log_size: int = DEFAULT_LOG_SIZE) -> None:
        # event_type -> handlers, in registration order
        self._handlers: dict[str, list[EventHandler]] = {}
        self._event_log: deque[StandingEvent] = deque(maxlen=log_size)
        self._sequence: int = 0
        self._wait_promises: dict[str, list[asyncio.Future[StandingEvent]]] = {}
        # Background tasks for async handlers; held so they are not collected
        self._tasks: set[asyncio.Task[None]] = set()
        self.debug: bool = False

    # =========================================================================
    # EMIT
    # =========================================================================

    def emit(
        self, event_type: str, detail: dict[str, Any] | None = None, source: str = "service"
    ) -> StandingEvent:
        """
        Emit an event.

        When this returns the event has a sequence number, is in the log,
        every sync handler has run and every async handler is scheduled.

        Args:
            event_type: "domain:action" event type.
            detail: Event payload (defaults to an empty dict).
            source: Emitting component, for debugging.

        Returns:
            The committed event.
        """
        self._sequence += 1
        event = StandingEvent(
            type=event_type,
            detail=detail if detail is not None else {},
            meta=EventMetadata.create(source, self._sequence),
        )
        self._event_log.append(event)

        if self.debug:
            logger.debug("EMIT [%d]: %s from %s", self._sequence, event.type, source)

        self._notify_handlers(event)
        self._resolve_wait_promises(event)
        return event

    def _notify_handlers(self, event: StandingEvent) -> None:
        # Copy: a once() handler unsubscribes itself mid-iteration
        for handler in list(self._handlers.get(event.type, ())):
            try:
                if inspect.iscoroutinefunction(handler):
                    self._schedule_async_handler(handler, event)
                else:
                    handler(event)
            except Exception as e:
                # The event is committed regardless of handler errors
                logger.error(f"Handler error for '{event.type}': {e}", exc_info=True)

    def _schedule_async_handler(self, handler: AsyncHandler, event: StandingEvent) -> None:
        """
        Run an async handler.

        With a running loop (server, async tests) the handler becomes a
        background task.  Without one (CLI, sync tests) it runs to
        completion via ``asyncio.run``.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(handler(event))
            return
        task = loop.create_task(handler(event))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Async handler error: %s", error, exc_info=error)

    def _resolve_wait_promises(self, event: StandingEvent) -> None:
        futures = self._wait_promises.pop(event.type, None)
        if not futures:
            return
        for future in futures:
            if not future.done():
                future.set_result(event)

    # =========================================================================
    # SUBSCRIBE
    # =========================================================================

    def on(self, event_type: str, handler: EventHandler) -> Unsubscribe:
        """
        Subscribe ``handler`` (sync or async) to ``event_type``.

        Returns:
            A function that removes the subscription.  Calling it twice is
            harmless.
        """
        self._handlers.setdefault(event_type, []).append(handler)

        if self.debug:
            count = len(self._handlers[event_type])
            logger.debug("SUBSCRIBE: '%s' (total handlers: %d)", event_type, count)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def once(self, event_type: str, handler: EventHandler) -> Unsubscribe:
        """Like :meth:`on`, but unsubscribes after the first event."""
        unsub: Unsubscribe | None = None

        def one_time_wrapper(event: StandingEvent) -> None:
            try:
                if inspect.iscoroutinefunction(handler):
                    self._schedule_async_handler(handler, event)
                else:
                    handler(event)
            finally:
                if unsub is not None:
                    unsub()

        unsub = self.on(event_type, one_time_wrapper)
        return unsub

    async def wait_for(self, event_type: str, timeout_ms: int | None = None) -> StandingEvent:
        """
        Wait for the next event of ``event_type``.

        Raises:
            TimeoutError: If ``timeout_ms`` elapses first.
        """
        future: asyncio.Future[StandingEvent] = asyncio.get_running_loop().create_future()
        self._wait_promises.setdefault(event_type, []).append(future)
        try:
            if timeout_ms is None:
                return await future
            return await asyncio.wait_for(future, timeout=timeout_ms / 1000.0)
        finally:
            self._discard_wait_promise(event_type, future)

    def _discard_wait_promise(
        self, event_type: str, future: asyncio.Future[StandingEvent]
    ) -> None:
        # emit() pops resolved waiters; timed-out or cancelled ones are removed here
        waiting = self._wait_promises.get(event_type)
        if waiting is None:
            return
        if future in waiting:
            waiting.remove(future)
        if not waiting:
            del self._wait_promises[event_type]

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def get_event_log(self, limit: int | None = None) -> list[StandingEvent]:
        """Recent events, oldest first; ``limit`` keeps the last N."""
        events = list(self._event_log)
        if limit is not None:
            return events[-limit:] if limit > 0 else []
        return events

    def get_sequence(self) -> int:
        return self._sequence

    def get_handler_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, ()))

    def get_waiter_count(self, event_type: str) -> int:
        """Pending wait_for() calls for ``event_type``."""
        return len(self._wait_promises.get(event_type, ()))

    def clear_event_log(self) -> None:
        self._event_log.clear()
