"""Query controller: debounced, cancellable evaluation of live search input.

State machine::

    IDLE --keystroke--> DEBOUNCING --timer--> COMPUTING --current--> SETTLED
      ^                    ^   |                  |
      |                    +---+ keystroke        +--stale--> (discarded)
      +------------------- cleared query published

Every input bumps ``generation``. A computation captures the generation it
was started for and only publishes if that is still the latest one, so a
slow, older result can never overwrite a newer one. Keystrokes restart the
debounce timer; category changes and clearing skip the debounce.

The controller must be driven from a running asyncio event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import replace
import logging

from guide_search.config import Settings
from guide_search.domain.model import ALL_CATEGORIES, ControllerState, QueryState, SearchSnapshot
from guide_search.observability.context import set_query_generation
from guide_search.observability.metrics import QUERY_COUNT
from guide_search.observability.tracing import create_span
from guide_search.search.engine import SearchEngine


logger = logging.getLogger(__name__)

Subscriber = Callable[[SearchSnapshot], None]


class QueryController:
    """Owns the query state for one search box and publishes settled snapshots."""

    def __init__(self, engine: SearchEngine, settings: Settings | None = None) -> None:
        self._engine = engine
        self._settings = settings or engine.settings
        self._debounce_seconds = self._settings.debounce_seconds()

        self._query = QueryState()
        self._state = ControllerState.IDLE
        self._subscribers: list[Subscriber] = []
        self._debounce_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._failure: BaseException | None = None

        # Browse-all is available before the first keystroke
        self._snapshot = engine.snapshot(self._query)

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def query_state(self) -> QueryState:
        return self._query

    @property
    def generation(self) -> int:
        return self._query.generation

    @property
    def snapshot(self) -> SearchSnapshot:
        """The most recently published snapshot."""
        return self._snapshot

    @property
    def categories(self) -> tuple[str, ...]:
        return self._engine.categories

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` and hand it the current snapshot right away.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)
        self._notify(callback, self._snapshot)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set_query_text(self, text: str) -> None:
        """Record a keystroke. Blank text republishes the (faceted) catalog immediately."""
        self._advance(text=text)
        if self._query.is_blank:
            self._schedule(0.0)
            return
        self._state = ControllerState.DEBOUNCING
        self._schedule(self._debounce_seconds)

    def set_active_category(self, category: str) -> None:
        """Switch the category facet; recomputes without debounce."""
        self._advance(active_category=category or ALL_CATEGORIES)
        self._schedule(0.0)

    def clear(self) -> None:
        """Reset both the text and the facet in one step."""
        self._advance(text="", active_category=ALL_CATEGORIES)
        self._schedule(0.0)

    async def evaluate(self, query: QueryState) -> SearchSnapshot:
        """Produce the snapshot for ``query``.

        Runs synchronously on the loop; the catalog is small enough that this
        fits well inside a frame. Subclasses may override it to offload work.
        """
        return self._engine.snapshot(query)

    async def wait_settled(self) -> None:
        """Wait until no debounce timer or computation is outstanding.

        Re-raises the first error raised by a computation since the last call,
        including one that failed before anyone was waiting.
        """
        while self._tasks:
            done, _ = await asyncio.wait(set(self._tasks))
            self._tasks.difference_update(done)
        if self._failure is not None:
            failure, self._failure = self._failure, None
            raise failure

    async def aclose(self) -> None:
        """Cancel outstanding work and drop all subscribers."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._failure = None
        self._debounce_task = None
        self._subscribers.clear()

    def _advance(self, **changes: object) -> None:
        self._query = replace(self._query, generation=self._query.generation + 1, **changes)

    def _schedule(self, delay: float) -> None:
        loop = asyncio.get_running_loop()
        # Only a pending timer is cancelled; computations already running are
        # left to finish and are discarded by the generation check
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()

        task = loop.create_task(self._run(self._query, delay), name=f"guide-search-gen-{self._query.generation}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        self._debounce_task = task if delay > 0 else None

    async def _run(self, query: QueryState, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
            if self._debounce_task is asyncio.current_task():
                self._debounce_task = None

        if query.generation != self._query.generation:
            self._discard(query)
            return

        set_query_generation(query.generation)

        self._state = ControllerState.COMPUTING
        with create_span(
            "guide_search.query",
            attributes={"query.generation": query.generation, "query.category": query.active_category},
        ):
            snapshot = await self.evaluate(query)

        if query.generation != self._query.generation:
            self._discard(query)
            return

        self._publish(snapshot)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled() or task.exception() is None:
            return
        exc = task.exception()
        logger.error("Search computation failed", exc_info=exc, extra={"task": task.get_name()})
        if self._failure is None:
            self._failure = exc
        if self._state is ControllerState.COMPUTING:
            self._state = self._settled_state(self._snapshot)

    def _discard(self, query: QueryState) -> None:
        QUERY_COUNT.labels(outcome="stale").inc()
        logger.debug(
            "Discarded stale query result",
            extra={"stale_generation": query.generation, "current_generation": self._query.generation},
        )

    def _publish(self, snapshot: SearchSnapshot) -> None:
        self._snapshot = snapshot
        self._state = self._settled_state(snapshot)
        QUERY_COUNT.labels(outcome="published").inc()
        logger.debug(
            "Published query result",
            extra={"result_count": snapshot.count, "ranked": snapshot.ranked},
        )
        for callback in list(self._subscribers):
            self._notify(callback, snapshot)

    @staticmethod
    def _settled_state(snapshot: SearchSnapshot) -> ControllerState:
        return ControllerState.IDLE if not snapshot.query.strip() else ControllerState.SETTLED

    def _notify(self, callback: Subscriber, snapshot: SearchSnapshot) -> None:
        # One failing subscriber must not starve the others
        try:
            callback(snapshot)
        except Exception:
            logger.exception("Search subscriber failed", extra={"generation": snapshot.generation})
